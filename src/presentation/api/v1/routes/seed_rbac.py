import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from src.application.services.authorization_service import AuthorizationService
from src.application.services.rbac_seed_service import RbacSeedService
from src.domain.entities.principal import Principal
from src.domain.enums import SystemRole
from src.presentation.api.dependencies import get_authz_service, get_seed_service, require_roles
from src.presentation.api.v1.schemas.seed import PolicyStatusResponse, SeedResponse

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/seed-rbac", response_model=SeedResponse)
async def seed_rbac(
    principal: Annotated[Principal, Depends(require_roles(SystemRole.MASTER_ADMIN.value))],
    seed_service: Annotated[RbacSeedService, Depends(get_seed_service)],
    authz_service: Annotated[AuthorizationService, Depends(get_authz_service)],
):
    """
    Rebuild permissions from the route catalog and recompute the system roles.

    Safe to re-run: an unchanged catalog yields created=0 and the same ids.
    """
    logger.info("RBAC seed requested by %s", principal.username or principal.id)
    report = await seed_service.run(seeded_by=principal.id)
    await authz_service.invalidate_all()
    return report.to_dict()


@router.get(
    "/seed-rbac",
    response_model=PolicyStatusResponse,
    dependencies=[Depends(require_roles(SystemRole.MASTER_ADMIN.value))],
)
async def get_policy_status(
    seed_service: Annotated[RbacSeedService, Depends(get_seed_service)],
):
    """Current RBAC policy generation"""
    policy = await seed_service.policy_repo.get_current()
    if not policy:
        return PolicyStatusResponse(policy_version=0)
    return PolicyStatusResponse(
        policy_version=policy.version,
        seeded_by=policy.seeded_by,
        seeded_at=policy.seeded_at,
    )
