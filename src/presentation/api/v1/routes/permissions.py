import math
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from src.application.services.authorization_service import AuthorizationService
from src.application.services.rbac_seed_service import RbacSeedService
from src.domain.enums import SystemRole
from src.domain.exceptions import ResourceNotFoundException
from src.infrastructure.persistence.repositories import PermissionRepository
from src.presentation.api.dependencies import (
    get_authz_service,
    get_permission_repo,
    get_seed_service,
    require_roles,
)
from src.presentation.api.v1.schemas.permission import (
    PermissionListResponse,
    PermissionResponse,
    PermissionStatusUpdate,
    PermissionSyncResponse,
)

router = APIRouter()

MASTER_ADMIN = SystemRole.MASTER_ADMIN.value
ADMIN = SystemRole.ADMIN.value


@router.get(
    "/permissions",
    response_model=PermissionListResponse,
    dependencies=[Depends(require_roles(MASTER_ADMIN, ADMIN))],
)
async def list_permissions(
    permission_repo: Annotated[PermissionRepository, Depends(get_permission_repo)],
    category: str | None = Query(None, description="Filter by category ('all' for none)"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
):
    """List permissions ordered by category and name"""
    if category == "all":
        category = None

    permissions, total = await permission_repo.list_permissions(
        category=category, skip=(page - 1) * limit, limit=limit
    )
    return {
        "permissions": [PermissionResponse.model_validate(p) for p in permissions],
        "pagination": {
            "total": total,
            "page": page,
            "limit": limit,
            "pages": math.ceil(total / limit),
        },
    }


@router.post(
    "/permissions",
    response_model=PermissionSyncResponse,
    dependencies=[Depends(require_roles(MASTER_ADMIN))],
)
async def sync_permissions(
    seed_service: Annotated[RbacSeedService, Depends(get_seed_service)],
    authz_service: Annotated[AuthorizationService, Depends(get_authz_service)],
):
    """Create or update permissions from the route catalog (roles are not touched)"""
    result, total_routes = await seed_service.sync_permissions()
    await authz_service.invalidate_all()
    return PermissionSyncResponse(
        created=result.created,
        updated=result.updated,
        deactivated=result.deactivated,
        totalRoutes=total_routes,
    )


@router.put(
    "/permissions",
    dependencies=[Depends(require_roles(MASTER_ADMIN))],
)
async def update_permission_status(
    data: PermissionStatusUpdate,
    permission_repo: Annotated[PermissionRepository, Depends(get_permission_repo)],
    authz_service: Annotated[AuthorizationService, Depends(get_authz_service)],
):
    """Activate or deactivate a single permission"""
    permission = await permission_repo.set_active(data.permission_id, data.is_active)
    if not permission:
        raise ResourceNotFoundException("Permission", data.permission_id)

    await permission_repo.commit()
    await authz_service.invalidate_all()
    return {"permission": PermissionResponse.model_validate(permission)}
