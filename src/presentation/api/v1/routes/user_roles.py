import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.services.authorization_service import AuthorizationService
from src.domain.entities.principal import Principal
from src.domain.enums import SystemRole
from src.domain.exceptions import ConflictException, ResourceNotFoundException
from src.infrastructure.cache.redis_cache import CacheService
from src.infrastructure.persistence.database import get_db_transactional
from src.infrastructure.persistence.repositories import RoleRepository, UserRepository
from src.presentation.api.dependencies import get_cache_service, require_roles
from src.presentation.api.v1.schemas.role import UserRoleAssign, UserRoleResponse

router = APIRouter()
logger = logging.getLogger(__name__)

role_admins = require_roles(SystemRole.MASTER_ADMIN.value, SystemRole.ADMIN.value)


@router.post(
    "/users/{user_id}/roles",
    response_model=UserRoleResponse,
    status_code=status.HTTP_201_CREATED,
)
async def assign_role_to_user(
    user_id: str,
    data: UserRoleAssign,
    principal: Annotated[Principal, Depends(role_admins)],
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
    cache: Annotated[CacheService, Depends(get_cache_service)],
):
    """Assign a role to a user"""
    user_repo = UserRepository(db)
    role_repo = RoleRepository(db)

    user = await user_repo.get_by_id(user_id)
    if not user:
        raise ResourceNotFoundException("User", user_id)

    role = await role_repo.get_by_id(data.role_id)
    if not role:
        raise ResourceNotFoundException("Role", data.role_id)

    if not role.is_active:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot assign inactive role",
        )

    if await user_repo.get_assignment(user_id, role.id):
        raise ConflictException(
            "User already has this role assigned", {"user_id": user_id, "role_id": role.id}
        )

    try:
        user_role = await user_repo.assign_role(
            user_id=user_id,
            role_id=role.id,
            assigned_by=principal.id,
            expires_at=data.expires_at,
        )
    except IntegrityError:
        raise ConflictException(
            "User already has this role assigned", {"user_id": user_id, "role_id": role.id}
        ) from None

    await db.commit()
    await AuthorizationService(db, cache_service=cache).invalidate_user_cache(user_id)
    logger.info("Role %s assigned to user %s by %s", role.name, user_id, principal.id)
    return UserRoleResponse.model_validate(user_role)


@router.delete(
    "/users/{user_id}/roles/{role_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_role_from_user(
    user_id: str,
    role_id: str,
    principal: Annotated[Principal, Depends(role_admins)],
    db: Annotated[AsyncSession, Depends(get_db_transactional)],
    cache: Annotated[CacheService, Depends(get_cache_service)],
):
    """Remove a role from a user"""
    removed = await UserRepository(db).remove_role(user_id, role_id)
    if not removed:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Role assignment not found"
        )

    await db.commit()
    await AuthorizationService(db, cache_service=cache).invalidate_user_cache(user_id)
    logger.info("Role %s removed from user %s by %s", role_id, user_id, principal.id)
