from typing import Annotated

from fastapi import APIRouter, Depends

from src.application.services.authorization_service import AuthorizationService
from src.domain.entities.principal import Principal
from src.domain.exceptions import ResourceNotFoundException
from src.infrastructure.persistence.repositories import UserRepository
from src.presentation.api.dependencies import get_authz_service, get_current_user, get_user_repo
from src.presentation.api.v1.schemas.user import UserPermissionsResponse, UserProfileResponse

router = APIRouter()


@router.get("/profile", response_model=UserProfileResponse)
async def get_profile(
    principal: Annotated[Principal, Depends(get_current_user)],
    user_repo: Annotated[UserRepository, Depends(get_user_repo)],
):
    """Get current authenticated user information"""
    user = await user_repo.get_by_id(principal.id)
    if not user:
        raise ResourceNotFoundException("User", principal.id)
    return UserProfileResponse.model_validate(user)


@router.get("/permissions", response_model=UserPermissionsResponse)
async def get_my_permissions(
    principal: Annotated[Principal, Depends(get_current_user)],
    authz_service: Annotated[AuthorizationService, Depends(get_authz_service)],
):
    """Effective permission keys granted through the user's assigned roles"""
    roles = await authz_service.get_user_roles(principal.id)
    permissions = await authz_service.get_user_permissions(principal.id)
    return UserPermissionsResponse(
        user_id=principal.id,
        role=principal.role,
        roles=[role.name for role in roles],
        permissions=sorted(permissions),
    )
