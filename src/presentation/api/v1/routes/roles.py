from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from src.application.services.role_management_service import RoleManagementService
from src.domain.enums import SystemRole
from src.infrastructure.persistence.repositories import PermissionRepository, RoleRepository
from src.presentation.api.dependencies import (
    get_permission_repo,
    get_role_management_service,
    get_role_repo,
    require_roles,
)
from src.presentation.api.v1.schemas.permission import PermissionResponse
from src.presentation.api.v1.schemas.role import (
    RoleCreate,
    RoleListResponse,
    RoleResponse,
    RoleUpdate,
    RoleWithPermissions,
)

router = APIRouter()

MASTER_ADMIN = SystemRole.MASTER_ADMIN.value
ADMIN = SystemRole.ADMIN.value


async def _with_permissions(role, permission_repo: PermissionRepository) -> RoleWithPermissions:
    permissions = await permission_repo.get_permissions_for_role(role.id)
    return RoleWithPermissions(
        **RoleResponse.model_validate(role).model_dump(),
        permissions=[PermissionResponse.model_validate(p) for p in permissions],
    )


@router.get(
    "/roles",
    response_model=RoleListResponse,
    dependencies=[Depends(require_roles(MASTER_ADMIN, ADMIN))],
)
async def list_roles(
    role_repo: Annotated[RoleRepository, Depends(get_role_repo)],
    permission_repo: Annotated[PermissionRepository, Depends(get_permission_repo)],
    include_permissions: bool = Query(False),
):
    """List all roles ordered by name"""
    roles = await role_repo.list_roles()
    if include_permissions:
        return {"roles": [await _with_permissions(role, permission_repo) for role in roles]}
    return {"roles": [RoleWithPermissions.model_validate(role) for role in roles]}


@router.post(
    "/roles",
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(MASTER_ADMIN))],
)
async def create_role(
    data: RoleCreate,
    service: Annotated[RoleManagementService, Depends(get_role_management_service)],
):
    """Create a custom role"""
    role = await service.create_role(data.name, data.description, data.permissions)
    return {"role": await _with_permissions(role, service.permission_repo)}


@router.put(
    "/roles",
    dependencies=[Depends(require_roles(MASTER_ADMIN))],
)
async def update_role(
    data: RoleUpdate,
    service: Annotated[RoleManagementService, Depends(get_role_management_service)],
):
    """Update a custom role; system roles are rejected"""
    role = await service.update_role(
        data.role_id,
        name=data.name,
        description=data.description,
        permission_ids=data.permissions,
        is_active=data.is_active,
    )
    return {"role": await _with_permissions(role, service.permission_repo)}


@router.delete(
    "/roles",
    dependencies=[Depends(require_roles(MASTER_ADMIN))],
)
async def delete_role(
    service: Annotated[RoleManagementService, Depends(get_role_management_service)],
    role_id: str = Query(..., min_length=1),
):
    """Delete a custom role; system roles are rejected"""
    await service.delete_role(role_id)
    return {"message": "Role deleted successfully"}
