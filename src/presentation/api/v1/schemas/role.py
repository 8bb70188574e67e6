from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.presentation.api.v1.schemas.permission import PermissionResponse


class RoleCreate(BaseModel):
    """Schema for creating a custom role"""

    name: str = Field(..., min_length=1, max_length=100, description="Unique role name")
    description: str = Field(..., min_length=1, description="Role description")
    permissions: list[str] = Field(
        default_factory=list, description="IDs of permissions granted by this role"
    )


class RoleUpdate(BaseModel):
    """Schema for updating a custom role; omitted fields are left unchanged"""

    role_id: str = Field(..., min_length=1, description="Role ID")
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, min_length=1)
    permissions: list[str] | None = None
    is_active: bool | None = None


class RoleResponse(BaseModel):
    """Schema for role response"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: str
    is_system: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime


class RoleWithPermissions(RoleResponse):
    """Role response with permissions included"""

    permissions: list[PermissionResponse] = []


class RoleListResponse(BaseModel):
    roles: list[RoleWithPermissions]


class UserRoleAssign(BaseModel):
    """Schema for assigning a role to a user"""

    role_id: str = Field(..., description="Role ID to assign")
    expires_at: datetime | None = Field(None, description="Optional expiration time")


class UserRoleResponse(BaseModel):
    """Schema for user-role assignment response"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    role_id: str
    assigned_by: str | None
    assigned_at: datetime
    expires_at: datetime | None
