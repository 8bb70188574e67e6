from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PermissionResponse(BaseModel):
    """Route-bound permission"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    route: str
    method: str
    name: str
    description: str
    category: str
    is_active: bool
    created_at: datetime
    updated_at: datetime


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class PermissionListResponse(BaseModel):
    permissions: list[PermissionResponse]
    pagination: Pagination


class PermissionStatusUpdate(BaseModel):
    """Toggle a permission's active flag"""

    permission_id: str = Field(..., min_length=1, description="Permission ID")
    is_active: bool


class PermissionSyncResponse(BaseModel):
    """Outcome of synchronizing permissions with the route catalog"""

    message: str = "Permissions updated successfully"
    created: int
    updated: int
    deactivated: int
    totalRoutes: int
