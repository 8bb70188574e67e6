from datetime import datetime

from pydantic import BaseModel, ConfigDict


class UserProfileResponse(BaseModel):
    """Profile of the authenticated user"""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    email: str
    full_name: str | None
    role: str
    is_active: bool
    created_at: datetime


class UserPermissionsResponse(BaseModel):
    """Effective permission keys ('route:METHOD') of the authenticated user"""

    user_id: str
    role: str | None
    roles: list[str]
    permissions: list[str]
