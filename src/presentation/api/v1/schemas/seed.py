from datetime import datetime

from pydantic import BaseModel


class PermissionCounts(BaseModel):
    created: int
    updated: int
    deactivated: int
    total: int


class RoleCounts(BaseModel):
    created: int
    updated: int
    total: int


class RouteCounts(BaseModel):
    scanned: int
    categories: int


class SeedResponse(BaseModel):
    """Report of a completed RBAC seed"""

    message: str = "RBAC system seeded successfully"
    permissions: PermissionCounts
    roles: RoleCounts
    routes: RouteCounts
    policy_version: int


class PolicyStatusResponse(BaseModel):
    """Current policy generation; version 0 means never seeded"""

    policy_version: int
    seeded_by: str | None = None
    seeded_at: datetime | None = None
