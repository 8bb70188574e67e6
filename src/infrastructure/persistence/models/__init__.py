from src.infrastructure.persistence.models.mixins import (
    AuditedModel,
    CuidMixin,
    TimestampMixin,
)
from src.infrastructure.persistence.models.permission import (
    Permission,
    RolePermission,
    UserRole,
)
from src.infrastructure.persistence.models.rbac_policy import RbacPolicy
from src.infrastructure.persistence.models.role import Role
from src.infrastructure.persistence.models.user import User

__all__ = [
    # Models
    "User",
    "Role",
    "Permission",
    "RolePermission",
    "UserRole",
    "RbacPolicy",
    # Mixins
    "CuidMixin",
    "TimestampMixin",
    "AuditedModel",
]
