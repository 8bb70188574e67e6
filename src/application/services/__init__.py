"""Application services."""

from src.application.services.authorization_service import (
    AccessDecision,
    AuthorizationService,
    check_role_access,
    enforce_role_access,
)
from src.application.services.permission_synthesizer import (
    PermissionSyncResult,
    PermissionSynthesizer,
)
from src.application.services.rbac_seed_service import RbacSeedService, SeedReport
from src.application.services.role_management_service import RoleManagementService
from src.application.services.role_template_service import (
    RoleSyncResult,
    RoleTemplate,
    RoleTemplateAssigner,
)
from src.application.services.route_catalog import RouteCatalogBuilder

__all__ = [
    "AccessDecision",
    "AuthorizationService",
    "check_role_access",
    "enforce_role_access",
    "PermissionSyncResult",
    "PermissionSynthesizer",
    "RbacSeedService",
    "SeedReport",
    "RoleManagementService",
    "RoleSyncResult",
    "RoleTemplate",
    "RoleTemplateAssigner",
    "RouteCatalogBuilder",
]
