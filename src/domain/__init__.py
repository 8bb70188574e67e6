"""
Domain layer - Enterprise Business Rules.

This is the innermost layer containing route and principal entities,
RBAC enums, and domain exceptions. It has no dependencies on other layers.
"""

from src.domain.entities import PermissionDraft, Principal, RouteEntry
from src.domain.enums import HttpMethod, SystemRole
from src.domain.exceptions import (AuthenticationException,
                                   AuthorizationDeniedException,
                                   CatalogUnavailableError, ClinicException,
                                   ConflictException, PermissionSyncError,
                                   ResourceNotFoundException, RoleSyncError,
                                   SeedTimeoutError,
                                   SystemRoleProtectedException,
                                   UpstreamUnavailableException,
                                   ValidationException)

__all__ = [
    # Entities
    "PermissionDraft",
    "Principal",
    "RouteEntry",
    # Enums
    "HttpMethod",
    "SystemRole",
    # Exceptions
    "ClinicException",
    "ValidationException",
    "AuthenticationException",
    "AuthorizationDeniedException",
    "ResourceNotFoundException",
    "ConflictException",
    "SystemRoleProtectedException",
    "UpstreamUnavailableException",
    "CatalogUnavailableError",
    "PermissionSyncError",
    "RoleSyncError",
    "SeedTimeoutError",
]
