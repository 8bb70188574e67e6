"""
Domain exceptions for the clinic access service.

This module defines domain-level exceptions that represent business rule violations
and failed steps of the RBAC bootstrap. Each exception carries the HTTP status it
maps to, so handlers can translate them uniformly.
"""

from typing import Any


class ClinicException(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message: Human-readable error description
        error_code: Machine-readable error code for API responses
        details: Additional error context
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.message,
            "code": self.error_code,
            "details": self.details,
        }


class ValidationException(ClinicException):
    """Raised when input validation fails."""

    status_code = 400

    def __init__(self, message: str, field: str | None = None):
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class AuthenticationException(ClinicException):
    """Raised when the request carries no usable session."""

    status_code = 401

    def __init__(self, message: str = "Authentication required", reason: str = "no session"):
        super().__init__(message, "AUTHENTICATION_ERROR", {"reason": reason})


class AuthorizationDeniedException(ClinicException):
    """Raised when an authenticated principal lacks the required role or permission."""

    status_code = 403

    def __init__(
        self,
        message: str = "Forbidden",
        role: str | None = None,
        allowed: list[str] | None = None,
        reason: str = "role not permitted",
    ):
        details: dict[str, Any] = {"reason": reason}
        if role:
            details["role"] = role
        if allowed is not None:
            details["allowed"] = allowed
        super().__init__(message, "AUTHORIZATION_ERROR", details)


class ResourceNotFoundException(ClinicException):
    """Raised when a requested resource is not found."""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": resource_id},
        )


class ConflictException(ClinicException):
    """Raised when a natural key (role name, permission route+method) already exists."""

    status_code = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, "CONFLICT", details)


class SystemRoleProtectedException(ClinicException):
    """Raised on update or delete of a system role."""

    status_code = 400

    def __init__(self, role_name: str, operation: str):
        super().__init__(
            f"Cannot {operation} system roles",
            "SYSTEM_ROLE_PROTECTED",
            {"role": role_name, "operation": operation},
        )


class UpstreamUnavailableException(ClinicException):
    """
    Raised when persistence or another collaborator fails mid-operation.

    `step` names the bootstrap step that failed so an operator can re-run
    the job knowing where it stopped.
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        step: str,
        details: dict[str, Any] | None = None,
    ):
        self.step = step
        merged: dict[str, Any] = {"step": step}
        merged.update(details or {})
        super().__init__(message, "UPSTREAM_UNAVAILABLE", merged)


class CatalogUnavailableError(UpstreamUnavailableException):
    """Raised when the route catalog cannot be built or comes out empty."""

    def __init__(self, reason: str):
        super().__init__(f"Route scanning failed: {reason}", "catalog_scan")


class PermissionSyncError(UpstreamUnavailableException):
    """Raised when a single permission upsert fails; carries the counts reached so far."""

    def __init__(self, route: str, method: str, cause: Exception, created: int, updated: int):
        self.route = route
        self.method = method
        self.created = created
        self.updated = updated
        super().__init__(
            f"Permission creation failed for {route} {method}: {cause}",
            "permission_upsert",
            {"route": route, "method": method, "created": created, "updated": updated},
        )


class RoleSyncError(UpstreamUnavailableException):
    """Raised when a system role upsert fails."""

    def __init__(self, role_name: str, cause: Exception, created: int, updated: int):
        self.role_name = role_name
        self.created = created
        self.updated = updated
        super().__init__(
            f"Role creation failed for {role_name}: {cause}",
            "role_upsert",
            {"role": role_name, "created": created, "updated": updated},
        )


class SeedTimeoutError(UpstreamUnavailableException):
    """Raised when the seed pipeline exceeds its overall timeout."""

    def __init__(self, timeout: float, progress: dict[str, Any]):
        super().__init__(
            f"RBAC seed timed out after {timeout:g} seconds",
            "timeout",
            {"progress": progress},
        )
