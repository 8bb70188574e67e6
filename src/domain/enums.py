"""Domain enumerations for the clinic access model."""

from enum import Enum


class HttpMethod(str, Enum):
    """HTTP verbs a permission can be bound to"""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [method.value for method in cls]


class SystemRole(str, Enum):
    """Built-in role templates recomputed by every RBAC seed"""

    MASTER_ADMIN = "master_admin"
    ADMIN = "admin"
    DOCTOR = "doctor"
    PATIENT = "patient"

    @classmethod
    def values(cls) -> list[str]:
        """Get all valid values"""
        return [role.value for role in cls]
