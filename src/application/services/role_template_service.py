"""
Role template assigner.

The four system roles are recomputed from the active permission set on
every seed: each template is a predicate over permissions, and a role's
stored permission references are replaced wholesale by the matches.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass, field
from typing import Any, Protocol

from src.application.services.route_catalog import path_segments
from src.domain.enums import SystemRole
from src.domain.exceptions import RoleSyncError

logger = logging.getLogger(__name__)

DOCTOR_CATEGORIES = frozenset(
    {
        "patients",
        "appointments",
        "prescriptions",
        "ehr",
        "billing",
        "inventory",
        "email",
        "profile",
        "dashboard",
    }
)
PATIENT_CATEGORIES = frozenset({"profile", "dashboard"})

# Segment marking a patient's own-profile routes inside the patients category
SELF_PROFILE_SEGMENT = "profile"


class PermissionLike(Protocol):
    id: str
    route: str
    method: str
    category: str


class RoleStore(Protocol):
    """Persistence operations the assigner needs"""

    async def get_names(self) -> set[str]: ...

    async def upsert_system_role(self, name: str, description: str) -> str: ...

    async def replace_permissions(self, role_id: str, permission_ids: Any) -> int: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


@dataclass(frozen=True)
class RoleTemplate:
    name: str
    description: str
    includes: Callable[[PermissionLike], bool]


@dataclass
class RoleSyncResult:
    """Counts reported by a role assignment run"""

    created: int = 0
    updated: int = 0
    total: int = 0
    assignments: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, int]:
        data = asdict(self)
        data.pop("assignments")
        return data


def route_under(route: str, prefix: str) -> bool:
    """True when `route` is `prefix` itself or nested below it"""
    return route == prefix or route.startswith(prefix.rstrip("/") + "/")


def system_role_templates(api_prefix: str = "/api") -> list[RoleTemplate]:
    """The system role templates, broadest first"""
    prefix = api_prefix.rstrip("/")
    admin_excluded = (f"{prefix}/admin/permissions", f"{prefix}/admin/seed-rbac")

    def admin_includes(permission: PermissionLike) -> bool:
        return not any(route_under(permission.route, excluded) for excluded in admin_excluded)

    def doctor_includes(permission: PermissionLike) -> bool:
        return permission.category in DOCTOR_CATEGORIES

    def patient_includes(permission: PermissionLike) -> bool:
        if permission.category in PATIENT_CATEGORIES:
            return True
        return (
            permission.category == "patients"
            and SELF_PROFILE_SEGMENT in path_segments(permission.route)
        )

    return [
        RoleTemplate(
            name=SystemRole.MASTER_ADMIN.value,
            description="Full system administrator with all permissions",
            includes=lambda permission: True,
        ),
        RoleTemplate(
            name=SystemRole.ADMIN.value,
            description="Administrator with most permissions except system management",
            includes=admin_includes,
        ),
        RoleTemplate(
            name=SystemRole.DOCTOR.value,
            description="Medical professional with patient and appointment management",
            includes=doctor_includes,
        ),
        RoleTemplate(
            name=SystemRole.PATIENT.value,
            description="Patient with limited access to their own records",
            includes=patient_includes,
        ),
    ]


class RoleTemplateAssigner:
    """
    Upserts the system roles and overwrites their permission references.

    Each template is committed on its own, so a failure part way leaves
    the earlier roles fully assigned.
    """

    def __init__(self, role_repo: RoleStore, api_prefix: str = "/api"):
        self.role_repo = role_repo
        self.templates = system_role_templates(api_prefix)

    def compute_memberships(
        self, permissions: Sequence[PermissionLike]
    ) -> dict[str, list[PermissionLike]]:
        """Permissions each template selects, keyed by role name"""
        return {
            template.name: [p for p in permissions if template.includes(p)]
            for template in self.templates
        }

    async def assign(
        self,
        permissions: Sequence[PermissionLike],
        result: RoleSyncResult | None = None,
    ) -> RoleSyncResult:
        """
        Apply every template to the given (active) permissions.

        Raises:
            RoleSyncError: a role upsert or reference replacement failed
        """
        result = result if result is not None else RoleSyncResult()
        memberships = self.compute_memberships(permissions)
        existing = await self.role_repo.get_names()

        for template in self.templates:
            members = memberships[template.name]
            try:
                role_id = await self.role_repo.upsert_system_role(
                    template.name, template.description
                )
                count = await self.role_repo.replace_permissions(
                    role_id, [p.id for p in members]
                )
                await self.role_repo.commit()
            except Exception as e:
                logger.error("Error processing role %s: %s", template.name, e)
                await self.role_repo.rollback()
                raise RoleSyncError(template.name, e, result.created, result.updated) from e

            if template.name in existing:
                result.updated += 1
                logger.info("Updated role: %s (%d permissions)", template.name, count)
            else:
                result.created += 1
                logger.info("Created role: %s (%d permissions)", template.name, count)
            result.assignments[template.name] = count

        result.total = len(self.templates)
        return result
