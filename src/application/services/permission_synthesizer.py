"""
Permission synthesizer.

Derives one permission per (route, method) pair of the route catalog and
writes them with natural-key upserts, so re-running against an unchanged
catalog creates nothing new.

Category rule: strip the API prefix, take the first segment that is not a
path placeholder and look it up in CATEGORY_TABLE; anything not listed
falls into DEFAULT_CATEGORY. The table is product policy, so a route is
only reclassified by editing it.
"""

import logging
from collections.abc import Sequence
from dataclasses import asdict, dataclass, field
from typing import Protocol

from src.application.services.route_catalog import is_placeholder, path_segments
from src.domain.entities.route import PermissionDraft, RouteEntry
from src.domain.enums import HttpMethod
from src.domain.exceptions import PermissionSyncError, UpstreamUnavailableException

logger = logging.getLogger(__name__)

CATEGORY_TABLE: dict[str, str] = {
    "admin": "admin",
    "auth": "auth",
    "patients": "patients",
    "appointments": "appointments",
    "billing": "billing",
    "inventory": "inventory",
    "prescriptions": "prescriptions",
    "ehr": "ehr",
    "email": "email",
    "dashboard": "dashboard",
    "doctor": "dashboard",
    "profile": "profile",
    "user": "profile",
    "settings": "settings",
    "clinic-settings": "settings",
    "clinic-info": "settings",
    "reports": "reports",
}

DEFAULT_CATEGORY = "api"

CATEGORY_DESCRIPTIONS: dict[str, str] = {
    "dashboard": "Dashboard and main application pages",
    "admin": "Administrative functions and user management",
    "auth": "Authentication and authorization",
    "patients": "Patient management and records",
    "appointments": "Appointment scheduling and management",
    "billing": "Billing and payment processing",
    "inventory": "Inventory and stock management",
    "prescriptions": "Prescription management",
    "ehr": "Electronic Health Records",
    "email": "Email and communication",
    "api": "API endpoints",
    "settings": "System and user settings",
    "profile": "User profile management",
    "reports": "Reports and analytics",
}

_INTENTS: dict[HttpMethod, str] = {
    HttpMethod.POST: "Create",
    HttpMethod.PUT: "Update",
    HttpMethod.PATCH: "Update",
    HttpMethod.DELETE: "Delete",
}


class PermissionStore(Protocol):
    """Persistence operations the synthesizer needs"""

    async def get_natural_keys(self) -> set[tuple[str, str]]: ...

    async def upsert(
        self, route: str, method: str, name: str, description: str, category: str
    ) -> str: ...

    async def deactivate_missing(self, keep: set[tuple[str, str]]) -> int: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...


@dataclass
class PermissionSyncResult:
    """Counts reported by a synthesis run"""

    created: int = 0
    updated: int = 0
    deactivated: int = 0
    total: int = 0

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class RouteCategory:
    name: str
    description: str
    routes: list[RouteEntry] = field(default_factory=list)


def _resource_segments(route: str, api_prefix: str) -> list[str]:
    segments = path_segments(route)
    prefix = path_segments(api_prefix)
    if segments[: len(prefix)] == prefix:
        segments = segments[len(prefix):]
    return [segment for segment in segments if not is_placeholder(segment)]


def derive_category(route: str, api_prefix: str = "/api") -> str:
    """Category of a route according to CATEGORY_TABLE"""
    segments = _resource_segments(route, api_prefix)
    if not segments:
        return DEFAULT_CATEGORY
    return CATEGORY_TABLE.get(segments[0], DEFAULT_CATEGORY)


def resource_noun(route: str, api_prefix: str = "/api") -> str:
    """Readable resource name, e.g. '/api/admin/seed-rbac' -> 'Admin Seed Rbac'"""
    segments = _resource_segments(route, api_prefix)
    if not segments:
        return "Root"
    return " ".join(
        segment.replace("-", " ").replace("_", " ").title() for segment in segments
    )


def method_intent(route: str, method: HttpMethod) -> str:
    """Verb label; GET on an item path is 'View', on a collection 'List'"""
    if method is HttpMethod.GET:
        segments = path_segments(route)
        return "View" if segments and is_placeholder(segments[-1]) else "List"
    return _INTENTS[method]


def derive_name(route: str, method: HttpMethod, api_prefix: str = "/api") -> str:
    return f"{method_intent(route, method)} {resource_noun(route, api_prefix)}"


def derive_description(route: str, method: HttpMethod, api_prefix: str = "/api") -> str:
    intent = method_intent(route, method)
    noun = resource_noun(route, api_prefix).lower()
    return f"{intent} {noun} via {method.value} {route}"


def group_by_category(
    entries: Sequence[RouteEntry], api_prefix: str = "/api"
) -> list[RouteCategory]:
    """Group catalog entries by derived category, in first-seen order"""
    categories: dict[str, RouteCategory] = {}
    for entry in entries:
        name = derive_category(entry.path, api_prefix)
        if name not in categories:
            categories[name] = RouteCategory(
                name=name,
                description=CATEGORY_DESCRIPTIONS.get(name, "Other routes"),
            )
        categories[name].routes.append(entry)
    return list(categories.values())


class PermissionSynthesizer:
    """
    Turns the route catalog into persisted permissions.

    Upserts run one at a time in catalog order and each is committed on
    its own; a failure stops the run and reports how far it got.
    """

    def __init__(
        self,
        permission_repo: PermissionStore,
        api_prefix: str = "/api",
        deactivate_missing: bool = True,
    ):
        self.permission_repo = permission_repo
        self.api_prefix = api_prefix
        self.deactivate_missing = deactivate_missing

    def synthesize(self, catalog: Sequence[RouteEntry]) -> list[PermissionDraft]:
        """Derive one draft per (route, method) pair, in catalog order"""
        return [
            PermissionDraft(
                route=entry.path,
                method=method,
                name=derive_name(entry.path, method, self.api_prefix),
                description=derive_description(entry.path, method, self.api_prefix),
                category=derive_category(entry.path, self.api_prefix),
            )
            for entry in catalog
            for method in entry.sorted_methods()
        ]

    async def sync(
        self,
        catalog: Sequence[RouteEntry],
        result: PermissionSyncResult | None = None,
    ) -> PermissionSyncResult:
        """
        Upsert the synthesized permissions.

        `result` is updated in place as the run progresses, so a caller
        that aborts the run can still report partial counts.

        Raises:
            PermissionSyncError: an upsert failed; earlier upserts stay committed
            UpstreamUnavailableException: loading existing keys or deactivation failed
        """
        result = result if result is not None else PermissionSyncResult()
        drafts = self.synthesize(catalog)
        try:
            existing = await self.permission_repo.get_natural_keys()
        except Exception as e:
            logger.error("Error loading existing permissions: %s", e)
            raise UpstreamUnavailableException(
                f"Loading existing permissions failed: {e}", "permission_load"
            ) from e

        for draft in drafts:
            try:
                await self.permission_repo.upsert(
                    route=draft.route,
                    method=draft.method.value,
                    name=draft.name,
                    description=draft.description,
                    category=draft.category,
                )
                await self.permission_repo.commit()
            except Exception as e:
                logger.error(
                    "Error processing permission %s %s: %s",
                    draft.route,
                    draft.method.value,
                    e,
                )
                await self.permission_repo.rollback()
                raise PermissionSyncError(
                    draft.route, draft.method.value, e, result.created, result.updated
                ) from e

            if draft.natural_key in existing:
                result.updated += 1
                logger.debug("Updated permission: %s %s", draft.route, draft.method.value)
            else:
                result.created += 1
                existing.add(draft.natural_key)
                logger.info("Created permission: %s %s", draft.route, draft.method.value)

        if self.deactivate_missing:
            try:
                result.deactivated = await self.permission_repo.deactivate_missing(
                    {draft.natural_key for draft in drafts}
                )
                await self.permission_repo.commit()
            except Exception as e:
                logger.error("Error deactivating permissions of removed routes: %s", e)
                await self.permission_repo.rollback()
                raise UpstreamUnavailableException(
                    f"Permission deactivation failed: {e}",
                    "permission_deactivate",
                    {"created": result.created, "updated": result.updated},
                ) from e
            if result.deactivated:
                logger.info("Deactivated %d permission(s) for removed routes", result.deactivated)

        result.total = len(drafts)
        logger.info(
            "Permissions synchronized: created=%d updated=%d deactivated=%d",
            result.created,
            result.updated,
            result.deactivated,
        )
        return result
