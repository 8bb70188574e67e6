"""
RBAC seed pipeline.

catalog -> permissions -> active permission set -> role templates -> policy version.

Steps run strictly in that order; a failing step stops the run, and
anything committed by earlier steps stays committed, so the pipeline is
simply re-run after the cause is fixed.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.application.services.permission_synthesizer import (
    PermissionSynthesizer,
    PermissionSyncResult,
    group_by_category,
)
from src.application.services.role_template_service import RoleSyncResult, RoleTemplateAssigner
from src.application.services.route_catalog import RouteCatalogBuilder
from src.domain.exceptions import SeedTimeoutError, UpstreamUnavailableException
from src.infrastructure.config.settings import get_settings
from src.infrastructure.persistence.repositories import (
    PermissionRepository,
    PolicyRepository,
    RoleRepository,
)

logger = logging.getLogger(__name__)


@dataclass
class SeedReport:
    permissions: PermissionSyncResult = field(default_factory=PermissionSyncResult)
    roles: RoleSyncResult = field(default_factory=RoleSyncResult)
    routes_scanned: int = 0
    categories: int = 0
    policy_version: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "permissions": self.permissions.to_dict(),
            "roles": self.roles.to_dict(),
            "routes": {"scanned": self.routes_scanned, "categories": self.categories},
            "policy_version": self.policy_version,
        }


class RbacSeedService:
    """Runs the full RBAC bootstrap against one database session"""

    def __init__(
        self,
        db: AsyncSession,
        routes: Iterable[Any] | Callable[[], Iterable[Any]],
        permission_repo: PermissionRepository | None = None,
        role_repo: RoleRepository | None = None,
        policy_repo: PolicyRepository | None = None,
    ):
        self.db = db
        self.settings = get_settings()
        self.routes = routes
        self.permission_repo = permission_repo or PermissionRepository(db)
        self.role_repo = role_repo or RoleRepository(db)
        self.policy_repo = policy_repo or PolicyRepository(db)

    def _catalog_builder(self) -> RouteCatalogBuilder:
        routes = self.routes() if callable(self.routes) else self.routes
        return RouteCatalogBuilder(
            routes,
            api_prefix=self.settings.api_prefix,
            denylist=self.settings.route_denylist,
        )

    async def sync_permissions(self) -> tuple[PermissionSyncResult, int]:
        """Catalog and permission steps only; returns the result and the route count"""
        catalog = self._catalog_builder().build()
        synthesizer = PermissionSynthesizer(
            self.permission_repo,
            api_prefix=self.settings.api_prefix,
            deactivate_missing=self.settings.rbac_deactivate_missing_routes,
        )
        return await synthesizer.sync(catalog), len(catalog)

    async def run(self, seeded_by: str | None = None) -> SeedReport:
        """
        Run the whole pipeline within the configured timeout.

        Raises:
            CatalogUnavailableError: no routes could be enumerated
            PermissionSyncError: a permission upsert failed; roles untouched
            RoleSyncError: a role upsert failed
            UpstreamUnavailableException: loading permissions, deactivation or the
                policy version update failed
            SeedTimeoutError: the configured timeout elapsed
        """
        report = SeedReport()
        timeout = self.settings.rbac_seed_timeout_seconds
        try:
            async with asyncio.timeout(timeout):
                await self._run_steps(report, seeded_by)
        except TimeoutError as e:
            logger.error("RBAC seed timed out after %s seconds", timeout)
            await self.db.rollback()
            raise SeedTimeoutError(timeout, report.to_dict()) from e
        return report

    async def _run_steps(self, report: SeedReport, seeded_by: str | None) -> None:
        logger.info("Starting RBAC seed")

        catalog = self._catalog_builder().build()
        report.routes_scanned = len(catalog)
        report.categories = len(group_by_category(catalog, self.settings.api_prefix))
        logger.info(
            "Scanned %d routes in %d categories", report.routes_scanned, report.categories
        )

        synthesizer = PermissionSynthesizer(
            self.permission_repo,
            api_prefix=self.settings.api_prefix,
            deactivate_missing=self.settings.rbac_deactivate_missing_routes,
        )
        await synthesizer.sync(catalog, report.permissions)

        try:
            active = await self.permission_repo.get_active()
        except Exception as e:
            logger.error("Error loading active permissions: %s", e)
            raise UpstreamUnavailableException(
                f"Loading active permissions failed: {e}", "permission_load"
            ) from e
        report.permissions.total = len(active)

        assigner = RoleTemplateAssigner(self.role_repo, api_prefix=self.settings.api_prefix)
        await assigner.assign(active, report.roles)

        try:
            report.policy_version = await self.policy_repo.bump_version(seeded_by)
            await self.policy_repo.commit()
        except Exception as e:
            logger.error("Error bumping RBAC policy version: %s", e)
            await self.policy_repo.rollback()
            raise UpstreamUnavailableException(
                f"Policy version update failed: {e}", "policy_bump"
            ) from e

        logger.info(
            "RBAC seed complete: permissions created=%d updated=%d, roles created=%d updated=%d, policy v%d",
            report.permissions.created,
            report.permissions.updated,
            report.roles.created,
            report.roles.updated,
            report.policy_version,
        )
