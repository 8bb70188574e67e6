from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.exceptions import ConflictException
from src.infrastructure.persistence.models.permission import Permission, RolePermission
from src.infrastructure.persistence.repositories.base import BaseRepository
from src.shared.utils.generators import generate_cuid


class PermissionRepository(BaseRepository[Permission]):
    """Repository for route-bound Permission operations"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Permission)

    async def get_by_route_and_method(self, route: str, method: str) -> Permission | None:
        """Get permission by its natural key"""
        result = await self.db.execute(
            select(Permission).where(Permission.route == route, Permission.method == method)
        )
        return result.scalar_one_or_none()

    async def get_by_ids(self, permission_ids: Iterable[str]) -> list[Permission]:
        """Get permissions matching the given ids"""
        ids = list(permission_ids)
        if not ids:
            return []
        result = await self.db.execute(select(Permission).where(Permission.id.in_(ids)))
        return list(result.scalars().all())

    async def list_permissions(
        self, category: str | None = None, skip: int = 0, limit: int = 50
    ) -> tuple[list[Permission], int]:
        """List permissions ordered by category and name; returns (page, total)"""
        query = select(Permission)
        count_query = select(func.count()).select_from(Permission)
        if category:
            query = query.where(Permission.category == category)
            count_query = count_query.where(Permission.category == category)

        result = await self.db.execute(
            query.order_by(Permission.category, Permission.name)
            .offset(skip)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        total = await self.db.scalar(count_query)
        return list(result.scalars().all()), int(total or 0)

    async def get_active(self) -> list[Permission]:
        """Get all active permissions in catalog order"""
        result = await self.db.execute(
            select(Permission)
            .where(Permission.is_active.is_(True))
            .order_by(Permission.route, Permission.method)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_natural_keys(self) -> set[tuple[str, str]]:
        """Get every stored (route, method) pair"""
        result = await self.db.execute(select(Permission.route, Permission.method))
        return {(row.route, row.method) for row in result}

    async def upsert(
        self,
        route: str,
        method: str,
        name: str,
        description: str,
        category: str,
    ) -> str:
        """
        Insert or update a permission keyed on (route, method) in one statement.

        Display fields are refreshed and the permission is reactivated on conflict.
        Returns the permission id.
        """
        stmt = self._upsert_insert().values(
            id=generate_cuid(),
            route=route,
            method=method,
            name=name,
            description=description,
            category=category,
            is_active=True,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["route", "method"],
            set_={
                "name": stmt.excluded.name,
                "description": stmt.excluded.description,
                "category": stmt.excluded.category,
                "is_active": True,
                "updated_at": func.now(),
            },
        ).returning(Permission.id)
        result = await self.db.execute(stmt)
        return str(result.scalar_one())

    async def deactivate_missing(self, keep: set[tuple[str, str]]) -> int:
        """Deactivate active permissions whose (route, method) is not in `keep`"""
        result = await self.db.execute(
            select(Permission.id, Permission.route, Permission.method).where(
                Permission.is_active.is_(True)
            )
        )
        stale_ids = [row.id for row in result if (row.route, row.method) not in keep]
        if not stale_ids:
            return 0

        await self.db.execute(
            update(Permission)
            .where(Permission.id.in_(stale_ids))
            .values(is_active=False, updated_at=func.now())
        )
        return len(stale_ids)

    async def set_active(self, permission_id: str, is_active: bool) -> Permission | None:
        """Toggle a single permission's active flag"""
        permission = await self.get_by_id(permission_id)
        if not permission:
            return None

        permission.is_active = is_active
        return await self.update(permission)

    async def get_permissions_for_role(self, role_id: str) -> list[Permission]:
        """Get all permissions assigned to a role"""
        result = await self.db.execute(
            select(Permission)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .where(RolePermission.role_id == role_id)
            .order_by(Permission.route, Permission.method)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def create_permission(
        self,
        route: str,
        method: str,
        name: str,
        description: str,
        category: str,
    ) -> Permission:
        """
        Insert a single permission.

        Raises:
            ConflictException: a permission with this (route, method) already exists
        """
        if await self.get_by_route_and_method(route, method):
            raise ConflictException(
                f"Permission for {method} {route} already exists",
                {"route": route, "method": method},
            )

        permission = Permission(
            route=route,
            method=method,
            name=name,
            description=description,
            category=category,
            is_active=True,
        )
        try:
            return await self.create(permission)
        except IntegrityError:
            raise ConflictException(
                f"Permission for {method} {route} already exists",
                {"route": route, "method": method},
            ) from None
