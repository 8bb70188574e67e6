from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.persistence.models.permission import RolePermission, UserRole
from src.infrastructure.persistence.models.role import Role
from src.infrastructure.persistence.repositories.base import BaseRepository
from src.shared.utils.generators import generate_cuid


class RoleRepository(BaseRepository[Role]):
    """Repository for Role operations"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, Role)

    async def get_by_name(self, name: str) -> Role | None:
        """Get role by its unique name"""
        result = await self.db.execute(select(Role).where(Role.name == name))
        return result.scalar_one_or_none()

    async def get_names(self) -> set[str]:
        """Get every stored role name"""
        result = await self.db.execute(select(Role.name))
        return set(result.scalars().all())

    async def list_roles(self, include_inactive: bool = True) -> list[Role]:
        """Get all roles ordered by name"""
        query = select(Role)

        if not include_inactive:
            query = query.where(Role.is_active.is_(True))

        result = await self.db.execute(
            query.order_by(Role.name).execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def upsert_system_role(self, name: str, description: str) -> str:
        """
        Insert or update a system role keyed on name in one statement.

        Returns the role id. `is_active` of an existing role is left as is.
        """
        stmt = self._upsert_insert().values(
            id=generate_cuid(),
            name=name,
            description=description,
            is_system=True,
            is_active=True,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["name"],
            set_={
                "description": stmt.excluded.description,
                "is_system": True,
                "updated_at": func.now(),
            },
        ).returning(Role.id)
        result = await self.db.execute(stmt)
        return str(result.scalar_one())

    async def replace_permissions(self, role_id: str, permission_ids: Iterable[str]) -> int:
        """Overwrite the permission references of a role; returns the new count"""
        unique_ids = list(dict.fromkeys(permission_ids))

        await self.db.execute(delete(RolePermission).where(RolePermission.role_id == role_id))
        self.db.add_all(
            RolePermission(role_id=role_id, permission_id=permission_id)
            for permission_id in unique_ids
        )
        await self.db.flush()
        return len(unique_ids)

    async def delete_role(self, role: Role) -> None:
        """Delete a role together with its permission and user associations"""
        await self.db.execute(delete(RolePermission).where(RolePermission.role_id == role.id))
        await self.db.execute(delete(UserRole).where(UserRole.role_id == role.id))
        await self.delete(role)
