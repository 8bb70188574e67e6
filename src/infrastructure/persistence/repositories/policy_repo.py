from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.persistence.models.rbac_policy import RbacPolicy
from src.infrastructure.persistence.repositories.base import BaseRepository

POLICY_ROW_ID = 1


class PolicyRepository(BaseRepository[RbacPolicy]):
    """Repository for the RBAC policy generation counter"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, RbacPolicy)

    async def get_current(self) -> RbacPolicy | None:
        """Get the policy row, if any seed has run"""
        result = await self.db.execute(
            select(RbacPolicy)
            .where(RbacPolicy.id == POLICY_ROW_ID)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def bump_version(self, seeded_by: str | None = None) -> int:
        """Increment the policy generation and return the new version"""
        result = await self.db.execute(
            update(RbacPolicy)
            .where(RbacPolicy.id == POLICY_ROW_ID)
            .values(
                version=RbacPolicy.version + 1,
                seeded_by=seeded_by,
                seeded_at=func.now(),
            )
        )
        if result.rowcount == 0:
            await self.create(RbacPolicy(id=POLICY_ROW_ID, version=1, seeded_by=seeded_by))
            return 1

        policy = await self.get_current()
        assert policy is not None
        return policy.version
