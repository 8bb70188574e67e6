from abc import ABC
from typing import Any, Generic, TypeVar

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import object_session

from src.infrastructure.persistence.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(ABC, Generic[ModelType]):
    """
    Base repository implementing common CRUD operations.

    Subclasses add their model-specific queries and upserts.
    """

    def __init__(self, db: AsyncSession, model: type[ModelType]):
        self.db = db
        self.model = model

    async def get_by_id(self, id: str) -> ModelType | None:
        """Get a single record by ID"""
        # Cast to Any for SQLAlchemy dynamic attribute access (id comes from CuidMixin)
        model: Any = self.model
        result = await self.db.execute(select(self.model).where(model.id == id))
        return result.scalar_one_or_none()

    async def create(self, obj: ModelType) -> ModelType:
        """Create a new record"""
        self.db.add(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def update(self, obj: ModelType) -> ModelType:
        """
        Update an existing record.

        Handles potentially detached objects by merging back to session.
        """
        # Merge object back to session if detached
        if object_session(obj) is None:
            obj = await self.db.merge(obj)
        await self.db.flush()
        await self.db.refresh(obj)
        return obj

    async def delete(self, obj: ModelType) -> None:
        """Delete a record"""
        await self.db.delete(obj)
        await self.db.flush()

    async def commit(self) -> None:
        """Commit the unit of work held by this repository's session"""
        await self.db.commit()

    async def rollback(self) -> None:
        """Discard uncommitted changes in this repository's session"""
        await self.db.rollback()

    def _upsert_insert(self) -> Any:
        """
        Dialect-specific INSERT supporting ON CONFLICT DO UPDATE.

        PostgreSQL in production, SQLite for local runs and tests.
        """
        dialect = self.db.get_bind().dialect.name
        if dialect == "sqlite":
            return sqlite.insert(self.model)
        return postgresql.insert(self.model)
