from __future__ import annotations

import asyncio
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.infrastructure.persistence.models.permission import UserRole
from src.infrastructure.persistence.models.user import User
from src.infrastructure.persistence.repositories.base import BaseRepository
from src.infrastructure.security.password import get_password_hash, verify_password


class UserRepository(BaseRepository[User]):
    """Repository for User operations"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, User)

    async def get_by_username(self, username: str) -> User | None:
        """Get user by username"""
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def authenticate(self, username: str, password: str) -> User | None:
        """
        Authenticate user by username and password.

        Returns User if credentials are valid, None otherwise.
        """
        user = await self.get_by_username(username)

        if not user:
            # Perform dummy hash check to prevent timing attacks
            verify_password(password, "$2b$12$dummy.hash.to.prevent.timing.attacks")
            return None

        if not user.is_active:
            return None

        if not verify_password(password, user.hashed_password):
            return None

        return user

    async def create_user(
        self,
        username: str,
        email: str,
        password: str,
        role: str = "patient",
        full_name: str | None = None,
    ) -> User:
        """Create a new user with hashed password"""
        hashed = await asyncio.to_thread(get_password_hash, password)
        user = User(
            username=username,
            email=email,
            full_name=full_name,
            hashed_password=hashed,
            role=role,
            is_active=True,
        )
        return await self.create(user)

    async def get_assignment(self, user_id: str, role_id: str) -> UserRole | None:
        """Get a single user-role assignment"""
        result = await self.db.execute(
            select(UserRole).where(UserRole.user_id == user_id, UserRole.role_id == role_id)
        )
        return result.scalar_one_or_none()

    async def assign_role(
        self,
        user_id: str,
        role_id: str,
        assigned_by: str | None = None,
        expires_at: datetime | None = None,
    ) -> UserRole:
        """Assign a role to a user"""
        user_role = UserRole(
            user_id=user_id,
            role_id=role_id,
            assigned_by=assigned_by,
            expires_at=expires_at,
        )
        self.db.add(user_role)
        await self.db.flush()
        await self.db.refresh(user_role)
        return user_role

    async def remove_role(self, user_id: str, role_id: str) -> bool:
        """Remove a role from a user; False when no assignment exists"""
        user_role = await self.get_assignment(user_id, role_id)
        if not user_role:
            return False

        await self.db.delete(user_role)
        await self.db.flush()
        return True
