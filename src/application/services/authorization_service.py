"""
Authorization gate.

Two checks share this module. The role gate compares the session
principal's single role claim against a route's allow-list. The
capability check resolves the user's effective `route:method` keys from
the roles assigned to them, with a Redis cache in front of the query.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.entities.principal import Principal
from src.domain.enums import SystemRole
from src.domain.exceptions import AuthenticationException, AuthorizationDeniedException
from src.infrastructure.cache.redis_cache import CacheService
from src.infrastructure.config.settings import get_settings
from src.infrastructure.persistence.models.permission import Permission, RolePermission, UserRole
from src.infrastructure.persistence.models.role import Role
from src.infrastructure.persistence.models.user import User

logger = logging.getLogger(__name__)

REASON_NO_SESSION = "no session"
REASON_NO_ROLE = "no role"
REASON_ROLE_NOT_PERMITTED = "role not permitted"


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: str | None = None


def check_role_access(principal: Principal | None, allowed_roles: Iterable[str]) -> AccessDecision:
    """Decide whether a principal's role is on the allow-list"""
    if principal is None:
        return AccessDecision(False, REASON_NO_SESSION)
    if not principal.role:
        return AccessDecision(False, REASON_NO_ROLE)
    if principal.role not in set(allowed_roles):
        return AccessDecision(False, REASON_ROLE_NOT_PERMITTED)
    return AccessDecision(True)


def enforce_role_access(
    principal: Principal | None, allowed_roles: Iterable[str], target: str = ""
) -> Principal:
    """
    Raise unless the principal passes the role gate.

    Raises:
        AuthenticationException: no session (401)
        AuthorizationDeniedException: session without a role, or role not allowed (403)
    """
    allowed = list(allowed_roles)
    decision = check_role_access(principal, allowed)
    if decision.allowed:
        assert principal is not None
        return principal

    if decision.reason == REASON_NO_SESSION:
        logger.warning("Access denied to %s: no session", target or "route")
        raise AuthenticationException(reason=REASON_NO_SESSION)

    assert principal is not None
    if decision.reason == REASON_NO_ROLE:
        logger.warning("Access denied to %s: user %s has no role", target or "route", principal.id)
    else:
        logger.warning(
            "Access denied to %s: role %s not in %s",
            target or "route",
            principal.role,
            allowed,
        )
    raise AuthorizationDeniedException(
        role=principal.role, allowed=allowed, reason=decision.reason or REASON_ROLE_NOT_PERMITTED
    )


def permission_key(route: str, method: str) -> str:
    return f"{route}:{method.upper()}"


class AuthorizationService:
    """
    Capability checks backed by role assignments, with Redis caching.

    Cache keys are `permissions:{user_id}`; anything that changes a
    user's roles or a role's permissions must invalidate them.
    """

    def __init__(self, db: AsyncSession, cache_service: CacheService | None = None):
        self.db = db
        self.cache = cache_service
        self.settings = get_settings()
        self.cache_ttl = self.settings.cache_ttl_permissions

    async def get_user_permissions(self, user_id: str) -> set[str]:
        """
        Get all permission keys for a user (aggregated from all roles).

        Returns: Set of keys like {'/api/patients:GET', '/api/patients/:id:PUT'}
        """
        cache_key = f"permissions:{user_id}"
        if self.cache and self.cache.is_available():
            cached = await self.cache.get(cache_key)
            if cached is not None:
                return set(cached)

        query = (
            select(Permission.route, Permission.method)
            .select_from(UserRole)
            .join(RolePermission, RolePermission.role_id == UserRole.role_id)
            .join(Permission, Permission.id == RolePermission.permission_id)
            .join(Role, Role.id == UserRole.role_id)
            .where(
                UserRole.user_id == user_id,
                Role.is_active.is_(True),
                Permission.is_active.is_(True),
                or_(UserRole.expires_at.is_(None), UserRole.expires_at > func.now()),
            )
        )

        result = await self.db.execute(query)
        permissions = {permission_key(row.route, row.method) for row in result}

        if self.cache and self.cache.is_available():
            await self.cache.set(cache_key, sorted(permissions), ttl=self.cache_ttl)

        return permissions

    async def get_user_roles(self, user_id: str) -> list[Role]:
        """Active, unexpired roles assigned to a user"""
        result = await self.db.execute(
            select(Role)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(
                UserRole.user_id == user_id,
                Role.is_active.is_(True),
                or_(UserRole.expires_at.is_(None), UserRole.expires_at > func.now()),
            )
            .order_by(Role.name)
        )
        return list(result.scalars().all())

    async def check_permission(self, user_id: str, route: str, method: str) -> bool:
        """
        Check if a user may call `method` on `route`.

        An active master_admin account passes every check.
        """
        user = await self.db.get(User, user_id)
        if not user or not user.is_active:
            return False
        if user.role == SystemRole.MASTER_ADMIN.value:
            return True

        permissions = await self.get_user_permissions(user_id)
        return permission_key(route, method) in permissions

    async def require_permission(self, user_id: str, route: str, method: str) -> None:
        """Raise exception if user lacks permission"""
        if not await self.check_permission(user_id, route, method):
            logger.warning("User %s lacks permission %s", user_id, permission_key(route, method))
            raise AuthorizationDeniedException(
                f"Permission denied: {permission_key(route, method)} required",
                reason="permission missing",
            )

    async def invalidate_user_cache(self, user_id: str) -> None:
        """Drop one user's cached permission set"""
        if self.cache and self.cache.is_available():
            await self.cache.delete(f"permissions:{user_id}")

    async def invalidate_all(self) -> None:
        """Drop every cached permission set (after role or permission changes)"""
        if self.cache and self.cache.is_available():
            await self.cache.delete_pattern("permissions:*")
