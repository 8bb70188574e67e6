from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.services.authorization_service import (
    AuthorizationService,
    enforce_role_access,
)
from src.application.services.rbac_seed_service import RbacSeedService
from src.application.services.route_catalog import openapi_routes
from src.application.services.role_management_service import RoleManagementService
from src.domain.entities.principal import Principal
from src.domain.exceptions import AuthenticationException
from src.infrastructure.cache.redis_cache import CacheService
from src.infrastructure.persistence.database import get_db, get_db_transactional
from src.infrastructure.persistence.repositories import (
    PermissionRepository,
    RoleRepository,
    UserRepository,
)
from src.infrastructure.security.jwt import verify_token
from src.presentation.api.v1.schemas.token import TokenPayload

# auto_error=False: a missing header is a "no session" decision for the gate
security = HTTPBearer(auto_error=False)

_cache_service: CacheService | None = None


async def get_cache_service() -> CacheService:
    """
    Cache service dependency (singleton)

    Returns global cache service instance.
    Initialized on app startup in main.py
    """
    global _cache_service
    if _cache_service is None:
        # Unconnected instance: every operation is a no-op until connect()
        _cache_service = CacheService()
    return _cache_service


def set_cache_service(cache_service: CacheService | None):
    """Set global cache service (called on app startup)"""
    global _cache_service
    _cache_service = cache_service


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Principal | None:
    """
    Resolve the session principal from the bearer token.

    Returns None when no token is presented. A token that is present but
    invalid or expired is rejected outright.
    """
    if credentials is None:
        return None

    try:
        payload = verify_token(credentials.credentials)
        token_data = TokenPayload(**payload)
    except ValueError as e:
        raise AuthenticationException(
            f"Invalid authentication credentials: {str(e)}", reason="invalid token"
        ) from e

    return Principal(id=token_data.sub, role=token_data.role, username=token_data.username)


async def get_current_user(
    principal: Annotated[Principal | None, Depends(get_current_principal)],
) -> Principal:
    """Authenticated principal with any role"""
    if principal is None:
        raise AuthenticationException()
    return principal


def require_roles(*allowed_roles: str):
    """
    Dependency factory for route-level role checks.

    Usage:
        @router.post("/seed-rbac", dependencies=[Depends(require_roles("master_admin"))])
        async def seed(...):
            ...
    """

    async def role_checker(
        request: Request,
        principal: Annotated[Principal | None, Depends(get_current_principal)],
    ) -> Principal:
        return enforce_role_access(
            principal, allowed_roles, target=f"{request.method} {request.url.path}"
        )

    return role_checker


async def get_authz_service(
    db: AsyncSession = Depends(get_db), cache: CacheService = Depends(get_cache_service)
) -> AuthorizationService:
    """Get authorization service for manual permission checks with caching"""
    return AuthorizationService(db, cache_service=cache)


def require_permission(route: str, method: str):
    """
    Dependency factory for capability checks against assigned roles.

    Usage:
        @router.get("/patients", dependencies=[Depends(require_permission("/api/patients", "GET"))])
    """

    async def permission_checker(
        principal: Annotated[Principal, Depends(get_current_user)],
        authz_service: Annotated[AuthorizationService, Depends(get_authz_service)],
    ) -> Principal:
        await authz_service.require_permission(principal.id, route, method)
        return principal

    return permission_checker


async def get_user_repo(db: AsyncSession = Depends(get_db)) -> UserRepository:
    """User repository dependency"""
    return UserRepository(db)


async def get_permission_repo(db: AsyncSession = Depends(get_db)) -> PermissionRepository:
    """Permission repository dependency"""
    return PermissionRepository(db)


async def get_role_repo(db: AsyncSession = Depends(get_db)) -> RoleRepository:
    """Role repository dependency"""
    return RoleRepository(db)


async def get_role_management_service(
    db: AsyncSession = Depends(get_db_transactional),
    cache: CacheService = Depends(get_cache_service),
) -> RoleManagementService:
    """Role management with transaction management"""
    return RoleManagementService(
        role_repo=RoleRepository(db),
        permission_repo=PermissionRepository(db),
        authz_service=AuthorizationService(db, cache_service=cache),
    )


async def get_seed_service(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> RbacSeedService:
    """
    RBAC seed service over this application's registered routes.

    Uses a plain session: the pipeline commits step by step itself.
    """
    return RbacSeedService(db, routes=lambda: openapi_routes(request.app))
