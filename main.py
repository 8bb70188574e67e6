import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.domain.exceptions import ClinicException, UpstreamUnavailableException
from src.infrastructure.cache.redis_cache import CacheService
from src.infrastructure.config.settings import get_settings
from src.infrastructure.persistence.database import engine, get_db
from src.presentation.api.dependencies import get_cache_service, set_cache_service
from src.presentation.api.v1.routes import auth, permissions, roles, seed_rbac, user, user_roles
from src.presentation.middleware.correlation import CorrelationIDMiddleware
from src.presentation.middleware.rate_limit import limiter
from src.presentation.middleware.security import RequestSizeLimitMiddleware, SecurityHeadersMiddleware
from src.shared.telemetry.logging import setup_logging

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan events for application initialization and cleanup"""
    setup_logging()

    # Database schema is created by scripts/seed_rbac.py --create-tables or migrations

    if settings.redis_enabled:
        try:
            cache_service = CacheService()
            await cache_service.connect()
            set_cache_service(cache_service)
            logger.info("Redis cache initialized successfully")
        except Exception as e:
            logger.warning(f"Redis cache initialization failed: {e}. Continuing without cache.")
    else:
        logger.info("Redis cache disabled in configuration")

    yield

    if settings.redis_enabled:
        try:
            cache = await get_cache_service()
            await cache.disconnect()
        except Exception as e:
            logger.warning(f"Error during cache shutdown: {e}")

    await engine.dispose()
    logger.info("Database engine disposed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Configure rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(ClinicException)
async def clinic_exception_handler(request: Request, exc: ClinicException):
    if isinstance(exc, UpstreamUnavailableException):
        logger.error("%s %s failed at step %s: %s", request.method, request.url.path, exc.step, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request",
            "details": [
                {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
                for err in exc.errors()
            ],
        },
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Security middleware (order matters - applied in reverse)
# 1. Request size limit (first check)
app.add_middleware(RequestSizeLimitMiddleware, max_request_size=settings.max_request_size)

# 2. Correlation ID for request tracing
app.add_middleware(CorrelationIDMiddleware)

# 3. Security headers
app.add_middleware(SecurityHeadersMiddleware)

# 4. CORS middleware
# Using allow_credentials=True requires specific origins (not wildcard)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.allowed_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
api = settings.api_prefix.rstrip("/")
app.include_router(auth.router, prefix=f"{api}/auth", tags=["authentication"])
app.include_router(user.router, prefix=f"{api}/user", tags=["user"])
app.include_router(permissions.router, prefix=f"{api}/admin", tags=["permissions"])
app.include_router(roles.router, prefix=f"{api}/admin", tags=["roles"])
app.include_router(seed_rbac.router, prefix=f"{api}/admin", tags=["rbac"])
app.include_router(user_roles.router, prefix=f"{api}/admin", tags=["user-roles"])


@app.get("/")
async def root():
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "status": "running",
    }


@app.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """
    Health check endpoint for load balancers and monitoring.

    Returns 200 when the API and database respond, 503 otherwise.
    The cache is reported but never fails the check.
    """
    checks: dict[str, Any] = {
        "api": True,
        "database": False,
        "cache": None,  # None = not configured, True = healthy, False = unhealthy
    }

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = True

        if settings.redis_enabled:
            cache = await get_cache_service()
            checks["cache"] = cache.is_available()

        return {"status": "healthy", "checks": checks}
    except Exception as e:
        checks["error"] = str(e)
        return JSONResponse(status_code=503, content={"status": "unhealthy", "checks": checks})
