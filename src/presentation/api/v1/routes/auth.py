import logging
from datetime import UTC, datetime, timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status

from src.infrastructure.config.settings import get_settings
from src.infrastructure.persistence.repositories import UserRepository
from src.infrastructure.security.jwt import create_access_token
from src.presentation.api.dependencies import get_user_repo
from src.presentation.api.v1.schemas.token import Token, TokenRequest
from src.presentation.middleware.rate_limit import limiter

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)


@router.post("/token", response_model=Token)
@limiter.limit(settings.login_rate_limit)
async def login(
    request: Request,  # Required by slowapi for rate limiting (extracts remote address)
    token_request: TokenRequest,
    user_repo: Annotated[UserRepository, Depends(get_user_repo)],
):
    """
    Generate JWT access token for authenticated user.

    Token contains:
    - sub: user_id (subject)
    - role: the user's role claim checked by the authorization gate
    - exp: expiration timestamp
    """
    user = await user_repo.authenticate(
        username=token_request.username,
        password=token_request.password,
    )

    if not user:
        logger.warning("Failed login attempt for user: %s", token_request.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token_expires = timedelta(minutes=settings.access_token_expire_minutes)
    access_token = create_access_token(
        data={
            "sub": user.id,
            "role": user.role,
            "username": user.username,
            "iat": datetime.now(UTC),
        },
        expires_delta=access_token_expires,
    )

    logger.info("Successful login for user: %s (%s)", user.username, user.role)
    return Token(access_token=access_token, token_type="bearer")
