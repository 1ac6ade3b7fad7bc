"""Cookie-based JWT authentication.

Access and refresh tokens are HS256 JWTs carried in HttpOnly cookies. The
access token is short-lived; ``AccessTokenMiddleware`` verifies it on every
protected request.
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import structlog
from fastapi import APIRouter, Response, status
from jose import JWTError, jwt

from app.api.schemas import ErrorResponse, TokenResponse
from app.infrastructure.config import settings

logger = structlog.get_logger()

ACCESS_TOKEN_COOKIE = "access_token"
REFRESH_TOKEN_COOKIE = "refresh_token"
ANONYMOUS_IDENTITY = {"id": "anonymous"}

router = APIRouter(prefix="/api/auth", tags=["Auth"])


# ============================================================================
# Tokens
# ============================================================================


def create_token(payload: dict[str, Any], expires_in: timedelta) -> str:
    """Sign a token that expires after ``expires_in``.

    Args:
        payload: Identity claims.
        expires_in: Token lifetime.

    Returns:
        Encoded JWT.
    """
    now = datetime.now(timezone.utc)
    claims = {**payload, "iat": now, "exp": now + expires_in}
    return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any] | None:
    """Verify a token and return its claims.

    Returns:
        Claims, or None if the signature is wrong or the token expired.
    """
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def issue_auth_cookies(
    response: Response,
    payload: dict[str, Any] | None = None,
) -> tuple[str, str]:
    """Set fresh access and refresh token cookies on a response.

    Args:
        response: Outgoing response.
        payload: Identity claims. Defaults to the anonymous identity.

    Returns:
        The access and refresh tokens.
    """
    identity = payload or ANONYMOUS_IDENTITY

    access_token = create_token(
        identity, timedelta(seconds=settings.access_token_ttl_seconds)
    )
    refresh_token = create_token(
        identity, timedelta(seconds=settings.refresh_token_ttl_seconds)
    )

    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        access_token,
        max_age=settings.access_token_ttl_seconds,
        path="/",
        httponly=True,
        secure=True,
        samesite="none",
    )
    response.set_cookie(
        REFRESH_TOKEN_COOKIE,
        refresh_token,
        max_age=settings.refresh_token_ttl_seconds,
        path="/",
        httponly=True,
        secure=True,
        samesite="none",
    )

    logger.debug("Auth cookies issued", identity=identity)
    return access_token, refresh_token


# ============================================================================
# Endpoints
# ============================================================================


@router.post(
    "/token",
    response_model=TokenResponse,
    status_code=status.HTTP_200_OK,
    responses={400: {"model": ErrorResponse}},
    summary="Issue anonymous token",
    description="Set access and refresh token cookies for an anonymous client.",
)
async def issue_token(response: Response) -> TokenResponse:
    """Issue cookies for the anonymous identity."""
    issue_auth_cookies(response)
    return TokenResponse(message="Token issued", data=dict(ANONYMOUS_IDENTITY))
