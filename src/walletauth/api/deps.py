"""FastAPI dependency injection utilities.

Services live on ``app.state`` and are created by the application lifespan;
these helpers hand them to route handlers.
"""

from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import Depends, Header, HTTPException, Request

from walletauth.exceptions import InvalidTokenError, SessionExpiredError
from walletauth.logging import ErrorType
from walletauth.services.authentication import AuthenticationEngine
from walletauth.services.rate_limiter import RateLimiter
from walletauth.services.session_service import CurrentUser, SessionStore

logger = structlog.get_logger()


def error_body(error: str, code: str) -> dict:
    """Standard error payload used by every endpoint."""
    return {
        "error": error,
        "code": code,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def get_authentication_engine(request: Request) -> AuthenticationEngine:
    return request.app.state.authentication_engine


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_rate_limiter(request: Request) -> Optional[RateLimiter]:
    return getattr(request.app.state, "rate_limiter", None)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from a "Bearer {token}" header, or None if absent/malformed."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


async def get_current_user(
    authorization: Optional[str] = Header(None),
    sessions: SessionStore = Depends(get_session_store),
) -> CurrentUser:
    """Dependency to validate the session and return the current user.

    Extracts the Bearer token from the Authorization header and validates it
    against the session store.

    Raises:
        HTTPException: 401 if token missing, invalid, or expired.
    """
    if not authorization:
        raise HTTPException(
            status_code=401,
            detail=error_body("Missing authorization header", ErrorType.INVALID_TOKEN),
        )

    token = extract_bearer_token(authorization)
    if token is None:
        raise HTTPException(
            status_code=401,
            detail=error_body("Invalid authorization header format", ErrorType.INVALID_TOKEN),
        )

    try:
        return sessions.validate_session(token)
    except SessionExpiredError:
        raise HTTPException(
            status_code=401,
            detail=error_body("Session expired", ErrorType.SESSION_EXPIRED),
        )
    except InvalidTokenError:
        raise HTTPException(
            status_code=401,
            detail=error_body("Invalid or missing token", ErrorType.INVALID_TOKEN),
        )


__all__ = [
    "error_body",
    "extract_bearer_token",
    "get_authentication_engine",
    "get_current_user",
    "get_rate_limiter",
    "get_session_store",
]
