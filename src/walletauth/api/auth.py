"""Wallet authentication API endpoints.

Provides endpoints for:
- Challenge generation for a wallet address
- Signature login, creating a session
- Session refresh, logout and current-user lookup
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import JSONResponse

from walletauth.api.deps import (
    error_body,
    extract_bearer_token,
    get_authentication_engine,
    get_current_user,
    get_rate_limiter,
    get_session_store,
)
from walletauth.exceptions import InvalidAddressError, SessionError
from walletauth.logging import ErrorType, abbreviate
from walletauth.models import (
    ChallengeRequest,
    ChallengeResponse,
    LoginRequest,
    LogoutResponse,
    TokenResponse,
    UserInfoResponse,
)
from walletauth.services.authentication import AuthenticationEngine
from walletauth.services.rate_limiter import RateLimiter
from walletauth.services.session_service import CurrentUser, Session, SessionStore

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


def _token_response(session: Session) -> TokenResponse:
    return TokenResponse(
        access_token=session.token,
        token_type="Bearer",
        expires_in=session.expires_in,
        wallet_address=session.wallet_address,
    )


@router.post("/challenge", response_model=ChallengeResponse)
async def create_challenge(
    request: ChallengeRequest,
    engine: AuthenticationEngine = Depends(get_authentication_engine),
    rate_limiter: Optional[RateLimiter] = Depends(get_rate_limiter),
) -> ChallengeResponse | JSONResponse:
    """Generate a challenge message for wallet authentication.

    Args:
        request: Challenge request with the wallet address.
        engine: Authentication engine (injected).
        rate_limiter: Per-wallet challenge rate limiter (injected).

    Returns:
        ChallengeResponse with nonce and message.

    Raises:
        HTTPException: 400 for invalid address format.
    """
    log = logger.bind(wallet_address=abbreviate(request.wallet_address, 10))
    key = request.wallet_address.lower()

    if rate_limiter is not None and not rate_limiter.is_allowed(key):
        log.warning("Rate limit exceeded for challenge generation")
        return JSONResponse(
            status_code=429,
            content=error_body(
                "Too many challenge requests. Please try again later.",
                ErrorType.RATE_LIMITED,
            ),
            headers={"Retry-After": str(rate_limiter.get_retry_after(key))},
        )

    try:
        nonce, message = engine.generate_challenge(request.wallet_address)
    except InvalidAddressError as e:
        raise HTTPException(
            status_code=400,
            detail=error_body(str(e), ErrorType.INVALID_ADDRESS),
        )

    return ChallengeResponse(nonce=nonce, message=message)


# Plain def: recovery is CPU-bound, so FastAPI runs it in the threadpool
@router.post("/login", response_model=TokenResponse)
def login(
    request: LoginRequest,
    engine: AuthenticationEngine = Depends(get_authentication_engine),
    sessions: SessionStore = Depends(get_session_store),
) -> TokenResponse | JSONResponse:
    """Verify a signed challenge and issue a session token.

    Every failure (unknown, expired or consumed nonce, malformed or wrong
    signature) gets the same 401 response.

    Args:
        request: Login request with wallet_address, nonce and signature.
        engine: Authentication engine (injected).
        sessions: Session store (injected).

    Returns:
        TokenResponse with the session token.
    """
    log = logger.bind(
        wallet_address=abbreviate(request.wallet_address, 10),
        nonce=abbreviate(request.nonce),
    )

    verified = engine.verify_challenge_signature(
        nonce=request.nonce,
        signature=request.signature,
        wallet_address=request.wallet_address,
    )
    if not verified:
        log.warning("Login rejected")
        return JSONResponse(
            status_code=401,
            content=error_body(
                "Signature verification failed. Request a new challenge and try again.",
                ErrorType.INVALID_SIGNATURE,
            ),
        )

    session = sessions.create_session(request.wallet_address)
    log.info("Login succeeded")
    return _token_response(session)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    authorization: Optional[str] = Header(None),
    sessions: SessionStore = Depends(get_session_store),
) -> TokenResponse:
    """Exchange a valid session token for a fresh one.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired.
    """
    token = extract_bearer_token(authorization)
    try:
        session = sessions.refresh_session(token or "")
    except SessionError as e:
        logger.warning("Session refresh rejected", error=str(e))
        raise HTTPException(
            status_code=401,
            detail=error_body(
                "Session token invalid or expired. Please log in again.",
                ErrorType.INVALID_TOKEN,
            ),
        )
    return _token_response(session)


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    authorization: Optional[str] = Header(None),
    sessions: SessionStore = Depends(get_session_store),
) -> LogoutResponse:
    """Invalidate the presented session token, if any.

    Always succeeds so clients can log out unconditionally.
    """
    token = extract_bearer_token(authorization)
    if token is not None:
        sessions.delete_session(token)
    return LogoutResponse(success=True)


@router.get("/me", response_model=UserInfoResponse)
async def me(current_user: CurrentUser = Depends(get_current_user)) -> UserInfoResponse:
    """Return the wallet bound to the current session."""
    return UserInfoResponse(
        wallet_address=current_user.wallet_address,
        token_expiring_soon=current_user.expiring_soon,
        expires_at=current_user.expires_at,
    )
