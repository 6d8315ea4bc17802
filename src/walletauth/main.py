"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from walletauth.api.auth import router as auth_router
from walletauth.api.deps import error_body
from walletauth.config import Settings, get_settings
from walletauth.logging import ErrorType, configure_logging
from walletauth.models import HealthResponse
from walletauth.services import AuthenticationEngine, ChallengeStore, RateLimiter, SessionStore

logger = structlog.get_logger()

APP_VERSION = "0.1.0"


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to use instead of the environment-loaded singleton.

    Returns:
        Configured FastAPI application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create per-process services on startup and drop them on shutdown."""
        app_settings = settings or get_settings()
        configure_logging(json_output=app_settings.json_logs)
        app.state.settings = app_settings

        challenge_store = ChallengeStore()
        app.state.challenge_store = challenge_store
        app.state.authentication_engine = AuthenticationEngine(
            challenge_store=challenge_store,
            message_template=app_settings.message_template,
            challenge_expiration_millis=app_settings.challenge_expiration_millis,
        )
        logger.info(
            "Authentication engine initialized",
            challenge_expiration_millis=app_settings.challenge_expiration_millis,
        )

        app.state.session_store = SessionStore(
            ttl_seconds=app_settings.session_ttl_seconds,
            expiring_soon_seconds=app_settings.session_expiring_soon_seconds,
        )
        logger.info("Session store initialized", ttl_seconds=app_settings.session_ttl_seconds)

        app.state.rate_limiter = RateLimiter(
            window_seconds=app_settings.challenge_rate_limit_window_seconds,
            max_requests=app_settings.challenge_rate_limit_max_requests,
        )
        logger.info(
            "Rate limiter initialized",
            window_seconds=app_settings.challenge_rate_limit_window_seconds,
            max_requests=app_settings.challenge_rate_limit_max_requests,
        )

        yield

        # Outstanding challenges and sessions do not survive a restart
        logger.info("Shutting down - discarding outstanding challenges and sessions")
        challenge_store.clear()

    app = FastAPI(
        title="walletauth",
        description="Challenge-response login for Ethereum wallets",
        version=APP_VERSION,
        lifespan=lifespan,
    )
    app.include_router(auth_router)

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", version=APP_VERSION)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Convert Pydantic validation errors into the standard 400 error body."""
        errors = exc.errors()
        first_error = errors[0] if errors else {}
        error_type = first_error.get("type", "")
        loc = first_error.get("loc", [])

        # Last non-numeric location part that is not the body itself
        field_name = None
        for part in reversed(loc):
            if isinstance(part, str) and part != "body":
                field_name = part
                break

        if "missing" in error_type:
            message = f"Missing required field: {field_name}" if field_name else "Missing required field"
            code = ErrorType.INVALID_REQUEST
        elif field_name == "wallet_address":
            message = "Invalid Ethereum address format"
            code = ErrorType.INVALID_ADDRESS
        elif "json" in error_type:
            message = "Invalid JSON"
            code = ErrorType.INVALID_REQUEST
        else:
            message = first_error.get("msg", "Invalid request")
            code = ErrorType.INVALID_REQUEST

        logger.warning("Request validation failed", path=request.url.path, code=code)
        return JSONResponse(status_code=400, content=error_body(message, code))

    return app


app = create_app()
