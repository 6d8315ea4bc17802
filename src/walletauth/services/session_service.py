"""Session management service.

Sessions are opaque bearer tokens held in memory. A restart drops every
session along with the outstanding challenges.
"""

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

import structlog

from walletauth.exceptions import InvalidTokenError, SessionExpiredError
from walletauth.logging import abbreviate
from walletauth.utils import generate_secure_token

logger = structlog.get_logger()

SESSION_TTL_SECONDS = 86_400
EXPIRING_SOON_SECONDS = 1_800


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Session:
    """Issued session token."""

    token: str
    wallet_address: str
    created_at: datetime
    expires_at: datetime

    @property
    def expires_in(self) -> int:
        """Configured lifetime in whole seconds."""
        return int((self.expires_at - self.created_at).total_seconds())


@dataclass(frozen=True)
class CurrentUser:
    """Authenticated user context from a valid session."""

    wallet_address: str
    token: str
    expires_at: datetime
    expiring_soon: bool


class SessionStore:
    """Thread-safe in-memory session store."""

    def __init__(
        self,
        ttl_seconds: int = SESSION_TTL_SECONDS,
        expiring_soon_seconds: int = EXPIRING_SOON_SECONDS,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize the session store.

        Args:
            ttl_seconds: Lifetime of a new session.
            expiring_soon_seconds: Remaining lifetime below which a session
                is reported as expiring soon.
            clock: Source of the current UTC time.
        """
        self.ttl_seconds = ttl_seconds
        self.expiring_soon_seconds = expiring_soon_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: dict[str, Session] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create_session(self, wallet_address: str) -> Session:
        """Create new session for a verified wallet.

        Expired sessions are swept on every insert.

        Args:
            wallet_address: The user's wallet address.

        Returns:
            Session: The created session.
        """
        now = self._clock()
        session = Session(
            token=generate_secure_token(),
            wallet_address=wallet_address.lower(),
            created_at=now,
            expires_at=now + timedelta(seconds=self.ttl_seconds),
        )
        with self._lock:
            self._remove_expired_locked(now)
            self._sessions[session.token] = session

        logger.info(
            "Session created for wallet",
            wallet_address=abbreviate(session.wallet_address, 10),
            expires_at=session.expires_at.isoformat(),
        )
        return session

    def validate_session(self, token: str) -> CurrentUser:
        """Validate a session token and return the current user.

        Args:
            token: The session token to validate.

        Returns:
            CurrentUser: The authenticated user context.

        Raises:
            InvalidTokenError: If the token is empty or unknown.
            SessionExpiredError: If the session has expired (it is removed).
        """
        if not token:
            raise InvalidTokenError("Token required")

        now = self._clock()
        with self._lock:
            session = self._sessions.get(token)
            if session is None:
                raise InvalidTokenError("Invalid token")
            if session.expires_at <= now:
                del self._sessions[token]
                raise SessionExpiredError("Session expired")

        remaining = (session.expires_at - now).total_seconds()
        return CurrentUser(
            wallet_address=session.wallet_address,
            token=session.token,
            expires_at=session.expires_at,
            expiring_soon=remaining < self.expiring_soon_seconds,
        )

    def refresh_session(self, token: str) -> Session:
        """Rotate a valid session token.

        The old token stops working and a new session with a full lifetime
        is issued for the same wallet.

        Raises:
            InvalidTokenError: If the token is empty or unknown.
            SessionExpiredError: If the session has expired.
        """
        current = self.validate_session(token)
        with self._lock:
            if self._sessions.pop(token, None) is None:
                # Revoked concurrently between validation and rotation
                raise InvalidTokenError("Invalid token")
        logger.info("Session rotated", token=abbreviate(token, 4))
        return self.create_session(current.wallet_address)

    def delete_session(self, token: str) -> bool:
        """Delete a specific session.

        Returns:
            bool: True if session was deleted, False if not found.
        """
        with self._lock:
            deleted = self._sessions.pop(token, None) is not None
        if deleted:
            logger.info("Session deleted", token=abbreviate(token, 4))
        return deleted

    def cleanup_expired(self) -> int:
        """Delete all expired sessions.

        Returns:
            int: Number of sessions deleted.
        """
        with self._lock:
            return self._remove_expired_locked(self._clock())

    def _remove_expired_locked(self, now: datetime) -> int:
        expired = [t for t, s in self._sessions.items() if s.expires_at <= now]
        for t in expired:
            del self._sessions[t]
        if expired:
            logger.info("Cleaned up expired sessions", count=len(expired))
        return len(expired)
