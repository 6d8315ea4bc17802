"""Authentication services."""

from walletauth.services.authentication import AuthenticationEngine
from walletauth.services.challenge_store import Challenge, ChallengeStore
from walletauth.services.rate_limiter import RateLimiter
from walletauth.services.session_service import CurrentUser, Session, SessionStore

__all__ = [
    "AuthenticationEngine",
    "Challenge",
    "ChallengeStore",
    "CurrentUser",
    "RateLimiter",
    "Session",
    "SessionStore",
]
