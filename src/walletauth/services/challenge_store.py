"""In-memory challenge store with expiry and atomic single-use consumption."""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

import structlog

from walletauth.logging import abbreviate

logger = structlog.get_logger()


def current_millis() -> int:
    """Wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class Challenge:
    """A live challenge. Never mutated; only inserted and removed."""

    nonce: str
    wallet_address: str
    message: str
    expiry_epoch_millis: int

    def is_expired(self, now_millis: int) -> bool:
        return now_millis > self.expiry_epoch_millis


class ChallengeStore:
    """Thread-safe map of nonce -> Challenge.

    Each nonce can be taken at most once. Expired entries are swept on every
    insert rather than by a background timer, and are also rejected at
    lookup time, so a stale entry that survives a sweep is never honoured.
    """

    def __init__(self, clock: Callable[[], int] = current_millis):
        """Initialize the challenge store.

        Args:
            clock: Source of the current time in epoch milliseconds.
        """
        self._clock = clock
        self._lock = threading.Lock()
        self._challenges: dict[str, Challenge] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._challenges)

    def now(self) -> int:
        return self._clock()

    def put(self, nonce: str, wallet_address: str, message: str, ttl_millis: int) -> Challenge:
        """Insert a live challenge expiring ``ttl_millis`` from now.

        Args:
            nonce: Unique challenge nonce.
            wallet_address: Address the challenge was issued to.
            message: Expanded challenge text.
            ttl_millis: Lifetime in milliseconds.

        Returns:
            The stored Challenge.

        Raises:
            ValueError: If the nonce is already live.
        """
        now = self._clock()
        challenge = Challenge(
            nonce=nonce,
            wallet_address=wallet_address.lower(),
            message=message,
            expiry_epoch_millis=now + ttl_millis,
        )
        with self._lock:
            existing = self._challenges.get(nonce)
            if existing is not None and not existing.is_expired(now):
                raise ValueError("Nonce already in use")
            self._challenges[nonce] = challenge
            purged = self._purge_expired_locked(now)

        if purged:
            logger.debug("Expired challenges purged", count=purged)
        return challenge

    def take_if_valid(self, nonce: str, wallet_address: str) -> Optional[str]:
        """Atomically consume a live challenge issued to ``wallet_address``.

        Lookup, address check, expiry check and removal happen under one
        lock, so two concurrent callers can never both receive the message.
        A challenge for a different address is left in place; an expired
        one is dropped.

        Args:
            nonce: The challenge nonce.
            wallet_address: The address claiming the challenge (any case).

        Returns:
            The challenge message, or None if absent, expired or issued to
            another address.
        """
        log = logger.bind(nonce=abbreviate(nonce))
        now = self._clock()
        with self._lock:
            challenge = self._challenges.get(nonce)
            if challenge is None:
                log.info("Challenge not found")
                return None
            if challenge.is_expired(now):
                del self._challenges[nonce]
                log.info("Challenge expired")
                return None
            if challenge.wallet_address != wallet_address.lower():
                log.warning(
                    "Challenge address mismatch",
                    expected=abbreviate(challenge.wallet_address, 10),
                )
                return None
            del self._challenges[nonce]
        return challenge.message

    def purge_expired(self) -> int:
        """Remove every expired challenge.

        Returns:
            Number of challenges removed.
        """
        with self._lock:
            return self._purge_expired_locked(self._clock())

    def _purge_expired_locked(self, now: int) -> int:
        expired = [
            nonce for nonce, challenge in self._challenges.items()
            if challenge.is_expired(now)
        ]
        for nonce in expired:
            del self._challenges[nonce]
        return len(expired)

    def clear(self) -> None:
        """Drop all outstanding challenges."""
        with self._lock:
            self._challenges.clear()
