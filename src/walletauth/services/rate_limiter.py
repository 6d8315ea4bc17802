"""Rate limiter for challenge requests.

Implements per-key rate limiting with a sliding window approach.
Tracks up to 10 requests per 60-second window per wallet address by default.
"""

import threading
import time
from collections import defaultdict
from typing import Dict, List

import structlog

from walletauth.logging import abbreviate

logger = structlog.get_logger()


class RateLimiter:
    """Rate limiter with per-key request tracking using sliding window."""

    def __init__(self, window_seconds: int = 60, max_requests: int = 10):
        """Initialize rate limiter.

        Args:
            window_seconds: Time window for rate limiting in seconds (default: 60)
            max_requests: Max requests allowed in the window (default: 10)
        """
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._lock = threading.Lock()
        # key -> [timestamp1, timestamp2, ...]
        self._buckets: Dict[str, List[float]] = defaultdict(list)

    def is_allowed(self, key: str) -> bool:
        """Check if request is allowed for the given key.

        Performs automatic cleanup of old timestamps and updates the bucket.

        Args:
            key: Rate limit key (lower-cased wallet address)

        Returns:
            True if request is allowed, False if rate limit exceeded
        """
        now = time.time()
        cutoff_time = now - self.window_seconds

        with self._lock:
            self._remove_stale_locked(cutoff_time)
            bucket = self._buckets[key]

            if len(bucket) >= self.max_requests:
                logger.warning(
                    "rate_limit_exceeded",
                    key=abbreviate(key, 10),
                    window_seconds=self.window_seconds,
                    max_requests=self.max_requests,
                    current_count=len(bucket),
                )
                return False

            bucket.append(now)
            return True

    def get_retry_after(self, key: str) -> int:
        """Calculate seconds until the oldest request leaves the window.

        Args:
            key: Rate limit key to check

        Returns:
            Seconds until quota frees up (0 if no limit active)
        """
        now = time.time()
        cutoff_time = now - self.window_seconds

        with self._lock:
            bucket = [ts for ts in self._buckets.get(key, []) if ts > cutoff_time]

        if not bucket:
            return 0

        reset_time = min(bucket) + self.window_seconds
        return max(0, int(reset_time - now))

    def cleanup(self) -> int:
        """Remove keys that have no active timestamps.

        Returns:
            Number of keys removed
        """
        with self._lock:
            return self._remove_stale_locked(time.time() - self.window_seconds)

    def _remove_stale_locked(self, cutoff_time: float) -> int:
        # Caller holds self._lock. Drops old timestamps and empty keys.
        stale = []
        for key, bucket in self._buckets.items():
            live = [ts for ts in bucket if ts > cutoff_time]
            if live:
                self._buckets[key] = live
            else:
                stale.append(key)
        for key in stale:
            del self._buckets[key]

        if stale:
            logger.debug("rate_limiter_cleanup", removed_keys=len(stale))
        return len(stale)
