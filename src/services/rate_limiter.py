"""Fixed-window request rate limiting keyed by client address."""

import threading
import time
from dataclasses import dataclass
from math import ceil

from src.utils.config import AppConfig
from src.utils.errors import RateLimitError
from src.utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


@dataclass(frozen=True)
class RateLimitStatus:
    """Outcome of one hit against the limiter."""
    limit: int
    remaining: int
    reset_seconds: int

    def headers(self) -> dict[str, str]:
        return {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(self.reset_seconds),
        }


class RateLimiter:
    """Allow ``max_requests`` per client within each ``window_seconds`` window."""

    def __init__(
        self,
        max_requests: int = AppConfig.RATE_LIMIT_MAX,
        window_seconds: int = AppConfig.RATE_LIMIT_WINDOW_SECONDS,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._windows: dict[str, tuple[float, int]] = {}  # client -> (window start, hits)
        self._lock = threading.Lock()

    def hit(self, client_key: str) -> RateLimitStatus:
        """Count a request; raises RateLimitError once the window is exhausted."""
        now = time.time()
        with self._lock:
            self._evict_expired(now)
            started, hits = self._windows.get(client_key, (now, 0))
            hits += 1
            self._windows[client_key] = (started, hits)

        reset_seconds = max(0, ceil(started + self.window_seconds - now))
        status = RateLimitStatus(
            limit=self.max_requests,
            remaining=max(0, self.max_requests - hits),
            reset_seconds=reset_seconds,
        )

        if hits > self.max_requests:
            logger.warning("Rate limit exceeded", client=client_key, hits=hits, limit=self.max_requests)
            raise RateLimitError(retry_after=reset_seconds, headers=status.headers())
        return status

    def _evict_expired(self, now: float) -> None:
        expired = [key for key, (started, _) in self._windows.items() if now - started >= self.window_seconds]
        for key in expired:
            del self._windows[key]

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
