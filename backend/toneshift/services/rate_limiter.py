"""Fixed-window rate limiting keyed by user and action."""

import math
import time
from dataclasses import dataclass
from typing import Protocol

from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage, Storage
from limits.strategies import FixedWindowRateLimiter

from toneshift.config import RateLimitConfig


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after_seconds: int = 0


class RateLimiter(Protocol):
    """Counts attempts per (user, action) bucket."""

    def hit(self, user_id: str, action: str) -> RateLimitDecision:
        """Count one attempt and report whether it is within the limit."""

    def reset(self, user_id: str, action: str) -> None:
        """Drop the bucket so the next attempt starts a fresh window."""


class InMemoryRateLimiter:
    """
    Per-process fixed-window limiter on top of `limits`.

    A window opens on the first attempt and lasts `window_seconds`. The
    memory storage expires window counters itself, so keys for users who
    stop calling do not accumulate.
    """

    def __init__(self, config: RateLimitConfig, storage: Storage | None = None) -> None:
        self.config = config
        self.storage = storage or MemoryStorage()
        self._limiter = FixedWindowRateLimiter(self.storage)
        self._item = RateLimitItemPerSecond(config.max_attempts, config.window_seconds)

    def hit(self, user_id: str, action: str) -> RateLimitDecision:
        if self._limiter.hit(self._item, user_id, action):
            stats = self._limiter.get_window_stats(self._item, user_id, action)
            return RateLimitDecision(True, stats.remaining)

        stats = self._limiter.get_window_stats(self._item, user_id, action)
        retry_after = math.ceil(stats.reset_time - time.time())
        return RateLimitDecision(False, 0, max(1, retry_after))

    def reset(self, user_id: str, action: str) -> None:
        self._limiter.clear(self._item, user_id, action)
