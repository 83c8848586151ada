"""
Rate-limited work queue used by controllers.
"""

from __future__ import annotations

from typing import Callable, Hashable, Optional

from .delaying import DelayingQueue
from .rate_limiter import RateLimiter, default_controller_rate_limiter


class RateLimitingQueue(DelayingQueue):
    """Delaying queue whose requeue delay is decided by a :class:`RateLimiter`."""

    def __init__(
        self,
        rate_limiter: Optional[RateLimiter] = None,
        name: str = "",
        *,
        clock: Optional[Callable[[], float]] = None,
    ):
        super().__init__(name, clock=clock)
        self.rate_limiter = rate_limiter or default_controller_rate_limiter()

    def add_rate_limited(self, item: Hashable) -> None:
        self.add_after(item, self.rate_limiter.when(item))

    def forget(self, item: Hashable) -> None:
        self.rate_limiter.forget(item)

    def num_requeues(self, item: Hashable) -> int:
        return self.rate_limiter.num_requeues(item)
