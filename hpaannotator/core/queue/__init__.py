"""
Work queues feeding controller workers.
"""

from .delaying import DelayingQueue  # noqa: F401
from .rate_limiter import (  # noqa: F401
    BucketRateLimiter,
    ItemExponentialFailureRateLimiter,
    MaxOfRateLimiter,
    RateLimiter,
    default_controller_rate_limiter,
)
from .rate_limiting import RateLimitingQueue  # noqa: F401
from .workqueue import WorkQueue  # noqa: F401

__all__ = [
    "BucketRateLimiter",
    "DelayingQueue",
    "ItemExponentialFailureRateLimiter",
    "MaxOfRateLimiter",
    "RateLimiter",
    "RateLimitingQueue",
    "WorkQueue",
    "default_controller_rate_limiter",
]
