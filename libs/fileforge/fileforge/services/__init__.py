"""Long-running services built on the pipeline."""

from fileforge.services.rate_limit import RateLimitDecision, SlidingWindowRateLimiter
from fileforge.services.retention import RetentionSweeper

__all__ = ["RateLimitDecision", "RetentionSweeper", "SlidingWindowRateLimiter"]
