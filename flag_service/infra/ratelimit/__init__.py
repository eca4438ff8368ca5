"""Rate limiting infrastructure."""

from flag_service.infra.ratelimit.limiter import RateLimiter
from flag_service.infra.ratelimit.memory import InMemoryRateLimiter

__all__ = ["InMemoryRateLimiter", "RateLimiter"]
