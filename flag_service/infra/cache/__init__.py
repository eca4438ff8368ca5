"""Redis cache infrastructure."""

from flag_service.infra.cache.redis import RedisCache, start_cache, stop_cache

__all__ = ["RedisCache", "start_cache", "stop_cache"]
