"""Redis caching service.

A process-wide async Redis client with TTL support, pattern invalidation
and a health check. Every operation fails open: a Redis outage degrades to
cache misses, never to request failures.
"""

from typing import Optional

import structlog
from redis.asyncio import Redis, from_url
from redis.exceptions import RedisError

from instantfork.config import settings

logger = structlog.get_logger(__name__)

FEATURED_DEALS_TTL = 60


class CacheService:
    """Async Redis cache service."""

    def __init__(self, redis_url: str):
        """Initialize cache service.

        Args:
            redis_url: Redis connection URL (e.g., "redis://localhost:6379/0")
        """
        self.redis_url = redis_url
        self._redis: Optional[Redis] = None
        self.logger = logger.bind(service="cache_service")

    async def _get_redis(self) -> Redis:
        if self._redis is None:
            self._redis = from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
            )
            self.logger.info("redis_connection_created")
        return self._redis

    async def get(self, key: str) -> Optional[str]:
        """Cached value, or None on a miss or a Redis error."""
        try:
            redis = await self._get_redis()
            value = await redis.get(key)
            self.logger.debug("cache_hit" if value else "cache_miss", key=key)
            return value
        except RedisError as e:
            self.logger.error("cache_get_failed", key=key, error=str(e))
            return None

    async def set(self, key: str, value: str, ttl: int = 300) -> bool:
        """Store a value with a TTL in seconds.

        Returns:
            True if stored, False on error
        """
        try:
            redis = await self._get_redis()
            await redis.set(key, value, ex=ttl)
            self.logger.debug("cache_set", key=key, ttl=ttl)
            return True
        except RedisError as e:
            self.logger.error("cache_set_failed", key=key, error=str(e))
            return False

    async def delete(self, key: str) -> bool:
        try:
            redis = await self._get_redis()
            return bool(await redis.delete(key))
        except RedisError as e:
            self.logger.error("cache_delete_failed", key=key, error=str(e))
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching a glob pattern.

        Args:
            pattern: Redis pattern (e.g., "deals*")

        Returns:
            Number of keys deleted, 0 on error
        """
        try:
            redis = await self._get_redis()
            keys = [key async for key in redis.scan_iter(match=pattern, count=100)]
            deleted = await redis.delete(*keys) if keys else 0

            self.logger.info("cache_pattern_delete", pattern=pattern, keys_deleted=deleted)
            return deleted
        except RedisError as e:
            self.logger.error("cache_pattern_delete_failed", pattern=pattern, error=str(e))
            return 0

    async def health_check(self) -> bool:
        try:
            redis = await self._get_redis()
            await redis.ping()
            return True
        except Exception as e:
            self.logger.error("redis_health_check_failed", error=str(e))
            return False

    async def close(self) -> None:
        """Close the connection; called on application shutdown."""
        if self._redis:
            await self._redis.close()
            self._redis = None
            self.logger.info("redis_connection_closed")


_cache_instance: Optional[CacheService] = None


def get_cache_service() -> CacheService:
    """Get or create the global cache service instance."""
    global _cache_instance

    if _cache_instance is None:
        _cache_instance = CacheService(settings.REDIS_URL)
    return _cache_instance


async def get_cache() -> CacheService:
    """FastAPI dependency for the cache service."""
    return get_cache_service()


async def invalidate_deals_cache(cache: Optional[CacheService] = None) -> int:
    """Drop every cached catalog entry.

    Called when an owner creates, edits or toggles a deal and when a claim
    changes remaining inventory.

    Returns:
        Number of cache keys deleted
    """
    cache = cache or get_cache_service()
    deleted = await cache.delete_pattern("deals*")
    logger.info("deals_cache_invalidated", keys_deleted=deleted)
    return deleted


def cache_key_for_featured(limit: int) -> str:
    return f"deals_featured:l{limit}"


def cache_key_for_geocode(latitude: float, longitude: float) -> str:
    """Key for a reverse-geocoding result, ~110 m resolution."""
    return f"geocode:{latitude:.3f}:{longitude:.3f}"
