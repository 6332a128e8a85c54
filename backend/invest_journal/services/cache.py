"""
Cache service for market data.

Redis-backed JSON cache with TTL. When Redis is unreachable every lookup is a
miss and every write is skipped, so callers always fall through to the source.
"""
import json
import logging
from typing import Any, Optional
import redis

from invest_journal.config import settings

logger = logging.getLogger(__name__)


class CacheService:
    """Manage application-level caching with Redis."""

    def __init__(self, redis_url: Optional[str] = None):
        """Connect to Redis; mark the cache unavailable if it cannot be reached."""
        try:
            self.redis_client = redis.from_url(
                redis_url or settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
            )
            self.redis_client.ping()
            self.available = True
            logger.info("Cache service initialized successfully")
        except redis.RedisError as e:
            self.redis_client = None
            self.available = False
            logger.warning(f"Cache service unavailable: {str(e)}")

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Returns:
            Cached value (deserialized from JSON) or None if not found/cache unavailable
        """
        if not self.available:
            return None

        try:
            value = self.redis_client.get(key)
            if value is None:
                return None
            return json.loads(value)
        except (redis.RedisError, ValueError) as e:
            logger.debug(f"Cache get error for key {key}: {str(e)}")
            return None

    def set(self, key: str, value: Any, ttl_seconds: int = 3600) -> bool:
        """
        Set value in cache with TTL.

        Returns:
            True if successful, False otherwise
        """
        if not self.available:
            return False

        try:
            self.redis_client.setex(key, ttl_seconds, json.dumps(value))
            return True
        except (redis.RedisError, TypeError, ValueError) as e:
            logger.debug(f"Cache set error for key {key}: {str(e)}")
            return False

    def delete(self, key: str) -> bool:
        """Delete value from cache. Returns True if a key was deleted."""
        if not self.available:
            return False

        try:
            return self.redis_client.delete(key) > 0
        except redis.RedisError as e:
            logger.debug(f"Cache delete error for key {key}: {str(e)}")
            return False

    def ping(self) -> bool:
        """Check the connection is still alive (used by the health check)."""
        if not self.available:
            return False
        try:
            return bool(self.redis_client.ping())
        except redis.RedisError:
            return False


# Global cache instance, created on first use
_cache: Optional[CacheService] = None


def get_cache() -> CacheService:
    """Get or create the global cache instance."""
    global _cache
    if _cache is None:
        _cache = CacheService()
    return _cache
