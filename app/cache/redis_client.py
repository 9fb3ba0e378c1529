"""
Redis cache client with connection pooling and JSON serialization.
"""
import json
from typing import Optional, Any
import redis
from redis.connection import ConnectionPool
from app.core.config import settings
from app.core.logging import get_logger

log = get_logger("cache")


class RedisCache:
    """
    Redis cache client with connection pooling.

    Every operation degrades to a miss/no-op when caching is disabled or
    Redis is unreachable, so callers never need to handle cache errors.
    """

    def __init__(self, url: str, enabled: bool = True):
        self.url = url
        self.enabled = enabled
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[redis.Redis] = None

    def _get_client(self) -> redis.Redis:
        """Get or create Redis client with connection pooling."""
        if self._client is None:
            self._pool = redis.ConnectionPool.from_url(
                self.url,
                decode_responses=True,
                max_connections=20,
                socket_connect_timeout=2,
            )
            self._client = redis.Redis(connection_pool=self._pool)
            log.info("Redis connection pool created")
        return self._client

    async def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache by key.

        Returns:
            Cached value or None if not found
        """
        if not self.enabled:
            return None
        try:
            value = self._get_client().get(key)
            if value:
                return json.loads(value)
            return None
        except Exception as e:
            log.error(f"Redis GET error for key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, expire: int = 300) -> bool:
        """
        Set value in cache with expiration.

        Args:
            key: Cache key
            value: Value to cache (will be JSON serialized)
            expire: Expiration time in seconds (default: 300)

        Returns:
            True if successful, False otherwise
        """
        if not self.enabled:
            return False
        try:
            serialized = json.dumps(value, default=str)
            self._get_client().setex(key, expire, serialized)
            return True
        except Exception as e:
            log.error(f"Redis SET error for key {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        if not self.enabled:
            return False
        try:
            self._get_client().delete(key)
            return True
        except Exception as e:
            log.error(f"Redis DELETE error for key {key}: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """
        Delete all keys matching pattern.

        Args:
            pattern: Key pattern (e.g., 'events:*')

        Returns:
            Number of keys deleted
        """
        if not self.enabled:
            return 0
        try:
            client = self._get_client()
            keys = list(client.scan_iter(match=pattern))
            if keys:
                return client.delete(*keys)
            return 0
        except Exception as e:
            log.error(f"Redis DELETE_PATTERN error for pattern {pattern}: {e}")
            return 0

    def close(self):
        """Close Redis connection pool."""
        if self._client:
            self._client.close()
            self._client = None
            log.info("Redis connection pool closed")


# Create a single instance to be imported throughout the app
cache = RedisCache(settings.REDIS_URL, enabled=settings.CACHE_ENABLED)
