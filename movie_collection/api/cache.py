"""
Redis cache service
"""
import json
import logging
from typing import Any, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class CacheService:
    """Redis cache service

    Caching is optional: without ``REDIS_HOST`` (or when Redis is unreachable
    at startup) every lookup is a miss and writes are dropped.
    """

    def __init__(self, config):
        self.config = config
        self.client = None

    @property
    def is_enabled(self) -> bool:
        return self.client is not None

    async def connect(self):
        """Initialize Redis connection"""
        if not self.config.is_configured:
            logger.info("Redis cache not configured, caching disabled")
            return

        try:
            client = redis.from_url(
                self.config.url,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5
            )

            # Test connection
            await client.ping()
            self.client = client
            logger.info("✅ Redis cache connected successfully")

        except (RedisError, OSError) as e:
            logger.warning(f"Redis connection failed, caching disabled: {str(e)}")
            self.client = None

    async def disconnect(self):
        """Close Redis connection"""
        if self.client:
            await self.client.aclose()
            self.client = None
            logger.info("Redis cache disconnected")

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache"""
        try:
            if not self.client:
                return None

            value = await self.client.get(key)
            if value is None:
                return None

            return json.loads(value)

        except (RedisError, ValueError) as e:
            logger.warning(f"Cache get error for key {key}: {str(e)}")
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Set value in cache"""
        try:
            if not self.client:
                return False

            ttl = ttl or self.config.ttl_seconds
            serialized = json.dumps(value, default=str)

            await self.client.setex(key, ttl, serialized)
            return True

        except (RedisError, TypeError) as e:
            logger.warning(f"Cache set error for key {key}: {str(e)}")
            return False

    async def delete(self, key: str) -> bool:
        """Delete key from cache"""
        try:
            if not self.client:
                return False

            result = await self.client.delete(key)
            return result > 0

        except RedisError as e:
            logger.warning(f"Cache delete error for key {key}: {str(e)}")
            return False

    async def invalidate_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern"""
        try:
            if not self.client:
                return 0

            keys = [key async for key in self.client.scan_iter(match=pattern)]
            if keys:
                return await self.client.delete(*keys)
            return 0

        except RedisError as e:
            logger.warning(f"Cache pattern invalidation error for {pattern}: {str(e)}")
            return 0

    async def health_check(self) -> bool:
        """Check Redis health"""
        try:
            if not self.client:
                return False
            await self.client.ping()
            return True
        except RedisError as e:
            logger.error(f"Redis health check failed: {str(e)}")
            return False

    def cache_key(self, prefix: str, *args) -> str:
        """Generate cache key"""
        return f"{prefix}:" + ":".join(str(arg) for arg in args)
