"""Redis-based caching for effective permission sets"""
from __future__ import annotations

import json
import logging
from typing import Any

import redis.asyncio as redis

from src.infrastructure.config.settings import get_settings

logger = logging.getLogger(__name__)


class CacheService:
    """
    Async Redis cache service with TTL support.

    Caches each user's effective permission keys so the authorization
    check does not re-run the role/permission join on every request.
    Every method degrades to a no-op when Redis is unavailable.
    """

    def __init__(self, redis_client: redis.Redis | None = None):
        """
        Initialize cache service

        Args:
            redis_client: Optional Redis client (for testing/DI)
        """
        self.redis = redis_client
        self.settings = get_settings()
        self._connected = redis_client is not None

    async def connect(self):
        """Establish Redis connection (call on app startup)"""
        if self.redis is None:
            try:
                self.redis = redis.Redis(
                    host=self.settings.redis_host,
                    port=self.settings.redis_port,
                    db=self.settings.redis_db,
                    password=self.settings.redis_password
                    if self.settings.redis_password
                    else None,
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_keepalive=True,
                )
                # Test connection
                await self.redis.ping()
                self._connected = True
                logger.info(
                    f"Redis cache connected: {self.settings.redis_host}:{self.settings.redis_port}"
                )
            except (redis.ConnectionError, redis.TimeoutError) as e:
                logger.warning(
                    f"Redis connection failed: {e}. Cache disabled - falling back to database queries."
                )
                self._connected = False
                self.redis = None

    async def disconnect(self):
        """Close Redis connection (call on app shutdown)"""
        if self.redis:
            await self.redis.aclose()
            self._connected = False
            logger.info("Redis cache disconnected")

    def is_available(self) -> bool:
        """Check if Redis is connected and available"""
        return self._connected and self.redis is not None

    async def get(self, key: str) -> Any | None:
        """
        Get value from cache

        Returns:
            Cached value (deserialized from JSON) or None if not found/unavailable
        """
        if not self.is_available() or self.redis is None:
            return None

        redis_client = self.redis  # Local variable for type narrowing
        try:
            value = await redis_client.get(key)
            if value:
                logger.debug(f"Cache HIT: {key}")
                return json.loads(value)
            logger.debug(f"Cache MISS: {key}")
            return None
        except Exception as e:
            logger.error(f"Cache get error for key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        """
        Set value in cache with TTL

        Returns:
            True if successful, False otherwise
        """
        if not self.is_available() or self.redis is None:
            return False

        redis_client = self.redis
        try:
            serialized = json.dumps(value)
            await redis_client.setex(key, ttl, serialized)
            logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"Cache set error for key {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        """Delete key from cache"""
        if not self.is_available() or self.redis is None:
            return False

        redis_client = self.redis
        try:
            await redis_client.delete(key)
            logger.debug(f"Cache DELETE: {key}")
            return True
        except Exception as e:
            logger.error(f"Cache delete error for key {key}: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """
        Delete all keys matching pattern

        Args:
            pattern: Redis pattern (e.g., "permissions:*")

        Returns:
            Number of keys deleted
        """
        if not self.is_available() or self.redis is None:
            return 0

        redis_client = self.redis
        try:
            # Scan for matching keys (cursor-based for large datasets)
            deleted = 0
            async for key in redis_client.scan_iter(match=pattern):
                await redis_client.delete(key)
                deleted += 1

            if deleted > 0:
                logger.info(f"Cache INVALIDATE: {pattern} ({deleted} keys deleted)")
            return deleted
        except Exception as e:
            logger.error(f"Cache delete pattern error for {pattern}: {e}")
            return 0
