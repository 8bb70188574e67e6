"""Tests for the Redis permission cache"""

import json
from unittest.mock import AsyncMock, patch

import pytest
import redis.asyncio as redis

from src.infrastructure.cache.redis_cache import CacheService


@pytest.fixture
async def cache_service():
    """Cache service over a mock Redis client"""
    return CacheService(redis_client=AsyncMock())


@pytest.fixture
async def disconnected_cache():
    return CacheService()


@pytest.mark.asyncio
async def test_cache_get_hit(cache_service):
    cache_service.redis.get = AsyncMock(
        return_value='["/api/user/permissions:GET", "/api/user/profile:GET"]'
    )

    result = await cache_service.get("permissions:user-1")

    assert result == ["/api/user/permissions:GET", "/api/user/profile:GET"]
    cache_service.redis.get.assert_called_once_with("permissions:user-1")


@pytest.mark.asyncio
async def test_cache_get_miss(cache_service):
    cache_service.redis.get = AsyncMock(return_value=None)

    assert await cache_service.get("permissions:missing") is None


@pytest.mark.asyncio
async def test_cache_set_serializes_with_ttl(cache_service):
    cache_service.redis.setex = AsyncMock()
    keys = ["/api/admin/roles:GET", "/api/admin/roles:POST"]

    result = await cache_service.set("permissions:user-2", keys, ttl=120)

    assert result is True
    key, ttl, payload = cache_service.redis.setex.call_args[0]
    assert (key, ttl) == ("permissions:user-2", 120)
    assert json.loads(payload) == keys


@pytest.mark.asyncio
async def test_cache_default_ttl(cache_service):
    cache_service.redis.setex = AsyncMock()

    await cache_service.set("permissions:user-3", [])

    assert cache_service.redis.setex.call_args[0][1] == 300


@pytest.mark.asyncio
async def test_cache_delete(cache_service):
    cache_service.redis.delete = AsyncMock()

    assert await cache_service.delete("permissions:user-1") is True
    cache_service.redis.delete.assert_called_once_with("permissions:user-1")


@pytest.mark.asyncio
async def test_cache_delete_pattern(cache_service):
    async def scan_iter(match=None):
        for key in ["permissions:user-1", "permissions:user-2", "permissions:user-3"]:
            yield key

    cache_service.redis.scan_iter = scan_iter
    cache_service.redis.delete = AsyncMock()

    deleted = await cache_service.delete_pattern("permissions:*")

    assert deleted == 3
    assert cache_service.redis.delete.call_count == 3


@pytest.mark.asyncio
async def test_unavailable_cache_is_a_no_op(disconnected_cache):
    assert disconnected_cache.is_available() is False
    assert await disconnected_cache.get("permissions:user-1") is None
    assert await disconnected_cache.set("permissions:user-1", ["x"]) is False
    assert await disconnected_cache.delete("permissions:user-1") is False
    assert await disconnected_cache.delete_pattern("permissions:*") == 0


@pytest.mark.asyncio
async def test_cache_connect_success():
    with patch("redis.asyncio.Redis") as mock_redis_class:
        mock_client = AsyncMock()
        mock_redis_class.return_value = mock_client

        cache = CacheService()
        await cache.connect()

        assert cache.is_available() is True
        mock_client.ping.assert_called_once()


@pytest.mark.asyncio
async def test_cache_connect_failure():
    with patch("redis.asyncio.Redis") as mock_redis_class:
        mock_client = AsyncMock()
        mock_client.ping = AsyncMock(side_effect=redis.ConnectionError("Connection refused"))
        mock_redis_class.return_value = mock_client

        cache = CacheService()
        await cache.connect()

        # Falls back to database queries
        assert cache.is_available() is False
        assert cache.redis is None


@pytest.mark.asyncio
async def test_cache_disconnect(cache_service):
    await cache_service.disconnect()

    cache_service.redis.aclose.assert_called_once()
    assert cache_service.is_available() is False


@pytest.mark.asyncio
async def test_cache_errors_do_not_raise(cache_service):
    cache_service.redis.get = AsyncMock(side_effect=Exception("Redis error"))
    cache_service.redis.setex = AsyncMock(side_effect=Exception("Redis error"))

    assert await cache_service.get("permissions:user-1") is None
    assert await cache_service.set("permissions:user-1", ["x"]) is False
