"""Unit tests for the exchange-rate cache."""
from datetime import timedelta
from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from app.infrastructure.redis import CacheManager, redis_health_check


class TestCacheManager:
    """Test JSON caching over an async Redis client."""

    @pytest.mark.asyncio
    async def test_get_decodes_hit(self):
        redis_client = AsyncMock()
        redis_client.get.return_value = '{"EUR": "0.92"}'

        cache = CacheManager(redis_client)

        assert await cache.get("exchange_rates:USD") == {"EUR": "0.92"}
        redis_client.get.assert_awaited_once_with("catalog:exchange_rates:USD")

    @pytest.mark.asyncio
    async def test_get_miss_returns_none(self):
        redis_client = AsyncMock()
        redis_client.get.return_value = None

        assert await CacheManager(redis_client).get("exchange_rates:USD") is None

    @pytest.mark.asyncio
    async def test_unreachable_server_is_a_miss(self):
        redis_client = AsyncMock()
        redis_client.get.side_effect = RedisConnectionError("refused")

        assert await CacheManager(redis_client).get("exchange_rates:USD") is None

    @pytest.mark.asyncio
    async def test_undecodable_entry_is_a_miss(self):
        redis_client = AsyncMock()
        redis_client.get.return_value = "{not json"

        assert await CacheManager(redis_client).get("exchange_rates:USD") is None

    @pytest.mark.asyncio
    async def test_set_uses_ttl_override(self):
        redis_client = AsyncMock()
        cache = CacheManager(redis_client, ttl_hours=6)

        assert await cache.set("exchange_rates:USD", {"EUR": "0.92"}, ttl_hours=2) is True
        redis_client.setex.assert_awaited_once_with(
            "catalog:exchange_rates:USD", timedelta(hours=2), '{"EUR": "0.92"}'
        )

    @pytest.mark.asyncio
    async def test_set_failure_returns_false(self):
        redis_client = AsyncMock()
        redis_client.setex.side_effect = RedisConnectionError("refused")

        assert await CacheManager(redis_client).set("exchange_rates:USD", {}) is False


class TestRedisHealthCheck:
    """Test the readiness ping."""

    @pytest.mark.asyncio
    async def test_reachable_server(self):
        redis_client = AsyncMock()
        redis_client.ping.return_value = True

        with patch("app.infrastructure.redis.get_redis_client", return_value=redis_client):
            assert await redis_health_check() is True

    @pytest.mark.asyncio
    async def test_unreachable_server(self):
        redis_client = AsyncMock()
        redis_client.ping.side_effect = RedisConnectionError("refused")

        with patch("app.infrastructure.redis.get_redis_client", return_value=redis_client):
            assert await redis_health_check() is False
