"""
Unit tests for the Redis connection factory with a mocked pool.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import AuthenticationError, ConnectionError

from cache_service.core.config import Settings
from cache_service.infrastructure.redis.connection_factory import RedisConnectionFactory
from cache_service.infrastructure.redis.exceptions import (
    RedisAuthenticationException,
    RedisConfigurationException,
    RedisConnectionException,
)

MODULE = "cache_service.infrastructure.redis.connection_factory"


@pytest.fixture
def redis_settings():
    return Settings(
        ENVIRONMENT="test",
        REDIS_URL="redis://cache.local:6379/1",
        REDIS_MAX_CONNECTIONS=5,
    )


@pytest.fixture
def mock_pool():
    pool = MagicMock()
    pool.disconnect = AsyncMock()
    return pool


class TestRedisConnectionFactory:
    @pytest.mark.asyncio
    async def test_initialize_and_close(self, redis_settings, mock_pool):
        with patch(f"{MODULE}.ConnectionPool") as pool_cls, patch(
            f"{MODULE}.Redis"
        ) as redis_cls:
            pool_cls.from_url.return_value = mock_pool
            redis_cls.return_value.ping = AsyncMock(return_value=True)

            factory = RedisConnectionFactory(redis_settings)
            await factory.initialize()
            await factory.initialize()

            assert factory.initialized
            pool_cls.from_url.assert_called_once()
            args, kwargs = pool_cls.from_url.call_args
            assert args[0] == "redis://cache.local:6379/1"
            assert kwargs["decode_responses"] is True
            assert kwargs["max_connections"] == 5

            factory.get_client()
            redis_cls.assert_called_with(connection_pool=mock_pool)

            await factory.close()

        mock_pool.disconnect.assert_awaited_once()
        assert not factory.initialized

    def test_client_requires_initialize(self, redis_settings):
        factory = RedisConnectionFactory(redis_settings)

        with pytest.raises(RedisConnectionException):
            factory.get_client()

    @pytest.mark.asyncio
    async def test_unreachable_server(self, redis_settings, mock_pool):
        with patch(f"{MODULE}.ConnectionPool") as pool_cls, patch(
            f"{MODULE}.Redis"
        ) as redis_cls:
            pool_cls.from_url.return_value = mock_pool
            redis_cls.return_value.ping = AsyncMock(side_effect=ConnectionError("refused"))

            factory = RedisConnectionFactory(redis_settings)
            with pytest.raises(RedisConnectionException) as exc_info:
                await factory.initialize()

        assert exc_info.value.details["host"] == "cache.local"
        assert not factory.initialized

    @pytest.mark.asyncio
    async def test_authentication_failure(self, redis_settings, mock_pool):
        with patch(f"{MODULE}.ConnectionPool") as pool_cls, patch(
            f"{MODULE}.Redis"
        ) as redis_cls:
            pool_cls.from_url.return_value = mock_pool
            redis_cls.return_value.ping = AsyncMock(
                side_effect=AuthenticationError("bad password")
            )

            with pytest.raises(RedisAuthenticationException):
                await RedisConnectionFactory(redis_settings).initialize()

    @pytest.mark.asyncio
    async def test_invalid_url(self, redis_settings):
        with patch(f"{MODULE}.ConnectionPool") as pool_cls:
            pool_cls.from_url.side_effect = ValueError("bad port")

            with pytest.raises(RedisConfigurationException) as exc_info:
                await RedisConnectionFactory(redis_settings).initialize()

        assert exc_info.value.details["config_key"] == "REDIS_URL"
