"""
Redis Connection Factory

Connection management for the Redis entity store.
Provides connection pooling, a startup ping and OpenTelemetry instrumentation.
"""

import asyncio
import logging
from typing import Optional
from urllib.parse import urlparse

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import AuthenticationError as RedisAuthError

from ...core.config import Settings, get_settings
from .exceptions import (
    RedisAuthenticationException,
    RedisConfigurationException,
    RedisConnectionException,
)

logger = logging.getLogger(__name__)


class RedisConnectionFactory:
    """
    Factory for creating and managing the Redis connection pool.

    One pool per process; clients created from it are cheap and share
    connections.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._pool: Optional[ConnectionPool] = None
        self._initialized = False
        self._lock = asyncio.Lock()

        # Initialize OpenTelemetry instrumentation
        try:
            from opentelemetry.instrumentation.redis import RedisInstrumentor

            RedisInstrumentor().instrument()
            logger.info("Redis OpenTelemetry instrumentation enabled")
        except Exception as e:
            logger.warning(f"Failed to enable Redis OpenTelemetry instrumentation: {e}")

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Create the connection pool and test it."""
        if self._initialized:
            return

        async with self._lock:
            if self._initialized:
                return

            parsed_url = urlparse(self.settings.REDIS_URL)
            try:
                self._pool = ConnectionPool.from_url(
                    self.settings.REDIS_URL,
                    encoding="utf-8",
                    decode_responses=True,
                    socket_connect_timeout=self.settings.REDIS_CONNECTION_TIMEOUT,
                    socket_timeout=self.settings.REDIS_OPERATION_TIMEOUT,
                    retry_on_timeout=True,
                    max_connections=self.settings.REDIS_MAX_CONNECTIONS,
                )
            except ValueError as e:
                raise RedisConfigurationException(
                    message=f"Invalid Redis URL: {e}",
                    config_key="REDIS_URL",
                    original_error=e,
                )

            await self._test_connection(self._pool, parsed_url.hostname, parsed_url.port)

            self._initialized = True
            logger.info(
                "Redis connection factory initialized",
                extra={
                    "host": parsed_url.hostname,
                    "port": parsed_url.port,
                    "max_connections": self.settings.REDIS_MAX_CONNECTIONS,
                },
            )

    async def _test_connection(
        self, pool: ConnectionPool, host: Optional[str], port: Optional[int]
    ) -> None:
        """Ping through the pool once."""
        try:
            redis_client = Redis(connection_pool=pool)
            await redis_client.ping()
            logger.debug("Redis connection test successful")
        except RedisAuthError as e:
            raise RedisAuthenticationException(
                message="Redis authentication failed during initialization",
                original_error=e,
            )
        except Exception as e:
            raise RedisConnectionException(
                message="Redis connection test failed",
                host=host,
                port=port,
                original_error=e,
            )

    def get_client(self) -> Redis:
        """Redis client bound to the shared pool."""
        if not self._initialized or self._pool is None:
            raise RedisConnectionException(
                message="Redis connection factory is not initialized"
            )
        return Redis(connection_pool=self._pool)

    async def close(self) -> None:
        """Disconnect the pool."""
        async with self._lock:
            if self._pool is not None:
                await self._pool.disconnect()
                self._pool = None
            self._initialized = False
            logger.info("Redis connection factory closed")
