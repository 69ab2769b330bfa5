"""
Redis Hash Store

HashStore implementation on Redis hashes. One Redis hash per table; every
primitive maps to a single Redis command or, for compare-and-delete, a
single Lua script.
"""

import logging
from contextlib import asynccontextmanager
from typing import Dict, Iterable, List, Optional

from redis.asyncio import Redis
from redis.exceptions import (
    ConnectionError as RedisConnectionError,
    RedisError,
    TimeoutError as RedisTimeoutError,
)

from ..storage.base import HashStore
from .connection_factory import RedisConnectionFactory
from .exceptions import (
    RedisConnectionException,
    RedisException,
    RedisOperationTimeoutException,
)

logger = logging.getLogger(__name__)

# HGET and HDEL in one atomic step
REMOVE_IF_EQUAL_SCRIPT = """
if redis.call('HGET', KEYS[1], ARGV[1]) == ARGV[2] then
    return redis.call('HDEL', KEYS[1], ARGV[1])
end
return 0
"""


class RedisHashStore(HashStore):
    """HashStore backed by Redis HGET/HSET/HSETNX/HDEL/HVALS/HLEN/DEL."""

    def __init__(
        self,
        client: Optional[Redis] = None,
        connection_factory: Optional[RedisConnectionFactory] = None,
        key_prefix: str = "",
    ):
        if client is None and connection_factory is None:
            raise ValueError("Either a Redis client or a connection factory is required")
        self._client = client
        self._connection_factory = connection_factory
        self.key_prefix = key_prefix

    def _key(self, table: str) -> str:
        return f"{self.key_prefix}{table}"

    async def _get_client(self) -> Redis:
        if self._client is None:
            await self._connection_factory.initialize()
            self._client = self._connection_factory.get_client()
        return self._client

    @asynccontextmanager
    async def _operation(self, operation: str, table: str):
        """Yield a client and translate Redis errors."""
        client = await self._get_client()
        try:
            yield client
        except RedisTimeoutError as e:
            logger.error(f"Redis {operation} on {table} timed out: {e}")
            raise RedisOperationTimeoutException(operation, table, original_error=e)
        except RedisConnectionError as e:
            logger.error(f"Redis {operation} on {table} lost connection: {e}")
            raise RedisConnectionException(original_error=e)
        except RedisError as e:
            logger.exception(f"Redis {operation} on {table} failed: {e}")
            raise RedisException(
                message=f"Redis {operation} failed: {str(e)}",
                details={"operation": operation, "table": table},
                original_error=e,
            )

    async def get(self, table: str, field: str) -> Optional[str]:
        async with self._operation("hget", table) as client:
            return await client.hget(self._key(table), field)

    async def get_many(self, table: str, fields: Iterable[str]) -> Dict[str, str]:
        fields = list(fields)
        if not fields:
            return {}
        async with self._operation("hmget", table) as client:
            values = await client.hmget(self._key(table), fields)
        return {
            field: value for field, value in zip(fields, values) if value is not None
        }

    async def put(self, table: str, field: str, value: str) -> None:
        async with self._operation("hset", table) as client:
            await client.hset(self._key(table), field, value)

    async def put_if_absent(self, table: str, field: str, value: str) -> bool:
        async with self._operation("hsetnx", table) as client:
            return bool(await client.hsetnx(self._key(table), field, value))

    async def remove(self, table: str, *fields: str) -> int:
        if not fields:
            return 0
        async with self._operation("hdel", table) as client:
            return int(await client.hdel(self._key(table), *fields))

    async def remove_if_equal(self, table: str, field: str, expected: str) -> bool:
        async with self._operation("hdel_if_equal", table) as client:
            removed = await client.eval(
                REMOVE_IF_EQUAL_SCRIPT, 1, self._key(table), field, expected
            )
        return bool(removed)

    async def values(self, table: str) -> List[str]:
        async with self._operation("hvals", table) as client:
            return list(await client.hvals(self._key(table)))

    async def contains(self, table: str, field: str) -> bool:
        async with self._operation("hexists", table) as client:
            return bool(await client.hexists(self._key(table), field))

    async def size(self, table: str) -> int:
        async with self._operation("hlen", table) as client:
            return int(await client.hlen(self._key(table)))

    async def clear(self, table: str) -> None:
        async with self._operation("delete", table) as client:
            await client.delete(self._key(table))

    async def ping(self) -> None:
        async with self._operation("ping", "*") as client:
            await client.ping()

    async def close(self) -> None:
        if self._connection_factory is not None:
            await self._connection_factory.close()
        self._client = None
