"""
Redis Infrastructure Module

Redis backend for the entity store.

This module provides:
- RedisConnectionFactory: Connection pool management with a startup ping
- RedisHashStore: HashStore implementation on Redis hashes
- Exception hierarchy for Redis failures
"""

from .connection_factory import RedisConnectionFactory
from .exceptions import (
    RedisAuthenticationException,
    RedisConfigurationException,
    RedisConnectionException,
    RedisException,
    RedisOperationTimeoutException,
)
from .hash_store import RedisHashStore

__all__ = [
    "RedisConnectionFactory",
    "RedisHashStore",
    "RedisException",
    "RedisConnectionException",
    "RedisAuthenticationException",
    "RedisOperationTimeoutException",
    "RedisConfigurationException",
]
