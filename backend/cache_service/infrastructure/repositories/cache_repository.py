"""
Cache Repository Container

Builds the entity store and one repository per entity kind from settings.
"""

from typing import Dict, Optional

import structlog

from ...core.config import Settings, get_settings
from ...domain.cache.domain_services import IdentityAllocator
from ...domain.cache.value_objects import (
    EntityKind,
    MissingPredecessorPolicy,
    UniquenessStrategy,
)
from ..redis.connection_factory import RedisConnectionFactory
from ..redis.hash_store import RedisHashStore
from ..storage.base import HashStore
from ..storage.memory import InMemoryHashStore
from .entity_repository import (
    DocumentTypeRepository,
    HashEntityRepository,
    SystemDateRepository,
    SystemRateRepository,
)

logger = structlog.get_logger(__name__)


def build_store(settings: Settings) -> HashStore:
    """Entity store for the configured backend."""
    if settings.STORE_BACKEND == "memory":
        logger.info("Using in-memory entity store")
        return InMemoryHashStore()

    return RedisHashStore(
        connection_factory=RedisConnectionFactory(settings),
        key_prefix=settings.REDIS_KEY_PREFIX,
    )


class CacheRepository:
    """Repositories for every entity kind, sharing one store."""

    def __init__(self, store: HashStore, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.store = store

        options = dict(
            allocator=IdentityAllocator(settings.ENTITY_ID_PREFIX),
            uniqueness=UniquenessStrategy(settings.UNIQUENESS_STRATEGY),
            missing_predecessor=MissingPredecessorPolicy(
                settings.MISSING_PREDECESSOR_POLICY
            ),
        )
        self.document_types = DocumentTypeRepository(store, **options)
        self.system_rates = SystemRateRepository(store, **options)
        self.system_dates = SystemDateRepository(store, **options)

        self._by_kind: Dict[EntityKind, HashEntityRepository] = {
            EntityKind.DOCUMENT_TYPE: self.document_types,
            EntityKind.SYSTEM_RATE: self.system_rates,
            EntityKind.SYSTEM_DATE: self.system_dates,
        }

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "CacheRepository":
        settings = settings or get_settings()
        return cls(build_store(settings), settings)

    def for_kind(self, kind: EntityKind) -> HashEntityRepository:
        return self._by_kind[kind]

    async def close(self) -> None:
        await self.store.close()
