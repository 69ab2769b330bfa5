"""
Unit tests for the repository container and store selection.
"""

from datetime import date

import pytest

from cache_service.core.config import Settings
from cache_service.domain.cache.entities import SystemDate
from cache_service.domain.cache.value_objects import (
    DayType,
    EntityKind,
    MissingPredecessorPolicy,
)
from cache_service.infrastructure.redis.hash_store import RedisHashStore
from cache_service.infrastructure.repositories.cache_repository import (
    CacheRepository,
    build_store,
)
from cache_service.infrastructure.repositories.uniqueness import (
    NameIndexUniquenessGuard,
    ScanUniquenessGuard,
)
from cache_service.infrastructure.storage.memory import InMemoryHashStore


class TestBuildStore:
    def test_memory_backend(self):
        store = build_store(Settings(ENVIRONMENT="test", STORE_BACKEND="memory"))
        assert isinstance(store, InMemoryHashStore)

    def test_redis_backend(self):
        store = build_store(
            Settings(
                ENVIRONMENT="test", STORE_BACKEND="redis", REDIS_KEY_PREFIX="params:"
            )
        )

        assert isinstance(store, RedisHashStore)
        assert store.key_prefix == "params:"


class TestCacheRepository:
    def test_repositories_share_settings(self):
        settings = Settings(
            ENVIRONMENT="test",
            UNIQUENESS_STRATEGY="scan",
            MISSING_PREDECESSOR_POLICY="fail",
            ENTITY_ID_PREFIX="_T",
        )
        repositories = CacheRepository(InMemoryHashStore(), settings)

        for kind in EntityKind:
            repository = repositories.for_kind(kind)
            assert repository.kind is kind
            assert isinstance(repository.guard, ScanUniquenessGuard)
            assert (
                repository.versions.missing_predecessor
                is MissingPredecessorPolicy.FAIL
            )
            assert repository.allocator.prefix == "_T"

    def test_default_guard(self, repositories):
        assert isinstance(repositories.system_dates.guard, NameIndexUniquenessGuard)
        assert repositories.for_kind(EntityKind.SYSTEM_DATE) is repositories.system_dates

    @pytest.mark.asyncio
    async def test_kinds_use_separate_tables(self, repositories, store):
        saved = await repositories.system_dates.save(
            SystemDate(name=DayType.TODAY, day=date(2023, 9, 15))
        )

        assert await store.contains("SYSTEM_DATE", saved.id)
        assert await repositories.document_types.count() == 0

    @pytest.mark.asyncio
    async def test_from_settings(self, test_settings):
        repositories = CacheRepository.from_settings(test_settings)

        assert isinstance(repositories.store, InMemoryHashStore)
        await repositories.close()
