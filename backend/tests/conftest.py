"""
Main pytest configuration for the parameter cache tests.

Repositories run against the in-memory hash store; the parameter service is
replaced by an in-process fake.
"""

import os
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

import pytest

# Set test environment variables before importing app modules
os.environ["ENVIRONMENT"] = "test"
os.environ["STORE_BACKEND"] = "memory"
os.environ["LOG_LEVEL"] = "DEBUG"

from cache_service.core.config import Settings
from cache_service.domain.cache.entities import (
    ENTITY_CLASSES,
    CachedEntity,
    DocumentType,
    SystemDate,
    SystemRate,
)
from cache_service.domain.cache.value_objects import DayType, EntityKind
from cache_service.infrastructure.repositories.cache_repository import CacheRepository
from cache_service.infrastructure.storage.memory import InMemoryHashStore
from cache_service.services.cache.parameter_cache import ParameterCacheService
from cache_service.services.param.client import UpstreamClient


class FakeUpstream(UpstreamClient):
    """Parameter service stand-in serving fixed data and counting calls."""

    def __init__(self, data: Optional[Dict[EntityKind, List[CachedEntity]]] = None):
        self.data = data or {}
        self.fetch_all_calls: Dict[EntityKind, int] = {}
        self.fetch_by_key_calls: List[tuple] = []
        self.error: Optional[Exception] = None
        self.closed = False

    async def fetch_by_key(self, kind, key):
        self.fetch_by_key_calls.append((kind, key))
        if self.error:
            raise self.error
        name_key = ENTITY_CLASSES[kind].name_key
        for entity in self.data.get(kind, []):
            if name_key(entity.name) == key:
                return entity.copy()
        return None

    async def fetch_all(self, kind):
        self.fetch_all_calls[kind] = self.fetch_all_calls.get(kind, 0) + 1
        if self.error:
            raise self.error
        return [entity.copy() for entity in self.data.get(kind, [])]

    async def close(self):
        self.closed = True


@pytest.fixture
def test_settings():
    """Settings for an in-memory store."""
    return Settings(ENVIRONMENT="test", STORE_BACKEND="memory")


@pytest.fixture
def store():
    return InMemoryHashStore()


@pytest.fixture
def repositories(store, test_settings):
    return CacheRepository(store, test_settings)


@pytest.fixture
def upstream_data():
    """Reference data as the parameter service would return it."""
    return {
        EntityKind.SYSTEM_RATE: [
            SystemRate(name="TRM", rate=Decimal("4150.25"), id="101"),
            SystemRate(name="DTF", rate=Decimal("11.5"), id="102"),
        ],
        EntityKind.SYSTEM_DATE: [
            # Friday 2023-09-15
            SystemDate(name=DayType.TODAY, day=date(2023, 9, 15), id="201"),
            SystemDate(name=DayType.YESTERDAY, day=date(2023, 9, 14), id="202"),
            SystemDate(name=DayType.TOMORROW, day=date(2023, 9, 18), id="203"),
            SystemDate(name=DayType.HOLIDAY, day=date(2023, 9, 18), id="204"),
            SystemDate(name=DayType.HOLIDAY, day=date(2023, 9, 25), id="205"),
        ],
        EntityKind.DOCUMENT_TYPE: [
            DocumentType(name="CC", expiration="10Y", id="301"),
            DocumentType(name="NIT", expiration="1Y", id="302"),
        ],
    }


@pytest.fixture
def make_upstream():
    """Factory for fake parameter services with custom data."""
    return FakeUpstream


@pytest.fixture
def upstream(upstream_data):
    return FakeUpstream(upstream_data)


@pytest.fixture
def cache_service(repositories, upstream):
    return ParameterCacheService(
        repositories, upstream, clock=lambda: date(2023, 9, 15)
    )
