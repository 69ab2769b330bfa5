"""
Unit tests for the in-memory hash store.
"""

import pytest

from cache_service.infrastructure.storage.memory import InMemoryHashStore


@pytest.fixture
def store():
    return InMemoryHashStore()


class TestInMemoryHashStore:
    @pytest.mark.asyncio
    async def test_put_get(self, store):
        await store.put("T", "a", "1")

        assert await store.get("T", "a") == "1"
        assert await store.get("T", "missing") is None
        assert await store.get("OTHER", "a") is None

    @pytest.mark.asyncio
    async def test_put_if_absent(self, store):
        assert await store.put_if_absent("T", "a", "1")
        assert not await store.put_if_absent("T", "a", "2")
        assert await store.get("T", "a") == "1"

    @pytest.mark.asyncio
    async def test_get_many_skips_missing(self, store):
        await store.put("T", "a", "1")
        await store.put("T", "b", "2")

        assert await store.get_many("T", ["a", "x", "b"]) == {"a": "1", "b": "2"}

    @pytest.mark.asyncio
    async def test_remove_counts(self, store):
        await store.put("T", "a", "1")
        await store.put("T", "b", "2")

        assert await store.remove("T", "a", "missing") == 1
        assert await store.remove("T", "a") == 0
        assert await store.size("T") == 1

    @pytest.mark.asyncio
    async def test_remove_if_equal(self, store):
        await store.put("T", "a", "1")

        assert not await store.remove_if_equal("T", "a", "2")
        assert await store.get("T", "a") == "1"
        assert await store.remove_if_equal("T", "a", "1")
        assert not await store.contains("T", "a")
        assert not await store.remove_if_equal("T", "a", "1")

    @pytest.mark.asyncio
    async def test_values_contains_size_clear(self, store):
        await store.put("T", "a", "1")
        await store.put("T", "b", "2")

        assert sorted(await store.values("T")) == ["1", "2"]
        assert await store.contains("T", "a")
        assert await store.size("T") == 2

        await store.clear("T")

        assert await store.size("T") == 0
        assert await store.values("T") == []
        assert not await store.contains("T", "a")

    @pytest.mark.asyncio
    async def test_tables_isolated(self, store):
        await store.put("A", "k", "1")
        await store.put("B", "k", "2")
        await store.clear("A")

        assert await store.get("B", "k") == "2"
