"""
In-Memory Hash Store

Process-local HashStore used for tests and local development. Every
primitive yields to the event loop first, so interleavings between
concurrent requests look like they do against Redis.
"""

import asyncio
from typing import Dict, Iterable, List, Optional

from .base import HashStore


class InMemoryHashStore(HashStore):
    """HashStore backed by a dict of dicts."""

    def __init__(self):
        self._tables: Dict[str, Dict[str, str]] = {}

    async def get(self, table: str, field: str) -> Optional[str]:
        await asyncio.sleep(0)
        return self._tables.get(table, {}).get(field)

    async def get_many(self, table: str, fields: Iterable[str]) -> Dict[str, str]:
        await asyncio.sleep(0)
        data = self._tables.get(table, {})
        return {field: data[field] for field in fields if field in data}

    async def put(self, table: str, field: str, value: str) -> None:
        await asyncio.sleep(0)
        self._tables.setdefault(table, {})[field] = value

    async def put_if_absent(self, table: str, field: str, value: str) -> bool:
        await asyncio.sleep(0)
        data = self._tables.setdefault(table, {})
        if field in data:
            return False
        data[field] = value
        return True

    async def remove(self, table: str, *fields: str) -> int:
        await asyncio.sleep(0)
        data = self._tables.get(table)
        if not data:
            return 0
        removed = 0
        for field in fields:
            if data.pop(field, None) is not None:
                removed += 1
        if not data:
            del self._tables[table]
        return removed

    async def remove_if_equal(self, table: str, field: str, expected: str) -> bool:
        await asyncio.sleep(0)
        data = self._tables.get(table)
        if not data or data.get(field) != expected:
            return False
        del data[field]
        if not data:
            del self._tables[table]
        return True

    async def values(self, table: str) -> List[str]:
        await asyncio.sleep(0)
        return list(self._tables.get(table, {}).values())

    async def contains(self, table: str, field: str) -> bool:
        await asyncio.sleep(0)
        return field in self._tables.get(table, {})

    async def size(self, table: str) -> int:
        await asyncio.sleep(0)
        return len(self._tables.get(table, {}))

    async def clear(self, table: str) -> None:
        await asyncio.sleep(0)
        self._tables.pop(table, None)
