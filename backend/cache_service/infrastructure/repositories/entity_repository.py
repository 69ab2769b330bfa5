"""
Hash Entity Repository

Generic CRUD repository built on HashStore primitives. One instance per
entity kind; the kind decides validation, the guard decides uniqueness and
the version controller decides create vs update.
"""

import collections.abc
from typing import Any, Iterable, List, Optional, Type, TypeVar

import structlog

from ...domain.cache.domain_services import IdentityAllocator, OptimisticVersionController
from ...domain.cache.entities import (
    CachedEntity,
    DocumentType,
    SystemDate,
    SystemRate,
)
from ...domain.cache.exceptions import CacheException
from ...domain.cache.repository_interfaces import EntityRepository
from ...domain.cache.value_objects import (
    MissingPredecessorPolicy,
    SaveAllResult,
    UniquenessStrategy,
)
from ..codecs import EntityCodec, JsonEntityCodec
from ..storage.base import HashStore
from .uniqueness import NameIndexUniquenessGuard, ScanUniquenessGuard, UniquenessGuard

logger = structlog.get_logger(__name__)

E = TypeVar("E", bound=CachedEntity)


def _reject_async_producer(items: Any, operation: str) -> None:
    if isinstance(items, collections.abc.AsyncIterable):
        raise NotImplementedError(
            f"{operation} accepts materialized iterables only, "
            "collect the async producer first"
        )


class HashEntityRepository(EntityRepository[E]):
    """
    CRUD repository over one hash table.

    Stored values are serialized, so every value handed out is a fresh copy
    and callers cannot mutate store state between operations.
    """

    entity_cls: Type[E]

    def __init__(
        self,
        store: HashStore,
        entity_cls: Optional[Type[E]] = None,
        codec: Optional[EntityCodec[E]] = None,
        allocator: Optional[IdentityAllocator] = None,
        uniqueness: UniquenessStrategy = UniquenessStrategy.INDEX,
        missing_predecessor: MissingPredecessorPolicy = MissingPredecessorPolicy.INSERT,
        table: Optional[str] = None,
    ):
        if entity_cls is not None:
            self.entity_cls = entity_cls
        if getattr(self, "entity_cls", None) is None:
            raise TypeError("entity_cls is required")

        self.kind = self.entity_cls.KIND
        self.store = store
        self.table = table or self.kind.table
        self.codec = codec or JsonEntityCodec(self.entity_cls)
        self.allocator = allocator or IdentityAllocator()
        self.versions: OptimisticVersionController[E] = OptimisticVersionController(
            self.allocator, missing_predecessor
        )

        guard_cls = (
            NameIndexUniquenessGuard
            if uniqueness is UniquenessStrategy.INDEX
            else ScanUniquenessGuard
        )
        self.guard: UniquenessGuard[E] = guard_cls(
            store, self.table, self.entity_cls, self.codec
        )

    async def save(self, entity: E) -> E:
        # Validation runs before any store access
        entity.validate()

        stored = None
        if self.versions.needs_lookup(entity):
            stored = await self.find_by_id(entity.id)

        plan = self.versions.plan(entity, stored)
        await self.guard.reserve(plan)

        written = False
        try:
            await self.store.put(self.table, plan.entity.id, self.codec.encode(plan.entity))
            written = True
        finally:
            if not written:
                await self.guard.rollback(plan)

        await self.guard.confirm(plan)
        if plan.is_update and plan.name_changed:
            await self.guard.release(plan.previous)

        logger.debug(
            "Repository: Entity saved",
            kind=self.kind.value,
            entity_id=plan.entity.id,
            write=plan.kind.value,
            version=plan.entity.version,
        )
        return plan.entity.copy()

    async def save_all(self, entities: Iterable[E]) -> SaveAllResult[E]:
        _reject_async_producer(entities, "save_all")

        result: SaveAllResult[E] = SaveAllResult()
        for entity in entities:
            try:
                result.saved.append(await self.save(entity))
            except CacheException as e:
                logger.warning(
                    "Repository: Entity not saved",
                    kind=self.kind.value,
                    name=str(getattr(entity, "name", None)),
                    error_code=e.error_code,
                    error=e.message,
                )
                result.failures.append((entity, e))
        return result

    async def find_by_id(self, entity_id: str) -> Optional[E]:
        if not entity_id:
            return None
        raw = await self.store.get(self.table, entity_id)
        return self.codec.decode(raw) if raw is not None else None

    async def find_by_name(self, name: Any) -> Optional[E]:
        return await self.guard.find_by_name(name)

    async def find_all(self) -> List[E]:
        return [self.codec.decode(raw) for raw in await self.store.values(self.table)]

    async def find_all_by_id(self, entity_ids: Iterable[str]) -> List[E]:
        _reject_async_producer(entity_ids, "find_all_by_id")

        found = await self.store.get_many(self.table, entity_ids)
        return [self.codec.decode(raw) for raw in found.values()]

    async def exists_by_id(self, entity_id: str) -> bool:
        if not entity_id:
            return False
        return await self.store.contains(self.table, entity_id)

    async def exists_by_name(self, name: Any) -> bool:
        return await self.guard.exists_by_name(name)

    async def count(self) -> int:
        return await self.store.size(self.table)

    async def delete(self, entity: E) -> None:
        await self.delete_by_id(entity.id)

    async def delete_by_id(self, entity_id: str) -> None:
        if not entity_id:
            return
        stored = await self.find_by_id(entity_id)
        removed = await self.store.remove(self.table, entity_id)
        if stored is not None:
            await self.guard.release(stored)

        logger.debug(
            "Repository: Entity deleted",
            kind=self.kind.value,
            entity_id=entity_id,
            existed=bool(removed),
        )

    async def delete_entities(self, entities: Iterable[E]) -> None:
        _reject_async_producer(entities, "delete_entities")

        for entity in entities:
            await self.delete(entity)

    async def delete_all(self) -> None:
        # Index first: a claim taken in between outlives the table as an
        # in-flight claim instead of being lost under a live entity
        await self.guard.reset()
        await self.store.clear(self.table)
        logger.info("Repository: Table cleared", kind=self.kind.value, table=self.table)


class DocumentTypeRepository(HashEntityRepository[DocumentType]):
    """Document types, unique by name."""

    entity_cls = DocumentType


class SystemRateRepository(HashEntityRepository[SystemRate]):
    """System rates, unique by name."""

    entity_cls = SystemRate


class SystemDateRepository(HashEntityRepository[SystemDate]):
    """System dates, unique by tag except HOLIDAY."""

    entity_cls = SystemDate
