"""
Uniqueness Guards

Enforce "name is unique within an entity kind" on top of the hash store,
which has no secondary indexes. Kinds may exempt some names (SystemDate
HOLIDAY) through ``allows_duplicate_name``.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, Tuple, Type, TypeVar

import structlog

from ...constants import NAME_INDEX_SUFFIX
from ...domain.cache.entities import CachedEntity
from ...domain.cache.exceptions import DuplicateNameException
from ...domain.cache.value_objects import WritePlan
from ..codecs import EntityCodec
from ..storage.base import HashStore

logger = structlog.get_logger(__name__)

E = TypeVar("E", bound=CachedEntity)

# put_if_absent retries while stale or released claims are being replaced
CLAIM_ATTEMPTS = 3


class UniquenessGuard(ABC, Generic[E]):
    """Name uniqueness for one entity kind."""

    def __init__(
        self,
        store: HashStore,
        table: str,
        entity_cls: Type[E],
        codec: EntityCodec[E],
    ):
        self.store = store
        self.table = table
        self.entity_cls = entity_cls
        self.codec = codec

    def is_exempt(self, name: Any) -> bool:
        return self.entity_cls.allows_duplicate_name(name)

    def needs_check(self, plan: WritePlan[E]) -> bool:
        """Unchanged names and exempt names are never checked again."""
        return plan.name_changed and not self.is_exempt(plan.entity.name)

    async def find_by_name(self, name: Any) -> Optional[E]:
        """First stored entity with this name (linear scan)."""
        for raw in await self.store.values(self.table):
            entity = self.codec.decode(raw)
            if entity.name == name:
                return entity
        return None

    @abstractmethod
    async def exists_by_name(self, name: Any) -> bool:
        """True if another live entity holds ``name``. Exempt names: False."""

    @abstractmethod
    async def reserve(self, plan: WritePlan[E]) -> None:
        """Raise DuplicateNameException if the planned write takes a used name."""

    async def rollback(self, plan: WritePlan[E]) -> None:
        """Undo ``reserve`` after the entity write itself failed."""

    async def confirm(self, plan: WritePlan[E]) -> None:
        """Check the claim of ``plan`` after its entity was written."""

    async def release(self, entity: E) -> None:
        """Forget the name of an entity that was deleted or renamed."""

    async def reset(self) -> None:
        """Forget every name before the table is cleared."""


class ScanUniquenessGuard(UniquenessGuard[E]):
    """
    Check-then-act guard: scans all values before the write.

    Two concurrent creations with the same name can both pass the scan
    before either writes.
    """

    async def exists_by_name(self, name: Any) -> bool:
        if self.is_exempt(name):
            return False
        return await self.find_by_name(name) is not None

    async def reserve(self, plan: WritePlan[E]) -> None:
        if not self.needs_check(plan):
            return
        if await self.exists_by_name(plan.entity.name):
            raise DuplicateNameException(
                self.entity_cls.KIND, plan.entity.name, plan.entity.id
            )


class NameIndexUniquenessGuard(UniquenessGuard[E]):
    """
    Guard backed by a ``<table>:NAMES`` hash mapping name -> id.

    A name is claimed with put_if_absent, which is atomic on a single key,
    so concurrent creations with the same name cannot both succeed. A claim
    is in one of three states:

    - in flight: the holder is not stored yet. The name counts as taken
      but lookups do not see it.
    - live: the stored holder still carries the name.
    - stale: the stored holder carries another name, which happens when
      two renames of one entity race. The name is free and the next
      reserve replaces the claim.

    Claims are dropped on delete, rename and failed writes; reset() clears
    any left behind.
    """

    def __init__(
        self,
        store: HashStore,
        table: str,
        entity_cls: Type[E],
        codec: EntityCodec[E],
    ):
        super().__init__(store, table, entity_cls, codec)
        self.index_table = f"{table}:{NAME_INDEX_SUFFIX}"

    def _holds(self, entity: Optional[E], key: str) -> bool:
        return entity is not None and self.entity_cls.name_key(entity.name) == key

    async def _claim(self, key: str) -> Tuple[Optional[str], Optional[E]]:
        """Holder id of ``key`` and the holder entity, if it is stored."""
        holder = await self.store.get(self.index_table, key)
        if holder is None:
            return None, None
        raw = await self.store.get(self.table, holder)
        return holder, self.codec.decode(raw) if raw is not None else None

    async def _live_holder(self, name: Any) -> Optional[E]:
        key = self.entity_cls.name_key(name)
        _, current = await self._claim(key)
        return current if self._holds(current, key) else None

    async def exists_by_name(self, name: Any) -> bool:
        """
        True if a stored entity holds ``name``.

        An in-flight claim is not visible here, so a save of that name can
        still fail with DuplicateNameException after this returned False.
        """
        if self.is_exempt(name):
            return False
        return await self._live_holder(name) is not None

    async def find_by_name(self, name: Any) -> Optional[E]:
        # Exempt names are never indexed
        if self.is_exempt(name):
            return await super().find_by_name(name)
        return await self._live_holder(name)

    async def reserve(self, plan: WritePlan[E]) -> None:
        if not self.needs_check(plan):
            return

        entity = plan.entity
        key = self.entity_cls.name_key(entity.name)
        for _ in range(CLAIM_ATTEMPTS):
            if await self.store.put_if_absent(self.index_table, key, entity.id):
                return

            holder, current = await self._claim(key)
            if holder is None:
                continue
            if holder == entity.id:
                return
            if current is None or self._holds(current, key):
                break

            logger.debug(
                "Replacing stale name claim", table=self.table, name=key, holder=holder
            )
            await self.store.remove_if_equal(self.index_table, key, holder)

        logger.debug("Name already claimed", table=self.table, name=key)
        raise DuplicateNameException(self.entity_cls.KIND, entity.name, entity.id)

    async def rollback(self, plan: WritePlan[E]) -> None:
        if self.needs_check(plan):
            await self.release(plan.entity)

    async def confirm(self, plan: WritePlan[E]) -> None:
        # A concurrent write to the same id may have replaced the name
        if not self.needs_check(plan):
            return
        key = self.entity_cls.name_key(plan.entity.name)
        raw = await self.store.get(self.table, plan.entity.id)
        stored = self.codec.decode(raw) if raw is not None else None
        if not self._holds(stored, key):
            await self.store.remove_if_equal(self.index_table, key, plan.entity.id)

    async def release(self, entity: E) -> None:
        if self.is_exempt(entity.name):
            return
        await self.store.remove_if_equal(
            self.index_table, self.entity_cls.name_key(entity.name), entity.id
        )

    async def reset(self) -> None:
        await self.store.clear(self.index_table)
