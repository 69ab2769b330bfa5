"""
Cache Repository Interfaces

Abstract repository interfaces following the DDD Repository pattern.
One contract shared by every entity kind; kind-specific rules live in the
entities and in the uniqueness guard.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Iterable, List, Optional, TypeVar

from .entities import CachedEntity
from .value_objects import SaveAllResult

E = TypeVar("E", bound=CachedEntity)


class EntityRepository(ABC, Generic[E]):
    """
    CRUD contract for one entity kind.

    Only materialized inputs are accepted: passing an asynchronous producer
    to a bulk operation raises NotImplementedError.
    """

    @abstractmethod
    async def save(self, entity: E) -> E:
        """Create or update an entity and return the stored value."""

    @abstractmethod
    async def save_all(self, entities: Iterable[E]) -> SaveAllResult[E]:
        """Save each entity independently and report per-item outcomes."""

    @abstractmethod
    async def find_by_id(self, entity_id: str) -> Optional[E]:
        """Find entity by id."""

    @abstractmethod
    async def find_by_name(self, name: Any) -> Optional[E]:
        """Find the first entity with the given name."""

    @abstractmethod
    async def find_all(self) -> List[E]:
        """Return every stored entity of this kind."""

    @abstractmethod
    async def find_all_by_id(self, entity_ids: Iterable[str]) -> List[E]:
        """Return the stored entities among the given ids."""

    @abstractmethod
    async def exists_by_id(self, entity_id: str) -> bool:
        """Check if an entity with this id is stored."""

    @abstractmethod
    async def exists_by_name(self, name: Any) -> bool:
        """Check if the name is taken, honoring the kind's duplicate rule."""

    @abstractmethod
    async def count(self) -> int:
        """Number of stored entities."""

    @abstractmethod
    async def delete(self, entity: E) -> None:
        """Remove the entity. Removing an absent entity is not an error."""

    @abstractmethod
    async def delete_by_id(self, entity_id: str) -> None:
        """Remove by id. Removing an absent id is not an error."""

    @abstractmethod
    async def delete_entities(self, entities: Iterable[E]) -> None:
        """Remove each of the given entities."""

    @abstractmethod
    async def delete_all(self) -> None:
        """Clear the whole table of this kind."""
