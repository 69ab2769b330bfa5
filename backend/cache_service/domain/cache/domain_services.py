"""
Cache Domain Services

Identity allocation and optimistic version control. Both are pure: they
decide what to write, the repository performs the writes.
"""

from typing import Generic, Optional, TypeVar
from uuid import uuid4

import structlog

from ...constants import INTERNAL_ID_PREFIX
from .entities import CachedEntity
from .exceptions import EntityNotFoundException, VersionConflictException
from .value_objects import MissingPredecessorPolicy, WriteKind, WritePlan

logger = structlog.get_logger(__name__)

E = TypeVar("E", bound=CachedEntity)


class IdentityAllocator:
    """
    Generates ids for new entities.

    Ids carry a reserved prefix so that they can never be mistaken for ids
    assigned by the parameter service.
    """

    def __init__(self, prefix: str = INTERNAL_ID_PREFIX):
        if not prefix:
            raise ValueError("Identity prefix cannot be empty")
        self.prefix = prefix

    def allocate(self) -> str:
        """Return a new internal id."""
        return f"{self.prefix}{uuid4().hex}"

    def is_internal(self, entity_id: Optional[str]) -> bool:
        """True if the id was generated by this service."""
        return bool(entity_id) and str(entity_id).startswith(self.prefix)


class OptimisticVersionController(Generic[E]):
    """
    Decides whether a save is a creation or an update.

    - No id, or an id not generated here: creation with a fresh id and
      version 0.
    - Known id with the stored version: update, version + 1.
    - Known id with another version: VersionConflictException.
    - Internal id that is no longer stored: creation under that id, or
      EntityNotFoundException when the policy is FAIL.
    """

    def __init__(
        self,
        allocator: IdentityAllocator,
        missing_predecessor: MissingPredecessorPolicy = MissingPredecessorPolicy.INSERT,
    ):
        self.allocator = allocator
        self.missing_predecessor = missing_predecessor

    def needs_lookup(self, entity: E) -> bool:
        """Only internal ids can refer to a stored predecessor."""
        return self.allocator.is_internal(entity.id)

    def plan(self, proposed: E, stored: Optional[E]) -> WritePlan[E]:
        """Build the write plan for ``proposed`` given the stored value."""
        if not self.allocator.is_internal(proposed.id):
            return WritePlan(
                kind=WriteKind.CREATE,
                entity=proposed.copy(id=self.allocator.allocate(), version=0),
            )

        if stored is None:
            if self.missing_predecessor is MissingPredecessorPolicy.FAIL:
                raise EntityNotFoundException(proposed.KIND, proposed.id)

            logger.info(
                "Predecessor missing, saving as new entity",
                kind=proposed.KIND.value,
                entity_id=proposed.id,
                submitted_version=proposed.version,
            )
            return WritePlan(kind=WriteKind.CREATE, entity=proposed.copy(version=0))

        if stored.version != proposed.version:
            raise VersionConflictException(
                proposed.KIND, proposed.id, stored.version, proposed.version
            )

        return WritePlan(
            kind=WriteKind.UPDATE,
            entity=proposed.copy(version=proposed.version + 1),
            previous=stored,
        )
