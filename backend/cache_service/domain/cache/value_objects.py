"""
Cache Value Objects

Immutable value objects and enumerations for the parameter cache domain.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Generic, List, Optional, Tuple, TypeVar

E = TypeVar("E")


class EntityKind(str, Enum):
    """Entity kinds kept in the cache. Each kind owns one hash table."""

    DOCUMENT_TYPE = "DOCUMENT_TYPE"
    SYSTEM_RATE = "SYSTEM_RATE"
    SYSTEM_DATE = "SYSTEM_DATE"

    @property
    def table(self) -> str:
        """Name of the hash that holds this kind's entities."""
        return self.value


class DayType(str, Enum):
    """Calendar tags for system dates. Only HOLIDAY may repeat."""

    TODAY = "TODAY"
    YESTERDAY = "YESTERDAY"
    TOMORROW = "TOMORROW"
    REPROCESS = "REPROCESS"
    HOLIDAY = "HOLIDAY"


class InvalidationScope(str, Enum):
    """Which part of the cache an invalidation request clears."""

    ALL = "all"
    SYSTEM_RATES = "system_rates"
    SYSTEM_DATES = "system_dates"
    DOCUMENT_TYPES = "document_types"

    def kinds(self) -> List[EntityKind]:
        """Entity kinds affected by this scope."""
        if self is InvalidationScope.ALL:
            return list(EntityKind)
        return [
            {
                InvalidationScope.SYSTEM_RATES: EntityKind.SYSTEM_RATE,
                InvalidationScope.SYSTEM_DATES: EntityKind.SYSTEM_DATE,
                InvalidationScope.DOCUMENT_TYPES: EntityKind.DOCUMENT_TYPE,
            }[self]
        ]


class UniquenessStrategy(str, Enum):
    """How name uniqueness is enforced on writes."""

    INDEX = "index"  # atomic claim in a name -> id hash
    SCAN = "scan"  # linear scan before the write (check-then-act)


class MissingPredecessorPolicy(str, Enum):
    """What an update does when its id is no longer stored."""

    INSERT = "insert"
    FAIL = "fail"


class WriteKind(str, Enum):
    CREATE = "create"
    UPDATE = "update"


@dataclass(frozen=True)
class WritePlan(Generic[E]):
    """
    Outcome of the optimistic version check for one save.

    ``entity`` is the value to store (id and version already assigned);
    ``previous`` is the stored value being replaced on updates.
    """

    kind: WriteKind
    entity: E
    previous: Optional[E] = None

    @property
    def is_update(self) -> bool:
        return self.kind is WriteKind.UPDATE

    @property
    def name_changed(self) -> bool:
        """True for creations and for updates that rename the entity."""
        if self.previous is None:
            return True
        return self.previous.name != self.entity.name


@dataclass
class SaveAllResult(Generic[E]):
    """Per-item outcome of a batch save. Failures never abort the batch."""

    saved: List[E] = field(default_factory=list)
    failures: List[Tuple[E, Exception]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def __len__(self) -> int:
        return len(self.saved) + len(self.failures)


@dataclass
class InvalidationResult:
    """Outcome of an invalidation request, one entry per affected kind."""

    scope: InvalidationScope
    key: Optional[str] = None
    cleared: List[EntityKind] = field(default_factory=list)
    failures: Dict[EntityKind, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures

    def to_dict(self) -> Dict[str, object]:
        return {
            "scope": self.scope.value,
            "key": self.key,
            "cleared": [kind.value for kind in self.cleared],
            "failures": {kind.value: error for kind, error in self.failures.items()},
        }
