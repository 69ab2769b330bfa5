"""
Hash Store Interface

Primitive operations over named hash tables. Each operation is atomic on its
own; no sequence of operations is.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional


class HashStore(ABC):
    """Abstract key-value hash store: table -> field -> serialized value."""

    @abstractmethod
    async def get(self, table: str, field: str) -> Optional[str]:
        """Value of ``field`` in ``table`` or None."""

    @abstractmethod
    async def get_many(self, table: str, fields: Iterable[str]) -> Dict[str, str]:
        """Values of the fields that exist, keyed by field."""

    @abstractmethod
    async def put(self, table: str, field: str, value: str) -> None:
        """Set ``field`` to ``value``, replacing any previous value."""

    @abstractmethod
    async def put_if_absent(self, table: str, field: str, value: str) -> bool:
        """Set ``field`` only if it does not exist. True if it was set."""

    @abstractmethod
    async def remove(self, table: str, *fields: str) -> int:
        """Remove fields, returning how many existed. Absent fields are fine."""

    @abstractmethod
    async def remove_if_equal(self, table: str, field: str, expected: str) -> bool:
        """Remove ``field`` only while it still holds ``expected``. True if removed."""

    @abstractmethod
    async def values(self, table: str) -> List[str]:
        """All values of ``table``."""

    @abstractmethod
    async def contains(self, table: str, field: str) -> bool:
        """True if ``field`` exists in ``table``."""

    @abstractmethod
    async def size(self, table: str) -> int:
        """Number of fields in ``table``."""

    @abstractmethod
    async def clear(self, table: str) -> None:
        """Drop the whole table."""

    async def close(self) -> None:
        """Release resources held by the store."""

    async def ping(self) -> None:
        """Raise if the store cannot be reached."""
