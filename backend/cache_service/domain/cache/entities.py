"""
Cache Domain Entities

Reference data mirrored from the parameter service. Every entity carries an
id, a name, a kind-specific payload and a version used for optimistic
locking.
"""

import dataclasses
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, ClassVar, Optional

from .exceptions import EntityValidationException
from .value_objects import DayType, EntityKind


class CachedEntity(ABC):
    """
    Base for cached entities.

    Subclasses are dataclasses with ``name``, a payload field, ``id`` and
    ``version``. ``KIND`` names the hash table and ``PAYLOAD_FIELD`` the
    attribute holding the payload.
    """

    KIND: ClassVar[EntityKind]
    PAYLOAD_FIELD: ClassVar[str]

    @property
    def payload(self) -> Any:
        return getattr(self, self.PAYLOAD_FIELD)

    @abstractmethod
    def validate(self) -> None:
        """Raise EntityValidationException if a required field is missing."""

    @classmethod
    def allows_duplicate_name(cls, name: Any) -> bool:
        """Names are unique per kind unless a subclass says otherwise."""
        return False

    @classmethod
    def name_key(cls, name: Any) -> str:
        """String form of a name, used as the name index field."""
        if isinstance(name, Enum):
            return str(name.value)
        return str(name)

    def copy(self, **changes: Any) -> "CachedEntity":
        return dataclasses.replace(self, **changes)


@dataclass
class DocumentType(CachedEntity):
    """
    Document type with its expiration period (for example "3m" or "1Y").

    The name is unique.
    """

    name: str = ""
    expiration: str = ""
    id: Optional[str] = None
    version: int = 0

    KIND: ClassVar[EntityKind] = EntityKind.DOCUMENT_TYPE
    PAYLOAD_FIELD: ClassVar[str] = "expiration"

    def validate(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise EntityValidationException(
                self.KIND, "name", "Cannot be saved: document type name is required"
            )
        if not isinstance(self.expiration, str) or not self.expiration.strip():
            raise EntityValidationException(
                self.KIND,
                "expiration",
                "Cannot be saved: document type expiration is required",
            )


@dataclass
class SystemRate(CachedEntity):
    """
    System rate such as an exchange rate or an interbank rate.

    The name is unique and the rate must be non-zero.
    """

    name: str = ""
    rate: Optional[Decimal] = None
    id: Optional[str] = None
    version: int = 0

    KIND: ClassVar[EntityKind] = EntityKind.SYSTEM_RATE
    PAYLOAD_FIELD: ClassVar[str] = "rate"

    def __post_init__(self) -> None:
        if self.rate is not None and not isinstance(self.rate, Decimal):
            try:
                self.rate = Decimal(str(self.rate))
            except InvalidOperation:
                pass  # left as is; validate() rejects it

    def validate(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise EntityValidationException(
                self.KIND, "name", "Cannot be saved: system rate name is required"
            )
        if not isinstance(self.rate, Decimal) or self.rate.is_nan():
            raise EntityValidationException(
                self.KIND, "rate", "Cannot be saved: system rate value is required"
            )
        if self.rate == 0:
            raise EntityValidationException(
                self.KIND, "rate", "Cannot be saved: system rate cannot be zero"
            )


@dataclass
class SystemDate(CachedEntity):
    """
    System calendar entry: today, yesterday, tomorrow, reprocess or holiday.

    The tag is unique except for HOLIDAY, which may appear many times.
    """

    name: Optional[DayType] = None
    day: Optional[date] = None
    id: Optional[str] = None
    version: int = 0

    KIND: ClassVar[EntityKind] = EntityKind.SYSTEM_DATE
    PAYLOAD_FIELD: ClassVar[str] = "day"

    def __post_init__(self) -> None:
        if isinstance(self.name, str) and not isinstance(self.name, DayType):
            try:
                self.name = DayType(self.name)
            except ValueError:
                pass  # left as is; validate() rejects it

    def validate(self) -> None:
        if not isinstance(self.name, DayType):
            raise EntityValidationException(
                self.KIND,
                "name",
                "Cannot be saved: date type and date are required, "
                "but one or both is empty",
            )
        if not isinstance(self.day, date):
            raise EntityValidationException(
                self.KIND,
                "day",
                "Cannot be saved: date type and date are required, "
                "but one or both is empty",
            )

    @classmethod
    def allows_duplicate_name(cls, name: Any) -> bool:
        return name == DayType.HOLIDAY

    @property
    def is_holiday(self) -> bool:
        return self.name == DayType.HOLIDAY


ENTITY_CLASSES = {
    EntityKind.DOCUMENT_TYPE: DocumentType,
    EntityKind.SYSTEM_RATE: SystemRate,
    EntityKind.SYSTEM_DATE: SystemDate,
}
