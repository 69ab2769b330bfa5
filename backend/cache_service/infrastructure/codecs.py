"""
Entity Codecs

Serialization of entities to the string values kept in the hash store.
The codec is pluggable; the default one writes JSON through pydantic.
"""

from abc import ABC, abstractmethod
from typing import Generic, Type, TypeVar

from pydantic import TypeAdapter, ValidationError

from ..domain.cache.entities import CachedEntity

E = TypeVar("E", bound=CachedEntity)


class CodecError(ValueError):
    """Raised when a stored value cannot be decoded."""


class EntityCodec(ABC, Generic[E]):
    """Converts entities to and from stored strings."""

    @abstractmethod
    def encode(self, entity: E) -> str:
        """Serialize an entity."""

    @abstractmethod
    def decode(self, raw: str) -> E:
        """Deserialize an entity. Raises CodecError on malformed input."""


class JsonEntityCodec(EntityCodec[E]):
    """
    JSON codec built on a pydantic TypeAdapter for the entity dataclass.

    Dates are ISO strings, decimals are strings and enums are stored by value.
    """

    def __init__(self, entity_cls: Type[E]):
        self.entity_cls = entity_cls
        self._adapter = TypeAdapter(entity_cls)

    def encode(self, entity: E) -> str:
        return self._adapter.dump_json(entity).decode("utf-8")

    def decode(self, raw: str) -> E:
        try:
            return self._adapter.validate_json(raw)
        except ValidationError as e:
            raise CodecError(
                f"Cannot decode {self.entity_cls.__name__}: {e.error_count()} errors"
            ) from e
