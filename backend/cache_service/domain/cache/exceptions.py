"""
Cache Domain Exceptions

Errors raised by the repository layer and the cache orchestrator.
Each one is scoped to the operation that raised it and is surfaced to the
caller unmodified.
"""

from typing import Any, Dict, Optional

from .value_objects import EntityKind


class CacheException(Exception):
    """Base exception for parameter cache errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class EntityValidationException(CacheException):
    """Raised when a required field is missing, empty or zero."""

    def __init__(self, kind: EntityKind, field: str, message: str):
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details={"kind": kind.value, "field": field},
        )
        self.field = field


class DuplicateNameException(CacheException):
    """Raised when a write would give two live entities the same name."""

    def __init__(self, kind: EntityKind, name: Any, entity_id: Optional[str] = None):
        details = {"kind": kind.value, "name": str(name)}
        if entity_id:
            details["entity_id"] = entity_id

        super().__init__(
            message=f"Duplicate key, name: {name} already exists in {kind.value}",
            error_code="DUPLICATE_NAME",
            details=details,
        )


class VersionConflictException(CacheException):
    """Raised when the submitted version differs from the stored one."""

    def __init__(
        self,
        kind: EntityKind,
        entity_id: str,
        stored_version: int,
        submitted_version: int,
    ):
        super().__init__(
            message=(
                f"{kind.value} {entity_id} has already been updated by another "
                f"writer (stored version {stored_version}, "
                f"submitted {submitted_version})"
            ),
            error_code="VERSION_CONFLICT",
            details={
                "kind": kind.value,
                "entity_id": entity_id,
                "stored_version": stored_version,
                "submitted_version": submitted_version,
            },
        )
        self.stored_version = stored_version
        self.submitted_version = submitted_version


class EntityNotFoundException(CacheException):
    """Raised when neither the cache nor the upstream service has the entity."""

    def __init__(self, kind: EntityKind, key: Any):
        super().__init__(
            message=f"No {kind.value} found for {key}",
            error_code="ENTITY_NOT_FOUND",
            details={"kind": kind.value, "key": str(key)},
        )


class UpstreamUnavailableException(CacheException):
    """Raised when the parameter service cannot be reached or answers badly."""

    def __init__(
        self,
        message: str = "Parameter service unavailable",
        kind: Optional[EntityKind] = None,
        key: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details: Dict[str, Any] = {}
        if kind:
            details["kind"] = kind.value
        if key:
            details["key"] = key
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=message, error_code="UPSTREAM_UNAVAILABLE", details=details
        )
        if original_error:
            self.__cause__ = original_error
