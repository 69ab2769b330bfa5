"""
Parameter Change Events

Reacts to change notifications published by the parameter service. Rate
changes carry the new value and are applied in place; date and document
type changes only invalidate, the next read repopulates.
"""

from typing import Any, Dict, Optional, Union

import structlog
from pydantic import BaseModel, Field

from ..domain.cache.entities import SystemRate
from ..domain.cache.value_objects import EntityKind, InvalidationResult, InvalidationScope
from .cache.parameter_cache import ParameterCacheService

logger = structlog.get_logger(__name__)


class ParamEvent(BaseModel):
    """Change notification as published on the event bus."""

    event_name: str = Field(..., min_length=1)
    correlation_id: Optional[str] = None
    event_body: Dict[str, Any] = Field(default_factory=dict)


class ParamEventHandler:
    def __init__(self, cache_service: ParameterCacheService):
        self.cache_service = cache_service

    async def process_event(
        self, event: ParamEvent
    ) -> Optional[Union[SystemRate, InvalidationResult]]:
        """
        Apply one event. Returns the refreshed rate, the invalidation result,
        or None when the event is not about cached data.
        """
        log = logger.bind(
            event_name=event.event_name, correlation_id=event.correlation_id
        )

        if EntityKind.SYSTEM_RATE.value in event.event_name:
            data = event.event_body.get("data") or {}
            log.info("Applying system rate change", name=data.get("name"))
            return await self.cache_service.refresh_system_rate(
                data.get("name"), data.get("rate")
            )

        if EntityKind.SYSTEM_DATE.value in event.event_name:
            log.info("Invalidating system dates")
            return await self.cache_service.invalidate(InvalidationScope.SYSTEM_DATES)

        if EntityKind.DOCUMENT_TYPE.value in event.event_name:
            log.info("Invalidating document types")
            return await self.cache_service.invalidate(InvalidationScope.DOCUMENT_TYPES)

        log.debug("Ignoring event")
        return None
