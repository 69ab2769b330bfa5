"""
Parameter Cache Service

Cache-aside orchestration over the entity repositories: reads are served
from the store, misses are fetched from the parameter service and written
back, and invalidation empties the store so the next read repopulates it.
"""

import asyncio
from datetime import date, timedelta
from typing import Any, Callable, Dict, List, Optional, Set, Union

import structlog
from opentelemetry import trace

from ...domain.cache.entities import (
    ENTITY_CLASSES,
    CachedEntity,
    DocumentType,
    SystemDate,
    SystemRate,
)
from ...domain.cache.exceptions import CacheException, EntityNotFoundException
from ...domain.cache.value_objects import (
    DayType,
    EntityKind,
    InvalidationResult,
    InvalidationScope,
)
from ...infrastructure.codecs import CodecError
from ...infrastructure.redis.exceptions import RedisException
from ...infrastructure.repositories.cache_repository import CacheRepository
from ...monitoring import cache_metrics
from ..param.client import UpstreamClient

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)

WEEKEND = (5, 6)


class ParameterCacheService:
    """
    Read-through cache for system rates, system dates and document types.

    Upstream failures are raised, never replaced by stale or default values.
    """

    def __init__(
        self,
        repositories: CacheRepository,
        upstream: UpstreamClient,
        clock: Callable[[], date] = date.today,
    ):
        self.repositories = repositories
        self.upstream = upstream
        self._clock = clock
        # One population per kind at a time within this process
        self._population_locks = {kind: asyncio.Lock() for kind in EntityKind}

    async def read_or_fetch(
        self, kind: EntityKind, key: Optional[str] = None
    ) -> Union[CachedEntity, List[CachedEntity]]:
        """
        One entity by name when ``key`` is given, otherwise every entity of
        ``kind``. A miss fetches from the parameter service and saves the
        result before returning it.

        Raises:
            EntityNotFoundException: the parameter service has no such entity
            UpstreamUnavailableException: the parameter service failed
        """
        with tracer.start_as_current_span("parameter_cache.read_or_fetch") as span:
            span.set_attribute("kind", kind.value)
            if key is not None:
                span.set_attribute("key", key)

            try:
                if key is None:
                    return await self._read_or_fetch_all(kind, span)
                return await self._read_or_fetch_one(kind, key, span)
            except CacheException as e:
                span.record_exception(e)
                span.set_status(trace.Status(trace.StatusCode.ERROR, e.message))
                raise

    async def _read_or_fetch_one(self, kind: EntityKind, key: str, span) -> CachedEntity:
        repository = self.repositories.for_kind(kind)

        cached = await repository.find_by_name(key)
        cache_metrics.record_lookup(kind.value, hit=cached is not None)
        span.set_attribute("cache_hit", cached is not None)
        if cached is not None:
            return cached

        entity = await self._fetch(kind, key)
        if entity is None:
            raise EntityNotFoundException(kind, key)

        try:
            return await repository.save(entity)
        except CacheException as e:
            cache_metrics.record_save_failure(kind.value, e.error_code)
            logger.warning(
                "Fetched entity could not be cached",
                kind=kind.value,
                key=key,
                error_code=e.error_code,
                error=e.message,
            )
            return entity

    async def _read_or_fetch_all(self, kind: EntityKind, span) -> List[CachedEntity]:
        repository = self.repositories.for_kind(kind)
        lock = self._population_locks[kind]

        cached = await repository.find_all()
        cache_metrics.record_lookup(kind.value, hit=bool(cached))
        span.set_attribute("cache_hit", bool(cached))
        # A table being populated may be partial
        if cached and not lock.locked():
            return cached

        async with lock:
            # Another reader may have populated the table while this one waited
            cached = await repository.find_all()
            if cached:
                return cached

            entities = await self._fetch(kind)
            result = await repository.save_all(entities)

        for _, error in result.failures:
            cache_metrics.record_save_failure(
                kind.value, getattr(error, "error_code", None)
            )
        if not result.ok:
            logger.warning(
                "Fetched entities partially cached",
                kind=kind.value,
                saved=len(result.saved),
                failed=len(result.failures),
            )
        span.set_attribute("fetched", len(result))

        return result.saved + [entity for entity, _ in result.failures]

    async def _fetch(self, kind: EntityKind, key: Optional[str] = None):
        try:
            if key is None:
                fetched = await self.upstream.fetch_all(kind)
            else:
                fetched = await self.upstream.fetch_by_key(kind, key)
        except CacheException:
            cache_metrics.record_upstream_fetch(kind.value, success=False)
            raise

        cache_metrics.record_upstream_fetch(kind.value, success=True)
        logger.info(
            "Fetched from parameter service",
            kind=kind.value,
            key=key,
            found=fetched is not None,
        )
        return fetched

    # Typed reads

    async def get_system_rate(self, name: str) -> SystemRate:
        return await self.read_or_fetch(EntityKind.SYSTEM_RATE, name)

    async def get_document_types(self) -> List[DocumentType]:
        return await self.read_or_fetch(EntityKind.DOCUMENT_TYPE)

    async def get_system_dates(self) -> List[SystemDate]:
        return await self.read_or_fetch(EntityKind.SYSTEM_DATE)

    # Calendar

    async def _holidays(self) -> Set[date]:
        return {entry.day for entry in await self.get_system_dates() if entry.is_holiday}

    @staticmethod
    def _is_business_day(day: date, holidays: Set[date]) -> bool:
        return day.weekday() not in WEEKEND and day not in holidays

    async def is_holiday(self, day: date) -> bool:
        """True if a HOLIDAY system date falls on ``day``."""
        return day in await self._holidays()

    async def is_business_day(self, day: date) -> bool:
        return self._is_business_day(day, await self._holidays())

    async def get_today(self) -> date:
        """
        Business date tagged TODAY.

        Falls back to the machine date when the parameter service has no
        TODAY entry.
        """
        for entry in await self.get_system_dates():
            if entry.name == DayType.TODAY:
                return entry.day

        fallback = self._clock()
        logger.error(
            "No TODAY system date available, using machine date",
            fallback=fallback.isoformat(),
        )
        return fallback

    async def get_day(self, days: int) -> date:
        """
        Today shifted by ``days`` calendar days, moved further in the same
        direction until it lands on a business day.
        """
        with tracer.start_as_current_span("parameter_cache.get_day") as span:
            span.set_attribute("days", days)

            holidays = await self._holidays()
            step = timedelta(days=-1 if days < 0 else 1)
            target = await self.get_today() + timedelta(days=days)
            while not self._is_business_day(target, holidays):
                target += step
            return target

    async def add_business_days(self, days: int) -> date:
        """Move ``abs(days)`` business days forward (or backward) from today."""
        with tracer.start_as_current_span("parameter_cache.add_business_days") as span:
            span.set_attribute("days", days)

            holidays = await self._holidays()
            step = timedelta(days=-1 if days < 0 else 1)
            current = await self.get_today()
            remaining = abs(days)
            while remaining:
                current += step
                if self._is_business_day(current, holidays):
                    remaining -= 1
            return current

    # Invalidation and refresh

    async def invalidate(
        self, scope: InvalidationScope = InvalidationScope.ALL, key: Optional[str] = None
    ) -> InvalidationResult:
        """
        Remove cached entries for every kind in ``scope``.

        With ``key`` only the entries named ``key`` are removed. A failing
        kind does not stop the others; failures are reported in the result.
        """
        with tracer.start_as_current_span("parameter_cache.invalidate") as span:
            span.set_attribute("scope", scope.value)
            if key is not None:
                span.set_attribute("key", key)

            result = InvalidationResult(scope=scope, key=key)
            for kind in scope.kinds():
                repository = self.repositories.for_kind(kind)
                try:
                    if key is None:
                        await repository.delete_all()
                    else:
                        name_key = ENTITY_CLASSES[kind].name_key
                        await repository.delete_entities(
                            [
                                entity
                                for entity in await repository.find_all()
                                if name_key(entity.name) == key
                            ]
                        )
                except (CacheException, RedisException, CodecError) as e:
                    message = getattr(e, "message", str(e))
                    result.failures[kind] = message
                    cache_metrics.record_invalidation(kind.value, success=False)
                    logger.error(
                        "Invalidation failed", kind=kind.value, key=key, error=message
                    )
                    continue

                result.cleared.append(kind)
                cache_metrics.record_invalidation(kind.value, success=True)

            if not result.ok:
                span.set_status(
                    trace.Status(trace.StatusCode.ERROR, "partial invalidation")
                )
            logger.info("Cache invalidated", **result.to_dict())
            return result

    async def refresh_system_rate(self, name: str, rate: Any) -> SystemRate:
        """Store a rate pushed by the parameter service, updating any cached one."""
        repository = self.repositories.system_rates

        current = await repository.find_by_name(name)
        if current is None:
            entity = SystemRate(name=name, rate=rate)
        else:
            entity = current.copy(rate=rate)

        saved = await repository.save(entity)
        logger.info(
            "System rate refreshed", name=name, rate=str(saved.rate), version=saved.version
        )
        return saved

    async def health_check(self) -> Dict[str, Any]:
        """Entity counts per kind; unhealthy when the store cannot be read."""
        with tracer.start_as_current_span("parameter_cache.health_check") as span:
            try:
                await self.repositories.store.ping()
                counts = {
                    kind.value: await self.repositories.for_kind(kind).count()
                    for kind in EntityKind
                }
            except RedisException as e:
                logger.error("Entity store health check failed", error=e.message)
                span.set_status(trace.Status(trace.StatusCode.ERROR, e.message))
                return {"status": "unhealthy", "error": e.message}

            return {"status": "healthy", "entities": counts}
