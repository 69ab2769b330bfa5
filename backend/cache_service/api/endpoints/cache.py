"""
Parameter cache endpoints.

Read access to the cached reference data plus manual invalidation and an
entry point for parameter change events.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from ...domain.cache.value_objects import (
    DayType,
    InvalidationResult,
    InvalidationScope,
)
from ...services.cache.parameter_cache import ParameterCacheService
from ...services.events import ParamEvent, ParamEventHandler

logger = structlog.get_logger()
router = APIRouter(prefix="/cache", tags=["cache"])


class SystemRateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    name: str
    rate: Decimal
    version: int


class SystemDateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    name: DayType
    day: date
    version: int


class DocumentTypeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: Optional[str] = None
    name: str
    expiration: str
    version: int


class DayResponse(BaseModel):
    day: date


class HolidayResponse(BaseModel):
    day: date
    holiday: bool


def get_cache_service(request: Request) -> ParameterCacheService:
    """Cache service created at startup."""
    return request.app.state.cache_service


def get_event_handler(
    service: ParameterCacheService = Depends(get_cache_service),
) -> ParamEventHandler:
    return ParamEventHandler(service)


def _invalidation_response(result: InvalidationResult) -> JSONResponse:
    body = {"ok": result.ok, **result.to_dict()}
    status_code = (
        status.HTTP_200_OK if result.ok else status.HTTP_503_SERVICE_UNAVAILABLE
    )
    return JSONResponse(status_code=status_code, content=body)


@router.get("/sysvar", response_model=SystemRateResponse)
async def get_system_rate(
    name: str = Query(..., min_length=1, description="System rate name"),
    service: ParameterCacheService = Depends(get_cache_service),
):
    return SystemRateResponse.model_validate(await service.get_system_rate(name))


@router.get("/day", response_model=DayResponse)
async def get_day(
    days: int = Query(0, description="Calendar days to shift from today"),
    service: ParameterCacheService = Depends(get_cache_service),
):
    """Today shifted by ``days``, rolled to the next business day."""
    return DayResponse(day=await service.get_day(days))


@router.get("/addday", response_model=DayResponse)
async def add_business_days(
    days: int = Query(..., description="Business days to add (negative to go back)"),
    service: ParameterCacheService = Depends(get_cache_service),
):
    return DayResponse(day=await service.add_business_days(days))


@router.get("/holiday", response_model=HolidayResponse)
async def is_holiday(
    day: date = Query(..., description="Date to check, YYYY-MM-DD"),
    service: ParameterCacheService = Depends(get_cache_service),
):
    return HolidayResponse(day=day, holiday=await service.is_holiday(day))


@router.get("/doctypes", response_model=List[DocumentTypeResponse])
async def get_document_types(
    service: ParameterCacheService = Depends(get_cache_service),
):
    return [
        DocumentTypeResponse.model_validate(entity)
        for entity in await service.get_document_types()
    ]


@router.get("/dates", response_model=List[SystemDateResponse])
async def get_system_dates(
    service: ParameterCacheService = Depends(get_cache_service),
):
    return [
        SystemDateResponse.model_validate(entity)
        for entity in await service.get_system_dates()
    ]


@router.post("/invalid")
async def invalidate(
    scope: InvalidationScope = Query(InvalidationScope.ALL),
    key: Optional[str] = Query(None, description="Only entries with this name"),
    service: ParameterCacheService = Depends(get_cache_service),
):
    logger.info("Invalidation requested", scope=scope.value, key=key)
    return _invalidation_response(await service.invalidate(scope, key))


@router.post("/invalid/dates")
async def invalidate_system_dates(
    service: ParameterCacheService = Depends(get_cache_service),
):
    return _invalidation_response(
        await service.invalidate(InvalidationScope.SYSTEM_DATES)
    )


@router.post("/invalid/documents")
async def invalidate_document_types(
    service: ParameterCacheService = Depends(get_cache_service),
):
    return _invalidation_response(
        await service.invalidate(InvalidationScope.DOCUMENT_TYPES)
    )


@router.post("/invalid/rates")
async def invalidate_system_rates(
    service: ParameterCacheService = Depends(get_cache_service),
):
    return _invalidation_response(
        await service.invalidate(InvalidationScope.SYSTEM_RATES)
    )


@router.post("/events")
async def process_event(
    event: ParamEvent,
    handler: ParamEventHandler = Depends(get_event_handler),
) -> Dict[str, Any]:
    """Apply a parameter change event delivered over HTTP."""
    outcome = await handler.process_event(event)

    if outcome is None:
        return {"event_name": event.event_name, "action": "ignored"}
    if isinstance(outcome, InvalidationResult):
        return {
            "event_name": event.event_name,
            "action": "invalidated",
            "invalidation": outcome.to_dict(),
        }
    return {
        "event_name": event.event_name,
        "action": "rate_refreshed",
        "rate": SystemRateResponse.model_validate(outcome).model_dump(mode="json"),
    }
