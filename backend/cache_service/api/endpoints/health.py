"""
Health and metrics endpoints.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST

from ...core.config import get_settings
from ...monitoring.cache_metrics import export_metrics
from ...services.cache.parameter_cache import ParameterCacheService
from .cache import get_cache_service

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(
    service: ParameterCacheService = Depends(get_cache_service),
) -> Dict[str, Any]:
    """Service status with entity counts; 503 when the store is unreachable."""
    settings = get_settings()
    store = await service.health_check()
    body = {
        "status": store["status"],
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "service": settings.APP_NAME,
        "environment": settings.ENVIRONMENT,
        "store": store,
    }
    if store["status"] != "healthy":
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
    return body


@router.get("/metrics")
async def metrics() -> Response:
    return Response(content=export_metrics(), media_type=CONTENT_TYPE_LATEST)
