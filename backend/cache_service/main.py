"""
Parameter Cache - FastAPI Application

Serves system rates, system dates and document types from a Redis
cache-aside store in front of the parameter service.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from opentelemetry import trace

from .api.endpoints.cache import router as cache_router
from .api.endpoints.health import router as health_router
from .constants import APP_NAME, APP_VERSION
from .core.config import Settings, get_settings
from .core.logging import configure_logging
from .domain.cache.exceptions import (
    CacheException,
    DuplicateNameException,
    EntityNotFoundException,
    EntityValidationException,
    UpstreamUnavailableException,
    VersionConflictException,
)
from .infrastructure.redis.exceptions import RedisException
from .infrastructure.repositories.cache_repository import CacheRepository
from .services.cache.parameter_cache import ParameterCacheService
from .services.param.client import ParamServiceClient

logger = structlog.get_logger()

ERROR_STATUS = {
    EntityValidationException: 422,
    DuplicateNameException: 409,
    VersionConflictException: 409,
    EntityNotFoundException: 404,
    UpstreamUnavailableException: 503,
}


def _error_response(status_code: int, error_code: str, message: str, details=None):
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error_code,
            "message": message,
            "details": details or {},
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    The cache service is created on startup unless one was already placed
    on ``app.state.cache_service``.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.LOG_LEVEL, json_logs=not settings.is_development)
        logger.info(
            "Starting parameter cache",
            version=APP_VERSION,
            environment=settings.ENVIRONMENT,
            store_backend=settings.STORE_BACKEND,
        )

        owned = getattr(app.state, "cache_service", None) is None
        if owned:
            app.state.cache_service = ParameterCacheService(
                CacheRepository.from_settings(settings),
                ParamServiceClient(settings),
            )

        yield

        logger.info("Shutting down parameter cache")
        if owned:
            service = app.state.cache_service
            try:
                await service.upstream.close()
            finally:
                await service.repositories.close()
            app.state.cache_service = None

    app = FastAPI(
        title=APP_NAME,
        description="Cache-aside store for parameter service reference data",
        version=APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
    )

    app.include_router(health_router)
    app.include_router(cache_router)

    @app.exception_handler(CacheException)
    async def cache_exception_handler(request: Request, exc: CacheException):
        status_code = next(
            (code for cls, code in ERROR_STATUS.items() if isinstance(exc, cls)), 400
        )
        span = trace.get_current_span()
        span.set_attribute("error.type", type(exc).__name__)
        span.set_attribute("error.code", exc.error_code or "")

        logger.warning(
            "Request failed",
            path=request.url.path,
            method=request.method,
            status_code=status_code,
            error_code=exc.error_code,
            error=exc.message,
        )
        return _error_response(status_code, exc.error_code, exc.message, exc.details)

    @app.exception_handler(RedisException)
    async def redis_exception_handler(request: Request, exc: RedisException):
        logger.error(
            "Entity store unavailable",
            path=request.url.path,
            method=request.method,
            error_code=exc.error_code,
            error=exc.message,
        )
        return _error_response(503, exc.error_code, exc.message)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
