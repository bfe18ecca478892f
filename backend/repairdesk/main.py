"""ASGI application factory for the RepairDesk API."""

import logging
from contextlib import asynccontextmanager

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi_limiter import FastAPILimiter
import redis.asyncio as redis  # type: ignore[import-untyped]
from secure import Secure

from repairdesk.api import api_router
from repairdesk.core.config import Settings, get_settings
from repairdesk.security.logging_filters import SensitiveFilter
from repairdesk.services.bootstrap_service import ensure_default_admin

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
_FILTERED_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "")


def _configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper())
    for name in _FILTERED_LOGGERS:
        target = logging.getLogger(name)
        if not any(isinstance(flt, SensitiveFilter) for flt in target.filters):
            target.addFilter(SensitiveFilter())


def cors_origins(settings: Settings) -> list[str]:
    return [origin for origin in settings.cors_allowlist if origin] or [
        settings.public_base_url
    ]


async def _start_rate_limiter(redis_url: str | None):
    """Back the auth rate limits with Redis; without a URL they are skipped."""
    if not redis_url:
        logger.info("REDIS_URL not set; sign-in rate limiting disabled")
        return None
    pool = redis.from_url(redis_url, encoding="utf-8", decode_responses=True)
    try:
        await FastAPILimiter.init(pool)
    except Exception:  # pragma: no cover - needs a broken redis
        logger.exception("Failed to initialize rate limiter")
        await pool.aclose()
        return None
    return pool


async def _stop_rate_limiter(pool) -> None:
    if pool is None:
        return
    try:
        await FastAPILimiter.close()
    finally:
        await pool.aclose()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    pool = await _start_rate_limiter(settings.redis_url)
    try:
        await ensure_default_admin()
    except Exception:  # pragma: no cover - best effort bootstrap
        logger.exception("Failed to ensure bootstrap administrator")
    try:
        yield
    finally:
        await _stop_rate_limiter(pool)


def _add_middleware(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins(settings),
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
    )
    app.add_middleware(CorrelationIdMiddleware, header_name=REQUEST_ID_HEADER)

    secure_headers = Secure.with_default_headers()

    @app.middleware("http")
    async def _security_headers(request: Request, call_next):
        response = await call_next(request)
        secure_headers.set_headers(response)
        return response


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the API with routers, middleware and limiter wired from ``settings``."""
    settings = settings or get_settings()
    _configure_logging(settings.log_level)

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    _add_middleware(app, settings)
    app.include_router(api_router)

    @app.get("/", include_in_schema=False)
    async def root() -> dict[str, str]:
        return {"message": settings.app_name}

    return app


app = create_app()
