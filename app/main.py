"""FastAPI application entry point."""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from app.api.v1 import health, ws
from app.api.v1.router import api_router
from app.config import Settings, get_settings
from app.core.runtime_config import RuntimeConfig
from app.core.settings_cache import SettingsCache
from app.core.settings_workflow import SettingsWorkflow
from app.dependencies import (
    create_encryption,
    create_engine,
    create_http_client,
    create_kv_store,
    create_redis,
    create_registry,
    create_session_factory,
)
from app.middleware import RequestContextMiddleware, SecurityHeadersMiddleware
from app.rate_limit import limiter
from app.realtime.broadcaster import LiveUpdateBroadcaster
from app.repositories.settings_repository import SettingsStore
from app.services.audit_service import SettingsAuditService
from app.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def _wire_settings_components(app: FastAPI, settings: Settings) -> None:
    """Attach the store, cache, broadcaster and workflow shared by every category."""
    state = app.state
    state.settings_store = SettingsStore(state.session_factory)
    state.settings_cache = SettingsCache(
        create_kv_store(state.redis, settings), ttl=settings.settings_cache_ttl
    )
    state.broadcaster = LiveUpdateBroadcaster(create_registry(settings, state.redis))
    state.runtime_config = RuntimeConfig(max_age=settings.runtime_config_max_age)
    state.http_client = create_http_client(settings)
    state.audit_service = SettingsAuditService(state.session_factory)
    state.workflow = SettingsWorkflow(
        state.settings_cache, state.audit_service, state.broadcaster
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager — owns all shared resources."""
    settings = get_settings()
    logger.info("Starting Tenant Settings Service (environment=%s)", settings.environment)

    # Without a key secrets can be neither read nor written: refuse to start
    try:
        app.state.encryption = create_encryption(settings)
    except Exception:
        logger.exception("Failed to initialise settings encryption")
        raise

    engine = create_engine(settings)
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    try:
        app.state.redis = create_redis(settings)
    except Exception:
        logger.exception("Failed to initialise Redis client")
        await engine.dispose()
        raise

    _wire_settings_components(app, settings)

    yield

    logger.info("Shutting down Tenant Settings Service...")
    try:
        await app.state.http_client.aclose()
        await app.state.redis.aclose()
    except Exception:
        logger.exception("Error closing HTTP or Redis clients")
    finally:
        await engine.dispose()
    logger.info("Shutdown complete.")


def _register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]  # slowapi typing mismatch

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        if isinstance(exc, asyncio.CancelledError):
            raise
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )


def create_application() -> FastAPI:
    """Application factory."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="Tenant Settings Service API",
        description=(
            "Platform, tenant and per-user settings for the WhatsApp CRM, "
            "with encrypted secrets, audit trail and live updates."
        ),
        version=health.SERVICE_VERSION,
        lifespan=lifespan,
    )
    app.state.limiter = limiter

    # Added last runs first: request context wraps everything else
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, hsts=settings.is_production)
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    _register_exception_handlers(app)

    app.include_router(health.probes)
    app.include_router(api_router, prefix="/api/v1")
    app.include_router(ws.router)
    return app


app = create_application()
