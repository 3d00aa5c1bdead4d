"""Dependency injection for FastAPI."""

import logging
from dataclasses import dataclass
from typing import Annotated

import httpx
from fastapi import Depends, Request
from redis.asyncio import Redis
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import QueuePool

from app.config import Settings, get_settings
from app.core.encryption import EncryptionService
from app.core.kv_store import KeyValueStore
from app.core.runtime_config import RuntimeConfig
from app.core.settings_cache import SettingsCache
from app.core.settings_workflow import SettingsWorkflow
from app.realtime.broadcaster import LiveUpdateBroadcaster
from app.realtime.registry import (
    ConnectionRegistry,
    InMemoryConnectionRegistry,
    RedisConnectionRegistry,
)
from app.repositories.settings_repository import SettingsStore
from app.services.audit_service import SettingsAuditService

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Lifespan helpers — called from main.py to create & destroy shared resources
# ---------------------------------------------------------------------------


def _register_pool_events(engine: AsyncEngine) -> None:
    """Attach pool event listeners for observability."""
    pool = engine.pool
    if not isinstance(pool, QueuePool):
        return

    @event.listens_for(pool, "checkout")
    def _on_checkout(_dbapi_conn, _conn_record, _conn_proxy):
        logger.debug("Pool checkout: size=%s checked_out=%s", pool.size(), pool.checkedout())

    @event.listens_for(pool, "overflow")
    def _on_overflow(_dbapi_conn):
        logger.warning("Pool overflow: size=%s overflow=%s", pool.size(), pool.overflow())


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the async database engine."""
    engine = create_async_engine(
        str(settings.database_url),
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        echo=settings.debug,
    )
    _register_pool_events(engine)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory bound to *engine*."""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


def create_redis(settings: Settings) -> Redis:
    """Create the async Redis client."""
    return Redis.from_url(str(settings.redis_url), decode_responses=True)


def create_kv_store(redis: Redis, settings: Settings) -> KeyValueStore:
    """Namespaced JSON store over *redis*; a zero default TTL means no expiry."""
    return KeyValueStore(
        redis,
        prefix=settings.redis_key_prefix,
        default_ttl=settings.redis_default_ttl or None,
    )


def create_encryption(settings: Settings) -> EncryptionService:
    """Raises ``EncryptionKeyMissingError`` when no key is configured."""
    return EncryptionService(settings.encryption_key, settings.encryption_salt)


def create_registry(settings: Settings, redis: Redis) -> ConnectionRegistry:
    if settings.connection_registry == "redis":
        return RedisConnectionRegistry(redis)
    return InMemoryConnectionRegistry()


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """Shared client for provider probes."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.provider_timeout_seconds),
        headers={"User-Agent": "tenant-settings-service/1.0"},
    )


# ---------------------------------------------------------------------------
# FastAPI dependencies — pull resources from app.state (set in lifespan)
# ---------------------------------------------------------------------------


def get_settings_store(request: Request) -> SettingsStore:
    return request.app.state.settings_store


def get_settings_cache(request: Request) -> SettingsCache:
    return request.app.state.settings_cache


def get_encryption(request: Request) -> EncryptionService:
    return request.app.state.encryption


def get_broadcaster(request: Request) -> LiveUpdateBroadcaster:
    return request.app.state.broadcaster


def get_runtime_config(request: Request) -> RuntimeConfig:
    return request.app.state.runtime_config


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_audit_service(request: Request) -> SettingsAuditService:
    return request.app.state.audit_service


def get_workflow(request: Request) -> SettingsWorkflow:
    return request.app.state.workflow


# ---------------------------------------------------------------------------
# Standalone infrastructure for Celery tasks (no FastAPI app)
# ---------------------------------------------------------------------------


@dataclass
class InfrastructureContainer:
    """Holds shared async resources for non-FastAPI entry-points.

    Callers create and own the container, and must ``close()`` it.
    """

    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    redis: Redis

    @classmethod
    def from_settings(cls, settings: Settings) -> "InfrastructureContainer":
        """Factory that wires up engine, session factory, and Redis."""
        engine = create_engine(settings)
        return cls(
            engine=engine,
            session_factory=create_session_factory(engine),
            redis=create_redis(settings),
        )

    async def close(self) -> None:
        """Dispose of all managed resources."""
        await self.redis.aclose()
        await self.engine.dispose()


# ---------------------------------------------------------------------------
# Type aliases for cleaner dependency injection
# ---------------------------------------------------------------------------
AppSettings = Annotated[Settings, Depends(get_settings)]
Store = Annotated[SettingsStore, Depends(get_settings_store)]
Cache = Annotated[SettingsCache, Depends(get_settings_cache)]
Encryption = Annotated[EncryptionService, Depends(get_encryption)]
Broadcaster = Annotated[LiveUpdateBroadcaster, Depends(get_broadcaster)]
Runtime = Annotated[RuntimeConfig, Depends(get_runtime_config)]
HttpClient = Annotated[httpx.AsyncClient, Depends(get_http_client)]
AuditSvc = Annotated[SettingsAuditService, Depends(get_audit_service)]
Workflow = Annotated[SettingsWorkflow, Depends(get_workflow)]
