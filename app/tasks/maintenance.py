"""Celery tasks for maintenance operations.

Tasks run the async service code on a short-lived event loop with their
own :class:`~app.dependencies.InfrastructureContainer`.
"""

import asyncio

from app.config import get_settings
from app.core.settings_cache import SettingsCache
from app.dependencies import InfrastructureContainer, create_kv_store
from app.services.audit_service import SettingsAuditService
from app.tasks.celery_app import celery_app
from app.utils.logging import get_logger

logger = get_logger(__name__)


async def _cleanup_audit_log(days_to_keep: int) -> int:
    container = InfrastructureContainer.from_settings(get_settings())
    try:
        return await SettingsAuditService(container.session_factory).cleanup(days_to_keep)
    finally:
        await container.close()


async def _flush_settings_cache() -> bool:
    settings = get_settings()
    container = InfrastructureContainer.from_settings(settings)
    try:
        cache = SettingsCache(create_kv_store(container.redis, settings))
        return (await cache.invalidate_all()).ok
    finally:
        await container.close()


@celery_app.task
def cleanup_audit_log(days_to_keep: int | None = None) -> dict[str, int]:
    """
    Delete settings audit entries past the retention period.

    Scheduled daily. Defaults to ``AUDIT_RETENTION_DAYS``.
    """
    days = days_to_keep or get_settings().audit_retention_days
    logger.info("audit_cleanup_started", days_to_keep=days)

    deleted = asyncio.run(_cleanup_audit_log(days))

    logger.info("audit_cleanup_finished", deleted=deleted, days_to_keep=days)
    return {"deleted": deleted}


@celery_app.task
def flush_settings_cache() -> dict[str, bool]:
    """
    Drop every cached settings document.

    Run after editing settings rows directly in the database.
    """
    flushed = asyncio.run(_flush_settings_cache())
    if flushed:
        logger.info("settings_cache_flushed")
    else:
        logger.warning("settings_cache_flush_failed")
    return {"flushed": flushed}
