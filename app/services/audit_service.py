"""Audit trail for settings changes."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.constants import REDACTED, SENSITIVE_FIELDS
from app.core.results import OpResult
from app.models.audit_log import AuditAction, AuditStatus, SettingsAuditLog
from app.repositories.audit_repository import AuditRepository

logger = logging.getLogger(__name__)


@dataclass
class AuditEntry:
    """One settings-changing action to be recorded."""

    settings_type: str
    action: AuditAction
    user_id: str | None = None
    tenant_id: str | None = None
    changes: dict[str, Any] = field(default_factory=dict)
    ip_address: str | None = None
    user_agent: str | None = None
    status: AuditStatus = AuditStatus.SUCCESS
    error_message: str | None = None


class SettingsAuditService:
    """
    Appends audit entries and answers audit queries.

    Each call runs in its own session so an entry for a failed save is
    committed even though the request's own transaction rolls back.
    """

    DEFAULT_LIMIT = 50
    RECENT_LIMIT = 100

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def log(self, entry: AuditEntry) -> OpResult:
        """Persist *entry*. Never raises: an audit outage must not block the change."""
        try:
            async with self._session_factory() as session:
                await AuditRepository(session).create(
                    user_id=entry.user_id,
                    tenant_id=entry.tenant_id,
                    settings_type=entry.settings_type,
                    action=entry.action.value,
                    changes=entry.changes,
                    ip_address=entry.ip_address,
                    user_agent=entry.user_agent,
                    status=entry.status.value,
                    error_message=entry.error_message,
                )
                await session.commit()
            return OpResult.success()
        except Exception as e:
            logger.error(
                "Failed to write audit entry (type=%s action=%s): %s",
                entry.settings_type,
                entry.action,
                e,
            )
            return OpResult.failure(e)

    async def _find(self, limit: int, **filters: str | None) -> list[SettingsAuditLog]:
        async with self._session_factory() as session:
            return await AuditRepository(session).find(limit=limit, **filters)

    async def get_by_type(
        self, settings_type: str, limit: int = DEFAULT_LIMIT
    ) -> list[SettingsAuditLog]:
        return await self._find(limit, settings_type=settings_type)

    async def get_by_tenant(
        self, tenant_id: str, limit: int = DEFAULT_LIMIT
    ) -> list[SettingsAuditLog]:
        return await self._find(limit, tenant_id=tenant_id)

    async def get_by_user(self, user_id: str, limit: int = DEFAULT_LIMIT) -> list[SettingsAuditLog]:
        return await self._find(limit, user_id=user_id)

    async def get_recent(self, limit: int = RECENT_LIMIT) -> list[SettingsAuditLog]:
        return await self._find(limit)

    async def search(
        self,
        *,
        settings_type: str | None = None,
        tenant_id: str | None = None,
        user_id: str | None = None,
        limit: int = RECENT_LIMIT,
    ) -> list[SettingsAuditLog]:
        """Newest first, narrowed by every filter that is set."""
        return await self._find(
            limit, settings_type=settings_type, tenant_id=tenant_id, user_id=user_id
        )

    @staticmethod
    def calculate_diff(old: dict[str, Any], new: dict[str, Any]) -> dict[str, dict[str, Any]]:
        """Top-level field changes as ``{field: {"old": ..., "new": ...}}``.

        Only top-level keys are reported, but their values are compared by
        deep equality: a section counts as changed when anything inside it
        differs, and is then reported whole. Key order inside a section does
        not matter. Fields missing from *new* are reported with ``new=None``.
        """
        changes: dict[str, dict[str, Any]] = {}
        for key, value in new.items():
            if key not in old or old[key] != value:
                changes[key] = {"old": old.get(key), "new": value}
        for key, value in old.items():
            if key not in new:
                changes[key] = {"old": value, "new": None}
        return changes

    @classmethod
    def sanitize(cls, value: Any) -> Any:
        """Copy of *value* with every sensitive field name redacted, recursively."""
        if isinstance(value, dict):
            return {
                k: REDACTED if k in SENSITIVE_FIELDS else cls.sanitize(v) for k, v in value.items()
            }
        if isinstance(value, list):
            return [cls.sanitize(item) for item in value]
        return value

    async def cleanup(self, days_to_keep: int = 90) -> int:
        """Delete entries older than *days_to_keep* days. Returns 0 on failure."""
        cutoff = datetime.now(UTC) - timedelta(days=days_to_keep)
        try:
            async with self._session_factory() as session:
                deleted = await AuditRepository(session).delete_older_than(cutoff)
                await session.commit()
        except Exception as e:
            logger.error("Audit log cleanup failed: %s", e)
            return 0

        logger.info("Deleted %s audit entries older than %s days", deleted, days_to_keep)
        return deleted
