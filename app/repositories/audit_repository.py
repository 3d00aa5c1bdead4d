"""Repository for the settings audit log."""

from datetime import datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit_log import SettingsAuditLog


class AuditRepository:
    """Append-only data access layer for audit entries."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, **kwargs: Any) -> SettingsAuditLog:
        """Insert a new audit entry."""
        entry = SettingsAuditLog(**kwargs)
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def find(
        self,
        *,
        settings_type: str | None = None,
        tenant_id: str | None = None,
        user_id: str | None = None,
        limit: int = 50,
    ) -> list[SettingsAuditLog]:
        """Newest-first entries, optionally narrowed by type, tenant or user."""
        query = select(SettingsAuditLog)
        if settings_type is not None:
            query = query.where(SettingsAuditLog.settings_type == settings_type)
        if tenant_id is not None:
            query = query.where(SettingsAuditLog.tenant_id == tenant_id)
        if user_id is not None:
            query = query.where(SettingsAuditLog.user_id == user_id)
        query = query.order_by(SettingsAuditLog.created_at.desc()).limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def delete_older_than(self, cutoff: datetime) -> int:
        """Delete entries created before *cutoff*; returns the row count."""
        result = await self.session.execute(
            delete(SettingsAuditLog).where(SettingsAuditLog.created_at < cutoff)
        )
        await self.session.flush()
        return result.rowcount or 0  # pyright: ignore[reportAttributeAccessIssue]
