"""Repository for settings documents."""

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.models.setting import SettingRecord, SettingsScope
from app.models.tenant import Tenant
from app.repositories.tenant_repository import TenantRepository


class SettingsRepository:
    """Async data access layer for settings records."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, scope: SettingsScope, scope_id: str, key: str) -> SettingRecord | None:
        """Get a record by its (scope, owner, key) triple."""
        result = await self.session.execute(
            select(SettingRecord).where(
                SettingRecord.scope == scope.value,
                SettingRecord.scope_id == scope_id,
                SettingRecord.key == key,
            )
        )
        return result.scalar_one_or_none()

    async def upsert(
        self,
        scope: SettingsScope,
        scope_id: str,
        key: str,
        *,
        category: str,
        value: dict[str, Any],
        updated_by: str | None = None,
    ) -> SettingRecord:
        """Insert or replace the value stored under (scope, owner, key).

        A single ``INSERT ... ON CONFLICT DO UPDATE`` so concurrent first
        saves of the same key resolve as last-write-wins instead of one of
        them failing the unique constraint.
        """
        stmt = insert(SettingRecord).values(
            scope=scope.value,
            scope_id=scope_id,
            key=key,
            category=category,
            value=value,
            updated_by=updated_by,
        )
        stmt = stmt.on_conflict_do_update(
            constraint="uq_settings_scope_key",
            set_={
                "value": stmt.excluded.value,
                "category": stmt.excluded.category,
                "updated_by": stmt.excluded.updated_by,
                "updated_at": func.now(),
            },
        ).returning(SettingRecord)

        result = await self.session.execute(stmt)
        record = result.scalar_one()
        await self.session.flush()
        return record


class SettingsStore:
    """Unit-of-work wrapper around :class:`SettingsRepository`.

    Every write is committed before returning so that cache invalidation,
    which follows the write, never races an uncommitted transaction. There
    is no cross-call transaction and no locking: concurrent writers to the
    same key are last-write-wins.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def load(self, scope: SettingsScope, scope_id: str, key: str) -> dict[str, Any] | None:
        """Return the stored value, or ``None`` if the record was never created."""
        async with self._session_factory() as session:
            record = await SettingsRepository(session).get(scope, scope_id, key)
            return dict(record.value) if record is not None else None

    async def save(
        self,
        scope: SettingsScope,
        scope_id: str,
        key: str,
        *,
        category: str,
        value: dict[str, Any],
        updated_by: str | None = None,
    ) -> dict[str, Any]:
        """Upsert and commit; returns the persisted value."""
        async with self._session_factory() as session:
            try:
                record = await SettingsRepository(session).upsert(
                    scope,
                    scope_id,
                    key,
                    category=category,
                    value=value,
                    updated_by=updated_by,
                )
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            return dict(record.value)

    async def get_tenant(self, tenant_id: str) -> Tenant | None:
        """Look up the tenant that owns tenant-scoped settings."""
        async with self._session_factory() as session:
            return await TenantRepository(session).get(tenant_id)
