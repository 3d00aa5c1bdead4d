"""Repository for tenant lookups."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.tenant import Tenant


class TenantRepository:
    """Read-only data access for tenants."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, tenant_id: str) -> Tenant | None:
        result = await self.session.execute(select(Tenant).where(Tenant.id == tenant_id))
        return result.scalar_one_or_none()
