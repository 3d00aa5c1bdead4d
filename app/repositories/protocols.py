"""Protocol definitions for repository interfaces.

These protocols enable type-safe mocking in tests and decouple service
layer code from concrete SQLAlchemy implementations.
"""

from typing import Any, Protocol

from app.models.setting import SettingsScope
from app.models.tenant import Tenant


class SettingsStoreProtocol(Protocol):
    """Interface for committed settings reads and writes."""

    async def load(
        self, scope: SettingsScope, scope_id: str, key: str
    ) -> dict[str, Any] | None: ...

    async def save(
        self,
        scope: SettingsScope,
        scope_id: str,
        key: str,
        *,
        category: str,
        value: dict[str, Any],
        updated_by: str | None = None,
    ) -> dict[str, Any]: ...

    async def get_tenant(self, tenant_id: str) -> Tenant | None: ...
