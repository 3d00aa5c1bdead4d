"""Shared plumbing for settings categories and their services."""

import copy
import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from app.core.encryption import EncryptionService
from app.core.runtime_config import RuntimeConfig
from app.core.settings_cache import SettingsCache
from app.core.settings_workflow import (
    ChangeContext,
    ConnectionTestResult,
    SettingsCategory,
    SettingsWorkflow,
    ValidationResult,
)
from app.models.setting import SettingsScope
from app.repositories.protocols import SettingsStoreProtocol
from app.utils.dicts import deep_merge, mask_paths

logger = logging.getLogger(__name__)


class StoredSettingsCategory(ABC):
    """
    A :class:`~app.core.settings_workflow.SettingsCategory` backed by the
    ``settings`` table.

    Secrets at ``sensitive_paths`` are encrypted on every write and
    decrypted on every read. Subclasses declare their key, scope and
    defaults, and implement :meth:`apply`.
    """

    settings_type: ClassVar[str]
    storage_key: ClassVar[str]
    storage_category: ClassVar[str]
    scope: ClassVar[SettingsScope]
    supports_test: ClassVar[bool] = False
    sensitive_paths: ClassVar[tuple[str, ...]] = ()
    DEFAULTS: ClassVar[dict[str, Any]] = {}

    def __init__(self, store: SettingsStoreProtocol, encryption: EncryptionService):
        self.store = store
        self.encryption = encryption

    def _owner(self, scope_id: str | None) -> str:
        if self.scope is SettingsScope.PLATFORM:
            return ""
        if not scope_id:
            raise ValueError(f"{self.settings_type} settings require a {self.scope.value} id")
        return scope_id

    def cache_key(self, scope_id: str | None) -> str:
        if self.scope is SettingsScope.PLATFORM:
            return SettingsCache.platform_key(self.storage_key)
        if self.scope is SettingsScope.TENANT:
            return SettingsCache.tenant_key(self._owner(scope_id), self.storage_key)
        return SettingsCache.user_key(self._owner(scope_id), self.storage_key)

    def defaults(self) -> dict[str, Any]:
        return copy.deepcopy(self.DEFAULTS)

    async def load(self, scope_id: str | None) -> dict[str, Any] | None:
        value = await self.store.load(self.scope, self._owner(scope_id), self.storage_key)
        if value is None:
            return None
        return self.encryption.decrypt_fields(value, self.sensitive_paths)

    async def persist(
        self, scope_id: str | None, value: dict[str, Any], updated_by: str | None
    ) -> dict[str, Any]:
        await self.store.save(
            self.scope,
            self._owner(scope_id),
            self.storage_key,
            category=self.storage_category,
            value=self.encryption.encrypt_fields(value, self.sensitive_paths),
            updated_by=updated_by,
        )
        return copy.deepcopy(value)

    async def validate(self, value: dict[str, Any]) -> ValidationResult:
        return ValidationResult(valid=True)

    async def test(self, value: dict[str, Any]) -> ConnectionTestResult:
        if self.supports_test:
            raise NotImplementedError(
                f"{type(self).__name__} declares test support but does not implement test()"
            )
        return ConnectionTestResult(
            success=False, message="Test not supported for this settings type"
        )

    @abstractmethod
    async def apply(self, value: dict[str, Any], scope_id: str | None) -> None:
        """Bring the running process in line with the newly saved settings."""


class PublishedSettingsCategory(StoredSettingsCategory):
    """Platform category whose applied value is published to :class:`RuntimeConfig`."""

    def __init__(
        self, store: SettingsStoreProtocol, encryption: EncryptionService, runtime: RuntimeConfig
    ):
        super().__init__(store, encryption)
        self.runtime = runtime

    async def apply(self, value: dict[str, Any], scope_id: str | None) -> None:
        self.runtime.publish(self.settings_type, value)


class SettingsService:
    """Read/update facade over one category; subclasses add domain operations."""

    def __init__(self, workflow: SettingsWorkflow, category: SettingsCategory):
        self.workflow = workflow
        self.category = category

    async def get_settings(self, scope_id: str | None = None) -> dict[str, Any]:
        """Decrypted settings for internal use."""
        return await self.workflow.get_current(self.category, scope_id)

    def redact(self, value: dict[str, Any]) -> dict[str, Any]:
        """Copy of *value* with the category's secrets masked."""
        return mask_paths(value, self.category.sensitive_paths)

    async def get_public_settings(self, scope_id: str | None = None) -> dict[str, Any]:
        """Settings with secrets masked, safe to return to clients."""
        return self.redact(await self.get_settings(scope_id))

    async def update_settings(
        self,
        update: dict[str, Any],
        scope_id: str | None = None,
        context: ChangeContext | None = None,
    ) -> dict[str, Any]:
        """Merge a partial *update* into the current settings and save the result."""
        current = await self.get_settings(scope_id)
        return await self.workflow.save(
            self.category, deep_merge(current, update), scope_id, context
        )


class PublishedSettingsService(SettingsService):
    """Service over a :class:`PublishedSettingsCategory`."""

    category: PublishedSettingsCategory

    async def get_applied_settings(self) -> dict[str, Any]:
        """Settings as last applied in this process.

        Falls back to the cache-aside read when nothing fresh was published,
        and publishes what it read so the next caller skips the cache.
        """
        runtime = self.category.runtime
        applied = runtime.get(self.category.settings_type)
        if applied is not None:
            return applied
        current = await self.get_settings()
        runtime.publish(self.category.settings_type, current)
        return current
