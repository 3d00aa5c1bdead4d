"""Generic save workflow for every settings category.

A category (payment gateway, branding, preferences...) is a strategy that
satisfies :class:`SettingsCategory`. :class:`SettingsWorkflow` runs the
same sequence for all of them::

    fetch current -> validate -> test (optional) -> persist
        -> invalidate cache -> apply -> broadcast -> audit

Steps run strictly in that order. There is no transaction around the
sequence and no lock per key: two concurrent saves of the same settings
may interleave, and the last write to storage wins. A failure after
persistence does not undo the write; :meth:`SettingsWorkflow.execute_with_rollback`
is available to callers that need a compensating action.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeVar

from app.core.results import OpResult
from app.core.settings_cache import SettingsCache
from app.models.audit_log import AuditAction, AuditStatus
from app.models.setting import SettingsScope
from app.realtime.broadcaster import LiveUpdateBroadcaster
from app.services.audit_service import AuditEntry, SettingsAuditService
from app.utils.dicts import mask_paths

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a category's rule check."""

    valid: bool
    errors: list[str] = field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: list[str]) -> "ValidationResult":
        return cls(valid=not errors, errors=list(errors))


@dataclass(frozen=True)
class ConnectionTestResult:
    """Outcome of a live connectivity check against an external provider."""

    success: bool
    message: str
    data: dict[str, Any] | None = None


@dataclass(frozen=True)
class ChangeContext:
    """Who made a change and from where."""

    user_id: str | None = None
    tenant_id: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None


class SettingsValidationError(Exception):
    """Raised when settings fail their category rules."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors) or "Invalid settings")


class ConnectionTestError(Exception):
    """Raised when a connectivity test fails during a save."""

    def __init__(self, result: ConnectionTestResult):
        self.result = result
        super().__init__(result.message)


class SettingsCategory(Protocol):
    """Capabilities a settings category supplies to the workflow."""

    settings_type: str
    scope: SettingsScope
    supports_test: bool
    sensitive_paths: tuple[str, ...]

    def cache_key(self, scope_id: str | None) -> str: ...

    def defaults(self) -> dict[str, Any]: ...

    async def load(self, scope_id: str | None) -> dict[str, Any] | None: ...

    async def persist(
        self, scope_id: str | None, value: dict[str, Any], updated_by: str | None
    ) -> dict[str, Any]: ...

    async def validate(self, value: dict[str, Any]) -> ValidationResult: ...

    async def test(self, value: dict[str, Any]) -> ConnectionTestResult: ...

    async def apply(self, value: dict[str, Any], scope_id: str | None) -> None: ...


class SettingsWorkflow:
    """Runs reads and saves for any :class:`SettingsCategory`."""

    def __init__(
        self,
        cache: SettingsCache,
        audit: SettingsAuditService,
        broadcaster: LiveUpdateBroadcaster,
    ):
        self.cache = cache
        self.audit = audit
        self.broadcaster = broadcaster

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    async def find_current(
        self, category: SettingsCategory, scope_id: str | None = None
    ) -> dict[str, Any] | None:
        """Cache, then storage (repopulating the cache). ``None`` if never saved."""
        key = category.cache_key(scope_id)
        cached = await self.cache.get(key)
        if cached is not None:
            return cached

        stored = await category.load(scope_id)
        if stored is not None:
            await self.cache.set(key, stored)
        return stored

    async def get_current(
        self, category: SettingsCategory, scope_id: str | None = None
    ) -> dict[str, Any]:
        """Current settings, or the category defaults when nothing was saved yet."""
        current = await self.find_current(category, scope_id)
        return current if current is not None else category.defaults()

    # ------------------------------------------------------------------
    # Save path
    # ------------------------------------------------------------------

    async def save(
        self,
        category: SettingsCategory,
        value: dict[str, Any],
        scope_id: str | None = None,
        context: ChangeContext | None = None,
        action: AuditAction | None = None,
    ) -> dict[str, Any]:
        """Validate, test, persist and propagate *value*.

        Exactly one audit entry is written per call. Any failure is audited
        as ``failed`` and re-raised unchanged. *action* overrides the
        create/update audit action for domain operations such as a plan
        change.
        """
        context = context or ChangeContext()
        previous: dict[str, Any] | None = None

        try:
            previous = await self.find_current(category, scope_id)

            validation = await category.validate(value)
            if not validation.valid:
                raise SettingsValidationError(validation.errors)

            if category.supports_test:
                result = await category.test(value)
                if not result.success:
                    raise ConnectionTestError(result)

            saved = await category.persist(scope_id, value, context.user_id)
            await self.cache.invalidate(category.cache_key(scope_id))
            await category.apply(saved, scope_id)
        except Exception as exc:
            logger.warning("Saving %s settings failed: %s", category.settings_type, exc)
            await self.audit.log(
                self._entry(
                    category,
                    action or _create_or_update(previous),
                    scope_id,
                    context,
                    status=AuditStatus.FAILED,
                    error_message=str(exc) or type(exc).__name__,
                )
            )
            raise

        masked = mask_paths(saved, category.sensitive_paths)
        broadcast = await self._broadcast(category, masked, scope_id, context)
        if not broadcast.ok:
            logger.warning(
                "Live update for %s settings not fully delivered: %s",
                category.settings_type,
                broadcast.error,
            )

        old = mask_paths(previous, category.sensitive_paths) if previous is not None else {}
        changes = SettingsAuditService.calculate_diff(
            SettingsAuditService.sanitize(old), SettingsAuditService.sanitize(masked)
        )
        await self.audit.log(
            self._entry(
                category,
                action or _create_or_update(previous),
                scope_id,
                context,
                changes=changes,
            )
        )

        logger.info("Saved %s settings (scope_id=%s)", category.settings_type, scope_id)
        return saved

    async def test(
        self,
        category: SettingsCategory,
        value: dict[str, Any],
        scope_id: str | None = None,
        context: ChangeContext | None = None,
    ) -> ConnectionTestResult:
        """Run a connectivity test outside a save and audit it as ``test``."""
        context = context or ChangeContext()
        try:
            result = await category.test(value)
        except Exception as exc:
            logger.warning("Connection test for %s raised: %s", category.settings_type, exc)
            result = ConnectionTestResult(success=False, message=str(exc) or type(exc).__name__)

        await self.audit.log(
            self._entry(
                category,
                AuditAction.TEST,
                scope_id,
                context,
                status=AuditStatus.SUCCESS if result.success else AuditStatus.FAILED,
                error_message=None if result.success else result.message,
            )
        )
        return result

    async def execute_with_rollback(
        self,
        operation: Callable[[], Awaitable[T]],
        rollback: Callable[[], Awaitable[Any]],
    ) -> T:
        """Await *operation*; on failure await *rollback* and re-raise the original error.

        A failing rollback is logged and does not mask the original error.
        """
        try:
            return await operation()
        except Exception as exc:
            logger.error("Operation failed, rolling back: %s", exc)
            try:
                await rollback()
            except Exception:
                logger.exception("Rollback failed")
            raise

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _broadcast(
        self,
        category: SettingsCategory,
        data: dict[str, Any],
        scope_id: str | None,
        context: ChangeContext,
    ) -> OpResult:
        try:
            if category.scope is SettingsScope.USER and scope_id:
                return await self.broadcaster.emit_user_settings_update(
                    category.settings_type, data, scope_id, updated_by=context.user_id
                )
            tenant_id = scope_id if category.scope is SettingsScope.TENANT else None
            return await self.broadcaster.emit_settings_update(
                category.settings_type, data, tenant_id, context.user_id
            )
        except Exception as e:
            return OpResult.failure(e)

    @staticmethod
    def _entry(
        category: SettingsCategory,
        action: AuditAction,
        scope_id: str | None,
        context: ChangeContext,
        *,
        changes: dict[str, Any] | None = None,
        status: AuditStatus = AuditStatus.SUCCESS,
        error_message: str | None = None,
    ) -> AuditEntry:
        tenant_id = scope_id if category.scope is SettingsScope.TENANT else context.tenant_id
        return AuditEntry(
            settings_type=category.settings_type,
            action=action,
            user_id=context.user_id,
            tenant_id=tenant_id,
            changes=changes or {},
            ip_address=context.ip_address,
            user_agent=context.user_agent,
            status=status,
            error_message=error_message,
        )


def _create_or_update(previous: dict[str, Any] | None) -> AuditAction:
    return AuditAction.CREATE if previous is None else AuditAction.UPDATE
