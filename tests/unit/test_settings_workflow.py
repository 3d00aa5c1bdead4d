"""Unit tests for core/settings_workflow.py — the generic save pipeline."""

import copy
from typing import Any
from unittest.mock import AsyncMock

import pytest

from app.constants import REDACTED
from app.core.results import OpResult
from app.core.settings_cache import SettingsCache
from app.core.settings_workflow import (
    ChangeContext,
    ConnectionTestError,
    ConnectionTestResult,
    SettingsValidationError,
    SettingsWorkflow,
    ValidationResult,
)
from app.models.audit_log import AuditAction, AuditStatus
from app.models.setting import SettingsScope
from tests.helpers.fakes import FakeWebSocket, logged_entries

CONTEXT = ChangeContext(user_id="u-admin", tenant_id=None, ip_address="10.0.0.9", user_agent="ua")


class RecordingCategory:
    """Category double that records the order in which the workflow calls it."""

    settings_type = "widgets"
    sensitive_paths = ("credentials.secret",)

    def __init__(
        self,
        calls: list[str],
        scope: SettingsScope = SettingsScope.PLATFORM,
        supports_test: bool = False,
        errors: list[str] | None = None,
        test_result: ConnectionTestResult | None = None,
    ):
        self.calls = calls
        self.scope = scope
        self.supports_test = supports_test
        self.errors = errors or []
        self.test_result = test_result or ConnectionTestResult(success=True, message="ok")
        self.stored: dict[str, Any] | None = None
        self.persist_error: Exception | None = None
        self.apply_error: Exception | None = None

    def cache_key(self, scope_id):
        if self.scope is SettingsScope.PLATFORM:
            return SettingsCache.platform_key("widgets")
        if self.scope is SettingsScope.TENANT:
            return SettingsCache.tenant_key(scope_id, "widgets")
        return SettingsCache.user_key(scope_id, "widgets")

    def defaults(self):
        return {"enabled": False, "credentials": {"secret": ""}}

    async def load(self, scope_id):
        self.calls.append("load")
        return copy.deepcopy(self.stored)

    async def persist(self, scope_id, value, updated_by):
        self.calls.append("persist")
        if self.persist_error:
            raise self.persist_error
        self.stored = copy.deepcopy(value)
        return copy.deepcopy(value)

    async def validate(self, value):
        self.calls.append("validate")
        return ValidationResult.from_errors(self.errors)

    async def test(self, value):
        self.calls.append("test")
        return self.test_result

    async def apply(self, value, scope_id):
        self.calls.append("apply")
        if self.apply_error:
            raise self.apply_error


@pytest.fixture
def calls() -> list[str]:
    return []


@pytest.fixture
def traced_workflow(calls, settings_cache, audit, broadcaster) -> SettingsWorkflow:
    """Workflow whose cache invalidation, broadcast and audit also append to *calls*."""
    invalidate = settings_cache.invalidate

    async def _invalidate(key):
        calls.append("invalidate")
        return await invalidate(key)

    settings_cache.invalidate = _invalidate

    async def _log(entry):
        calls.append(f"audit:{entry.status.value}")
        return OpResult.success()

    audit.log.side_effect = _log

    emit = broadcaster.emit_settings_update

    async def _emit(*args, **kwargs):
        calls.append("broadcast")
        return await emit(*args, **kwargs)

    broadcaster.emit_settings_update = _emit
    return SettingsWorkflow(settings_cache, audit, broadcaster)


# ======================================================================
# Read path
# ======================================================================


class TestReadPath:
    async def test_defaults_when_never_saved(self, workflow, calls):
        category = RecordingCategory(calls)
        assert await workflow.get_current(category) == category.defaults()
        assert await workflow.find_current(category) is None

    async def test_defaults_are_not_cached(self, workflow, settings_cache, calls):
        category = RecordingCategory(calls)
        await workflow.get_current(category)
        assert await settings_cache.get("platform:widgets") is None

    async def test_storage_read_populates_cache(self, workflow, settings_cache, calls):
        category = RecordingCategory(calls)
        category.stored = {"enabled": True}

        assert await workflow.get_current(category) == {"enabled": True}
        assert await settings_cache.get("platform:widgets") == {"enabled": True}

    async def test_cache_hit_skips_storage(self, workflow, settings_cache, calls):
        category = RecordingCategory(calls)
        await settings_cache.set("platform:widgets", {"enabled": "cached"})

        assert await workflow.get_current(category) == {"enabled": "cached"}
        assert "load" not in calls


# ======================================================================
# Save path
# ======================================================================


class TestSaveOrdering:
    async def test_steps_run_in_order(self, traced_workflow, calls):
        category = RecordingCategory(calls, supports_test=True)

        await traced_workflow.save(category, {"enabled": True}, context=CONTEXT)

        assert calls == [
            "load",
            "validate",
            "test",
            "persist",
            "invalidate",
            "apply",
            "broadcast",
            "audit:success",
        ]

    async def test_test_step_skipped_when_unsupported(self, traced_workflow, calls):
        await traced_workflow.save(RecordingCategory(calls), {"enabled": True})
        assert "test" not in calls

    async def test_save_invalidates_stale_cache(self, workflow, settings_cache, calls):
        category = RecordingCategory(calls)
        category.stored = {"enabled": False}
        await workflow.get_current(category)

        await workflow.save(category, {"enabled": True})

        assert await settings_cache.get("platform:widgets") is None
        assert await workflow.get_current(category) == {"enabled": True}


class TestSaveAudit:
    async def test_first_save_is_create(self, workflow, audit, calls):
        await workflow.save(RecordingCategory(calls), {"enabled": True}, context=CONTEXT)

        [entry] = logged_entries(audit)
        assert entry.action is AuditAction.CREATE
        assert entry.status is AuditStatus.SUCCESS
        assert entry.user_id == "u-admin"
        assert entry.ip_address == "10.0.0.9"
        assert entry.changes == {"enabled": {"old": None, "new": True}}

    async def test_second_save_is_update(self, workflow, audit, calls):
        category = RecordingCategory(calls)
        category.stored = {"enabled": False}

        await workflow.save(category, {"enabled": True})

        [entry] = logged_entries(audit)
        assert entry.action is AuditAction.UPDATE
        assert entry.changes == {"enabled": {"old": False, "new": True}}

    async def test_action_override(self, workflow, audit, calls):
        await workflow.save(
            RecordingCategory(calls), {"enabled": True}, action=AuditAction.PLAN_CHANGE
        )
        assert logged_entries(audit)[0].action is AuditAction.PLAN_CHANGE

    async def test_secrets_never_reach_audit(self, workflow, audit, calls):
        category = RecordingCategory(calls)
        category.stored = {"credentials": {"secret": "old-secret", "user": "a"}}

        await workflow.save(category, {"credentials": {"secret": "new-secret", "user": "b"}})

        [entry] = logged_entries(audit)
        assert entry.changes == {
            "credentials": {
                "old": {"secret": REDACTED, "user": "a"},
                "new": {"secret": REDACTED, "user": "b"},
            }
        }

    async def test_tenant_scope_sets_tenant_id(self, workflow, audit, calls):
        category = RecordingCategory(calls, scope=SettingsScope.TENANT)
        await workflow.save(category, {"enabled": True}, scope_id="t-1")
        assert logged_entries(audit)[0].tenant_id == "t-1"

    async def test_audit_outage_does_not_fail_save(self, workflow, audit, calls):
        audit.log.return_value = OpResult.failure("db down")
        saved = await workflow.save(RecordingCategory(calls), {"enabled": True})
        assert saved == {"enabled": True}


class TestSaveFailures:
    async def test_validation_failure(self, traced_workflow, audit, calls):
        category = RecordingCategory(calls, errors=["Widget name is required"])

        with pytest.raises(SettingsValidationError) as exc:
            await traced_workflow.save(category, {"enabled": True})

        assert exc.value.errors == ["Widget name is required"]
        assert "persist" not in calls
        assert calls[-1] == "audit:failed"
        [entry] = logged_entries(audit)
        assert entry.error_message == "Widget name is required"

    async def test_connection_test_failure(self, traced_workflow, calls):
        category = RecordingCategory(
            calls,
            supports_test=True,
            test_result=ConnectionTestResult(success=False, message="Stripe connection failed"),
        )

        with pytest.raises(ConnectionTestError) as exc:
            await traced_workflow.save(category, {"enabled": True})

        assert exc.value.result.message == "Stripe connection failed"
        assert "persist" not in calls
        assert calls.count("audit:failed") == 1

    async def test_persist_failure_propagates_unchanged(self, traced_workflow, calls):
        category = RecordingCategory(calls)
        error = ConnectionError("database unavailable")
        category.persist_error = error

        with pytest.raises(ConnectionError) as exc:
            await traced_workflow.save(category, {"enabled": True})

        assert exc.value is error
        assert "invalidate" not in calls
        assert "broadcast" not in calls

    async def test_apply_failure_keeps_persisted_value(self, traced_workflow, calls):
        category = RecordingCategory(calls)
        category.apply_error = RuntimeError("apply failed")

        with pytest.raises(RuntimeError):
            await traced_workflow.save(category, {"enabled": True})

        assert category.stored == {"enabled": True}
        assert "broadcast" not in calls
        assert calls.count("audit:failed") == 1
        assert "audit:success" not in calls

    async def test_cache_outage_does_not_fail_save(self, audit, broadcaster, calls):
        cache = AsyncMock(spec=SettingsCache)
        cache.get.return_value = None
        cache.set.return_value = OpResult.failure("redis down")
        cache.invalidate.return_value = OpResult.failure("redis down")
        workflow = SettingsWorkflow(cache, audit, broadcaster)

        saved = await workflow.save(RecordingCategory(calls), {"enabled": True})

        assert saved == {"enabled": True}


# ======================================================================
# Broadcast routing
# ======================================================================


class TestBroadcastRouting:
    async def test_platform_settings_reach_everyone_masked(self, workflow, broadcaster, calls):
        socket_a, socket_b = FakeWebSocket(), FakeWebSocket()
        await broadcaster.connect(socket_a, "user-a", "t-1")
        await broadcaster.connect(socket_b, "user-b", None)

        await workflow.save(
            RecordingCategory(calls), {"credentials": {"secret": "s3cr3t"}}, context=CONTEXT
        )

        for socket in (socket_a, socket_b):
            [message] = [m for m in socket.sent if m["event"] == "settings:updated"]
            assert message["data"]["type"] == "widgets"
            assert message["data"]["data"] == {"credentials": {"secret": REDACTED}}
            assert message["data"]["updatedBy"] == "u-admin"

    async def test_tenant_settings_reach_only_that_tenant(self, workflow, broadcaster, calls):
        inside, outside = FakeWebSocket(), FakeWebSocket()
        await broadcaster.connect(inside, "user-a", "t-1")
        await broadcaster.connect(outside, "user-b", "t-2")

        category = RecordingCategory(calls, scope=SettingsScope.TENANT)
        await workflow.save(category, {"enabled": True}, scope_id="t-1")

        assert "settings:updated" in inside.events()
        assert "settings:updated" not in outside.events()

    async def test_user_settings_reach_only_that_user(self, workflow, broadcaster, calls):
        own, colleague = FakeWebSocket(), FakeWebSocket()
        await broadcaster.connect(own, "user-a", "t-1")
        await broadcaster.connect(colleague, "user-b", "t-1")

        category = RecordingCategory(calls, scope=SettingsScope.USER)
        await workflow.save(category, {"enabled": True}, scope_id="user-a")

        assert "settings:updated" in own.events()
        assert "settings:updated" not in colleague.events()

    async def test_broadcast_failure_does_not_fail_save(self, workflow, broadcaster, calls):
        await broadcaster.connect(FakeWebSocket(fail=True), "user-a", None)
        saved = await workflow.save(RecordingCategory(calls), {"enabled": True})
        assert saved == {"enabled": True}


# ======================================================================
# Connection tests and rollback helper
# ======================================================================


class TestConnectionTest:
    async def test_success_audited_as_test(self, workflow, audit, calls):
        result = await workflow.test(RecordingCategory(calls, supports_test=True), {})
        assert result.success
        [entry] = logged_entries(audit)
        assert entry.action is AuditAction.TEST
        assert entry.status is AuditStatus.SUCCESS

    async def test_failure_audited_with_message(self, workflow, audit, calls):
        category = RecordingCategory(
            calls,
            supports_test=True,
            test_result=ConnectionTestResult(success=False, message="SMTP connection failed"),
        )
        result = await workflow.test(category, {})
        assert result.success is False
        [entry] = logged_entries(audit)
        assert entry.status is AuditStatus.FAILED
        assert entry.error_message == "SMTP connection failed"

    async def test_exception_becomes_failed_result(self, workflow, calls):
        category = RecordingCategory(calls, supports_test=True)
        category.test = AsyncMock(side_effect=TimeoutError("timed out"))

        result = await workflow.test(category, {})

        assert result.success is False
        assert result.message == "timed out"


class TestExecuteWithRollback:
    async def test_success_skips_rollback(self, workflow):
        rollback = AsyncMock()
        assert await workflow.execute_with_rollback(AsyncMock(return_value=42), rollback) == 42
        rollback.assert_not_awaited()

    async def test_failure_runs_rollback_and_reraises(self, workflow):
        rollback = AsyncMock()
        with pytest.raises(ValueError, match="boom"):
            await workflow.execute_with_rollback(
                AsyncMock(side_effect=ValueError("boom")), rollback
            )
        rollback.assert_awaited_once()

    async def test_failing_rollback_does_not_mask_error(self, workflow):
        rollback = AsyncMock(side_effect=RuntimeError("rollback failed"))
        with pytest.raises(ValueError, match="boom"):
            await workflow.execute_with_rollback(
                AsyncMock(side_effect=ValueError("boom")), rollback
            )
