"""Unit tests for services/audit_service.py — settings audit trail."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

from app.constants import REDACTED
from app.models.audit_log import AuditAction, AuditStatus, SettingsAuditLog
from app.services.audit_service import AuditEntry, SettingsAuditService


class TestLog:
    async def test_entry_persisted_and_committed(self, mock_db):
        factory, session = mock_db
        service = SettingsAuditService(factory)

        result = await service.log(
            AuditEntry(
                settings_type="email",
                action=AuditAction.UPDATE,
                user_id="u1",
                changes={"provider": {"old": "smtp", "new": "sendgrid"}},
                ip_address="10.0.0.1",
            )
        )

        assert result.ok
        added = session.add.call_args.args[0]
        assert isinstance(added, SettingsAuditLog)
        assert added.settings_type == "email"
        assert added.action == "update"
        assert added.status == "success"
        assert added.user_id == "u1"
        assert added.changes == {"provider": {"old": "smtp", "new": "sendgrid"}}
        session.commit.assert_awaited_once()

    async def test_failed_entry_carries_error(self, mock_db):
        factory, session = mock_db
        await SettingsAuditService(factory).log(
            AuditEntry(
                settings_type="billing",
                action=AuditAction.CANCEL,
                tenant_id="t1",
                status=AuditStatus.FAILED,
                error_message="No active subscription to cancel",
            )
        )

        added = session.add.call_args.args[0]
        assert added.status == "failed"
        assert added.error_message == "No active subscription to cancel"
        assert added.tenant_id == "t1"

    async def test_database_outage_does_not_raise(self, mock_db):
        factory, session = mock_db
        session.commit.side_effect = ConnectionError("db down")

        result = await SettingsAuditService(factory).log(
            AuditEntry(settings_type="email", action=AuditAction.UPDATE)
        )

        assert result.ok is False
        assert "db down" in result.error


class TestQueries:
    async def test_search_returns_repository_rows(self, mock_db):
        factory, session = mock_db
        row = MagicMock(spec=SettingsAuditLog)
        session.execute.return_value.scalars.return_value.all.return_value = [row]

        entries = await SettingsAuditService(factory).search(settings_type="email", limit=10)

        assert entries == [row]
        session.execute.assert_awaited_once()

    async def test_shortcuts_delegate_to_search_filters(self, mock_db):
        factory, session = mock_db
        service = SettingsAuditService(factory)

        assert await service.get_by_type("email") == []
        assert await service.get_by_tenant("t1") == []
        assert await service.get_by_user("u1") == []
        assert await service.get_recent() == []
        assert session.execute.await_count == 4


class TestCalculateDiff:
    def test_changed_added_and_removed_fields(self):
        old = {"provider": "smtp", "smtp": {"host": "a"}, "legacy": True}
        new = {"provider": "sendgrid", "smtp": {"host": "a"}, "sendgrid": {"apiKey": "x"}}

        diff = SettingsAuditService.calculate_diff(old, new)

        assert diff == {
            "provider": {"old": "smtp", "new": "sendgrid"},
            "sendgrid": {"old": None, "new": {"apiKey": "x"}},
            "legacy": {"old": True, "new": None},
        }

    def test_nested_change_reported_whole(self):
        diff = SettingsAuditService.calculate_diff(
            {"smtp": {"host": "a", "port": 25}}, {"smtp": {"host": "b", "port": 25}}
        )
        assert diff == {
            "smtp": {"old": {"host": "a", "port": 25}, "new": {"host": "b", "port": 25}}
        }

    def test_identical_documents(self):
        assert SettingsAuditService.calculate_diff({"a": 1}, {"a": 1}) == {}

    def test_nested_sections_compared_by_value(self):
        old = {"smtp": {"host": "a", "auth": {"user": "u"}}, "ips": ["1.1.1.1"]}
        new = {"smtp": {"auth": {"user": "u"}, "host": "a"}, "ips": ["1.1.1.1"]}
        assert SettingsAuditService.calculate_diff(old, new) == {}

    def test_deep_change_marks_section_changed(self):
        diff = SettingsAuditService.calculate_diff(
            {"smtp": {"auth": {"user": "u"}}}, {"smtp": {"auth": {"user": "v"}}}
        )
        assert diff == {"smtp": {"old": {"auth": {"user": "u"}}, "new": {"auth": {"user": "v"}}}}


class TestSanitize:
    def test_sensitive_names_redacted_recursively(self):
        value = {
            "apiKey": "k",
            "smtp": {"auth": {"user": "u", "password": "p"}},
            "tokens": [{"token": "t", "label": "x"}],
            "keyId": "rzp_test",
        }
        assert SettingsAuditService.sanitize(value) == {
            "apiKey": REDACTED,
            "smtp": {"auth": {"user": "u", "password": REDACTED}},
            "tokens": [{"token": REDACTED, "label": "x"}],
            "keyId": "rzp_test",
        }

    def test_scalars_pass_through(self):
        assert SettingsAuditService.sanitize(5) == 5


class TestCleanup:
    async def test_returns_deleted_count(self, mock_db):
        factory, session = mock_db
        session.execute.return_value.rowcount = 7

        before = datetime.now(UTC)
        deleted = await SettingsAuditService(factory).cleanup(days_to_keep=30)

        assert deleted == 7
        session.commit.assert_awaited_once()
        statement = session.execute.await_args.args[0]
        cutoff = statement.whereclause.right.value
        window = timedelta(days=30)
        assert before - window - timedelta(seconds=5) < cutoff <= datetime.now(UTC) - window

    async def test_failure_returns_zero(self, mock_db):
        factory, session = mock_db
        session.execute.side_effect = ConnectionError("db down")

        assert await SettingsAuditService(factory).cleanup() == 0
