"""Unit tests for services/team_settings.py."""

import pytest

from app.core.settings_workflow import ChangeContext, SettingsValidationError
from app.models.audit_log import AuditAction
from app.services.team_settings import DepartmentNotFoundError, TeamCategory, TeamSettingsService
from tests.helpers.fakes import FakeWebSocket, logged_entries

TENANT_ID = "tenant-1"


@pytest.fixture
def service(workflow, settings_store, encryption):
    return TeamSettingsService(workflow, TeamCategory(settings_store, encryption))


class TestValidation:
    async def test_default_role(self, service):
        result = await service.category.validate({"defaultSettings": {"defaultUserRole": "admin"}})
        assert result.errors == ["Default user role must be one of: agent, user"]

    async def test_assignment_strategy(self, service):
        value = {"defaultSettings": {"assignmentStrategy": "random"}}
        result = await service.category.validate(value)
        assert result.errors == [
            "Assignment strategy must be one of: round_robin, load_balanced, manual"
        ]

    async def test_email_domains(self, service):
        value = {"invitationSettings": {"approvedEmailDomains": ["acme.com", "@acme.com", "local"]}}
        result = await service.category.validate(value)
        assert result.errors == ["Invalid email domain: @acme.com", "Invalid email domain: local"]

    async def test_department_names(self, service):
        value = {"departments": [{"name": "Sales"}, {"name": " sales "}, {"name": ""}]}
        result = await service.category.validate(value)
        assert result.errors == ["Duplicate department name: sales", "Department name is required"]


class TestDepartments:
    async def test_add_assigns_id(self, service):
        department = await service.add_department(
            TENANT_ID, "Support", "Tier 1", ["u1", "u2"], ChangeContext(user_id="admin")
        )

        assert department["id"]
        assert department["memberIds"] == ["u1", "u2"]
        settings = await service.get_settings(TENANT_ID)
        assert settings["departments"] == [department]

    async def test_duplicate_name_rejected(self, service):
        await service.add_department(TENANT_ID, "Support")
        with pytest.raises(SettingsValidationError):
            await service.add_department(TENANT_ID, "support")

    async def test_update_keeps_id(self, service):
        created = await service.add_department(TENANT_ID, "Support")

        updated = await service.update_department(
            TENANT_ID, created["id"], {"id": "hijack", "name": "Customer Care"}
        )

        assert updated["id"] == created["id"]
        assert updated["name"] == "Customer Care"
        [stored] = (await service.get_settings(TENANT_ID))["departments"]
        assert stored["name"] == "Customer Care"

    async def test_update_unknown(self, service):
        with pytest.raises(DepartmentNotFoundError):
            await service.update_department(TENANT_ID, "missing", {"name": "X"})

    async def test_delete(self, service):
        keep = await service.add_department(TENANT_ID, "Sales")
        drop = await service.add_department(TENANT_ID, "Support")

        await service.delete_department(TENANT_ID, drop["id"])

        assert (await service.get_settings(TENANT_ID))["departments"] == [keep]

    async def test_delete_unknown(self, service, settings_store):
        with pytest.raises(DepartmentNotFoundError):
            await service.delete_department(TENANT_ID, "missing")
        assert settings_store.saves == []

    async def test_changes_audited_and_broadcast_to_tenant(self, service, audit, broadcaster):
        socket = FakeWebSocket()
        await broadcaster.connect(socket, "u1", TENANT_ID)

        await service.add_department(TENANT_ID, "Sales")
        await service.add_department(TENANT_ID, "Support")

        assert [e.action for e in logged_entries(audit)] == [AuditAction.CREATE, AuditAction.UPDATE]
        assert all(e.tenant_id == TENANT_ID for e in logged_entries(audit))
        assert socket.events() == ["settings:updated", "settings:updated"]


class TestHelpers:
    async def test_defaults(self, service):
        assert await service.get_default_user_role(TENANT_ID) == "agent"
        assert await service.is_auto_assign_enabled(TENANT_ID) is False
        assert await service.get_assignment_strategy(TENANT_ID) == "round_robin"
        assert await service.requires_admin_approval(TENANT_ID) is True

    async def test_saved_defaults(self, service):
        await service.update_settings(
            {
                "defaultSettings": {
                    "defaultUserRole": "user",
                    "autoAssignConversations": True,
                    "assignmentStrategy": "load_balanced",
                }
            },
            TENANT_ID,
        )

        assert await service.get_default_user_role(TENANT_ID) == "user"
        assert await service.is_auto_assign_enabled(TENANT_ID) is True
        assert await service.get_assignment_strategy(TENANT_ID) == "load_balanced"

    async def test_email_domain_approval(self, service):
        assert await service.is_email_domain_approved(TENANT_ID, "anyone@example.org") is True

        await service.update_settings(
            {"invitationSettings": {"approvedEmailDomains": ["Acme.com"]}}, TENANT_ID
        )

        assert await service.is_email_domain_approved(TENANT_ID, "jo@acme.COM") is True
        assert await service.is_email_domain_approved(TENANT_ID, "jo@example.org") is False
