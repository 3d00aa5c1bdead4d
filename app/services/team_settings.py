"""Tenant team settings: defaults for new members, invitations and departments."""

import copy
import logging
import uuid
from typing import Any

from app.core.settings_workflow import ChangeContext, ValidationResult
from app.models.setting import SettingsScope
from app.services.base_settings import SettingsService, StoredSettingsCategory

logger = logging.getLogger(__name__)

USER_ROLES = ("agent", "user")
ASSIGNMENT_STRATEGIES = ("round_robin", "load_balanced", "manual")


class DepartmentNotFoundError(Exception):
    """Raised when a department id does not exist in the tenant's team settings."""

    def __init__(self, department_id: str):
        self.department_id = department_id
        super().__init__(f"Department '{department_id}' not found")


class TeamCategory(StoredSettingsCategory):
    settings_type = "team"
    storage_key = "team"
    storage_category = "team"
    scope = SettingsScope.TENANT
    DEFAULTS = {
        "defaultSettings": {
            "defaultUserRole": "agent",
            "autoAssignConversations": False,
            "assignmentStrategy": "round_robin",
        },
        "invitationSettings": {
            "allowSelfRegistration": False,
            "approvedEmailDomains": [],
            "requireAdminApproval": True,
        },
        "departments": [],
    }

    async def validate(self, value: dict[str, Any]) -> ValidationResult:
        errors: list[str] = []

        defaults = value.get("defaultSettings") or {}
        if defaults.get("defaultUserRole", "agent") not in USER_ROLES:
            errors.append(f"Default user role must be one of: {', '.join(USER_ROLES)}")
        if defaults.get("assignmentStrategy", "round_robin") not in ASSIGNMENT_STRATEGIES:
            errors.append(
                f"Assignment strategy must be one of: {', '.join(ASSIGNMENT_STRATEGIES)}"
            )

        domains = (value.get("invitationSettings") or {}).get("approvedEmailDomains") or []
        for domain in domains:
            if not isinstance(domain, str) or "." not in domain or "@" in domain:
                errors.append(f"Invalid email domain: {domain}")

        names: set[str] = set()
        for department in value.get("departments") or []:
            name = str(department.get("name") or "").strip()
            if not name:
                errors.append("Department name is required")
            elif name.lower() in names:
                errors.append(f"Duplicate department name: {name}")
            names.add(name.lower())

        return ValidationResult.from_errors(errors)

    async def apply(self, value: dict[str, Any], scope_id: str | None) -> None:
        logger.info(
            "Team settings applied for tenant %s (%s departments)",
            scope_id,
            len(value.get("departments") or []),
        )


class TeamSettingsService(SettingsService):
    """Team settings plus department management and invitation checks."""

    category: TeamCategory

    async def _save_departments(
        self,
        tenant_id: str,
        departments: list[dict[str, Any]],
        context: ChangeContext | None,
    ) -> dict[str, Any]:
        current = await self.get_settings(tenant_id)
        return await self.workflow.save(
            self.category, {**current, "departments": departments}, tenant_id, context
        )

    async def add_department(
        self,
        tenant_id: str,
        name: str,
        description: str | None = None,
        member_ids: list[str] | None = None,
        context: ChangeContext | None = None,
    ) -> dict[str, Any]:
        """Create a department; returns it with its generated id."""
        current = await self.get_settings(tenant_id)
        department = {
            "id": str(uuid.uuid4()),
            "name": name,
            "description": description,
            "memberIds": list(member_ids or []),
        }
        departments = [*copy.deepcopy(current.get("departments") or []), department]
        await self._save_departments(tenant_id, departments, context)
        return department

    async def update_department(
        self,
        tenant_id: str,
        department_id: str,
        changes: dict[str, Any],
        context: ChangeContext | None = None,
    ) -> dict[str, Any]:
        departments = copy.deepcopy((await self.get_settings(tenant_id)).get("departments") or [])
        for department in departments:
            if department.get("id") == department_id:
                department.update({k: v for k, v in changes.items() if k != "id"})
                await self._save_departments(tenant_id, departments, context)
                return department
        raise DepartmentNotFoundError(department_id)

    async def delete_department(
        self, tenant_id: str, department_id: str, context: ChangeContext | None = None
    ) -> None:
        departments = (await self.get_settings(tenant_id)).get("departments") or []
        remaining = [d for d in departments if d.get("id") != department_id]
        if len(remaining) == len(departments):
            raise DepartmentNotFoundError(department_id)
        await self._save_departments(tenant_id, remaining, context)

    async def get_default_user_role(self, tenant_id: str) -> str:
        settings = await self.get_settings(tenant_id)
        return (settings.get("defaultSettings") or {}).get("defaultUserRole", "agent")

    async def is_auto_assign_enabled(self, tenant_id: str) -> bool:
        settings = await self.get_settings(tenant_id)
        return bool((settings.get("defaultSettings") or {}).get("autoAssignConversations"))

    async def get_assignment_strategy(self, tenant_id: str) -> str:
        settings = await self.get_settings(tenant_id)
        return (settings.get("defaultSettings") or {}).get("assignmentStrategy", "round_robin")

    async def is_email_domain_approved(self, tenant_id: str, email: str) -> bool:
        """``True`` when no domains are configured or *email* belongs to one of them."""
        invitation = (await self.get_settings(tenant_id)).get("invitationSettings") or {}
        domains = [d.lower() for d in invitation.get("approvedEmailDomains") or []]
        if not domains:
            return True
        return email.rsplit("@", 1)[-1].lower() in domains

    async def requires_admin_approval(self, tenant_id: str) -> bool:
        invitation = (await self.get_settings(tenant_id)).get("invitationSettings") or {}
        return bool(invitation.get("requireAdminApproval", True))
