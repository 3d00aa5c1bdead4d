"""Tenant billing details and subscription state."""

import logging
import re
from datetime import UTC, datetime
from typing import Any

from email_validator import EmailNotValidError, validate_email

from app.core.settings_workflow import ChangeContext, SettingsWorkflow, ValidationResult
from app.models.audit_log import AuditAction
from app.models.setting import SettingsScope
from app.services.base_settings import SettingsService, StoredSettingsCategory

logger = logging.getLogger(__name__)

SUBSCRIPTION_STATUSES = ("none", "active", "cancelled")
_COUNTRY_CODE = re.compile(r"^[A-Z]{2}$")


class SamePlanError(Exception):
    """Raised when changing to the plan the tenant is already on."""

    def __init__(self, plan_id: str):
        self.plan_id = plan_id
        super().__init__(f"Tenant is already subscribed to plan '{plan_id}'")


class SubscriptionNotActiveError(Exception):
    """Raised when cancelling a subscription that is not active."""

    def __init__(self):
        super().__init__("No active subscription to cancel")


class BillingCategory(StoredSettingsCategory):
    """Invoice details: company, tax id, address and billing contact."""

    settings_type = "billing"
    storage_key = "billing"
    storage_category = "billing"
    scope = SettingsScope.TENANT
    DEFAULTS = {
        "companyName": "",
        "taxId": "",
        "address": {"street": "", "city": "", "state": "", "postalCode": "", "country": ""},
        "billingEmail": "",
    }

    async def validate(self, value: dict[str, Any]) -> ValidationResult:
        errors: list[str] = []

        email = value.get("billingEmail")
        if email:
            try:
                validate_email(str(email), check_deliverability=False)
            except EmailNotValidError:
                errors.append("Billing email address is invalid")

        country = (value.get("address") or {}).get("country")
        if country and not _COUNTRY_CODE.match(str(country)):
            errors.append("Country must be a two-letter ISO code (e.g. ZA)")

        return ValidationResult.from_errors(errors)

    async def apply(self, value: dict[str, Any], scope_id: str | None) -> None:
        logger.info("Billing details updated for tenant %s", scope_id)


class SubscriptionCategory(StoredSettingsCategory):
    """Plan, status and payment method of the tenant's subscription."""

    settings_type = "billing"
    storage_key = "subscription"
    storage_category = "billing"
    scope = SettingsScope.TENANT
    DEFAULTS = {
        "planId": None,
        "status": "none",
        "paymentMethodId": None,
        "cancelReason": None,
        "updatedAt": None,
    }

    async def validate(self, value: dict[str, Any]) -> ValidationResult:
        errors: list[str] = []
        if value.get("status") not in SUBSCRIPTION_STATUSES:
            errors.append(f"Subscription status must be one of: {', '.join(SUBSCRIPTION_STATUSES)}")
        if value.get("status") == "active" and not value.get("planId"):
            errors.append("An active subscription requires a plan")
        return ValidationResult.from_errors(errors)

    async def apply(self, value: dict[str, Any], scope_id: str | None) -> None:
        logger.info(
            "Subscription for tenant %s is now %s (plan=%s)",
            scope_id,
            value.get("status"),
            value.get("planId"),
        )


class BillingSettingsService(SettingsService):
    """Billing details plus plan changes, cancellation and payment method updates."""

    category: BillingCategory

    def __init__(
        self,
        workflow: SettingsWorkflow,
        category: BillingCategory,
        subscription: SubscriptionCategory,
    ):
        super().__init__(workflow, category)
        self.subscription = subscription

    async def get_subscription(self, tenant_id: str) -> dict[str, Any]:
        return await self.workflow.get_current(self.subscription, tenant_id)

    async def get_payment_method(self, tenant_id: str) -> str | None:
        return (await self.get_subscription(tenant_id)).get("paymentMethodId")

    async def _save_subscription(
        self,
        tenant_id: str,
        value: dict[str, Any],
        action: AuditAction,
        context: ChangeContext | None,
    ) -> dict[str, Any]:
        value = {**value, "updatedAt": datetime.now(UTC).isoformat()}
        return await self.workflow.save(self.subscription, value, tenant_id, context, action=action)

    async def change_plan(
        self, tenant_id: str, plan_id: str, context: ChangeContext | None = None
    ) -> dict[str, Any]:
        current = await self.get_subscription(tenant_id)
        if current.get("status") == "active" and current.get("planId") == plan_id:
            raise SamePlanError(plan_id)
        return await self._save_subscription(
            tenant_id,
            {**current, "planId": plan_id, "status": "active", "cancelReason": None},
            AuditAction.PLAN_CHANGE,
            context,
        )

    async def cancel_subscription(
        self, tenant_id: str, reason: str | None = None, context: ChangeContext | None = None
    ) -> dict[str, Any]:
        current = await self.get_subscription(tenant_id)
        if current.get("status") != "active":
            raise SubscriptionNotActiveError()
        return await self._save_subscription(
            tenant_id,
            {**current, "status": "cancelled", "cancelReason": reason},
            AuditAction.CANCEL,
            context,
        )

    async def update_payment_method(
        self, tenant_id: str, payment_method_id: str, context: ChangeContext | None = None
    ) -> dict[str, Any]:
        current = await self.get_subscription(tenant_id)
        return await self._save_subscription(
            tenant_id,
            {**current, "paymentMethodId": payment_method_id},
            AuditAction.UPDATE_PAYMENT_METHOD,
            context,
        )
