"""Platform payment gateway settings (Stripe, PayPal, Razorpay)."""

import logging
from typing import Any

from app.adapters.payment_providers import PaymentProviderClient
from app.core.encryption import EncryptionService
from app.core.runtime_config import RuntimeConfig
from app.core.settings_workflow import (
    ChangeContext,
    ConnectionTestResult,
    ValidationResult,
)
from app.models.setting import SettingsScope
from app.repositories.protocols import SettingsStoreProtocol
from app.services.base_settings import PublishedSettingsCategory, PublishedSettingsService
from app.utils.dicts import deep_merge

logger = logging.getLogger(__name__)

GATEWAYS = ("stripe", "paypal", "razorpay")
PAYPAL_MODES = ("sandbox", "live")


class PaymentGatewayCategory(PublishedSettingsCategory):
    """Credentials for the gateways tenants can be billed through."""

    settings_type = "payment_gateway"
    storage_key = "payment_gateway"
    storage_category = "payment"
    scope = SettingsScope.PLATFORM
    supports_test = True
    sensitive_paths = (
        "stripe.secretKey",
        "stripe.webhookSecret",
        "paypal.clientSecret",
        "razorpay.keySecret",
        "razorpay.webhookSecret",
    )
    DEFAULTS = {
        "stripe": {"enabled": False, "publicKey": "", "secretKey": "", "webhookSecret": ""},
        "paypal": {"enabled": False, "clientId": "", "clientSecret": "", "mode": "sandbox"},
        "razorpay": {"enabled": False, "keyId": "", "keySecret": "", "webhookSecret": ""},
    }

    def __init__(
        self,
        store: SettingsStoreProtocol,
        encryption: EncryptionService,
        providers: PaymentProviderClient,
        runtime: RuntimeConfig,
    ):
        super().__init__(store, encryption, runtime)
        self.providers = providers

    async def validate(self, value: dict[str, Any]) -> ValidationResult:
        errors: list[str] = []

        stripe = value.get("stripe") or {}
        if stripe.get("enabled"):
            if not str(stripe.get("publicKey") or "").startswith("pk_"):
                errors.append("Stripe public key must start with pk_")
            if not str(stripe.get("secretKey") or "").startswith("sk_"):
                errors.append("Stripe secret key must start with sk_")

        paypal = value.get("paypal") or {}
        if paypal.get("enabled"):
            if not paypal.get("clientId"):
                errors.append("PayPal client ID is required")
            if not paypal.get("clientSecret"):
                errors.append("PayPal client secret is required")
        if paypal.get("mode", "sandbox") not in PAYPAL_MODES:
            errors.append("PayPal mode must be 'sandbox' or 'live'")

        razorpay = value.get("razorpay") or {}
        if razorpay.get("enabled"):
            if not razorpay.get("keyId"):
                errors.append("Razorpay key ID is required")
            if not razorpay.get("keySecret"):
                errors.append("Razorpay key secret is required")

        return ValidationResult.from_errors(errors)

    async def test_stripe(self, config: dict[str, Any]) -> ConnectionTestResult:
        return await self.providers.check_stripe(config.get("secretKey") or "")

    async def test_paypal(self, config: dict[str, Any]) -> ConnectionTestResult:
        return await self.providers.check_paypal(
            config.get("clientId") or "",
            config.get("clientSecret") or "",
            config.get("mode") or "sandbox",
        )

    async def test_razorpay(self, config: dict[str, Any]) -> ConnectionTestResult:
        return await self.providers.check_razorpay(
            config.get("keyId") or "", config.get("keySecret") or ""
        )

    async def test(self, value: dict[str, Any]) -> ConnectionTestResult:
        """Probe every enabled gateway; succeeds only if all of them answer."""
        probes = {
            "stripe": self.test_stripe,
            "paypal": self.test_paypal,
            "razorpay": self.test_razorpay,
        }
        results: dict[str, ConnectionTestResult] = {}
        for gateway in GATEWAYS:
            config = value.get(gateway) or {}
            if config.get("enabled"):
                results[gateway] = await probes[gateway](config)

        if not results:
            return ConnectionTestResult(success=True, message="No payment gateways enabled")

        failures = [r.message for r in results.values() if not r.success]
        return ConnectionTestResult(
            success=not failures,
            message="; ".join(failures) if failures else "All enabled gateways connected",
            data={
                name: {"success": r.success, "message": r.message}
                for name, r in results.items()
            },
        )


class PaymentGatewaySettingsService(PublishedSettingsService):
    """Payment gateway settings plus on-demand connectivity checks."""

    category: PaymentGatewayCategory

    async def get_enabled_gateways(self) -> list[str]:
        settings = await self.get_applied_settings()
        return [name for name in GATEWAYS if (settings.get(name) or {}).get("enabled")]

    async def test_connection(
        self,
        config: dict[str, Any] | None = None,
        gateway: str | None = None,
        context: ChangeContext | None = None,
    ) -> ConnectionTestResult:
        """Test the stored settings, optionally overlaid with unsaved *config*.

        With *gateway* set only that gateway is probed, whether or not it is
        enabled.
        """
        candidate = deep_merge(await self.get_settings(), config or {})
        if gateway is not None:
            if gateway not in GATEWAYS:
                return ConnectionTestResult(success=False, message=f"Unknown gateway: {gateway}")
            candidate = {
                name: {**(candidate.get(name) or {}), "enabled": name == gateway}
                for name in GATEWAYS
            }
        return await self.workflow.test(self.category, candidate, context=context)
