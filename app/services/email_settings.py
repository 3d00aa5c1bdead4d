"""Platform email delivery settings (SMTP, SendGrid, Mailgun)."""

import logging
import smtplib
from typing import Any

from email_validator import EmailNotValidError, validate_email

from app.adapters.email_providers import EmailProviderClient
from app.core.encryption import EncryptionService
from app.core.runtime_config import RuntimeConfig
from app.core.settings_workflow import (
    ChangeContext,
    ConnectionTestResult,
    SettingsWorkflow,
    ValidationResult,
)
from app.models.setting import SettingsScope
from app.repositories.protocols import SettingsStoreProtocol
from app.services.base_settings import PublishedSettingsCategory, PublishedSettingsService
from app.utils.dicts import deep_merge

logger = logging.getLogger(__name__)

PROVIDERS = ("smtp", "sendgrid", "mailgun")

TEST_EMAIL_SUBJECT = "Test Email from {brand}"


def _is_valid_email(address: str) -> bool:
    try:
        validate_email(address, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


class EmailCategory(PublishedSettingsCategory):
    """Outbound email provider and sender identity."""

    settings_type = "email"
    storage_key = "email"
    storage_category = "email"
    scope = SettingsScope.PLATFORM
    supports_test = True
    sensitive_paths = ("smtp.auth.pass", "sendgrid.apiKey", "mailgun.apiKey")
    DEFAULTS = {
        "provider": "smtp",
        "smtp": {"host": "", "port": 587, "secure": False, "auth": {"user": "", "pass": ""}},
        "sendgrid": {"apiKey": ""},
        "mailgun": {"apiKey": "", "domain": ""},
        "from": {"name": "WhatsCRM", "email": "noreply@whatscrm.com"},
    }

    def __init__(
        self,
        store: SettingsStoreProtocol,
        encryption: EncryptionService,
        providers: EmailProviderClient,
        runtime: RuntimeConfig,
    ):
        super().__init__(store, encryption, runtime)
        self.providers = providers

    async def validate(self, value: dict[str, Any]) -> ValidationResult:
        errors: list[str] = []
        provider = value.get("provider")

        if provider not in PROVIDERS:
            errors.append(f"Email provider must be one of: {', '.join(PROVIDERS)}")
        elif provider == "smtp":
            smtp = value.get("smtp") or {}
            if not smtp.get("host"):
                errors.append("SMTP host is required")
            port = smtp.get("port")
            if not isinstance(port, int) or not 1 <= port <= 65535:
                errors.append("SMTP port must be between 1 and 65535")
        elif provider == "sendgrid":
            if not (value.get("sendgrid") or {}).get("apiKey"):
                errors.append("SendGrid API key is required")
        else:
            mailgun = value.get("mailgun") or {}
            if not mailgun.get("apiKey"):
                errors.append("Mailgun API key is required")
            if not mailgun.get("domain"):
                errors.append("Mailgun domain is required")

        sender = value.get("from") or {}
        if not _is_valid_email(str(sender.get("email") or "")):
            errors.append("Sender email address is invalid")

        return ValidationResult.from_errors(errors)

    async def test(self, value: dict[str, Any]) -> ConnectionTestResult:
        provider = value.get("provider")
        if provider == "smtp":
            return await self.providers.check_smtp(value.get("smtp") or {})
        if provider == "sendgrid":
            api_key = (value.get("sendgrid") or {}).get("apiKey") or ""
            return await self.providers.check_sendgrid(api_key)
        if provider == "mailgun":
            mailgun = value.get("mailgun") or {}
            return await self.providers.check_mailgun(
                mailgun.get("apiKey") or "", mailgun.get("domain") or ""
            )
        return ConnectionTestResult(success=False, message=f"Unknown email provider: {provider}")


class EmailSettingsService(PublishedSettingsService):
    """Email settings plus connection tests and test messages."""

    category: EmailCategory

    def __init__(
        self, workflow: SettingsWorkflow, category: EmailCategory, brand_name: str = "WhatsCRM"
    ):
        super().__init__(workflow, category)
        self.brand_name = brand_name

    async def test_connection(
        self, config: dict[str, Any] | None = None, context: ChangeContext | None = None
    ) -> ConnectionTestResult:
        candidate = deep_merge(await self.get_settings(), config or {})
        return await self.workflow.test(self.category, candidate, context=context)

    async def send_test_email(
        self, to: str, config: dict[str, Any] | None = None
    ) -> ConnectionTestResult:
        """Send a test message through SMTP using the stored (or overlaid) settings."""
        settings = deep_merge(await self.get_applied_settings(), config or {})
        if settings.get("provider") != "smtp":
            return ConnectionTestResult(
                success=False, message="Test emails can only be sent through SMTP"
            )
        if not _is_valid_email(to):
            return ConnectionTestResult(success=False, message="Recipient email address is invalid")

        subject = TEST_EMAIL_SUBJECT.format(brand=self.brand_name)
        body_text = (
            f"This is a test email from {self.brand_name}. "
            "Your email settings are configured correctly."
        )
        body_html = (
            f"<h2>{subject}</h2>"
            f"<p>This is a test email from {self.brand_name}.</p>"
            "<p>Your email settings are configured correctly.</p>"
        )
        try:
            await self.category.providers.send_smtp(
                settings.get("smtp") or {},
                settings.get("from") or {},
                to,
                subject,
                body_text,
                body_html,
            )
        except (smtplib.SMTPException, OSError, KeyError) as e:
            logger.error("Failed to send test email to %s: %s", to, e)
            return ConnectionTestResult(success=False, message=f"Failed to send test email: {e}")

        logger.info("Test email sent to %s", to)
        return ConnectionTestResult(success=True, message=f"Test email sent to {to}")
