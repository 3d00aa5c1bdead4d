"""Tenant integrations: OAuth sign-in providers, API keys, webhooks and third-party apps."""

import logging
from typing import Any

from app.core.settings_workflow import ValidationResult
from app.models.setting import SettingsScope
from app.services.base_settings import SettingsService, StoredSettingsCategory

logger = logging.getLogger(__name__)

OAUTH_PROVIDERS = ("google", "microsoft")
SLACK_WEBHOOK_PREFIX = "https://hooks.slack.com/"


class IntegrationsCategory(StoredSettingsCategory):
    settings_type = "integrations"
    storage_key = "integrations"
    storage_category = "integrations"
    scope = SettingsScope.TENANT
    sensitive_paths = (
        "oauth.google.clientSecret",
        "oauth.microsoft.clientSecret",
        "thirdParty.zapier.apiKey",
    )
    DEFAULTS = {
        "oauth": {
            "google": {"enabled": False, "clientId": "", "clientSecret": "", "redirectUri": ""},
            "microsoft": {"enabled": False, "clientId": "", "clientSecret": "", "redirectUri": ""},
        },
        "apiKeys": {"enabled": True, "maxKeys": 10},
        "webhooks": {"enabled": True, "maxWebhooks": 20},
        "thirdParty": {
            "zapier": {"enabled": False, "apiKey": ""},
            "slack": {"enabled": False, "webhookUrl": ""},
        },
    }

    async def validate(self, value: dict[str, Any]) -> ValidationResult:
        errors: list[str] = []

        oauth = value.get("oauth") or {}
        for provider in OAUTH_PROVIDERS:
            config = oauth.get(provider) or {}
            if not config.get("enabled"):
                continue
            label = provider.capitalize()
            for field in ("clientId", "clientSecret", "redirectUri"):
                if not config.get(field):
                    errors.append(f"{label} OAuth {field} is required when enabled")
            redirect = config.get("redirectUri")
            if redirect and not str(redirect).startswith(("http://", "https://")):
                errors.append(f"{label} OAuth redirectUri must be an http(s) URL")

        for section, field in (("apiKeys", "maxKeys"), ("webhooks", "maxWebhooks")):
            limit = (value.get(section) or {}).get(field)
            if limit is not None and (not isinstance(limit, int) or not 1 <= limit <= 100):
                errors.append(f"{section}.{field} must be between 1 and 100")

        third_party = value.get("thirdParty") or {}
        zapier = third_party.get("zapier") or {}
        if zapier.get("enabled") and not zapier.get("apiKey"):
            errors.append("Zapier API key is required when enabled")
        slack = third_party.get("slack") or {}
        webhook_url = slack.get("webhookUrl")
        if slack.get("enabled") and not webhook_url:
            errors.append("Slack webhook URL is required when enabled")
        elif webhook_url and not str(webhook_url).startswith(SLACK_WEBHOOK_PREFIX):
            errors.append(f"Slack webhook URL must start with {SLACK_WEBHOOK_PREFIX}")

        return ValidationResult.from_errors(errors)

    async def apply(self, value: dict[str, Any], scope_id: str | None) -> None:
        oauth = value.get("oauth") or {}
        enabled = [p for p in OAUTH_PROVIDERS if (oauth.get(p) or {}).get("enabled")]
        logger.info("Integrations updated for tenant %s (oauth=%s)", scope_id, enabled or "none")


class IntegrationsSettingsService(SettingsService):
    category: IntegrationsCategory

    async def is_oauth_enabled(self, tenant_id: str, provider: str) -> bool:
        oauth = (await self.get_settings(tenant_id)).get("oauth") or {}
        return bool((oauth.get(provider) or {}).get("enabled"))

    async def get_api_key_limit(self, tenant_id: str) -> int:
        """Maximum API keys, or 0 when API keys are disabled for the tenant."""
        api_keys = (await self.get_settings(tenant_id)).get("apiKeys") or {}
        return int(api_keys.get("maxKeys", 10)) if api_keys.get("enabled") else 0

    async def get_webhook_limit(self, tenant_id: str) -> int:
        webhooks = (await self.get_settings(tenant_id)).get("webhooks") or {}
        return int(webhooks.get("maxWebhooks", 20)) if webhooks.get("enabled") else 0
