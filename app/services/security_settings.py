"""Platform security policy: passwords, sessions, 2FA, audit retention, IP allow-list."""

import ipaddress
import re
from typing import Any

from app.core.settings_workflow import ValidationResult
from app.models.setting import SettingsScope
from app.services.base_settings import PublishedSettingsCategory, PublishedSettingsService

TWO_FACTOR_METHODS = ("totp", "sms", "email")
SPECIAL_CHARS = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")


class SecurityCategory(PublishedSettingsCategory):
    settings_type = "security"
    storage_key = "security"
    storage_category = "security"
    scope = SettingsScope.PLATFORM
    DEFAULTS = {
        "passwordPolicy": {
            "minLength": 8,
            "requireUppercase": True,
            "requireLowercase": True,
            "requireNumbers": True,
            "requireSpecialChars": True,
            "expiryDays": 90,
            "preventReuse": 5,
        },
        "sessionManagement": {
            "maxSessions": 3,
            "sessionTimeout": 86400,
            "idleTimeout": 3600,
            "requireReauthForSensitive": True,
        },
        "twoFactor": {
            "enforceForAdmins": True,
            "enforceForAll": False,
            "allowedMethods": ["totp", "sms", "email"],
        },
        "auditLog": {
            "retentionDays": 90,
            "logLoginAttempts": True,
            "logSettingsChanges": True,
            "logDataExports": True,
        },
        "ipWhitelist": {"enabled": False, "addresses": []},
    }

    async def validate(self, value: dict[str, Any]) -> ValidationResult:
        errors: list[str] = []

        policy = value.get("passwordPolicy") or {}
        min_length = policy.get("minLength", 8)
        if not isinstance(min_length, int) or not 6 <= min_length <= 128:
            errors.append("Password minimum length must be between 6 and 128")
        for field in ("expiryDays", "preventReuse"):
            if not isinstance(policy.get(field, 0), int) or policy.get(field, 0) < 0:
                errors.append(f"Password policy {field} cannot be negative")

        sessions = value.get("sessionManagement") or {}
        for field in ("maxSessions", "sessionTimeout", "idleTimeout"):
            amount = sessions.get(field, 1)
            if not isinstance(amount, int) or amount < 1:
                errors.append(f"Session {field} must be a positive integer")
        if (
            isinstance(sessions.get("idleTimeout"), int)
            and isinstance(sessions.get("sessionTimeout"), int)
            and sessions["idleTimeout"] > sessions["sessionTimeout"]
        ):
            errors.append("Idle timeout cannot exceed session timeout")

        two_factor = value.get("twoFactor") or {}
        unknown = set(two_factor.get("allowedMethods") or []) - set(TWO_FACTOR_METHODS)
        if unknown:
            errors.append(f"Unsupported two-factor methods: {', '.join(sorted(unknown))}")

        retention = (value.get("auditLog") or {}).get("retentionDays", 90)
        if not isinstance(retention, int) or retention < 1:
            errors.append("Audit log retention must be at least 1 day")

        for address in (value.get("ipWhitelist") or {}).get("addresses") or []:
            try:
                ipaddress.ip_network(str(address), strict=False)
            except ValueError:
                errors.append(f"Invalid IP address or range: {address}")

        return ValidationResult.from_errors(errors)


class SecuritySettingsService(PublishedSettingsService):
    """Security settings plus password-policy checks."""

    async def validate_password(self, password: str) -> ValidationResult:
        """Check *password* against the current password policy."""
        policy = (await self.get_applied_settings()).get("passwordPolicy") or {}
        errors: list[str] = []

        min_length = policy.get("minLength", 8)
        if len(password) < min_length:
            errors.append(f"Password must be at least {min_length} characters long")
        if policy.get("requireUppercase") and not re.search(r"[A-Z]", password):
            errors.append("Password must contain at least one uppercase letter")
        if policy.get("requireLowercase") and not re.search(r"[a-z]", password):
            errors.append("Password must contain at least one lowercase letter")
        if policy.get("requireNumbers") and not re.search(r"\d", password):
            errors.append("Password must contain at least one number")
        if policy.get("requireSpecialChars") and not SPECIAL_CHARS.search(password):
            errors.append("Password must contain at least one special character")

        return ValidationResult.from_errors(errors)

    async def is_ip_allowed(self, ip: str) -> bool:
        """``True`` when the allow-list is disabled or *ip* falls inside one of its entries."""
        whitelist = (await self.get_applied_settings()).get("ipWhitelist") or {}
        if not whitelist.get("enabled"):
            return True
        try:
            candidate = ipaddress.ip_address(ip)
        except ValueError:
            return False
        return any(
            candidate in ipaddress.ip_network(str(entry), strict=False)
            for entry in whitelist.get("addresses") or []
        )
