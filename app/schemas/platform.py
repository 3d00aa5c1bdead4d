"""Request schemas for platform-wide settings (super admin only)."""

from typing import Literal

from pydantic import EmailStr, Field

from app.constants import HEX_COLOR_PATTERN
from app.schemas.common import CamelModel

# =============================================================================
# Payment gateways
# =============================================================================


class StripeConfig(CamelModel):
    enabled: bool | None = None
    public_key: str | None = None
    secret_key: str | None = None
    webhook_secret: str | None = None


class PayPalConfig(CamelModel):
    enabled: bool | None = None
    client_id: str | None = None
    client_secret: str | None = None
    mode: Literal["sandbox", "live"] | None = None


class RazorpayConfig(CamelModel):
    enabled: bool | None = None
    key_id: str | None = None
    key_secret: str | None = None
    webhook_secret: str | None = None


class PaymentGatewayUpdate(CamelModel):
    stripe: StripeConfig | None = None
    paypal: PayPalConfig | None = None
    razorpay: RazorpayConfig | None = None


class PaymentGatewayTestRequest(CamelModel):
    """Unsaved overrides to test; ``gateway`` narrows the probe to one provider."""

    gateway: Literal["stripe", "paypal", "razorpay"] | None = None
    config: PaymentGatewayUpdate | None = None


# =============================================================================
# Email
# =============================================================================


class SmtpAuth(CamelModel):
    user: str | None = None
    password: str | None = Field(None, alias="pass")


class SmtpConfig(CamelModel):
    host: str | None = None
    port: int | None = Field(None, ge=1, le=65535)
    secure: bool | None = None
    auth: SmtpAuth | None = None


class SendGridConfig(CamelModel):
    api_key: str | None = None


class MailgunConfig(CamelModel):
    api_key: str | None = None
    domain: str | None = None


class Sender(CamelModel):
    name: str | None = None
    email: EmailStr | None = None


class EmailUpdate(CamelModel):
    provider: Literal["smtp", "sendgrid", "mailgun"] | None = None
    smtp: SmtpConfig | None = None
    sendgrid: SendGridConfig | None = None
    mailgun: MailgunConfig | None = None
    sender: Sender | None = Field(None, alias="from")


class EmailTestRequest(CamelModel):
    config: EmailUpdate | None = None


class SendTestEmailRequest(CamelModel):
    to: EmailStr
    config: EmailUpdate | None = None


# =============================================================================
# Security
# =============================================================================


class PasswordPolicy(CamelModel):
    min_length: int | None = Field(None, ge=6, le=128)
    require_uppercase: bool | None = None
    require_lowercase: bool | None = None
    require_numbers: bool | None = None
    require_special_chars: bool | None = None
    expiry_days: int | None = Field(None, ge=0)
    prevent_reuse: int | None = Field(None, ge=0)


class SessionManagement(CamelModel):
    max_sessions: int | None = Field(None, ge=1)
    session_timeout: int | None = Field(None, ge=1)
    idle_timeout: int | None = Field(None, ge=1)
    require_reauth_for_sensitive: bool | None = None


class TwoFactor(CamelModel):
    enforce_for_admins: bool | None = None
    enforce_for_all: bool | None = None
    allowed_methods: list[Literal["totp", "sms", "email"]] | None = None


class AuditLogPolicy(CamelModel):
    retention_days: int | None = Field(None, ge=1)
    log_login_attempts: bool | None = None
    log_settings_changes: bool | None = None
    log_data_exports: bool | None = None


class IpWhitelist(CamelModel):
    enabled: bool | None = None
    addresses: list[str] | None = None


class SecurityUpdate(CamelModel):
    password_policy: PasswordPolicy | None = None
    session_management: SessionManagement | None = None
    two_factor: TwoFactor | None = None
    audit_log: AuditLogPolicy | None = None
    ip_whitelist: IpWhitelist | None = None


class PasswordCheckRequest(CamelModel):
    password: str = Field(..., min_length=1, max_length=1024)


# =============================================================================
# Branding
# =============================================================================


class BrandColors(CamelModel):
    primary: str | None = Field(None, pattern=HEX_COLOR_PATTERN)
    secondary: str | None = Field(None, pattern=HEX_COLOR_PATTERN)
    accent: str | None = Field(None, pattern=HEX_COLOR_PATTERN)
    background: str | None = Field(None, pattern=HEX_COLOR_PATTERN)
    text: str | None = Field(None, pattern=HEX_COLOR_PATTERN)


class BrandFonts(CamelModel):
    heading: str | None = None
    body: str | None = None


class PlatformBrandingUpdate(CamelModel):
    logo: str | None = None
    favicon: str | None = None
    colors: BrandColors | None = None
    fonts: BrandFonts | None = None
    custom_css: str | None = Field(None, alias="customCSS")
    company_name: str | None = Field(None, max_length=255)
    tagline: str | None = Field(None, max_length=255)
