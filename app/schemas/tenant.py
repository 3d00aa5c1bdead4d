"""Request schemas for tenant settings (tenant admins)."""

from typing import Literal

from pydantic import EmailStr, Field

from app.schemas.common import CamelModel
from app.schemas.platform import BrandColors

# =============================================================================
# Branding
# =============================================================================


class Typography(CamelModel):
    font_family: str | None = None
    heading_font: str | None = None
    font_size: dict[str, str] | None = None


class TenantBrandingUpdate(CamelModel):
    logo_url: str | None = None
    favicon_url: str | None = None
    colors: BrandColors | None = None
    typography: Typography | None = None
    custom_css: str | None = None
    company_name: str | None = Field(None, max_length=255)
    tagline: str | None = Field(None, max_length=255)


# =============================================================================
# Team
# =============================================================================


class TeamDefaults(CamelModel):
    default_user_role: Literal["agent", "user"] | None = None
    auto_assign_conversations: bool | None = None
    assignment_strategy: Literal["round_robin", "load_balanced", "manual"] | None = None


class InvitationSettings(CamelModel):
    allow_self_registration: bool | None = None
    approved_email_domains: list[str] | None = None
    require_admin_approval: bool | None = None


class TeamUpdate(CamelModel):
    """Departments are managed through their own endpoints."""

    default_settings: TeamDefaults | None = None
    invitation_settings: InvitationSettings | None = None


class DepartmentCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    member_ids: list[str] = []


class DepartmentUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    member_ids: list[str] | None = None


# =============================================================================
# Billing
# =============================================================================


class BillingAddress(CamelModel):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = Field(None, max_length=2)


class BillingUpdate(CamelModel):
    company_name: str | None = Field(None, max_length=255)
    tax_id: str | None = Field(None, max_length=64)
    address: BillingAddress | None = None
    billing_email: EmailStr | None = None


class ChangePlanRequest(CamelModel):
    plan_id: str = Field(..., min_length=1, max_length=64)


class CancelSubscriptionRequest(CamelModel):
    reason: str | None = Field(None, max_length=1000)


class PaymentMethodRequest(CamelModel):
    payment_method_id: str = Field(..., min_length=1, max_length=255)


# =============================================================================
# Integrations
# =============================================================================


class OAuthProvider(CamelModel):
    enabled: bool | None = None
    client_id: str | None = None
    client_secret: str | None = None
    redirect_uri: str | None = None


class OAuthSettings(CamelModel):
    google: OAuthProvider | None = None
    microsoft: OAuthProvider | None = None


class ApiKeyLimits(CamelModel):
    enabled: bool | None = None
    max_keys: int | None = Field(None, ge=1, le=100)


class WebhookLimits(CamelModel):
    enabled: bool | None = None
    max_webhooks: int | None = Field(None, ge=1, le=100)


class ZapierConfig(CamelModel):
    enabled: bool | None = None
    api_key: str | None = None


class SlackConfig(CamelModel):
    enabled: bool | None = None
    webhook_url: str | None = None


class ThirdPartySettings(CamelModel):
    zapier: ZapierConfig | None = None
    slack: SlackConfig | None = None


class IntegrationsUpdate(CamelModel):
    oauth: OAuthSettings | None = None
    api_keys: ApiKeyLimits | None = None
    webhooks: WebhookLimits | None = None
    third_party: ThirdPartySettings | None = None
