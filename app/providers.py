"""FastAPI dependency providers for settings categories and services.

Separated from ``dependencies.py`` so route modules can import the
service aliases without pulling in the lifespan helpers. Categories are
cheap stateless strategies over the shared components in ``app.state``,
so a fresh one is built per request.
"""

from typing import Annotated

from fastapi import Depends

from app.adapters.email_providers import EmailProviderClient
from app.adapters.payment_providers import PaymentProviderClient
from app.dependencies import (
    AppSettings,
    Broadcaster,
    Cache,
    Encryption,
    HttpClient,
    Runtime,
    Store,
    Workflow,
)
from app.services.availability_settings import AvailabilityCategory, AvailabilitySettingsService
from app.services.billing_settings import (
    BillingCategory,
    BillingSettingsService,
    SubscriptionCategory,
)
from app.services.branding_settings import (
    PlatformBrandingCategory,
    PlatformBrandingSettingsService,
    TenantBrandingCategory,
    TenantBrandingSettingsService,
)
from app.services.email_settings import EmailCategory, EmailSettingsService
from app.services.integrations_settings import IntegrationsCategory, IntegrationsSettingsService
from app.services.payment_gateway_settings import (
    PaymentGatewayCategory,
    PaymentGatewaySettingsService,
)
from app.services.preferences_settings import PreferencesCategory, PreferencesSettingsService
from app.services.security_settings import SecurityCategory, SecuritySettingsService
from app.services.team_settings import TeamCategory, TeamSettingsService

# ---------------------------------------------------------------------------
# Provider clients
# ---------------------------------------------------------------------------


def get_payment_providers(http: HttpClient) -> PaymentProviderClient:
    return PaymentProviderClient(http)


def get_email_providers(http: HttpClient, settings: AppSettings) -> EmailProviderClient:
    return EmailProviderClient(http, timeout=settings.provider_timeout_seconds)


PaymentProviders = Annotated[PaymentProviderClient, Depends(get_payment_providers)]
EmailProviders = Annotated[EmailProviderClient, Depends(get_email_providers)]

# ---------------------------------------------------------------------------
# Platform settings
# ---------------------------------------------------------------------------


def get_payment_gateway_service(
    workflow: Workflow,
    store: Store,
    encryption: Encryption,
    providers: PaymentProviders,
    runtime: Runtime,
) -> PaymentGatewaySettingsService:
    category = PaymentGatewayCategory(store, encryption, providers, runtime)
    return PaymentGatewaySettingsService(workflow, category)


def get_email_service(
    workflow: Workflow,
    store: Store,
    encryption: Encryption,
    providers: EmailProviders,
    runtime: Runtime,
    settings: AppSettings,
) -> EmailSettingsService:
    category = EmailCategory(store, encryption, providers, runtime)
    return EmailSettingsService(workflow, category, brand_name=settings.brand_name)


def get_security_service(
    workflow: Workflow, store: Store, encryption: Encryption, runtime: Runtime
) -> SecuritySettingsService:
    return SecuritySettingsService(workflow, SecurityCategory(store, encryption, runtime))


def get_platform_branding_category(
    store: Store, encryption: Encryption, cache: Cache
) -> PlatformBrandingCategory:
    return PlatformBrandingCategory(store, encryption, cache)


PlatformBranding = Annotated[PlatformBrandingCategory, Depends(get_platform_branding_category)]


def get_platform_branding_service(
    workflow: Workflow, category: PlatformBranding
) -> PlatformBrandingSettingsService:
    return PlatformBrandingSettingsService(workflow, category)


PaymentGatewaySvc = Annotated[PaymentGatewaySettingsService, Depends(get_payment_gateway_service)]
EmailSvc = Annotated[EmailSettingsService, Depends(get_email_service)]
SecuritySvc = Annotated[SecuritySettingsService, Depends(get_security_service)]
PlatformBrandingSvc = Annotated[
    PlatformBrandingSettingsService, Depends(get_platform_branding_service)
]

# ---------------------------------------------------------------------------
# Tenant settings
# ---------------------------------------------------------------------------


def get_tenant_branding_service(
    workflow: Workflow,
    store: Store,
    encryption: Encryption,
    broadcaster: Broadcaster,
    platform: PlatformBranding,
) -> TenantBrandingSettingsService:
    category = TenantBrandingCategory(store, encryption, broadcaster)
    return TenantBrandingSettingsService(workflow, category, platform)


def get_team_service(
    workflow: Workflow, store: Store, encryption: Encryption
) -> TeamSettingsService:
    return TeamSettingsService(workflow, TeamCategory(store, encryption))


def get_billing_service(
    workflow: Workflow, store: Store, encryption: Encryption
) -> BillingSettingsService:
    return BillingSettingsService(
        workflow, BillingCategory(store, encryption), SubscriptionCategory(store, encryption)
    )


def get_integrations_service(
    workflow: Workflow, store: Store, encryption: Encryption
) -> IntegrationsSettingsService:
    return IntegrationsSettingsService(workflow, IntegrationsCategory(store, encryption))


TenantBrandingSvc = Annotated[TenantBrandingSettingsService, Depends(get_tenant_branding_service)]
TeamSvc = Annotated[TeamSettingsService, Depends(get_team_service)]
BillingSvc = Annotated[BillingSettingsService, Depends(get_billing_service)]
IntegrationsSvc = Annotated[IntegrationsSettingsService, Depends(get_integrations_service)]

# ---------------------------------------------------------------------------
# Personal settings
# ---------------------------------------------------------------------------


def get_availability_service(
    workflow: Workflow, store: Store, encryption: Encryption
) -> AvailabilitySettingsService:
    return AvailabilitySettingsService(workflow, AvailabilityCategory(store, encryption))


def get_preferences_service(
    workflow: Workflow, store: Store, encryption: Encryption
) -> PreferencesSettingsService:
    return PreferencesSettingsService(workflow, PreferencesCategory(store, encryption))


AvailabilitySvc = Annotated[AvailabilitySettingsService, Depends(get_availability_service)]
PreferencesSvc = Annotated[PreferencesSettingsService, Depends(get_preferences_service)]
