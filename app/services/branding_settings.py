"""Platform branding and per-tenant white-label branding."""

import logging
import re
from typing import Any

from app.constants import HEX_COLOR_PATTERN
from app.core.encryption import EncryptionService
from app.core.settings_cache import SettingsCache
from app.core.settings_workflow import (
    ChangeContext,
    SettingsWorkflow,
    ValidationResult,
)
from app.models.setting import SettingsScope
from app.models.tenant import Tenant
from app.realtime.broadcaster import LiveUpdateBroadcaster
from app.repositories.protocols import SettingsStoreProtocol
from app.services.base_settings import SettingsService, StoredSettingsCategory

logger = logging.getLogger(__name__)

MAX_CUSTOM_CSS_LENGTH = 50_000

_HEX_COLOR = re.compile(HEX_COLOR_PATTERN)


class TenantNotFoundError(Exception):
    """Raised when branding is requested for an unknown tenant."""

    def __init__(self, tenant_id: str):
        self.tenant_id = tenant_id
        super().__init__(f"Tenant '{tenant_id}' not found")


class WhiteLabelDisabledError(Exception):
    """Raised when a tenant without the white-label feature edits its branding."""

    def __init__(self, tenant_id: str):
        self.tenant_id = tenant_id
        super().__init__("White-label branding is not enabled for this tenant")


def _validate_branding(
    colors: dict[str, Any], urls: dict[str, Any], custom_css: str | None
) -> list[str]:
    errors: list[str] = []
    for name, color in colors.items():
        if color and not _HEX_COLOR.match(str(color)):
            errors.append(f"Color '{name}' must be a hex value like #1a2b3c")
    for name, url in urls.items():
        if url and not str(url).startswith(("http://", "https://", "/")):
            errors.append(f"{name} must be an http(s) URL or an uploaded file path")
    if custom_css and len(custom_css) > MAX_CUSTOM_CSS_LENGTH:
        errors.append(f"Custom CSS cannot exceed {MAX_CUSTOM_CSS_LENGTH} characters")
    return errors


# ======================================================================
# Platform branding
# ======================================================================


class PlatformBrandingCategory(StoredSettingsCategory):
    """Default look and feel, inherited by tenants without white-label."""

    settings_type = "platform_branding"
    storage_key = "branding"
    storage_category = "branding"
    scope = SettingsScope.PLATFORM
    DEFAULTS = {
        "logo": None,
        "favicon": None,
        "colors": {
            "primary": "#3b82f6",
            "secondary": "#8b5cf6",
            "accent": "#10b981",
            "background": "#ffffff",
            "text": "#1f2937",
        },
        "fonts": {"heading": "Inter", "body": "Inter"},
        "customCSS": None,
        "companyName": "WhatsCRM",
        "tagline": None,
    }

    def __init__(
        self, store: SettingsStoreProtocol, encryption: EncryptionService, cache: SettingsCache
    ):
        super().__init__(store, encryption)
        self.cache = cache

    async def validate(self, value: dict[str, Any]) -> ValidationResult:
        errors = _validate_branding(
            value.get("colors") or {},
            {"Logo": value.get("logo"), "Favicon": value.get("favicon")},
            value.get("customCSS"),
        )
        return ValidationResult.from_errors(errors)

    async def apply(self, value: dict[str, Any], scope_id: str | None) -> None:
        # Tenants without their own branding resolve to this one
        await self.cache.invalidate_pattern(
            SettingsCache.tenant_key("*", TenantBrandingCategory.storage_key)
        )


def platform_to_tenant_branding(platform: dict[str, Any]) -> dict[str, Any]:
    """Express platform branding in the tenant branding shape."""
    fonts = platform.get("fonts") or {}
    return {
        "logoUrl": platform.get("logo"),
        "faviconUrl": platform.get("favicon"),
        "colors": dict(platform.get("colors") or {}),
        "typography": {
            "fontFamily": fonts.get("body", "Inter"),
            "headingFont": fonts.get("heading", "Inter"),
            "fontSize": {},
        },
        "customCss": platform.get("customCSS"),
        "companyName": platform.get("companyName"),
        "tagline": platform.get("tagline"),
    }


# ======================================================================
# Tenant branding
# ======================================================================


class TenantBrandingCategory(StoredSettingsCategory):
    settings_type = "branding"
    storage_key = "branding"
    storage_category = "branding"
    scope = SettingsScope.TENANT
    DEFAULTS = platform_to_tenant_branding(PlatformBrandingCategory.DEFAULTS)

    def __init__(
        self,
        store: SettingsStoreProtocol,
        encryption: EncryptionService,
        broadcaster: LiveUpdateBroadcaster,
    ):
        super().__init__(store, encryption)
        self.broadcaster = broadcaster

    async def validate(self, value: dict[str, Any]) -> ValidationResult:
        errors = _validate_branding(
            value.get("colors") or {},
            {"Logo URL": value.get("logoUrl"), "Favicon URL": value.get("faviconUrl")},
            value.get("customCss"),
        )
        font_sizes = (value.get("typography") or {}).get("fontSize") or {}
        if not isinstance(font_sizes, dict):
            errors.append("Typography fontSize must be a mapping of size names to CSS values")
        return ValidationResult.from_errors(errors)

    async def apply(self, value: dict[str, Any], scope_id: str | None) -> None:
        if scope_id:
            await self.broadcaster.emit_branding_update(
                scope_id, {**value, "css": generate_css(value)}
            )


def generate_css(branding: dict[str, Any]) -> str:
    """CSS custom properties for *branding*, followed by the tenant's custom CSS."""
    lines = [":root {"]
    for name, color in (branding.get("colors") or {}).items():
        if color:
            lines.append(f"  --{name}: {color};")

    typography = branding.get("typography") or {}
    if typography.get("fontFamily"):
        lines.append(f"  --font-family: {typography['fontFamily']};")
    if typography.get("headingFont"):
        lines.append(f"  --heading-font: {typography['headingFont']};")
    for size_name, size in (typography.get("fontSize") or {}).items():
        lines.append(f"  --font-size-{size_name}: {size};")
    lines.append("}")

    css = "\n".join(lines)
    if branding.get("customCss"):
        css = f"{css}\n\n{branding['customCss']}"
    return css


# ======================================================================
# Services
# ======================================================================


class PlatformBrandingSettingsService(SettingsService):
    category: PlatformBrandingCategory


class TenantBrandingSettingsService(SettingsService):
    """
    Tenant branding with platform fallback.

    Tenants without the white-label feature, or that never saved branding,
    see the platform branding.
    """

    category: TenantBrandingCategory

    def __init__(
        self,
        workflow: SettingsWorkflow,
        category: TenantBrandingCategory,
        platform: PlatformBrandingCategory,
    ):
        super().__init__(workflow, category)
        self.platform = platform

    async def _platform_branding(self) -> dict[str, Any]:
        return platform_to_tenant_branding(await self.workflow.get_current(self.platform))

    async def _require_tenant(self, tenant_id: str) -> Tenant:
        tenant = await self.category.store.get_tenant(tenant_id)
        if tenant is None:
            raise TenantNotFoundError(tenant_id)
        return tenant

    async def get_settings(self, scope_id: str | None = None) -> dict[str, Any]:
        if not scope_id:
            raise ValueError("Tenant branding requires a tenant id")
        tenant = await self._require_tenant(scope_id)
        if not tenant.white_label_enabled:
            logger.debug("Tenant %s has no white-label feature; using platform branding", scope_id)
            return await self._platform_branding()

        own = await self.workflow.find_current(self.category, scope_id)
        return own if own is not None else await self._platform_branding()

    async def update_settings(
        self,
        update: dict[str, Any],
        scope_id: str | None = None,
        context: ChangeContext | None = None,
    ) -> dict[str, Any]:
        if not scope_id:
            raise ValueError("Tenant branding requires a tenant id")
        tenant = await self._require_tenant(scope_id)
        if not tenant.white_label_enabled:
            raise WhiteLabelDisabledError(scope_id)
        return await super().update_settings(update, scope_id, context)

    async def get_css(self, tenant_id: str) -> str:
        return generate_css(await self.get_settings(tenant_id))

    async def invalidate_all_caches(self) -> None:
        """Drop every cached tenant branding document."""
        await self.workflow.cache.invalidate_pattern(
            SettingsCache.tenant_key("*", self.category.storage_key)
        )
