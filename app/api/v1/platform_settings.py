"""Platform-wide settings endpoints (super admins only)."""

from typing import Any

from fastapi import APIRouter, Depends, Request

from app.api.v1.errors import settings_errors
from app.auth.dependencies import Context, require_role
from app.providers import EmailSvc, PaymentGatewaySvc, PlatformBrandingSvc, SecuritySvc
from app.rate_limit import limiter
from app.schemas.common import ConnectionTestResponse, ValidationResponse
from app.schemas.platform import (
    EmailTestRequest,
    EmailUpdate,
    PasswordCheckRequest,
    PaymentGatewayTestRequest,
    PaymentGatewayUpdate,
    PlatformBrandingUpdate,
    SecurityUpdate,
    SendTestEmailRequest,
)
from app.utils.audit import audit_logged

router = APIRouter(dependencies=[Depends(require_role("super_admin"))])


def _test_response(result) -> ConnectionTestResponse:
    return ConnectionTestResponse(success=result.success, message=result.message, data=result.data)


# =============================================================================
# Payment gateways
# =============================================================================


@router.get("/payment-gateway")
async def get_payment_gateway_settings(service: PaymentGatewaySvc) -> dict[str, Any]:
    """Gateway credentials with secrets redacted."""
    return await service.get_public_settings()


@router.put(
    "/payment-gateway",
    dependencies=[Depends(audit_logged("update_payment_gateway_settings"))],
)
async def update_payment_gateway_settings(
    body: PaymentGatewayUpdate, service: PaymentGatewaySvc, context: Context
) -> dict[str, Any]:
    """Update gateway credentials. Enabled gateways are probed before saving."""
    with settings_errors():
        saved = await service.update_settings(body.to_update(), context=context)
    return service.redact(saved)


@router.post("/payment-gateway/test-connection", response_model=ConnectionTestResponse)
@limiter.limit("10/minute")
async def test_payment_gateway_connection(
    request: Request,
    body: PaymentGatewayTestRequest,
    service: PaymentGatewaySvc,
    context: Context,
) -> ConnectionTestResponse:
    """Probe the stored credentials, optionally overlaid with unsaved ones."""
    config = body.config.to_update() if body.config else None
    result = await service.test_connection(config, gateway=body.gateway, context=context)
    return _test_response(result)


# =============================================================================
# Email
# =============================================================================


@router.get("/email")
async def get_email_settings(service: EmailSvc) -> dict[str, Any]:
    return await service.get_public_settings()


@router.put("/email", dependencies=[Depends(audit_logged("update_email_settings"))])
async def update_email_settings(
    body: EmailUpdate, service: EmailSvc, context: Context
) -> dict[str, Any]:
    """Update the email provider. The provider is probed before saving."""
    with settings_errors():
        saved = await service.update_settings(body.to_update(), context=context)
    return service.redact(saved)


@router.post("/email/test-connection", response_model=ConnectionTestResponse)
@limiter.limit("10/minute")
async def test_email_connection(
    request: Request, body: EmailTestRequest, service: EmailSvc, context: Context
) -> ConnectionTestResponse:
    config = body.config.to_update() if body.config else None
    return _test_response(await service.test_connection(config, context=context))


@router.post("/email/send-test", response_model=ConnectionTestResponse)
@limiter.limit("5/minute")
async def send_test_email(
    request: Request, body: SendTestEmailRequest, service: EmailSvc
) -> ConnectionTestResponse:
    """Send a test message through SMTP."""
    config = body.config.to_update() if body.config else None
    return _test_response(await service.send_test_email(str(body.to), config))


# =============================================================================
# Security
# =============================================================================


@router.get("/security")
async def get_security_settings(service: SecuritySvc) -> dict[str, Any]:
    return await service.get_public_settings()


@router.put("/security", dependencies=[Depends(audit_logged("update_security_settings"))])
async def update_security_settings(
    body: SecurityUpdate, service: SecuritySvc, context: Context
) -> dict[str, Any]:
    with settings_errors():
        saved = await service.update_settings(body.to_update(), context=context)
    return service.redact(saved)


@router.post("/security/validate-password", response_model=ValidationResponse)
async def validate_password(
    body: PasswordCheckRequest, service: SecuritySvc
) -> ValidationResponse:
    """Check a candidate password against the current policy."""
    result = await service.validate_password(body.password)
    return ValidationResponse(valid=result.valid, errors=result.errors)


# =============================================================================
# Branding
# =============================================================================


@router.get("/branding")
async def get_platform_branding(service: PlatformBrandingSvc) -> dict[str, Any]:
    return await service.get_public_settings()


@router.put("/branding", dependencies=[Depends(audit_logged("update_platform_branding"))])
async def update_platform_branding(
    body: PlatformBrandingUpdate, service: PlatformBrandingSvc, context: Context
) -> dict[str, Any]:
    """Update the default branding inherited by tenants without white-label."""
    with settings_errors():
        saved = await service.update_settings(body.to_update(), context=context)
    return service.redact(saved)
