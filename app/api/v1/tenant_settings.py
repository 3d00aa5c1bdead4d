"""Tenant settings endpoints (tenant admins, or super admins with ``?tenant_id=``)."""

from typing import Any

from fastapi import APIRouter, Depends, Path, status
from fastapi.responses import PlainTextResponse

from app.api.v1.errors import settings_errors
from app.auth.dependencies import Context, TenantId, require_role
from app.providers import BillingSvc, IntegrationsSvc, TeamSvc, TenantBrandingSvc
from app.schemas.tenant import (
    BillingUpdate,
    CancelSubscriptionRequest,
    ChangePlanRequest,
    DepartmentCreate,
    DepartmentUpdate,
    IntegrationsUpdate,
    PaymentMethodRequest,
    TeamUpdate,
    TenantBrandingUpdate,
)
from app.utils.audit import audit_logged

router = APIRouter(dependencies=[Depends(require_role("admin", "super_admin"))])

_DEPARTMENT_ID = Path(min_length=1, max_length=64, description="Department id")

# =============================================================================
# Branding
# =============================================================================


@router.get("/branding")
async def get_branding(tenant_id: TenantId, service: TenantBrandingSvc) -> dict[str, Any]:
    """The tenant's own branding, or the platform branding it inherits."""
    with settings_errors():
        return await service.get_public_settings(tenant_id)


@router.get("/branding/css", response_class=PlainTextResponse)
async def get_branding_css(tenant_id: TenantId, service: TenantBrandingSvc) -> str:
    with settings_errors():
        return await service.get_css(tenant_id)


@router.put("/branding", dependencies=[Depends(audit_logged("update_tenant_branding"))])
async def update_branding(
    body: TenantBrandingUpdate,
    tenant_id: TenantId,
    service: TenantBrandingSvc,
    context: Context,
) -> dict[str, Any]:
    """Update white-label branding. Requires the white-label feature."""
    with settings_errors():
        saved = await service.update_settings(body.to_update(), tenant_id, context)
    return service.redact(saved)


# =============================================================================
# Team
# =============================================================================


@router.get("/team")
async def get_team_settings(tenant_id: TenantId, service: TeamSvc) -> dict[str, Any]:
    return await service.get_public_settings(tenant_id)


@router.put("/team", dependencies=[Depends(audit_logged("update_team_settings"))])
async def update_team_settings(
    body: TeamUpdate, tenant_id: TenantId, service: TeamSvc, context: Context
) -> dict[str, Any]:
    with settings_errors():
        saved = await service.update_settings(body.to_update(), tenant_id, context)
    return service.redact(saved)


@router.post("/team/departments", status_code=status.HTTP_201_CREATED)
async def create_department(
    body: DepartmentCreate, tenant_id: TenantId, service: TeamSvc, context: Context
) -> dict[str, Any]:
    with settings_errors():
        return await service.add_department(
            tenant_id, body.name, body.description, body.member_ids, context
        )


@router.put("/team/departments/{department_id}")
async def update_department(
    body: DepartmentUpdate,
    tenant_id: TenantId,
    service: TeamSvc,
    context: Context,
    department_id: str = _DEPARTMENT_ID,
) -> dict[str, Any]:
    with settings_errors():
        return await service.update_department(
            tenant_id, department_id, body.to_update(), context
        )


@router.delete("/team/departments/{department_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_department(
    tenant_id: TenantId,
    service: TeamSvc,
    context: Context,
    department_id: str = _DEPARTMENT_ID,
) -> None:
    with settings_errors():
        await service.delete_department(tenant_id, department_id, context)


# =============================================================================
# Billing
# =============================================================================


@router.get("/billing")
async def get_billing_settings(tenant_id: TenantId, service: BillingSvc) -> dict[str, Any]:
    return await service.get_public_settings(tenant_id)


@router.put("/billing", dependencies=[Depends(audit_logged("update_billing_settings"))])
async def update_billing_settings(
    body: BillingUpdate, tenant_id: TenantId, service: BillingSvc, context: Context
) -> dict[str, Any]:
    with settings_errors():
        saved = await service.update_settings(body.to_update(), tenant_id, context)
    return service.redact(saved)


@router.get("/billing/subscription")
async def get_subscription(tenant_id: TenantId, service: BillingSvc) -> dict[str, Any]:
    return await service.get_subscription(tenant_id)


@router.post("/billing/change-plan", dependencies=[Depends(audit_logged("change_plan"))])
async def change_plan(
    body: ChangePlanRequest, tenant_id: TenantId, service: BillingSvc, context: Context
) -> dict[str, Any]:
    with settings_errors():
        return await service.change_plan(tenant_id, body.plan_id, context)


@router.post("/billing/cancel", dependencies=[Depends(audit_logged("cancel_subscription"))])
async def cancel_subscription(
    body: CancelSubscriptionRequest, tenant_id: TenantId, service: BillingSvc, context: Context
) -> dict[str, Any]:
    with settings_errors():
        return await service.cancel_subscription(tenant_id, body.reason, context)


@router.post(
    "/billing/payment-method",
    dependencies=[Depends(audit_logged("update_payment_method"))],
)
async def update_payment_method(
    body: PaymentMethodRequest, tenant_id: TenantId, service: BillingSvc, context: Context
) -> dict[str, Any]:
    with settings_errors():
        return await service.update_payment_method(tenant_id, body.payment_method_id, context)


# =============================================================================
# Integrations
# =============================================================================


@router.get("/integrations")
async def get_integrations(tenant_id: TenantId, service: IntegrationsSvc) -> dict[str, Any]:
    """Integration settings with OAuth secrets and API keys redacted."""
    return await service.get_public_settings(tenant_id)


@router.put("/integrations", dependencies=[Depends(audit_logged("update_integrations"))])
async def update_integrations(
    body: IntegrationsUpdate, tenant_id: TenantId, service: IntegrationsSvc, context: Context
) -> dict[str, Any]:
    with settings_errors():
        saved = await service.update_settings(body.to_update(), tenant_id, context)
    return service.redact(saved)
