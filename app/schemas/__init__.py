"""Pydantic schemas package."""
from app.schemas.audit import AuditCleanupRequest, AuditCleanupResponse, AuditLogResponse
from app.schemas.auth import TokenUser
from app.schemas.common import CamelModel, ConnectionTestResponse, ValidationResponse
from app.schemas.me import AvailabilityUpdate, PreferencesUpdate, StatusUpdate
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

__all__ = [
    # Shared
    "CamelModel",
    "ConnectionTestResponse",
    "ValidationResponse",
    "TokenUser",
    # Platform settings
    "PaymentGatewayUpdate",
    "PaymentGatewayTestRequest",
    "EmailUpdate",
    "EmailTestRequest",
    "SendTestEmailRequest",
    "SecurityUpdate",
    "PasswordCheckRequest",
    "PlatformBrandingUpdate",
    # Tenant settings
    "TenantBrandingUpdate",
    "TeamUpdate",
    "DepartmentCreate",
    "DepartmentUpdate",
    "BillingUpdate",
    "ChangePlanRequest",
    "CancelSubscriptionRequest",
    "PaymentMethodRequest",
    "IntegrationsUpdate",
    # Personal settings
    "AvailabilityUpdate",
    "StatusUpdate",
    "PreferencesUpdate",
    # Audit
    "AuditLogResponse",
    "AuditCleanupRequest",
    "AuditCleanupResponse",
]
