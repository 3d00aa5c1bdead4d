"""Settings audit trail endpoints (super admins only)."""

from fastapi import APIRouter, Depends, Query

from app.auth.dependencies import require_role
from app.dependencies import AuditSvc
from app.schemas.audit import AuditCleanupRequest, AuditCleanupResponse, AuditLogResponse
from app.utils.audit import audit_logged

router = APIRouter(dependencies=[Depends(require_role("super_admin"))])


@router.get("", response_model=list[AuditLogResponse])
async def list_audit_entries(
    service: AuditSvc,
    settings_type: str | None = Query(None, alias="type", max_length=50),
    tenant_id: str | None = Query(None, max_length=64),
    user_id: str | None = Query(None, max_length=64),
    limit: int = Query(100, ge=1, le=500),
) -> list[AuditLogResponse]:
    """
    Newest-first settings audit entries.

    - **type**: settings type (``email``, ``branding``...)
    - **tenant_id** / **user_id**: narrow to one tenant or actor
    """
    entries = await service.search(
        settings_type=settings_type, tenant_id=tenant_id, user_id=user_id, limit=limit
    )
    return [AuditLogResponse.model_validate(e) for e in entries]


@router.post(
    "/cleanup",
    response_model=AuditCleanupResponse,
    dependencies=[Depends(audit_logged("cleanup_audit_log"))],
)
async def cleanup_audit_entries(
    body: AuditCleanupRequest, service: AuditSvc
) -> AuditCleanupResponse:
    """Delete entries older than ``days_to_keep`` days."""
    return AuditCleanupResponse(deleted=await service.cleanup(body.days_to_keep))
