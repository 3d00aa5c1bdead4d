"""Pydantic schemas for the settings audit trail."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class AuditLogResponse(BaseModel):
    """One settings audit entry."""

    id: str
    user_id: str | None = None
    tenant_id: str | None = None
    settings_type: str
    action: str
    changes: dict[str, Any] | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    status: str
    error_message: str | None = None
    created_at: datetime

    model_config = {"from_attributes": True}


class AuditCleanupRequest(BaseModel):
    days_to_keep: int = Field(90, ge=1, le=3650)


class AuditCleanupResponse(BaseModel):
    deleted: int
