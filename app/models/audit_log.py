"""Settings audit log model."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import DateTime, Index, String, Text, func
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, UUIDMixin


class AuditAction(StrEnum):
    """Kind of settings-changing action."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    TEST = "test"
    PLAN_CHANGE = "plan_change"
    CANCEL = "cancel"
    UPDATE_PAYMENT_METHOD = "update_payment_method"


class AuditStatus(StrEnum):
    """Outcome of the audited action."""

    SUCCESS = "success"
    FAILED = "failed"


class SettingsAuditLog(Base, UUIDMixin):
    """Immutable record of one settings-changing action."""

    __tablename__ = "settings_audit_log"

    user_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    tenant_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    settings_type: Mapped[str] = mapped_column(String(50), nullable=False)
    action: Mapped[str] = mapped_column(
        SAEnum(
            AuditAction,
            name="audit_action",
            create_constraint=True,
            native_enum=False,
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
    )
    # field -> {"old": ..., "new": ...}, secrets already redacted
    changes: Mapped[dict[str, Any] | None] = mapped_column(JSONB, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        SAEnum(
            AuditStatus,
            name="audit_status",
            create_constraint=True,
            native_enum=False,
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=AuditStatus.SUCCESS,
    )
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_settings_audit_log_user_id", "user_id"),
        Index("ix_settings_audit_log_tenant_id", "tenant_id"),
        Index("ix_settings_audit_log_settings_type", "settings_type"),
        Index("ix_settings_audit_log_created_at", "created_at"),
        Index("ix_settings_audit_log_tenant_type", "tenant_id", "settings_type"),
    )

    def __repr__(self) -> str:
        return f"<SettingsAuditLog {self.settings_type} {self.action} {self.status}>"
