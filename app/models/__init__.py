"""Database models package."""

from app.models.audit_log import AuditAction, AuditStatus, SettingsAuditLog
from app.models.base import Base
from app.models.setting import SettingRecord, SettingsScope
from app.models.tenant import Tenant
from app.models.user import UserRole

__all__ = [
    # Base
    "Base",
    # Models
    "SettingRecord",
    "SettingsAuditLog",
    "Tenant",
    # Enums
    "SettingsScope",
    "AuditAction",
    "AuditStatus",
    "UserRole",
]
