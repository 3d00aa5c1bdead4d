"""Database repositories for data access."""
from app.repositories.audit_repository import AuditRepository
from app.repositories.settings_repository import SettingsRepository, SettingsStore
from app.repositories.tenant_repository import TenantRepository

__all__ = [
    "SettingsRepository",
    "SettingsStore",
    "AuditRepository",
    "TenantRepository",
]
