"""Core settings infrastructure."""
from app.core.encryption import DecryptionError, EncryptionKeyMissingError, EncryptionService
from app.core.kv_store import KeyValueStore
from app.core.results import OpResult
from app.core.settings_cache import CacheStats, SettingsCache

__all__ = [
    "CacheStats",
    "DecryptionError",
    "EncryptionKeyMissingError",
    "EncryptionService",
    "KeyValueStore",
    "OpResult",
    "SettingsCache",
]
