"""Per-user interface preferences."""

from typing import Any

from app.core.settings_workflow import ValidationResult
from app.models.setting import SettingsScope
from app.services.base_settings import SettingsService, StoredSettingsCategory

THEMES = ("light", "dark", "auto")
VIEW_MODES = ("list", "compact", "comfortable")
SORT_ORDERS = ("recent", "unread", "priority")
TIMESTAMP_FORMATS = ("12h", "24h")


class PreferencesCategory(StoredSettingsCategory):
    settings_type = "preferences"
    storage_key = "preferences"
    storage_category = "preferences"
    scope = SettingsScope.USER
    DEFAULTS = {
        "inbox": {
            "viewMode": "comfortable",
            "sortBy": "recent",
            "showAvatars": True,
            "showPreview": True,
            "autoRefresh": True,
            "refreshInterval": 30,
        },
        "conversation": {
            "showTimestamps": True,
            "timestampFormat": "12h",
            "showReadReceipts": True,
            "enterToSend": True,
            "showTypingIndicator": True,
            "messageGrouping": True,
        },
        "keyboard": {
            "enabled": True,
            "shortcuts": {
                "newConversation": "ctrl+n",
                "search": "ctrl+k",
                "nextConversation": "ctrl+j",
                "prevConversation": "ctrl+shift+j",
                "markAsRead": "ctrl+m",
                "archive": "ctrl+e",
            },
        },
        "notifications": {
            "desktop": True,
            "sound": True,
            "email": False,
            "newMessage": True,
            "mentions": True,
            "assignments": True,
        },
        "theme": "auto",
        "language": "en",
    }

    async def validate(self, value: dict[str, Any]) -> ValidationResult:
        errors: list[str] = []

        inbox = value.get("inbox") or {}
        if inbox.get("viewMode", "comfortable") not in VIEW_MODES:
            errors.append(f"Inbox view mode must be one of: {', '.join(VIEW_MODES)}")
        if inbox.get("sortBy", "recent") not in SORT_ORDERS:
            errors.append(f"Inbox sort order must be one of: {', '.join(SORT_ORDERS)}")
        interval = inbox.get("refreshInterval", 30)
        if not isinstance(interval, int) or not 5 <= interval <= 3600:
            errors.append("Refresh interval must be between 5 and 3600 seconds")

        timestamp_format = (value.get("conversation") or {}).get("timestampFormat", "12h")
        if timestamp_format not in TIMESTAMP_FORMATS:
            errors.append(f"Timestamp format must be one of: {', '.join(TIMESTAMP_FORMATS)}")

        if value.get("theme", "auto") not in THEMES:
            errors.append(f"Theme must be one of: {', '.join(THEMES)}")

        language = value.get("language", "en")
        if not isinstance(language, str) or not 2 <= len(language) <= 10:
            errors.append("Language must be a locale code such as 'en' or 'pt-BR'")

        shortcuts = (value.get("keyboard") or {}).get("shortcuts") or {}
        bound = [s for s in shortcuts.values() if s]
        if len(bound) != len(set(bound)):
            errors.append("Keyboard shortcuts must be unique")

        return ValidationResult.from_errors(errors)

    async def apply(self, value: dict[str, Any], scope_id: str | None) -> None:
        pass


class PreferencesSettingsService(SettingsService):
    category: PreferencesCategory
