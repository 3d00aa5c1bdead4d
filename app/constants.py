"""Shared constants used across the application."""

# Physical namespace of every settings cache entry (below the Redis key prefix)
SETTINGS_CACHE_PREFIX = "settings:"
SETTINGS_CACHE_TTL = 3600  # seconds

# Replaces secrets in audit entries, broadcasts and API responses
REDACTED = "***REDACTED***"

# Field names whose values are always redacted before auditing (exact match)
SENSITIVE_FIELDS = frozenset(
    {
        "password",
        "secret",
        "token",
        "key",
        "apiKey",
        "accessToken",
        "refreshToken",
    }
)

# Live-update event names
EVENT_SETTINGS_UPDATED = "settings:updated"
EVENT_BRANDING_UPDATED = "branding:updated"
EVENT_USER_STATUS = "user:status"

# WebSocket room names
TENANT_ROOM = "tenant:{tenant_id}"
USER_ROOM = "user:{user_id}"

# Colours are stored as #RRGGBB
HEX_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"

# Working-hours times are stored as HH:MM (24h)
TIME_OF_DAY_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
