"""Per-user agent availability: presence status, working hours, breaks and auto-replies."""

import logging
import re
from datetime import datetime
from enum import StrEnum
from typing import Any

from app.constants import TIME_OF_DAY_PATTERN, WEEKDAYS
from app.core.settings_workflow import ChangeContext, ValidationResult
from app.models.setting import SettingsScope
from app.services.base_settings import SettingsService, StoredSettingsCategory

logger = logging.getLogger(__name__)

_TIME_OF_DAY = re.compile(TIME_OF_DAY_PATTERN)


class AgentStatus(StrEnum):
    AVAILABLE = "available"
    AWAY = "away"
    BUSY = "busy"
    OFFLINE = "offline"


def _day(enabled: bool) -> dict[str, Any]:
    return {"enabled": enabled, "start": "09:00", "end": "17:00"}


def _time_errors(label: str, start: Any, end: Any) -> list[str]:
    errors = []
    for name, moment in (("start", start), ("end", end)):
        if not isinstance(moment, str) or not _TIME_OF_DAY.match(moment):
            errors.append(f"{label} {name} time must be in HH:MM format")
    # Zero-padded HH:MM strings order the same way as the times they denote
    if not errors and start >= end:
        errors.append(f"{label} start time must be before end time")
    return errors


class AvailabilityCategory(StoredSettingsCategory):
    settings_type = "availability"
    storage_key = "availability"
    storage_category = "availability"
    scope = SettingsScope.USER
    DEFAULTS = {
        "status": AgentStatus.AVAILABLE.value,
        "workingHours": {day: _day(day not in ("saturday", "sunday")) for day in WEEKDAYS},
        "breaks": [],
        "autoReply": {
            "enabled": False,
            "awayMessage": "I am currently away. I will get back to you soon.",
            "offlineMessage": "I am currently offline. Please leave a message.",
        },
        "autoStatusChange": {"enabled": False, "offlineAfterMinutes": 30},
    }

    async def validate(self, value: dict[str, Any]) -> ValidationResult:
        errors: list[str] = []

        status = value.get("status")
        if status not in {s.value for s in AgentStatus}:
            errors.append(f"Status must be one of: {', '.join(s.value for s in AgentStatus)}")

        for day, hours in (value.get("workingHours") or {}).items():
            if day not in WEEKDAYS:
                errors.append(f"Unknown working day: {day}")
                continue
            if hours and hours.get("enabled"):
                errors.extend(_time_errors(day.capitalize(), hours.get("start"), hours.get("end")))

        for entry in value.get("breaks") or []:
            label = f"Break '{entry.get('name') or entry.get('id') or '?'}'"
            errors.extend(_time_errors(label, entry.get("start"), entry.get("end")))

        minutes = (value.get("autoStatusChange") or {}).get("offlineAfterMinutes")
        if minutes is not None and (not isinstance(minutes, int) or not 1 <= minutes <= 1440):
            errors.append("offlineAfterMinutes must be between 1 and 1440")

        return ValidationResult.from_errors(errors)

    async def apply(self, value: dict[str, Any], scope_id: str | None) -> None:
        logger.debug("Availability for user %s is now %s", scope_id, value.get("status"))


class AvailabilitySettingsService(SettingsService):
    """Availability settings plus status changes and an is-available check."""

    category: AvailabilityCategory

    async def update_status(
        self, user_id: str, status: AgentStatus | str, context: ChangeContext | None = None
    ) -> dict[str, Any]:
        return await self.update_settings({"status": str(status)}, user_id, context)

    async def is_agent_available(self, user_id: str, now: datetime | None = None) -> bool:
        """``True`` when the agent is ``available`` and *now* falls in working hours.

        Agents with no enabled working day are treated as always on shift.
        Breaks that are not explicitly disabled count as off shift.
        """
        settings = await self.get_settings(user_id)
        if settings.get("status") != AgentStatus.AVAILABLE:
            return False

        now = now or datetime.now()
        hours = settings.get("workingHours") or {}
        if not any((h or {}).get("enabled") for h in hours.values()):
            return True

        clock = now.strftime("%H:%M")
        today = hours.get(WEEKDAYS[now.weekday()]) or {}
        if not today.get("enabled") or not today.get("start", "") <= clock < today.get("end", ""):
            return False

        for entry in settings.get("breaks") or []:
            if not entry.get("enabled", True):
                continue
            if entry.get("start", "") <= clock < entry.get("end", ""):
                return False
        return True
