"""Request schemas for a user's own settings."""

from typing import Literal

from pydantic import Field

from app.schemas.common import CamelModel

Status = Literal["available", "away", "busy", "offline"]


class DayHours(CamelModel):
    enabled: bool | None = None
    start: str | None = None
    end: str | None = None


class WorkingHours(CamelModel):
    monday: DayHours | None = None
    tuesday: DayHours | None = None
    wednesday: DayHours | None = None
    thursday: DayHours | None = None
    friday: DayHours | None = None
    saturday: DayHours | None = None
    sunday: DayHours | None = None


class BreakSchedule(CamelModel):
    id: str
    name: str
    start: str
    end: str
    enabled: bool = True


class AutoReply(CamelModel):
    enabled: bool | None = None
    away_message: str | None = Field(None, max_length=1000)
    offline_message: str | None = Field(None, max_length=1000)


class AutoStatusChange(CamelModel):
    enabled: bool | None = None
    offline_after_minutes: int | None = None


class AvailabilityUpdate(CamelModel):
    status: Status | None = None
    working_hours: WorkingHours | None = None
    breaks: list[BreakSchedule] | None = None
    auto_reply: AutoReply | None = None
    auto_status_change: AutoStatusChange | None = None


class StatusUpdate(CamelModel):
    status: Status


class InboxPreferences(CamelModel):
    view_mode: Literal["list", "compact", "comfortable"] | None = None
    sort_by: Literal["recent", "unread", "priority"] | None = None
    show_avatars: bool | None = None
    show_preview: bool | None = None
    auto_refresh: bool | None = None
    refresh_interval: int | None = None


class ConversationPreferences(CamelModel):
    show_timestamps: bool | None = None
    timestamp_format: Literal["12h", "24h"] | None = None
    show_read_receipts: bool | None = None
    enter_to_send: bool | None = None
    show_typing_indicator: bool | None = None
    message_grouping: bool | None = None


class KeyboardPreferences(CamelModel):
    enabled: bool | None = None
    shortcuts: dict[str, str] | None = None


class NotificationPreferences(CamelModel):
    desktop: bool | None = None
    sound: bool | None = None
    email: bool | None = None
    new_message: bool | None = None
    mentions: bool | None = None
    assignments: bool | None = None


class PreferencesUpdate(CamelModel):
    inbox: InboxPreferences | None = None
    conversation: ConversationPreferences | None = None
    keyboard: KeyboardPreferences | None = None
    notifications: NotificationPreferences | None = None
    theme: Literal["light", "dark", "auto"] | None = None
    language: str | None = None
