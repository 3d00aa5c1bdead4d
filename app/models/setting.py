"""Setting record model: one JSON document per (scope, owner, key)."""

from enum import StrEnum
from typing import Any

from sqlalchemy import String, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin, UUIDMixin


class SettingsScope(StrEnum):
    """Storage partition a settings document belongs to."""

    PLATFORM = "platform"
    TENANT = "tenant"
    USER = "user"


class SettingRecord(Base, UUIDMixin, TimestampMixin):
    """A named, categorized configuration blob.

    Platform-wide records use an empty ``scope_id``. Records are upserted on
    every save and never hard-deleted.
    """

    __tablename__ = "settings"

    scope: Mapped[str] = mapped_column(
        SAEnum(
            SettingsScope,
            name="settings_scope",
            create_constraint=True,
            native_enum=False,
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
    )
    scope_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    key: Mapped[str] = mapped_column(String(100), nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    value: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    updated_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

    __table_args__ = (UniqueConstraint("scope", "scope_id", "key", name="uq_settings_scope_key"),)

    def __repr__(self) -> str:
        return f"<SettingRecord {self.scope}:{self.scope_id}:{self.key}>"
