"""create_settings_audit_log

Revision ID: 8d2f3b0e5c21
Revises: 7c1e2a9d4b10
Create Date: 2026-09-14 09:30:00.000000

Append-only trail of settings changes and connection tests.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "8d2f3b0e5c21"
down_revision: Union[str, None] = "7c1e2a9d4b10"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

AUDIT_ACTIONS = (
    "create",
    "update",
    "delete",
    "test",
    "plan_change",
    "cancel",
    "update_payment_method",
)

INDEXES = {
    "ix_settings_audit_log_user_id": ["user_id"],
    "ix_settings_audit_log_tenant_id": ["tenant_id"],
    "ix_settings_audit_log_settings_type": ["settings_type"],
    "ix_settings_audit_log_created_at": ["created_at"],
    "ix_settings_audit_log_tenant_type": ["tenant_id", "settings_type"],
}


def upgrade() -> None:
    op.create_table(
        "settings_audit_log",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column("user_id", sa.String(64), nullable=True),
        sa.Column("tenant_id", sa.String(64), nullable=True),
        sa.Column("settings_type", sa.String(50), nullable=False),
        sa.Column(
            "action",
            sa.Enum(*AUDIT_ACTIONS, name="audit_action", native_enum=False, create_constraint=True),
            nullable=False,
        ),
        sa.Column("changes", postgresql.JSONB(), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column(
            "status",
            sa.Enum(
                "success", "failed", name="audit_status", native_enum=False, create_constraint=True
            ),
            server_default="success",
            nullable=False,
        ),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    for name, columns in INDEXES.items():
        op.create_index(name, "settings_audit_log", columns)


def downgrade() -> None:
    for name in INDEXES:
        op.drop_index(name, table_name="settings_audit_log")
    op.drop_table("settings_audit_log")
