"""initial_schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19

Creates users, events and attendances. Every table carries created_at,
updated_at and the nullable deleted_at soft-delete marker.
"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

role_enum = sa.Enum("USER", "ADMIN", name="role")
visibility_enum = sa.Enum("PUBLIC", "PRIVATE", name="visibility")
attendance_status_enum = sa.Enum("GOING", "MAYBE", "DECLINED", "NONE", name="attendancestatus")


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    # --- users ---
    op.create_table(
        "users",
        sa.Column("user_id", sa.String(36), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", role_enum, nullable=False, server_default="USER"),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_deleted_at", "users", ["deleted_at"])

    # --- events ---
    op.create_table(
        "events",
        sa.Column("event_id", sa.String(36), primary_key=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("host_id", sa.String(36), sa.ForeignKey("users.user_id"), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.String(500), nullable=True),
        sa.Column("visibility", visibility_enum, nullable=False, server_default="PUBLIC"),
        *_timestamps(),
    )
    op.create_index("ix_events_host_id", "events", ["host_id"])
    op.create_index("ix_events_start_time", "events", ["start_time"])
    op.create_index("ix_events_deleted_at", "events", ["deleted_at"])

    # --- attendances ---
    op.create_table(
        "attendances",
        sa.Column(
            "event_id",
            sa.String(36),
            sa.ForeignKey("events.event_id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.user_id"), primary_key=True),
        sa.Column("status", attendance_status_enum, nullable=False),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_attendances_deleted_at", "attendances", ["deleted_at"])


def downgrade() -> None:
    op.drop_table("attendances")
    op.drop_table("events")
    op.drop_table("users")
    attendance_status_enum.drop(op.get_bind(), checkfirst=True)
    visibility_enum.drop(op.get_bind(), checkfirst=True)
    role_enum.drop(op.get_bind(), checkfirst=True)
