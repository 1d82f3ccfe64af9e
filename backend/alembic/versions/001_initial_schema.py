"""Initial schema — bands, users, memberships, rehearsals, agenda, availability,
attendance and notifications.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "bands",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False, unique=True),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="USER"),
    )

    op.create_table(
        "band_members",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("band_id", UUID(as_uuid=True), sa.ForeignKey("bands.id"), nullable=False),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="MEMBER"),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("band_id", "user_id", name="uq_band_members_band_user"),
    )
    op.create_index("ix_band_members_band_id", "band_members", ["band_id"])
    op.create_index("ix_band_members_user_id", "band_members", ["user_id"])

    op.create_table(
        "rehearsals",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("band_id", UUID(as_uuid=True), sa.ForeignKey("bands.id"), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.String(500), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="SCHEDULED"),
        sa.Column("created_by", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("end_time > start_time", name="ck_rehearsals_time_range"),
    )
    op.create_index("ix_rehearsals_band_start", "rehearsals", ["band_id", "start_time"])

    op.create_table(
        "agenda_items",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "rehearsal_id", UUID(as_uuid=True),
            sa.ForeignKey("rehearsals.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("duration_minutes", sa.Integer, nullable=False),
        sa.Column("order_index", sa.Integer, nullable=False),
        sa.CheckConstraint("duration_minutes > 0", name="ck_agenda_items_duration"),
    )
    op.create_index("ix_agenda_items_rehearsal_id", "agenda_items", ["rehearsal_id"])

    op.create_table(
        "availability",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "rehearsal_id", UUID(as_uuid=True),
            sa.ForeignKey("rehearsals.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("response_time", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "rehearsal_id", name="uq_availability_user_rehearsal"),
    )
    op.create_index("ix_availability_rehearsal_id", "availability", ["rehearsal_id"])

    op.create_table(
        "attendance",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "rehearsal_id", UUID(as_uuid=True),
            sa.ForeignKey("rehearsals.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("status", sa.String(20), nullable=False),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "rehearsal_id", name="uq_attendance_user_rehearsal"),
    )
    op.create_index("ix_attendance_rehearsal_id", "attendance", ["rehearsal_id"])

    op.create_table(
        "notifications",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "rehearsal_id", UUID(as_uuid=True),
            sa.ForeignKey("rehearsals.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("message", sa.Text, nullable=False),
        sa.Column("read", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_table("attendance")
    op.drop_table("availability")
    op.drop_table("agenda_items")
    op.drop_table("rehearsals")
    op.drop_table("band_members")
    op.drop_table("users")
    op.drop_table("bands")
