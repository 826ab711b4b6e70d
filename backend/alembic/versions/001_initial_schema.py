"""Initial schema — workshop_templates, workshop_slots, bookings.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-17

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
        "workshop_templates",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("recurrence_type", sa.String(20), nullable=False, server_default="one-time"),
        sa.Column("recurrence_date", sa.Date, nullable=True),
        sa.Column("recurrence_time", sa.Time, nullable=True),
        sa.Column("recurrence_days", sa.JSON, nullable=False),
        sa.Column("duration", sa.Integer, nullable=False, server_default="60"),
        sa.Column("capacity_per_slot", sa.Integer, nullable=False, server_default="10"),
        sa.Column("target_audience", sa.String(20), nullable=False, server_default="Child"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("shareable_slug", sa.String(120), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "workshop_slots",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "workshop_template_id", UUID(as_uuid=True),
            sa.ForeignKey("workshop_templates.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("date", sa.Date, nullable=False),
        sa.Column("start_time", sa.Time, nullable=False),
        sa.Column("end_time", sa.Time, nullable=False),
        sa.Column("capacity", sa.Integer, nullable=False),
        sa.Column("booked_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="available"),
        sa.UniqueConstraint("workshop_template_id", "date", name="uq_slot_template_date"),
        sa.CheckConstraint("capacity >= 0", name="ck_slot_capacity_non_negative"),
        sa.CheckConstraint(
            "booked_count >= 0 AND booked_count <= capacity",
            name="ck_slot_booked_within_capacity",
        ),
        sa.CheckConstraint(
            "status in ('available', 'full', 'cancelled')", name="ck_slot_status_valid",
        ),
    )

    op.create_table(
        "bookings",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "workshop_slot_id", UUID(as_uuid=True),
            sa.ForeignKey("workshop_slots.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column(
            "workshop_template_id", UUID(as_uuid=True),
            sa.ForeignKey("workshop_templates.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("parent_name", sa.String(200), nullable=False),
        sa.Column("phone_number", sa.String(200), nullable=False),
        sa.Column("kid_name", sa.String(200), nullable=True),
        sa.Column("kid_age", sa.Integer, nullable=True),
        sa.Column("kid_interests", sa.Text, nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="confirmed"),
        sa.Column("booked_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_bookings_workshop_slot_id", "bookings", ["workshop_slot_id"])


def downgrade() -> None:
    op.drop_index("ix_bookings_workshop_slot_id", table_name="bookings")
    op.drop_table("bookings")
    op.drop_table("workshop_slots")
    op.drop_table("workshop_templates")
