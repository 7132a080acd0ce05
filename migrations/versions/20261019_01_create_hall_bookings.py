"""create hall bookings and hall operators

Revision ID: 20261019_01
Revises:
Create Date: 2026-10-19 09:30:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261019_01"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "hall_bookings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("hall_name", sa.String(length=120), nullable=True),
        sa.Column("date", sa.String(length=10), nullable=True),
        sa.Column("start_time", sa.String(length=5), nullable=True),
        sa.Column("end_time", sa.String(length=5), nullable=True),
        sa.Column("start_date", sa.String(length=10), nullable=True),
        sa.Column("end_date", sa.String(length=10), nullable=True),
        sa.Column("day_slots", sa.JSON(none_as_null=True), nullable=True),
        sa.Column("slot", sa.String(length=60), nullable=True),
        sa.Column("slot_title", sa.String(length=200), nullable=True),
        sa.Column("booking_name", sa.String(length=200), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("department", sa.String(length=120), nullable=True),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="PENDING"),
        sa.Column("created_by", sa.String(length=20), nullable=True),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("applied_at", sa.String(length=40), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_hall_bookings_id"), "hall_bookings", ["id"], unique=False)
    op.create_index(op.f("ix_hall_bookings_hall_name"), "hall_bookings", ["hall_name"], unique=False)
    op.create_index(op.f("ix_hall_bookings_date"), "hall_bookings", ["date"], unique=False)
    op.create_index(op.f("ix_hall_bookings_start_date"), "hall_bookings", ["start_date"], unique=False)
    op.create_index(op.f("ix_hall_bookings_end_date"), "hall_bookings", ["end_date"], unique=False)
    op.create_index(op.f("ix_hall_bookings_email"), "hall_bookings", ["email"], unique=False)
    op.create_index(op.f("ix_hall_bookings_department"), "hall_bookings", ["department"], unique=False)
    op.create_index("ix_hall_bookings_lower_hall_name", "hall_bookings", [sa.text("lower(hall_name)")], unique=False)

    op.create_table(
        "hall_operators",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("hall_name", sa.String(length=120), nullable=False),
        sa.Column("head_name", sa.String(length=120), nullable=False),
        sa.Column("head_email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_hall_operators_id"), "hall_operators", ["id"], unique=False)
    op.create_index(op.f("ix_hall_operators_hall_name"), "hall_operators", ["hall_name"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_hall_operators_hall_name"), table_name="hall_operators")
    op.drop_index(op.f("ix_hall_operators_id"), table_name="hall_operators")
    op.drop_table("hall_operators")
    op.drop_index("ix_hall_bookings_lower_hall_name", table_name="hall_bookings")
    op.drop_index(op.f("ix_hall_bookings_department"), table_name="hall_bookings")
    op.drop_index(op.f("ix_hall_bookings_email"), table_name="hall_bookings")
    op.drop_index(op.f("ix_hall_bookings_end_date"), table_name="hall_bookings")
    op.drop_index(op.f("ix_hall_bookings_start_date"), table_name="hall_bookings")
    op.drop_index(op.f("ix_hall_bookings_date"), table_name="hall_bookings")
    op.drop_index(op.f("ix_hall_bookings_hall_name"), table_name="hall_bookings")
    op.drop_index(op.f("ix_hall_bookings_id"), table_name="hall_bookings")
    op.drop_table("hall_bookings")
