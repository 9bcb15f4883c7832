"""Equipment, teachers, reservations and module slots.

Revision ID: 0001
Revises:
Create Date: 2025-10-01
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "equipment",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=1024)),
        sa.Column("location", sa.String(length=255)),
        sa.Column("available", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "teachers",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("first_name", sa.String(length=120), nullable=False),
        sa.Column("last_name", sa.String(length=120), nullable=False),
        sa.Column("course", sa.String(length=32)),
        sa.Column("subject", sa.String(length=120)),
        *_timestamps(),
    )

    op.create_table(
        "reservations",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "equipment_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("equipment.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "teacher_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("teachers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("modules", sa.JSON(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("PENDING", "CONFIRMED", "CANCELLED", name="reservationstatus"),
            nullable=False,
        ),
        sa.Column("is_recurring", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("series_id", sa.Uuid(as_uuid=True)),
        sa.Column(
            "frequency",
            sa.Enum("DAILY", "WEEKLY", "BIWEEKLY", "MONTHLY", name="frequency"),
        ),
        sa.Column("series_end_date", sa.Date()),
        sa.Column("observations", sa.String(length=1024)),
        *_timestamps(),
    )
    op.create_index("ix_reservations_equipment_id", "reservations", ["equipment_id"])
    op.create_index("ix_reservations_teacher_id", "reservations", ["teacher_id"])
    op.create_index("ix_reservations_date", "reservations", ["date"])
    op.create_index("ix_reservations_series_id", "reservations", ["series_id"])

    op.create_table(
        "reservation_slots",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "reservation_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("reservations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "equipment_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("equipment.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("module", sa.Integer(), nullable=False),
        sa.UniqueConstraint(
            "equipment_id", "date", "module", name="uq_slot_equipment_day_module"
        ),
        sa.CheckConstraint("module >= 1 AND module <= 15", name="ck_slot_module_range"),
    )
    op.create_index(
        "ix_reservation_slots_reservation_id", "reservation_slots", ["reservation_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_reservation_slots_reservation_id", table_name="reservation_slots")
    op.drop_table("reservation_slots")
    op.drop_index("ix_reservations_series_id", table_name="reservations")
    op.drop_index("ix_reservations_date", table_name="reservations")
    op.drop_index("ix_reservations_teacher_id", table_name="reservations")
    op.drop_index("ix_reservations_equipment_id", table_name="reservations")
    op.drop_table("reservations")
    op.drop_table("teachers")
    op.drop_table("equipment")
    sa.Enum(name="frequency").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="reservationstatus").drop(op.get_bind(), checkfirst=True)
