"""Initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:30:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


slot_status_enum = sa.Enum("available", "booked", "blocked", name="slot_status_enum", native_enum=False)
booking_status_enum = sa.Enum(
    "pending",
    "confirmed",
    "in_progress",
    "completed",
    "cancelled",
    "no_show",
    name="booking_status_enum",
    native_enum=False,
)
reschedule_status_enum = sa.Enum(
    "pending",
    "approved",
    "declined",
    "expired",
    "cancelled",
    name="reschedule_status_enum",
    native_enum=False,
)
outbox_status_enum = sa.Enum("pending", "processed", "failed", name="outbox_status_enum", native_enum=False)


def _id_col() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _created_col() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _updated_col() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    op.create_table(
        "time_slots",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("slot_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("end_time", sa.Time(), nullable=False),
        sa.Column("status", slot_status_enum, nullable=False),
        sa.CheckConstraint("end_time > start_time", name="ck_time_slots_end_after_start"),
        sa.UniqueConstraint("slot_date", "start_time", name="uq_time_slots_slot_date_start_time"),
    )
    op.create_index("ix_time_slots_slot_date", "time_slots", ["slot_date"], unique=False)
    op.create_index("ix_time_slots_status", "time_slots", ["status"], unique=False)

    op.create_table(
        "bookings",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("booking_reference", sa.String(length=20), nullable=False),
        sa.Column("customer_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("slot_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("original_slot_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", booking_status_enum, nullable=False),
        sa.Column("price_pence", sa.Integer(), nullable=False),
        sa.Column("reschedule_count", sa.Integer(), nullable=False),
        sa.Column("last_status_change", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status_change_reason", sa.String(length=512), nullable=True),
        sa.Column("details", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_by_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.CheckConstraint("price_pence >= 0", name="ck_bookings_price_not_negative"),
        sa.CheckConstraint("reschedule_count >= 0", name="ck_bookings_reschedule_count_not_negative"),
        sa.ForeignKeyConstraint(["slot_id"], ["time_slots.id"], name="fk_bookings_slot_id_time_slots", ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(
            ["original_slot_id"],
            ["time_slots.id"],
            name="fk_bookings_original_slot_id_time_slots",
            ondelete="RESTRICT",
        ),
        sa.UniqueConstraint("booking_reference", name="uq_bookings_booking_reference"),
    )
    op.create_index("ix_bookings_customer_id", "bookings", ["customer_id"], unique=False)
    op.create_index("ix_bookings_slot_id", "bookings", ["slot_id"], unique=False)
    op.create_index("ix_bookings_status", "bookings", ["status"], unique=False)
    op.create_index(
        "uq_bookings_live_slot_id",
        "bookings",
        ["slot_id"],
        unique=True,
        postgresql_where=sa.text("status IN ('confirmed', 'in_progress')"),
    )

    op.create_table(
        "booking_history",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("from_status", booking_status_enum, nullable=True),
        sa.Column("to_status", booking_status_enum, nullable=False),
        sa.Column("from_slot_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("to_slot_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("actor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("reason", sa.String(length=512), nullable=True),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["booking_id"],
            ["bookings.id"],
            name="fk_booking_history_booking_id_bookings",
            ondelete="RESTRICT",
        ),
    )
    op.create_index("ix_booking_history_booking_id", "booking_history", ["booking_id"], unique=False)

    op.create_table(
        "reschedule_requests",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("customer_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("original_slot_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("requested_slot_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("reason", sa.String(length=512), nullable=True),
        sa.Column("status", reschedule_status_enum, nullable=False),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("admin_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("original_slot_id <> requested_slot_id", name="ck_reschedule_requests_slots_differ"),
        sa.ForeignKeyConstraint(
            ["booking_id"],
            ["bookings.id"],
            name="fk_reschedule_requests_booking_id_bookings",
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["original_slot_id"],
            ["time_slots.id"],
            name="fk_reschedule_requests_original_slot_id_time_slots",
            ondelete="RESTRICT",
        ),
        sa.ForeignKeyConstraint(
            ["requested_slot_id"],
            ["time_slots.id"],
            name="fk_reschedule_requests_requested_slot_id_time_slots",
            ondelete="RESTRICT",
        ),
    )
    op.create_index("ix_reschedule_requests_booking_id", "reschedule_requests", ["booking_id"], unique=False)
    op.create_index("ix_reschedule_requests_customer_id", "reschedule_requests", ["customer_id"], unique=False)
    op.create_index("ix_reschedule_requests_status", "reschedule_requests", ["status"], unique=False)
    op.create_index(
        "uq_reschedule_requests_pending_booking_id",
        "reschedule_requests",
        ["booking_id"],
        unique=True,
        postgresql_where=sa.text("status = 'pending'"),
    )

    op.create_table(
        "audit_logs",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("actor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("action", sa.String(length=128), nullable=False),
        sa.Column("entity_type", sa.String(length=128), nullable=False),
        sa.Column("entity_id", sa.String(length=128), nullable=True),
        sa.Column("reason_code", sa.String(length=64), nullable=True),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    )
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"], unique=False)
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"], unique=False)

    op.create_table(
        "outbox_events",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("aggregate_type", sa.String(length=128), nullable=False),
        sa.Column("aggregate_id", sa.String(length=128), nullable=False),
        sa.Column("event_type", sa.String(length=128), nullable=False),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("status", outbox_status_enum, nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("retries", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
    )
    op.create_index("ix_outbox_events_aggregate_type", "outbox_events", ["aggregate_type"], unique=False)
    op.create_index("ix_outbox_events_aggregate_id", "outbox_events", ["aggregate_id"], unique=False)
    op.create_index("ix_outbox_events_event_type", "outbox_events", ["event_type"], unique=False)
    op.create_index("ix_outbox_events_status", "outbox_events", ["status"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_outbox_events_status", table_name="outbox_events")
    op.drop_index("ix_outbox_events_event_type", table_name="outbox_events")
    op.drop_index("ix_outbox_events_aggregate_id", table_name="outbox_events")
    op.drop_index("ix_outbox_events_aggregate_type", table_name="outbox_events")
    op.drop_table("outbox_events")

    op.drop_index("ix_audit_logs_action", table_name="audit_logs")
    op.drop_index("ix_audit_logs_actor_id", table_name="audit_logs")
    op.drop_table("audit_logs")

    op.drop_index("uq_reschedule_requests_pending_booking_id", table_name="reschedule_requests")
    op.drop_index("ix_reschedule_requests_status", table_name="reschedule_requests")
    op.drop_index("ix_reschedule_requests_customer_id", table_name="reschedule_requests")
    op.drop_index("ix_reschedule_requests_booking_id", table_name="reschedule_requests")
    op.drop_table("reschedule_requests")

    op.drop_index("ix_booking_history_booking_id", table_name="booking_history")
    op.drop_table("booking_history")

    op.drop_index("uq_bookings_live_slot_id", table_name="bookings")
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_slot_id", table_name="bookings")
    op.drop_index("ix_bookings_customer_id", table_name="bookings")
    op.drop_table("bookings")

    op.drop_index("ix_time_slots_status", table_name="time_slots")
    op.drop_index("ix_time_slots_slot_date", table_name="time_slots")
    op.drop_table("time_slots")
