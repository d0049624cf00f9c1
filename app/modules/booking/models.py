"""Booking ORM models."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, Enum as SAEnum, ForeignKey, Index, Integer, String, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin, enum_values
from app.core.enums import BookingStatusEnum
from app.shared.utils import utc_now


class Booking(BaseModelMixin, Base):
    """Customer booking bound to exactly one current slot."""

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("price_pence >= 0", name="price_not_negative"),
        CheckConstraint("reschedule_count >= 0", name="reschedule_count_not_negative"),
        Index(
            "uq_bookings_live_slot_id",
            "slot_id",
            unique=True,
            postgresql_where=text("status IN ('confirmed', 'in_progress')"),
        ),
    )

    booking_reference: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    customer_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    slot_id: Mapped[UUID] = mapped_column(
        ForeignKey("time_slots.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    original_slot_id: Mapped[UUID] = mapped_column(
        ForeignKey("time_slots.id", ondelete="RESTRICT"),
        nullable=False,
    )
    status: Mapped[BookingStatusEnum] = mapped_column(
        SAEnum(BookingStatusEnum, name="booking_status_enum", native_enum=False, values_callable=enum_values),
        default=BookingStatusEnum.CONFIRMED,
        nullable=False,
        index=True,
    )
    price_pence: Mapped[int] = mapped_column(Integer, nullable=False)
    reschedule_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_status_change: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
    status_change_reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    details: Mapped[dict] = mapped_column(JSONB, default=dict, nullable=False)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_by_id: Mapped[UUID | None] = mapped_column(nullable=True)


class BookingHistoryEntry(BaseModelMixin, Base):
    """Append-only record of one booking status or slot change."""

    __tablename__ = "booking_history"

    booking_id: Mapped[UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    from_status: Mapped[BookingStatusEnum | None] = mapped_column(
        SAEnum(BookingStatusEnum, name="booking_status_enum", native_enum=False, values_callable=enum_values),
        nullable=True,
    )
    to_status: Mapped[BookingStatusEnum] = mapped_column(
        SAEnum(BookingStatusEnum, name="booking_status_enum", native_enum=False, values_callable=enum_values),
        nullable=False,
    )
    from_slot_id: Mapped[UUID | None] = mapped_column(nullable=True)
    to_slot_id: Mapped[UUID] = mapped_column(nullable=False)
    actor_id: Mapped[UUID | None] = mapped_column(nullable=True)
    reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    changed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
