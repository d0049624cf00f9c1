"""Reschedule request ORM models."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, Enum as SAEnum, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin, enum_values
from app.core.enums import RescheduleStatusEnum
from app.shared.utils import utc_now


class RescheduleRequest(BaseModelMixin, Base):
    """Customer request to move a confirmed booking to another slot."""

    __tablename__ = "reschedule_requests"
    __table_args__ = (
        CheckConstraint("original_slot_id <> requested_slot_id", name="slots_differ"),
        Index(
            "uq_reschedule_requests_pending_booking_id",
            "booking_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
        ),
    )

    booking_id: Mapped[UUID] = mapped_column(
        ForeignKey("bookings.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    customer_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    original_slot_id: Mapped[UUID] = mapped_column(
        ForeignKey("time_slots.id", ondelete="RESTRICT"),
        nullable=False,
    )
    requested_slot_id: Mapped[UUID] = mapped_column(
        ForeignKey("time_slots.id", ondelete="RESTRICT"),
        nullable=False,
    )
    reason: Mapped[str | None] = mapped_column(String(512), nullable=True)
    status: Mapped[RescheduleStatusEnum] = mapped_column(
        SAEnum(RescheduleStatusEnum, name="reschedule_status_enum", native_enum=False, values_callable=enum_values),
        default=RescheduleStatusEnum.PENDING,
        nullable=False,
        index=True,
    )
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    admin_id: Mapped[UUID | None] = mapped_column(nullable=True)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
