"""Scheduling ORM models."""

from __future__ import annotations

from datetime import date, time

from sqlalchemy import CheckConstraint, Date, Time, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin, enum_values
from app.core.enums import SlotStatusEnum


class TimeSlot(BaseModelMixin, Base):
    """Bookable time window on the shared calendar."""

    __tablename__ = "time_slots"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="end_after_start"),
        UniqueConstraint("slot_date", "start_time", name="uq_time_slots_slot_date_start_time"),
    )

    slot_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    status: Mapped[SlotStatusEnum] = mapped_column(
        SAEnum(SlotStatusEnum, name="slot_status_enum", native_enum=False, values_callable=enum_values),
        default=SlotStatusEnum.AVAILABLE,
        nullable=False,
        index=True,
    )
