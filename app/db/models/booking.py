from datetime import datetime
from enum import Enum
from typing import Any

from sqlalchemy import JSON, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class BookingStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCEL_REQUESTED = "CANCEL_REQUESTED"
    CANCELLED = "CANCELLED"


class HallBooking(Base):
    __tablename__ = "hall_bookings"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    hall_name: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)

    date: Mapped[str | None] = mapped_column(String(10), nullable=True, index=True)
    start_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    end_time: Mapped[str | None] = mapped_column(String(5), nullable=True)

    start_date: Mapped[str | None] = mapped_column(String(10), nullable=True, index=True)
    end_date: Mapped[str | None] = mapped_column(String(10), nullable=True, index=True)
    day_slots: Mapped[dict[str, Any] | None] = mapped_column(JSON(none_as_null=True), nullable=True)

    slot: Mapped[str | None] = mapped_column(String(60), nullable=True)
    slot_title: Mapped[str | None] = mapped_column(String(200), nullable=True)
    booking_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    department: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)

    status: Mapped[str] = mapped_column(String(30), nullable=False, default=BookingStatus.PENDING.value)
    created_by: Mapped[str | None] = mapped_column(String(20), nullable=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    applied_at: Mapped[str | None] = mapped_column(String(40), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"HallBooking(id={self.id!r}, hall_name={self.hall_name!r}, status={self.status!r})"
