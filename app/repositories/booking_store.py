"""Booking persistence behind a small capability interface.

The conflict engine only needs ``find_all`` to be correct; stores that can
answer hall/date-range queries natively override the range helpers.
"""

import itertools
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import and_, delete, func, or_, select, text
from sqlalchemy.orm import Session

from app.core.hall_locks import normalize_hall
from app.db.models import HallBooking


def _same_hall(booking: HallBooking, hall_name: str) -> bool:
    return normalize_hall(booking.hall_name) == normalize_hall(hall_name)


def _touches_range(booking: HallBooking, date_from: str, date_to: str) -> bool:
    if booking.date and date_from <= booking.date <= date_to:
        return True
    start = booking.start_date or booking.end_date
    end = booking.end_date or booking.start_date
    if start and end and start <= date_to and end >= date_from:
        return True
    return any(date_from <= key <= date_to for key in (booking.day_slots or {}))


class BookingStore(ABC):
    @abstractmethod
    def save(self, booking: HallBooking) -> HallBooking:
        raise NotImplementedError

    @abstractmethod
    def find_by_id(self, booking_id: int) -> HallBooking | None:
        raise NotImplementedError

    @abstractmethod
    def delete_by_id(self, booking_id: int) -> None:
        raise NotImplementedError

    @abstractmethod
    def find_all(self) -> list[HallBooking]:
        raise NotImplementedError

    def find_by_id_for_update(self, booking_id: int) -> HallBooking | None:
        """Current state of the booking, read while its hall is held."""
        return self.find_by_id(booking_id)

    def find_by_hall_and_date(self, hall_name: str, day: str) -> list[HallBooking]:
        return [b for b in self.find_all() if b.date == day and _same_hall(b, hall_name)]

    def find_by_date(self, day: str) -> list[HallBooking]:
        return [b for b in self.find_all() if b.date == day]

    def find_by_department_and_email(self, department: str, email: str) -> list[HallBooking]:
        return [b for b in self.find_all() if b.department == department and b.email == email]

    def find_by_status(self, status: str) -> list[HallBooking]:
        wanted = status.strip().upper()
        return [b for b in self.find_all() if (b.status or "").upper() == wanted]

    def find_by_hall_and_date_between(self, hall_name: str, date_from: str, date_to: str) -> list[HallBooking]:
        """Time-slot bookings of the hall dated within ``[date_from, date_to]``."""
        return [
            b
            for b in self.find_all()
            if b.date and date_from <= b.date <= date_to and _same_hall(b, hall_name)
        ]

    def find_by_hall_and_range_overlap(self, hall_name: str, date_from: str, date_to: str) -> list[HallBooking]:
        """Every booking of the hall whose dates touch ``[date_from, date_to]``."""
        return [
            b
            for b in self.find_all()
            if _same_hall(b, hall_name) and _touches_range(b, date_from, date_to)
        ]

    @contextmanager
    def hall_transaction(self, hall_name: str) -> Iterator[None]:
        yield


class InMemoryBookingStore(BookingStore):
    """Dict-backed store exposing only the mandatory operations."""

    def __init__(self) -> None:
        self._bookings: dict[int, HallBooking] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def save(self, booking: HallBooking) -> HallBooking:
        with self._lock:
            if booking.id is None:
                booking.id = next(self._ids)
            self._bookings[booking.id] = booking
        return booking

    def find_by_id(self, booking_id: int) -> HallBooking | None:
        return self._bookings.get(booking_id)

    def delete_by_id(self, booking_id: int) -> None:
        with self._lock:
            self._bookings.pop(booking_id, None)

    def find_all(self) -> list[HallBooking]:
        with self._lock:
            return sorted(self._bookings.values(), key=lambda b: b.id)


class SqlAlchemyBookingStore(BookingStore):
    def __init__(self, db: Session) -> None:
        self.db = db

    def _is_postgresql(self) -> bool:
        bind = self.db.get_bind()
        return bind is not None and bind.dialect.name == "postgresql"

    def save(self, booking: HallBooking) -> HallBooking:
        self.db.add(booking)
        self.db.commit()
        self.db.refresh(booking)
        return booking

    def find_by_id(self, booking_id: int) -> HallBooking | None:
        return self.db.get(HallBooking, booking_id)

    def find_by_id_for_update(self, booking_id: int) -> HallBooking | None:
        # bypass the identity map so a row changed by another session is re-read
        return self.db.get(HallBooking, booking_id, populate_existing=True, with_for_update=True)

    def delete_by_id(self, booking_id: int) -> None:
        self.db.execute(delete(HallBooking).where(HallBooking.id == booking_id))
        self.db.commit()

    def find_all(self) -> list[HallBooking]:
        return list(self.db.scalars(select(HallBooking).order_by(HallBooking.id)).all())

    def find_by_hall_and_date(self, hall_name: str, day: str) -> list[HallBooking]:
        return list(
            self.db.scalars(
                select(HallBooking)
                .where(
                    func.lower(HallBooking.hall_name) == normalize_hall(hall_name),
                    HallBooking.date == day,
                )
                .order_by(HallBooking.id)
            ).all()
        )

    def find_by_date(self, day: str) -> list[HallBooking]:
        return list(
            self.db.scalars(select(HallBooking).where(HallBooking.date == day).order_by(HallBooking.id)).all()
        )

    def find_by_department_and_email(self, department: str, email: str) -> list[HallBooking]:
        return list(
            self.db.scalars(
                select(HallBooking)
                .where(HallBooking.department == department, HallBooking.email == email)
                .order_by(HallBooking.id)
            ).all()
        )

    def find_by_status(self, status: str) -> list[HallBooking]:
        return list(
            self.db.scalars(
                select(HallBooking)
                .where(func.upper(HallBooking.status) == status.strip().upper())
                .order_by(HallBooking.id)
            ).all()
        )

    def find_by_hall_and_date_between(self, hall_name: str, date_from: str, date_to: str) -> list[HallBooking]:
        return list(
            self.db.scalars(
                select(HallBooking)
                .where(
                    func.lower(HallBooking.hall_name) == normalize_hall(hall_name),
                    HallBooking.date >= date_from,
                    HallBooking.date <= date_to,
                )
                .order_by(HallBooking.id)
            ).all()
        )

    def find_by_hall_and_range_overlap(self, hall_name: str, date_from: str, date_to: str) -> list[HallBooking]:
        range_start = func.coalesce(HallBooking.start_date, HallBooking.end_date)
        range_end = func.coalesce(HallBooking.end_date, HallBooking.start_date)
        candidates = self.db.scalars(
            select(HallBooking)
            .where(
                func.lower(HallBooking.hall_name) == normalize_hall(hall_name),
                or_(
                    and_(HallBooking.date >= date_from, HallBooking.date <= date_to),
                    and_(range_start <= date_to, range_end >= date_from),
                    HallBooking.day_slots.is_not(None),
                ),
            )
            .order_by(HallBooking.id)
        ).all()
        # daySlots keys are not indexable portably; finish the filter in memory.
        return [b for b in candidates if _touches_range(b, date_from, date_to)]

    @contextmanager
    def hall_transaction(self, hall_name: str) -> Iterator[None]:
        try:
            if self._is_postgresql():
                self.db.execute(
                    text("SELECT pg_advisory_xact_lock(hashtext(:hall))"),
                    {"hall": normalize_hall(hall_name)},
                )
            yield
        except Exception:
            self.db.rollback()
            raise
