import calendar
from dataclasses import dataclass
from datetime import date

from app.core.hall_locks import normalize_hall
from app.db.models import HallBooking
from app.repositories.booking_store import BookingStore
from app.services.occupancy import DATE_FORMAT, iter_days, parse_date


@dataclass(frozen=True)
class CalendarDaySummary:
    date: str
    free: bool
    count: int


def _touched_days(booking: HallBooking, first: date, last: date) -> set[date]:
    """Days within ``[first, last]`` the booking's record mentions."""
    days: set[date] = set()

    day = parse_date(booking.date)
    if day is not None and first <= day <= last:
        days.add(day)

    range_start = parse_date(booking.start_date)
    range_end = parse_date(booking.end_date)
    if range_start is not None and range_end is not None:
        days.update(iter_days(max(range_start, first), min(range_end, last)))

    for key in booking.day_slots or {}:
        slot_day = parse_date(key)
        if slot_day is not None and first <= slot_day <= last:
            days.add(slot_day)
    return days


def _hall_bookings(store: BookingStore, hall: str | None, first: date, last: date) -> list[HallBooking]:
    if hall is None or not hall.strip():
        return store.find_all()
    return store.find_by_hall_and_range_overlap(hall, first.strftime(DATE_FORMAT), last.strftime(DATE_FORMAT))


def bookings_for_day(store: BookingStore, day: date, hall: str | None = None) -> list[HallBooking]:
    matched: dict[int, HallBooking] = {}
    for booking in _hall_bookings(store, hall, day, day):
        if hall and normalize_hall(booking.hall_name) != normalize_hall(hall):
            continue
        if _touched_days(booking, day, day):
            matched[booking.id] = booking
    return [matched[booking_id] for booking_id in sorted(matched)]


def month_summary(store: BookingStore, year: int, month: int, hall: str | None = None) -> list[CalendarDaySummary]:
    first = date(year, month, 1)
    last = date(year, month, calendar.monthrange(year, month)[1])

    counts: dict[date, int] = {}
    for booking in _hall_bookings(store, hall, first, last):
        if hall and normalize_hall(booking.hall_name) != normalize_hall(hall):
            continue
        for day in _touched_days(booking, first, last):
            counts[day] = counts.get(day, 0) + 1

    return [
        CalendarDaySummary(date=day.strftime(DATE_FORMAT), free=counts.get(day, 0) == 0, count=counts.get(day, 0))
        for day in iter_days(first, last)
    ]
