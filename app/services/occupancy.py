"""Temporal footprint of a booking as (date, interval-or-full-day) cells."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any

from app.db.models import HallBooking

logger = logging.getLogger("app.occupancy")

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"
FULL_DAY_LABEL = "full-day booking"


@dataclass(frozen=True)
class OccupancyCell:
    day: date
    start: time | None = None
    end: time | None = None

    @property
    def full_day(self) -> bool:
        return self.start is None or self.end is None

    def label(self) -> str:
        if self.full_day:
            return FULL_DAY_LABEL
        return f"{self.start.strftime(TIME_FORMAT)}-{self.end.strftime(TIME_FORMAT)}"


def parse_date(value: Any) -> date | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except ValueError:
        return None


def parse_time(value: Any) -> time | None:
    if not isinstance(value, str):
        return None
    try:
        return datetime.strptime(value.strip(), TIME_FORMAT).time()
    except ValueError:
        return None


def day_slot_bounds(value: Any) -> tuple[Any, Any]:
    """Return the raw (start, end) of a daySlots value, accepting short keys."""
    if not isinstance(value, dict):
        return None, None
    start = value.get("startTime", value.get("start"))
    end = value.get("endTime", value.get("end"))
    return start, end


def _interval_cell(day: date, raw_start: Any, raw_end: Any) -> OccupancyCell:
    start = parse_time(raw_start)
    end = parse_time(raw_end)
    if start is None or end is None or end <= start:
        return OccupancyCell(day)
    return OccupancyCell(day, start, end)


def iter_days(first: date, last: date):
    current = first
    while current <= last:
        yield current
        current += timedelta(days=1)


def _unreadable(booking: HallBooking, field: str, value: Any) -> None:
    logger.warning(
        "occupancy_unreadable_date booking_id=%s hall=%s field=%s value=%r",
        booking.id,
        booking.hall_name,
        field,
        value,
    )


def _time_slot_cells(booking: HallBooking) -> list[OccupancyCell]:
    if booking.date is None:
        return []
    day = parse_date(booking.date)
    if day is None:
        _unreadable(booking, "date", booking.date)
        return []
    return [_interval_cell(day, booking.start_time, booking.end_time)]


def _day_range_cells(booking: HallBooking) -> list[OccupancyCell]:
    if booking.start_date is None and booking.end_date is None:
        return []

    first = parse_date(booking.start_date or booking.end_date)
    last = parse_date(booking.end_date or booking.start_date)
    if first is None or last is None:
        _unreadable(booking, "startDate/endDate", (booking.start_date, booking.end_date))
        return []
    if last < first:
        first, last = last, first

    if not booking.day_slots:
        return [OccupancyCell(day) for day in iter_days(first, last)]

    cells = []
    for key in sorted(booking.day_slots):
        day = parse_date(key)
        if day is None:
            _unreadable(booking, "daySlots", key)
            continue
        value = booking.day_slots[key]
        if value is None:
            cells.append(OccupancyCell(day))
        else:
            cells.append(_interval_cell(day, *day_slot_bounds(value)))
    return cells


def booking_cells(booking: HallBooking) -> list[OccupancyCell]:
    """Occupancy cells sorted by day; tag-shape bookings have none.

    Stored records missing a time bound are read as full-day blocks.
    """
    cells = _time_slot_cells(booking) + _day_range_cells(booking)
    return sorted(cells, key=lambda cell: (cell.day, cell.start or time.min))


def cells_overlap(first: OccupancyCell, second: OccupancyCell) -> bool:
    if first.day != second.day:
        return False
    if first.full_day or second.full_day:
        return True
    return first.start < second.end and second.start < first.end


def footprint_window(cells: list[OccupancyCell]) -> tuple[date, date] | None:
    if not cells:
        return None
    days = [cell.day for cell in cells]
    return min(days), max(days)
