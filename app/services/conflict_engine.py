import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from app.core.exceptions import BookingConflictError
from app.core.hall_locks import normalize_hall
from app.core.metrics import BOOKING_DECISIONS
from app.db.models import HallBooking
from app.repositories.booking_store import BookingStore
from app.services.booking_lifecycle import is_occupying
from app.services.occupancy import DATE_FORMAT, OccupancyCell, booking_cells, cells_overlap, footprint_window

logger = logging.getLogger("app.conflicts")


@dataclass(frozen=True)
class BookingConflict:
    hall: str
    cell: OccupancyCell
    existing: HallBooking

    def to_error(self) -> BookingConflictError:
        return BookingConflictError(
            hall=self.hall,
            date=self.cell.day.strftime(DATE_FORMAT),
            conflicting_interval=self.cell.label(),
            conflicting_booking_id=self.existing.id,
        )


def find_conflict(
    candidate: HallBooking,
    existing: Iterable[HallBooking],
    exclude_id: int | None = None,
) -> BookingConflict | None:
    """Return the first clash between the candidate and an occupying booking of its hall."""
    candidate_cells = booking_cells(candidate)
    if not candidate_cells or not is_occupying(candidate.status):
        return None

    hall = normalize_hall(candidate.hall_name)
    skip_id = exclude_id if exclude_id is not None else candidate.id
    by_day: dict[date, list[OccupancyCell]] = {}
    for cell in candidate_cells:
        by_day.setdefault(cell.day, []).append(cell)

    for other in sorted(existing, key=lambda b: (b.id is None, b.id or 0)):
        if other is candidate or (skip_id is not None and other.id == skip_id):
            continue
        if normalize_hall(other.hall_name) != hall or not is_occupying(other.status):
            continue
        for other_cell in booking_cells(other):
            for own_cell in by_day.get(other_cell.day, ()):
                if cells_overlap(own_cell, other_cell):
                    return BookingConflict(hall=other.hall_name or candidate.hall_name, cell=other_cell, existing=other)
    return None


def ensure_no_conflict(
    store: BookingStore,
    candidate: HallBooking,
    operation: str,
    exclude_id: int | None = None,
) -> None:
    cells = booking_cells(candidate)
    window = footprint_window(cells)
    if window is None or not is_occupying(candidate.status):
        return

    date_from, date_to = (day.strftime(DATE_FORMAT) for day in window)
    existing = store.find_by_hall_and_range_overlap(candidate.hall_name, date_from, date_to)
    conflict = find_conflict(candidate, existing, exclude_id=exclude_id)
    if conflict is None:
        return

    error = conflict.to_error()
    BOOKING_DECISIONS.labels(operation=operation, outcome="conflict").inc()
    logger.info(
        "booking_conflict operation=%s hall=%s date=%s interval=%s conflicting_booking_id=%s",
        operation,
        error.hall,
        error.date,
        error.conflicting_interval,
        error.conflicting_booking_id,
    )
    raise error
