import logging
from collections.abc import Iterator
from contextlib import ExitStack, contextmanager
from typing import Any

from sqlalchemy import inspect

from app.core.exceptions import BookingNotFoundError, BookingValidationError, HallBusyError, ValidationKind
from app.core.hall_locks import HallLocks, hall_locks as default_hall_locks, normalize_hall
from app.core.metrics import BOOKING_DECISIONS
from app.db.models import HallBooking
from app.repositories.booking_store import BookingStore
from app.services.booking_lifecycle import (
    ADMIN_CREATOR,
    apply_cancel_request,
    apply_creation_defaults,
    assert_status_transition,
    normalize_status,
)
from app.services.booking_validator import validate_booking
from app.services.conflict_engine import ensure_no_conflict

logger = logging.getLogger("app.bookings")

HALL_LOCK_ATTEMPTS = 3

TIME_SLOT_FIELDS = ("date", "start_time", "end_time")
DAY_RANGE_FIELDS = ("start_date", "end_date", "day_slots")
TAG_FIELDS = ("slot",)
BOOKING_FIELDS = (
    "hall_name",
    *TIME_SLOT_FIELDS,
    *DAY_RANGE_FIELDS,
    *TAG_FIELDS,
    "slot_title",
    "booking_name",
    "email",
    "department",
    "phone",
    "status",
    "created_by",
    "remarks",
    "cancellation_reason",
    "applied_at",
)


def _copy_booking(booking: HallBooking) -> HallBooking:
    copy = HallBooking(**{name: getattr(booking, name) for name in BOOKING_FIELDS})
    copy.id = booking.id
    return copy


def _apply_fields(target: HallBooking, source: HallBooking) -> None:
    for name in BOOKING_FIELDS:
        setattr(target, name, getattr(source, name))


def _clear_other_shapes(booking: HallBooking, patch: dict[str, Any]) -> None:
    supplied = set(patch)
    if supplied & set(TIME_SLOT_FIELDS):
        for name in DAY_RANGE_FIELDS:
            if name not in supplied:
                setattr(booking, name, None)
    if supplied & set(DAY_RANGE_FIELDS):
        for name in TIME_SLOT_FIELDS:
            if name not in supplied:
                setattr(booking, name, None)


def _record_rejection(operation: str, exc: BookingValidationError) -> None:
    BOOKING_DECISIONS.labels(operation=operation, outcome="invalid").inc()
    logger.info("booking_rejected operation=%s kind=%s field=%s", operation, exc.kind, exc.field)


def _is_persistent(booking: HallBooking) -> bool:
    state = inspect(booking, raiseerr=False)
    return state is not None and state.persistent


def create_booking(
    store: BookingStore,
    payload: dict[str, Any],
    is_admin: bool = False,
    locks: HallLocks | None = None,
) -> HallBooking:
    booking = HallBooking(**{name: value for name, value in payload.items() if name in BOOKING_FIELDS})
    if not booking.day_slots:
        booking.day_slots = None

    try:
        apply_creation_defaults(booking, is_admin=is_admin)
        validate_booking(booking)
    except BookingValidationError as exc:
        _record_rejection("create", exc)
        raise

    with (locks or default_hall_locks).hold(booking.hall_name), store.hall_transaction(booking.hall_name):
        ensure_no_conflict(store, booking, operation="create")
        saved = store.save(booking)

    BOOKING_DECISIONS.labels(operation="create", outcome="accepted").inc()
    logger.info(
        "booking_created id=%s hall=%s status=%s created_by=%s",
        saved.id,
        saved.hall_name,
        saved.status,
        saved.created_by,
    )
    return saved


@contextmanager
def _hold_booking(
    store: BookingStore,
    locks: HallLocks,
    booking_id: int,
    target_hall: str | None = None,
) -> Iterator[HallBooking]:
    """Yield the booking re-read while every hall it touches is held.

    Halls are taken in sorted order. If the booking moved to another hall
    before the locks were held, they are released and taken again.
    """
    for _ in range(HALL_LOCK_ATTEMPTS):
        current = store.find_by_id(booking_id)
        if current is None:
            raise BookingNotFoundError()
        halls = {normalize_hall(current.hall_name)}
        if target_hall is not None:
            halls.add(normalize_hall(target_hall))

        with ExitStack() as stack:
            for hall in sorted(halls):
                stack.enter_context(locks.hold(hall))
            for hall in sorted(halls):
                stack.enter_context(store.hall_transaction(hall))

            fresh = store.find_by_id_for_update(booking_id)
            if fresh is None:
                raise BookingNotFoundError()
            if normalize_hall(fresh.hall_name) in halls:
                yield fresh
                return
        logger.info("booking_moved_while_locking id=%s", booking_id)
    raise HallBusyError()


def _persist(store: BookingStore, existing: HallBooking, updated: HallBooking) -> HallBooking:
    if _is_persistent(existing):
        _apply_fields(existing, updated)
        return store.save(existing)
    return store.save(updated)


def _merge_patch(existing: HallBooking, patch: dict[str, Any], is_admin: bool) -> HallBooking:
    merged = _copy_booking(existing)
    patch = dict(patch)
    created_by = (patch.pop("created_by", None) or "").strip()
    if created_by:
        if not is_admin or created_by.upper() != ADMIN_CREATOR:
            raise BookingValidationError(
                ValidationKind.FORBIDDEN_FIELD,
                "createdBy",
                "createdBy may only be set to 'ADMIN' by admin endpoints.",
            )
        merged.created_by = ADMIN_CREATOR

    if "status" in patch:
        patch["status"] = normalize_status(patch["status"])
        assert_status_transition(existing.status, patch["status"])

    _clear_other_shapes(merged, patch)
    for name, value in patch.items():
        setattr(merged, name, value)
    if not merged.day_slots:
        merged.day_slots = None

    validate_booking(merged)
    return merged


def update_booking(
    store: BookingStore,
    booking_id: int,
    patch: dict[str, Any],
    is_admin: bool = False,
    locks: HallLocks | None = None,
) -> HallBooking:
    """Overwrite the supplied non-null fields and re-check the merged booking.

    The booking being updated never conflicts with itself.
    """
    patch = {name: value for name, value in patch.items() if name in BOOKING_FIELDS and value is not None}

    with _hold_booking(store, locks or default_hall_locks, booking_id, patch.get("hall_name")) as existing:
        try:
            merged = _merge_patch(existing, patch, is_admin)
        except BookingValidationError as exc:
            _record_rejection("update", exc)
            raise
        ensure_no_conflict(store, merged, operation="update", exclude_id=booking_id)
        saved = _persist(store, existing, merged)

    BOOKING_DECISIONS.labels(operation="update", outcome="accepted").inc()
    logger.info(
        "booking_updated id=%s hall=%s status=%s fields=%s",
        saved.id,
        saved.hall_name,
        saved.status,
        ",".join(sorted(patch)),
    )
    return saved


def request_cancel(
    store: BookingStore,
    booking_id: int,
    reason: str | None,
    remarks: str | None,
    locks: HallLocks | None = None,
) -> HallBooking:
    with _hold_booking(store, locks or default_hall_locks, booking_id) as existing:
        updated = _copy_booking(existing)
        try:
            apply_cancel_request(updated, reason=reason, remarks=remarks)
        except BookingValidationError as exc:
            _record_rejection("cancel_request", exc)
            raise
        saved = _persist(store, existing, updated)

    BOOKING_DECISIONS.labels(operation="cancel_request", outcome="accepted").inc()
    logger.info("booking_cancel_requested id=%s hall=%s", saved.id, saved.hall_name)
    return saved


def delete_booking(store: BookingStore, booking_id: int) -> HallBooking:
    existing = store.find_by_id(booking_id)
    if existing is None:
        raise BookingNotFoundError()

    snapshot = _copy_booking(existing)
    store.delete_by_id(booking_id)
    logger.info("booking_deleted id=%s hall=%s", booking_id, snapshot.hall_name)
    return snapshot


def get_booking(store: BookingStore, booking_id: int) -> HallBooking:
    booking = store.find_by_id(booking_id)
    if booking is None:
        raise BookingNotFoundError()
    return booking


def search_bookings(
    store: BookingStore,
    department: str | None = None,
    hall: str | None = None,
    day: str | None = None,
    slot: str | None = None,
) -> list[HallBooking]:
    def matches(booking: HallBooking) -> bool:
        if department and (booking.department or "").lower() != department.strip().lower():
            return False
        if hall and (booking.hall_name or "").lower() != hall.strip().lower():
            return False
        if day and booking.date != day.strip():
            return False
        if slot and slot.strip().lower() not in (booking.slot or "").lower():
            return False
        return True

    return [booking for booking in store.find_all() if matches(booking)]


def list_bookings(store: BookingStore, limit: int = 100, offset: int = 0) -> list[HallBooking]:
    return store.find_all()[offset : offset + limit]


def list_by_date(store: BookingStore, day: str) -> list[HallBooking]:
    return store.find_by_date(day)


def list_by_hall_and_date(store: BookingStore, hall_name: str, day: str) -> list[HallBooking]:
    return store.find_by_hall_and_date(hall_name, day)


def list_by_department_and_email(store: BookingStore, department: str, email: str) -> list[HallBooking]:
    return store.find_by_department_and_email(department, email)


def list_by_status(store: BookingStore, status: str) -> list[HallBooking]:
    return store.find_by_status(status)
