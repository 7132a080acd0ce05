"""Status rules for hall bookings.

Initial status is ``PENDING`` unless an admin creates the booking already
``APPROVED``. Admins move bookings through the generic update path::

    PENDING          -> APPROVED | REJECTED | CANCELLED | CANCEL_REQUESTED
    APPROVED         -> CANCEL_REQUESTED
    CANCEL_REQUESTED -> CANCELLED | PENDING | APPROVED
    CANCELLED, REJECTED are terminal

Statuses outside the five known values are tolerated and carry no rules.
"""

from datetime import UTC, datetime

from app.core.exceptions import BookingValidationError, ValidationKind
from app.db.models import BookingStatus, HallBooking

ADMIN_CREATOR = "ADMIN"
REMARKS_SEPARATOR = " | "

KNOWN_STATUSES = {status.value for status in BookingStatus}
TERMINAL_STATUSES = {BookingStatus.CANCELLED.value, BookingStatus.REJECTED.value}
INITIAL_STATUSES = {BookingStatus.PENDING.value, BookingStatus.APPROVED.value}

STATUS_TRANSITIONS: dict[str, set[str]] = {
    BookingStatus.PENDING.value: {
        BookingStatus.APPROVED.value,
        BookingStatus.REJECTED.value,
        BookingStatus.CANCELLED.value,
        BookingStatus.CANCEL_REQUESTED.value,
    },
    BookingStatus.APPROVED.value: {BookingStatus.CANCEL_REQUESTED.value},
    BookingStatus.CANCEL_REQUESTED.value: {
        BookingStatus.CANCELLED.value,
        BookingStatus.PENDING.value,
        BookingStatus.APPROVED.value,
    },
    BookingStatus.CANCELLED.value: set(),
    BookingStatus.REJECTED.value: set(),
}


def normalize_status(status: str | None) -> str | None:
    if status is None:
        return None
    return status.strip().upper()


def is_occupying(status: str | None) -> bool:
    return normalize_status(status) not in TERMINAL_STATUSES


def _invalid_transition(message: str) -> BookingValidationError:
    return BookingValidationError(ValidationKind.INVALID_STATUS_TRANSITION, "status", message)


def assert_status_transition(current: str | None, target: str | None) -> None:
    current = normalize_status(current)
    target = normalize_status(target)
    if target is None or current == target:
        return
    if current not in KNOWN_STATUSES or target not in KNOWN_STATUSES:
        return
    if target not in STATUS_TRANSITIONS[current]:
        raise _invalid_transition(f"Invalid booking transition: {current} -> {target}")


def apply_creation_defaults(booking: HallBooking, is_admin: bool) -> None:
    requested_status = normalize_status(booking.status) or BookingStatus.PENDING.value
    created_by = (booking.created_by or "").strip()

    if is_admin:
        if created_by and created_by.upper() != ADMIN_CREATOR:
            raise BookingValidationError(
                ValidationKind.FORBIDDEN_FIELD,
                "createdBy",
                "createdBy may only be set to 'ADMIN' by admin endpoints.",
            )
        if requested_status in KNOWN_STATUSES and requested_status not in INITIAL_STATUSES:
            raise _invalid_transition(f"A booking cannot be created as {requested_status}")
        booking.status = requested_status
        booking.created_by = ADMIN_CREATOR if created_by or requested_status == BookingStatus.APPROVED.value else None
    else:
        if created_by:
            raise BookingValidationError(
                ValidationKind.FORBIDDEN_FIELD,
                "createdBy",
                "createdBy may only be set to 'ADMIN' by admin endpoints.",
            )
        booking.status = BookingStatus.PENDING.value
        booking.created_by = None

    if not booking.applied_at:
        booking.applied_at = datetime.now(UTC).isoformat()


def apply_cancel_request(booking: HallBooking, reason: str | None, remarks: str | None) -> None:
    current = normalize_status(booking.status)
    if current in TERMINAL_STATUSES:
        raise _invalid_transition(f"Cannot request cancellation of a {current} booking")

    booking.status = BookingStatus.CANCEL_REQUESTED.value
    if reason is not None and reason.strip():
        booking.cancellation_reason = reason

    if remarks is not None and remarks.strip():
        previous = booking.remarks or ""
        booking.remarks = f"{previous}{REMARKS_SEPARATOR}{remarks}" if previous.strip() else remarks
