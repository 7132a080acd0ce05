"""Fire-and-forget booking notifications.

Dispatch failures are logged and never reach the caller; the booking write
that triggered them has already been committed.
"""

import logging
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.models import BookingStatus, HallBooking, HallOperator
from app.schemas.booking import BookingResponse
from app.services.hall_operator_service import operators_for_hall
from app.tasks import notifications
from app.tasks.notifications import booking_event_task

logger = logging.getLogger("app.notifier")

NOTIFIED_STATUSES = {
    BookingStatus.APPROVED.value,
    BookingStatus.REJECTED.value,
    BookingStatus.CANCELLED.value,
    BookingStatus.CANCEL_REQUESTED.value,
}
ADMIN_APPROVAL_REASON = "Approved & applied by admin"
REMOVAL_REASON = "Booking removed from portal"


def resolve_operators(db: Session, hall_name: str | None) -> list[HallOperator]:
    try:
        return operators_for_hall(db, hall_name)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("notification_operator_lookup_failed hall=%s", hall_name)
        return []


def _snapshot(booking: HallBooking) -> dict[str, Any]:
    return BookingResponse.model_validate(booking).model_dump(by_alias=True, mode="json")


def _dispatch(event: str, snapshot: dict[str, Any], recipients: list[str], reason: str | None) -> None:
    recipients = [recipient for recipient in recipients if recipient]
    if not settings.notifications_enabled or not recipients:
        return
    try:
        booking_event_task.delay(event, snapshot, recipients, reason)
    except Exception:
        logger.exception(
            "notification_enqueue_failed event=%s booking_id=%s recipients=%s",
            event,
            snapshot.get("id"),
            len(recipients),
        )


def _notify(
    event: str,
    booking: HallBooking,
    operators: list[HallOperator],
    reason: str | None = None,
) -> None:
    try:
        snapshot = _snapshot(booking)
    except Exception:
        logger.exception("notification_snapshot_failed event=%s booking_id=%s", event, booking.id)
        return
    _dispatch(event, snapshot, [booking.email], reason)
    _dispatch(
        notifications.HALL_OPERATOR_NOTIFIED,
        {**snapshot, "event": event},
        [operator.head_email for operator in operators],
        reason,
    )


def notify_booking_created(booking: HallBooking, operators: list[HallOperator]) -> None:
    _notify(notifications.BOOKING_CREATED, booking, operators)
    if (booking.status or "").upper() == BookingStatus.APPROVED.value:
        _notify(notifications.STATUS_CHANGED, booking, operators, ADMIN_APPROVAL_REASON)


def notify_status_changed(
    booking: HallBooking,
    previous_status: str | None,
    operators: list[HallOperator],
    reason: str | None = None,
) -> None:
    current = (booking.status or "").upper()
    if current == (previous_status or "").upper() or current not in NOTIFIED_STATUSES:
        return
    _notify(notifications.STATUS_CHANGED, booking, operators, reason)


def notify_cancel_requested(booking: HallBooking, operators: list[HallOperator], reason: str | None = None) -> None:
    _notify(notifications.CANCEL_REQUESTED, booking, operators, reason)


def notify_booking_removed(booking: HallBooking, operators: list[HallOperator]) -> None:
    _notify(notifications.BOOKING_REMOVED, booking, operators, REMOVAL_REASON)
