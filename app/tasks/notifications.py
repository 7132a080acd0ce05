import logging
from typing import Any

from app.tasks.celery_app import celery_app

logger = logging.getLogger("app.notifications")

BOOKING_CREATED = "booking_created"
STATUS_CHANGED = "status_changed"
CANCEL_REQUESTED = "cancel_requested"
BOOKING_REMOVED = "booking_removed"
HALL_OPERATOR_NOTIFIED = "hall_operator_notified"


def describe_booking(booking: dict[str, Any]) -> str:
    if booking.get("date"):
        return f"{booking['date']} {booking.get('startTime')}-{booking.get('endTime')}"
    if booking.get("startDate"):
        return f"{booking['startDate']}..{booking.get('endDate')}"
    return booking.get("slot") or "unscheduled"


def record_dispatch(event: str, booking: dict[str, Any], recipients: list[str], reason: str | None = None) -> int:
    for recipient in recipients:
        logger.info(
            "notification_dispatched event=%s booking_id=%s hall=%s when=%s status=%s recipient=%s reason=%s",
            event,
            booking.get("id"),
            booking.get("hallName"),
            describe_booking(booking),
            booking.get("status"),
            recipient,
            reason or "-",
        )
    return len(recipients)


@celery_app.task(name="notifications.booking_event")
def booking_event_task(
    event: str,
    booking: dict[str, Any],
    recipients: list[str],
    reason: str | None = None,
) -> dict[str, int]:
    return {"dispatched": record_dispatch(event, booking, recipients, reason)}
