import re
from functools import lru_cache

from app.core.config import settings
from app.core.exceptions import BookingValidationError, ValidationKind
from app.db.models import HallBooking
from app.services.occupancy import day_slot_bounds, parse_date, parse_time

PHONE_PATTERN = re.compile(r"^[6-9][0-9]{9}$")
# exact zero-padded forms; the store range-compares these as text
DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
TIME_PATTERN = re.compile(r"[0-9]{2}:[0-9]{2}")


@lru_cache(maxsize=8)
def email_pattern(domain: str) -> re.Pattern[str]:
    return re.compile(rf"^[A-Za-z0-9._%+-]+@{re.escape(domain)}$")


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def has_time_slot_shape(booking: HallBooking) -> bool:
    return booking.date is not None and booking.start_time is not None and booking.end_time is not None


def has_day_range_shape(booking: HallBooking) -> bool:
    return booking.start_date is not None and booking.end_date is not None


def is_tag_only(booking: HallBooking) -> bool:
    return not has_time_slot_shape(booking) and not has_day_range_shape(booking)


def is_canonical_date(value: object) -> bool:
    return isinstance(value, str) and DATE_PATTERN.fullmatch(value) is not None and parse_date(value) is not None


def is_canonical_time(value: object) -> bool:
    return isinstance(value, str) and TIME_PATTERN.fullmatch(value) is not None and parse_time(value) is not None


def _time_order_valid(start: str | None, end: str | None) -> bool:
    if not is_canonical_time(start) or not is_canonical_time(end):
        return False
    parsed_start = parse_time(start)
    parsed_end = parse_time(end)
    return parsed_start is not None and parsed_end is not None and parsed_end > parsed_start


def validate_contact(booking: HallBooking) -> None:
    domain = settings.institution_email_domain
    if booking.email is None or not email_pattern(domain).match(booking.email):
        raise BookingValidationError(
            ValidationKind.INVALID_EMAIL,
            "email",
            f"Invalid email! Must end with @{domain}",
        )
    if booking.phone is None or not PHONE_PATTERN.match(booking.phone):
        raise BookingValidationError(
            ValidationKind.INVALID_PHONE,
            "phone",
            "Invalid phone number! Must be 10 digits starting with 6/7/8/9",
        )


def validate_shape(booking: HallBooking) -> None:
    time_shape = has_time_slot_shape(booking)
    day_shape = has_day_range_shape(booking)

    if _is_blank(booking.hall_name):
        raise BookingValidationError(ValidationKind.MALFORMED_PAYLOAD, "hallName", "hallName is required")
    if booking.day_slots is not None and not day_shape:
        raise BookingValidationError(
            ValidationKind.MALFORMED_PAYLOAD,
            "daySlots",
            "daySlots provided without startDate/endDate",
        )
    if time_shape and day_shape:
        raise BookingValidationError(
            ValidationKind.MALFORMED_PAYLOAD,
            "date",
            "Provide either date+startTime+endTime or startDate+endDate, not both",
        )
    if not time_shape and not day_shape and _is_blank(booking.slot):
        raise BookingValidationError(
            ValidationKind.MALFORMED_PAYLOAD,
            None,
            "Invalid booking payload. Provide either date+startTime+endTime (time booking) "
            "or startDate+endDate (day booking) or a valid slot value.",
        )

    for field, value in (("date", booking.date), ("startDate", booking.start_date), ("endDate", booking.end_date)):
        if value is not None and not is_canonical_date(value):
            raise BookingValidationError(
                ValidationKind.BAD_DATE_FORMAT,
                field,
                "Dates must be in YYYY-MM-DD format",
            )

    if time_shape and not _time_order_valid(booking.start_time, booking.end_time):
        raise BookingValidationError(
            ValidationKind.BAD_TIME_RANGE,
            "endTime",
            "Invalid time range: endTime must be after startTime",
        )

    if day_shape:
        _validate_day_range(booking)


def _validate_day_range(booking: HallBooking) -> None:
    first = parse_date(booking.start_date)
    last = parse_date(booking.end_date)
    if last < first:
        raise BookingValidationError(
            ValidationKind.BAD_TIME_RANGE,
            "endDate",
            "Invalid date range: endDate is before startDate",
        )

    if booking.day_slots is None:
        return
    if not isinstance(booking.day_slots, dict):
        raise BookingValidationError(
            ValidationKind.MALFORMED_PAYLOAD,
            "daySlots",
            "daySlots must map dates to a time range or null",
        )

    for key, value in booking.day_slots.items():
        day = parse_date(key) if is_canonical_date(key) else None
        if day is None:
            raise BookingValidationError(
                ValidationKind.BAD_DAYSLOT_DATE,
                "daySlots",
                f"daySlots key is not a valid date: {key}",
            )
        if day < first or day > last:
            raise BookingValidationError(
                ValidationKind.DAYSLOT_OUT_OF_RANGE,
                "daySlots",
                f"daySlots contains a date outside startDate..endDate: {key}",
            )
        if value is not None and not _time_order_valid(*day_slot_bounds(value)):
            raise BookingValidationError(
                ValidationKind.BAD_TIME_RANGE,
                "daySlots",
                f"Invalid time range in daySlots for {key}",
            )


def validate_booking(booking: HallBooking) -> None:
    """Reject a malformed candidate before any conflict check; never touches the store."""
    validate_contact(booking)
    validate_shape(booking)
