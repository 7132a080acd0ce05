import pytest

from app.core.exceptions import BookingValidationError, ValidationKind
from app.db.models import BookingStatus, HallBooking
from app.services.booking_lifecycle import (
    apply_cancel_request,
    apply_creation_defaults,
    assert_status_transition,
    is_occupying,
)


def test_requester_booking_starts_pending_even_if_approved_requested():
    booking = HallBooking(hall_name="H1", status="APPROVED")

    apply_creation_defaults(booking, is_admin=False)

    assert booking.status == BookingStatus.PENDING.value
    assert booking.created_by is None
    assert booking.applied_at


def test_requester_cannot_claim_admin_creator():
    booking = HallBooking(hall_name="H1", created_by="ADMIN")

    with pytest.raises(BookingValidationError) as exc_info:
        apply_creation_defaults(booking, is_admin=False)

    assert exc_info.value.kind == ValidationKind.FORBIDDEN_FIELD


def test_admin_approved_booking_is_marked_admin_created():
    booking = HallBooking(hall_name="H1", status="approved")

    apply_creation_defaults(booking, is_admin=True)

    assert booking.status == BookingStatus.APPROVED.value
    assert booking.created_by == "ADMIN"


def test_admin_pending_booking_keeps_no_creator():
    booking = HallBooking(hall_name="H1")

    apply_creation_defaults(booking, is_admin=True)

    assert booking.status == BookingStatus.PENDING.value
    assert booking.created_by is None


def test_admin_cannot_create_terminal_booking():
    with pytest.raises(BookingValidationError) as exc_info:
        apply_creation_defaults(HallBooking(hall_name="H1", status="CANCELLED"), is_admin=True)

    assert exc_info.value.kind == ValidationKind.INVALID_STATUS_TRANSITION


def test_applied_at_is_kept_when_supplied():
    booking = HallBooking(hall_name="H1", applied_at="2025-01-01T08:00:00+00:00")

    apply_creation_defaults(booking, is_admin=False)

    assert booking.applied_at == "2025-01-01T08:00:00+00:00"


@pytest.mark.parametrize(
    ("current", "target"),
    [
        ("PENDING", "APPROVED"),
        ("PENDING", "REJECTED"),
        ("PENDING", "CANCELLED"),
        ("APPROVED", "CANCEL_REQUESTED"),
        ("CANCEL_REQUESTED", "CANCELLED"),
        ("CANCEL_REQUESTED", "APPROVED"),
        ("CANCEL_REQUESTED", "PENDING"),
        ("APPROVED", "APPROVED"),
        ("pending", "approved"),
        ("ON_HOLD", "APPROVED"),
    ],
)
def test_allowed_transitions(current, target):
    assert_status_transition(current, target)


@pytest.mark.parametrize(
    ("current", "target"),
    [
        ("CANCELLED", "APPROVED"),
        ("REJECTED", "PENDING"),
        ("APPROVED", "PENDING"),
        ("CANCELLED", "CANCEL_REQUESTED"),
    ],
)
def test_forbidden_transitions(current, target):
    with pytest.raises(BookingValidationError) as exc_info:
        assert_status_transition(current, target)

    assert exc_info.value.kind == ValidationKind.INVALID_STATUS_TRANSITION


def test_cancel_request_appends_remarks_and_sets_reason():
    booking = HallBooking(hall_name="H1", status="PENDING", remarks="Projector needed")

    apply_cancel_request(booking, reason="Event postponed", remarks="Please cancel")

    assert booking.status == BookingStatus.CANCEL_REQUESTED.value
    assert booking.cancellation_reason == "Event postponed"
    assert booking.remarks == "Projector needed | Please cancel"


def test_cancel_request_without_previous_remarks_has_no_separator():
    booking = HallBooking(hall_name="H1", status="APPROVED")

    apply_cancel_request(booking, reason=None, remarks="Please cancel")

    assert booking.remarks == "Please cancel"
    assert booking.cancellation_reason is None


def test_cancel_request_ignores_blank_inputs():
    booking = HallBooking(hall_name="H1", status="PENDING", remarks="keep", cancellation_reason="old")

    apply_cancel_request(booking, reason="  ", remarks="")

    assert booking.remarks == "keep"
    assert booking.cancellation_reason == "old"


def test_cancel_request_on_terminal_booking_is_rejected():
    with pytest.raises(BookingValidationError):
        apply_cancel_request(HallBooking(hall_name="H1", status="REJECTED"), reason=None, remarks=None)


def test_occupancy_by_status():
    assert is_occupying("PENDING")
    assert is_occupying("APPROVED")
    assert is_occupying("CANCEL_REQUESTED")
    assert is_occupying(None)
    assert is_occupying("ON_HOLD")
    assert not is_occupying("CANCELLED")
    assert not is_occupying("rejected")
