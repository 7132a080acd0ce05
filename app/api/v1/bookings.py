from datetime import date

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.api.deps import get_booking_store, is_admin_request, require_admin
from app.api.pagination import LimitParam, OffsetParam
from app.db.session import get_db
from app.repositories.booking_store import BookingStore
from app.schemas.booking import (
    BookingCreateRequest,
    BookingResponse,
    BookingUpdateRequest,
    CalendarDaySummaryResponse,
    CancelRequest,
)
from app.services import notifier
from app.services.booking_service import (
    create_booking,
    delete_booking,
    get_booking,
    list_bookings,
    list_by_date,
    list_by_department_and_email,
    list_by_hall_and_date,
    list_by_status,
    request_cancel,
    search_bookings,
    update_booking,
)
from app.services.calendar_service import bookings_for_day, month_summary

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _to_response(bookings) -> list[BookingResponse]:
    return [BookingResponse.model_validate(booking) for booking in bookings]


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_hall_booking(
    payload: BookingCreateRequest,
    is_admin: bool = Depends(is_admin_request),
    store: BookingStore = Depends(get_booking_store),
    db: Session = Depends(get_db),
) -> BookingResponse:
    booking = create_booking(store=store, payload=payload.to_fields(), is_admin=is_admin)
    response = BookingResponse.model_validate(booking)
    notifier.notify_booking_created(booking, notifier.resolve_operators(db, booking.hall_name))
    return response


@router.get("", response_model=list[BookingResponse], status_code=status.HTTP_200_OK)
def list_hall_bookings(
    limit: LimitParam = 100,
    offset: OffsetParam = 0,
    store: BookingStore = Depends(get_booking_store),
) -> list[BookingResponse]:
    return _to_response(list_bookings(store, limit=limit, offset=offset))


@router.get("/date/{day}", response_model=list[BookingResponse], status_code=status.HTTP_200_OK)
def list_bookings_by_date(day: str, store: BookingStore = Depends(get_booking_store)) -> list[BookingResponse]:
    return _to_response(list_by_date(store, day))


@router.get("/hall/{hall_name}/date/{day}", response_model=list[BookingResponse], status_code=status.HTTP_200_OK)
def list_bookings_by_hall_and_date(
    hall_name: str,
    day: str,
    store: BookingStore = Depends(get_booking_store),
) -> list[BookingResponse]:
    return _to_response(list_by_hall_and_date(store, hall_name, day))


@router.get("/day/{day}", response_model=list[BookingResponse], status_code=status.HTTP_200_OK)
def list_bookings_for_day(
    day: date,
    hall: str | None = Query(default=None),
    store: BookingStore = Depends(get_booking_store),
) -> list[BookingResponse]:
    return _to_response(bookings_for_day(store, day, hall=hall))


@router.get("/calendar", response_model=list[CalendarDaySummaryResponse], status_code=status.HTTP_200_OK)
def get_month_calendar(
    year: int = Query(ge=1970, le=9999),
    month: int = Query(ge=1, le=12),
    hall: str | None = Query(default=None),
    store: BookingStore = Depends(get_booking_store),
) -> list[CalendarDaySummaryResponse]:
    return [
        CalendarDaySummaryResponse.model_validate(summary)
        for summary in month_summary(store, year, month, hall=hall)
    ]


@router.get("/history", response_model=list[BookingResponse], status_code=status.HTTP_200_OK)
def list_department_history(
    department: str,
    email: str,
    store: BookingStore = Depends(get_booking_store),
) -> list[BookingResponse]:
    return _to_response(list_by_department_and_email(store, department, email))


@router.get("/status/{status_value}", response_model=list[BookingResponse], status_code=status.HTTP_200_OK)
def list_bookings_by_status(
    status_value: str,
    store: BookingStore = Depends(get_booking_store),
) -> list[BookingResponse]:
    return _to_response(list_by_status(store, status_value))


@router.get("/search", response_model=list[BookingResponse], status_code=status.HTTP_200_OK)
def search(
    department: str | None = Query(default=None),
    hall: str | None = Query(default=None),
    day: str | None = Query(default=None, alias="date"),
    slot: str | None = Query(default=None),
    store: BookingStore = Depends(get_booking_store),
) -> list[BookingResponse]:
    return _to_response(search_bookings(store, department=department, hall=hall, day=day, slot=slot))


@router.get("/{booking_id}", response_model=BookingResponse, status_code=status.HTTP_200_OK)
def get_booking_by_id(booking_id: int, store: BookingStore = Depends(get_booking_store)) -> BookingResponse:
    return BookingResponse.model_validate(get_booking(store, booking_id))


@router.put("/{booking_id}", response_model=BookingResponse, status_code=status.HTTP_200_OK)
def update_hall_booking(
    booking_id: int,
    payload: BookingUpdateRequest,
    _: dict = Depends(require_admin),
    store: BookingStore = Depends(get_booking_store),
    db: Session = Depends(get_db),
) -> BookingResponse:
    previous_status = get_booking(store, booking_id).status
    booking = update_booking(store=store, booking_id=booking_id, patch=payload.to_fields(), is_admin=True)
    response = BookingResponse.model_validate(booking)
    notifier.notify_status_changed(
        booking,
        previous_status,
        notifier.resolve_operators(db, booking.hall_name),
        reason=payload.remarks or payload.cancellation_reason,
    )
    return response


@router.put("/{booking_id}/cancel-request", response_model=BookingResponse, status_code=status.HTTP_200_OK)
def request_booking_cancellation(
    booking_id: int,
    payload: CancelRequest,
    store: BookingStore = Depends(get_booking_store),
    db: Session = Depends(get_db),
) -> BookingResponse:
    booking = request_cancel(
        store=store,
        booking_id=booking_id,
        reason=payload.cancellation_reason,
        remarks=payload.remarks,
    )
    response = BookingResponse.model_validate(booking)
    notifier.notify_cancel_requested(
        booking,
        notifier.resolve_operators(db, booking.hall_name),
        payload.cancellation_reason,
    )
    return response


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_hall_booking(
    booking_id: int,
    _: dict = Depends(require_admin),
    store: BookingStore = Depends(get_booking_store),
    db: Session = Depends(get_db),
) -> Response:
    removed = delete_booking(store, booking_id)
    notifier.notify_booking_removed(removed, notifier.resolve_operators(db, removed.hall_name))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
