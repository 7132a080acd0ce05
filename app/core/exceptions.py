from typing import Any

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.core.request_context import request_id_ctx_var

BOOKING_NOT_FOUND_DETAIL = "Booking not found"
HALL_BUSY_DETAIL = "Hall booking is in progress. Retry the request."


class ValidationKind:
    INVALID_EMAIL = "INVALID_EMAIL"
    INVALID_PHONE = "INVALID_PHONE"
    MALFORMED_PAYLOAD = "MALFORMED_PAYLOAD"
    BAD_DATE_FORMAT = "BAD_DATE_FORMAT"
    BAD_TIME_RANGE = "BAD_TIME_RANGE"
    BAD_DAYSLOT_DATE = "BAD_DAYSLOT_DATE"
    DAYSLOT_OUT_OF_RANGE = "DAYSLOT_OUT_OF_RANGE"
    INVALID_STATUS_TRANSITION = "INVALID_STATUS_TRANSITION"
    FORBIDDEN_FIELD = "FORBIDDEN_FIELD"


class BookingValidationError(HTTPException):
    """Payload shape or format problem the caller can fix and resubmit."""

    code = "validation_error"

    def __init__(self, kind: str, field: str | None, message: str) -> None:
        self.kind = kind
        self.field = field
        self.message = message
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"kind": kind, "field": field, "message": message},
        )


class BookingConflictError(HTTPException):
    """The candidate booking overlaps an occupancy-bearing booking of the same hall."""

    code = "booking_conflict"

    def __init__(
        self,
        hall: str,
        date: str,
        conflicting_interval: str,
        conflicting_booking_id: int | None,
    ) -> None:
        self.hall = hall
        self.date = date
        self.conflicting_interval = conflicting_interval
        self.conflicting_booking_id = conflicting_booking_id
        self.message = f"{hall} is already booked on {date} ({conflicting_interval})"
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "hall": hall,
                "date": date,
                "conflictingInterval": conflicting_interval,
                "conflictingBookingId": conflicting_booking_id,
                "message": self.message,
            },
        )


class BookingNotFoundError(HTTPException):
    code = "not_found"

    def __init__(self, detail: str = BOOKING_NOT_FOUND_DETAIL) -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class HallBusyError(HTTPException):
    code = "hall_busy"

    def __init__(self) -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=HALL_BUSY_DETAIL)


def _error_payload(code: str, message: str, detail: Any):
    return {
        "error": {
            "code": code,
            "message": message,
            "detail": detail,
        },
        "detail": detail,
        "request_id": request_id_ctx_var.get(),
    }


def _message_for(detail: Any) -> str:
    if isinstance(detail, dict) and "message" in detail:
        return str(detail["message"])
    return str(detail)


async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_payload(
            code=getattr(exc, "code", f"http_{exc.status_code}"),
            message=_message_for(exc.detail),
            detail=exc.detail,
        ),
        headers=exc.headers,
    )


async def validation_exception_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_payload(
            code="validation_error",
            message="Request validation failed",
            detail=jsonable_errors(exc),
        ),
    )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    errors = []
    for error in exc.errors():
        item = {key: value for key, value in error.items() if key != "ctx"}
        if "ctx" in error:
            item["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(item)
    return errors
