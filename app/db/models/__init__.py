from app.db.models.booking import BookingStatus, HallBooking
from app.db.models.hall_operator import HallOperator

__all__ = [
    "HallBooking",
    "BookingStatus",
    "HallOperator",
]
