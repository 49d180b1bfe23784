from fastapi import HTTPException

from app.services.booking_service import (
    BookingError, FieldUnavailable, SlotConflict, BookingNotFound,
    BookingNotCancellable, InvalidStatusTransition, InvalidTimeRange,
)

STATUS_BY_ERROR = {
    FieldUnavailable: 404,
    BookingNotFound: 404,
    SlotConflict: 409,
    BookingNotCancellable: 409,
    InvalidStatusTransition: 409,
    InvalidTimeRange: 400,
}


def booking_http_error(e: BookingError) -> HTTPException:
    return HTTPException(status_code=STATUS_BY_ERROR.get(type(e), 400), detail=str(e))
