from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.api.deps import get_current_user
from app.api.errors import booking_http_error
from app.api.pagination import page_meta
from app.models.user import User
from app.schemas.booking import BookingCreate, BookingCreated, BookingOut, BookingPage, CancelRequest
from app.services import booking_service
from app.services.booking_service import BookingError

router = APIRouter(tags=["bookings"])


@router.post("/bookings", response_model=BookingCreated, status_code=201)
def create_booking(body: BookingCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    try:
        b = booking_service.create_booking(db, body.field_id, me.id, body.date, body.start_time, body.end_time)
    except BookingError as e:
        raise booking_http_error(e)
    return BookingCreated(
        booking_id=b.id,
        status=b.status,
        total_price=b.total_price,
        payment_due=b.payment_due,
    )


@router.get("/bookings/me", response_model=BookingPage)
def my_bookings(status: Optional[str] = None,
                page: int = Query(1, ge=1),
                limit: int = Query(10, ge=1, le=100),
                db: Session = Depends(get_db),
                me: User = Depends(get_current_user)):
    items, total = booking_service.list_bookings(db, status=status, user_id=me.id, page=page, limit=limit)
    return {"data": items, "pagination": page_meta(total, page, limit)}


@router.get("/bookings/{booking_id}", response_model=BookingOut)
def get_booking(booking_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    b = booking_service.get_booking(db, booking_id)
    # Other users' bookings are reported as missing rather than forbidden
    if not b or (b.user_id != me.id and me.role != "admin"):
        raise HTTPException(status_code=404, detail="Booking not found")
    return b


@router.post("/bookings/{booking_id}/cancel", response_model=BookingOut)
def cancel_my_booking(booking_id: str, body: CancelRequest | None = None,
                      db: Session = Depends(get_db),
                      me: User = Depends(get_current_user)):
    b = booking_service.get_booking(db, booking_id)
    if not b or b.user_id != me.id:
        raise HTTPException(status_code=404, detail="Booking not found")
    try:
        return booking_service.cancel_booking(db, booking_id, cancelled_by=me.email, reason=body.reason if body else None)
    except BookingError as e:
        raise booking_http_error(e)
