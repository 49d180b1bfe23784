"""Booking admission engine.

Every mutation runs as one transaction on the caller's session: the field row
is locked (``SELECT ... FOR UPDATE``) before the conflict scan so two requests
for the same field serialize, and any failure rolls the whole unit back.
"""
import logging
import secrets
import string
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import select, func, and_, or_, case
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.booking import Booking, RELEASED_STATUSES
from app.schemas.booking import BookingPatch
from app.services.field_service import get_field_for_booking

logger = logging.getLogger(__name__)

ID_ALPHABET = string.ascii_uppercase + string.digits
ID_SUFFIX_LEN = 6
CANCELLABLE = ("pending_payment", "confirmed")

# Transitions reachable through update_booking; cancellation has its own operation.
TRANSITIONS = {
    "pending_payment": {"confirmed", "expired"},
    "confirmed": {"completed"},
    "cancelled": set(),
    "completed": set(),
    "expired": set(),
}


class BookingError(ValueError):
    pass

class FieldUnavailable(BookingError):
    pass

class SlotConflict(BookingError):
    pass

class BookingNotFound(BookingError):
    pass

class BookingNotCancellable(BookingError):
    pass

class InvalidStatusTransition(BookingError):
    pass

class InvalidTimeRange(BookingError):
    pass

class BookingIdCollision(RuntimeError):
    """Generated id clashed with an existing row twice in a row."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def make_booking_id(now: datetime | None = None) -> str:
    now = now or _utcnow()
    suffix = "".join(secrets.choice(ID_ALPHABET) for _ in range(ID_SUFFIX_LEN))
    return f"BK-{now:%Y%m%d}-{suffix}"


def hours_between(start: time, end: time) -> Decimal:
    start_s = start.hour * 3600 + start.minute * 60 + start.second
    end_s = end.hour * 3600 + end.minute * 60 + end.second
    return Decimal(end_s - start_s) / Decimal(3600)


def compute_total_price(price_per_hour, start: time, end: time) -> Decimal:
    total = Decimal(str(price_per_hour)) * hours_between(start, end)
    return total.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def overlap_clause(start: time, end: time):
    """Existing [start_time, end_time) intersects the requested [start, end)."""
    return or_(
        and_(Booking.start_time <= start, Booking.end_time > start),
        and_(Booking.start_time < end, Booking.end_time >= end),
        and_(Booking.start_time >= start, Booking.end_time <= end),
    )


def find_conflicts(
    db: Session,
    field_id: int,
    booking_date: date,
    start: time,
    end: time,
    exclude_id: str | None = None,
) -> list[str]:
    stmt = select(Booking.id).where(
        Booking.field_id == field_id,
        Booking.booking_date == booking_date,
        Booking.status.notin_(RELEASED_STATUSES),
        overlap_clause(start, end),
    )
    if exclude_id:
        stmt = stmt.where(Booking.id != exclude_id)
    return list(db.execute(stmt).scalars())


def _insert_with_fresh_id(db: Session, values: dict, now: datetime) -> Booking:
    # The primary key is the real uniqueness guarantee; retry once on a clash.
    for attempt in range(2):
        booking = Booking(id=make_booking_id(now), **values)
        try:
            with db.begin_nested():
                db.add(booking)
            return booking
        except IntegrityError:
            # Only a clash on the primary key is worth another id
            if db.get(Booking, booking.id) is None:
                raise
            logger.warning("Booking id collision on %s (attempt %d)", booking.id, attempt + 1)
    raise BookingIdCollision("could not allocate a unique booking id")


def create_booking(
    db: Session,
    field_id: int,
    user_id: str,
    booking_date: date,
    start_time: time,
    end_time: time,
) -> Booking:
    try:
        field = get_field_for_booking(db, field_id, lock=True)
        if not field:
            raise FieldUnavailable("Field not found or inactive")

        if find_conflicts(db, field_id, booking_date, start_time, end_time):
            raise SlotConflict("Selected time slot is not available")

        now = _utcnow()
        booking = _insert_with_fresh_id(db, {
            "field_id": field_id,
            "user_id": user_id,
            "booking_date": booking_date,
            "start_time": start_time,
            "end_time": end_time,
            "total_price": compute_total_price(field.price_per_hour, start_time, end_time),
            "status": "pending_payment",
            "payment_status": "pending",
            "payment_due": now + timedelta(minutes=settings.PAYMENT_WINDOW_MINUTES),
            "created_at": now,
            "updated_at": now,
        }, now)
        db.commit()
    except BookingError as e:
        db.rollback()
        logger.info("Booking rejected field=%s date=%s %s-%s: %s", field_id, booking_date, start_time, end_time, e)
        raise
    except (SQLAlchemyError, BookingIdCollision):
        db.rollback()
        logger.exception("Booking create failed field=%s date=%s", field_id, booking_date)
        raise

    db.refresh(booking)
    logger.info(
        "Booking created id=%s field=%s user=%s date=%s total=%s",
        booking.id, booking.field_id, booking.user_id, booking.booking_date, booking.total_price,
    )
    return booking


def _get_locked(db: Session, booking_id: str) -> Booking | None:
    return db.execute(
        select(Booking).where(Booking.id == booking_id).with_for_update()
    ).scalar_one_or_none()


def update_booking(db: Session, booking_id: str, patch: BookingPatch) -> Booking:
    changes = patch.model_dump(exclude_unset=True)
    try:
        b = _get_locked(db, booking_id)
        if not b:
            raise BookingNotFound("Booking not found")

        new_status = changes.get("status")
        if new_status is not None and new_status != b.status:
            if new_status == "cancelled":
                raise InvalidStatusTransition("Use the cancel operation to cancel a booking")
            if new_status not in TRANSITIONS.get(b.status, set()):
                raise InvalidStatusTransition(f"Cannot move booking from {b.status} to {new_status}")

        new_date = changes.get("booking_date") or b.booking_date
        new_start = changes.get("start_time") or b.start_time
        new_end = changes.get("end_time") or b.end_time
        reschedule = (new_date, new_start, new_end) != (b.booking_date, b.start_time, b.end_time)
        if reschedule:
            if not TRANSITIONS.get(b.status):
                raise InvalidStatusTransition(f"Cannot reschedule a {b.status} booking")
            if new_end <= new_start:
                raise InvalidTimeRange("end_time must be after start_time")
            field = get_field_for_booking(db, b.field_id, lock=True)
            if not field:
                raise FieldUnavailable("Field not found or inactive")
            if find_conflicts(db, b.field_id, new_date, new_start, new_end, exclude_id=b.id):
                raise SlotConflict("Selected time slot is not available")
            b.total_price = compute_total_price(field.price_per_hour, new_start, new_end)

        for key, value in changes.items():
            if value is not None:
                setattr(b, key, value)
        b.updated_at = _utcnow()
        db.commit()
    except BookingError:
        db.rollback()
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Booking update failed id=%s", booking_id)
        raise

    db.refresh(b)
    logger.info("Booking updated id=%s fields=%s", booking_id, sorted(changes))
    return b


def cancel_booking(db: Session, booking_id: str, cancelled_by: str | None, reason: str | None = None) -> Booking:
    try:
        b = _get_locked(db, booking_id)
        if not b:
            raise BookingNotFound("Booking not found")
        if b.status not in CANCELLABLE:
            raise BookingNotCancellable(f"Booking is {b.status} and cannot be cancelled")

        now = _utcnow()
        b.status = "cancelled"
        b.cancellation_reason = reason
        b.cancelled_by = cancelled_by
        b.cancelled_at = now
        b.updated_at = now
        db.commit()
    except BookingError as e:
        db.rollback()
        logger.info("Booking cancel refused id=%s: %s", booking_id, e)
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Booking cancel failed id=%s", booking_id)
        raise

    db.refresh(b)
    logger.info("Booking cancelled id=%s by=%s reason=%s", booking_id, cancelled_by, reason)
    return b


def expire_overdue_bookings(db: Session, now: datetime | None = None) -> int:
    """Release slots held by unpaid bookings past their payment deadline."""
    now = now or _utcnow()
    try:
        overdue = db.execute(
            select(Booking).where(
                Booking.status == "pending_payment",
                Booking.payment_status == "pending",
                Booking.payment_due != None,  # noqa: E711
                Booking.payment_due < now,
            ).with_for_update()
        ).scalars().all()
        for b in overdue:
            b.status = "expired"
            b.payment_status = "failed"
            b.updated_at = now
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Expiry sweep failed")
        raise
    if overdue:
        logger.info("Expired %d overdue bookings", len(overdue))
    return len(overdue)


def get_booking(db: Session, booking_id: str) -> Booking | None:
    return db.get(Booking, booking_id)


def list_bookings(
    db: Session,
    status: str | None = None,
    user_id: str | None = None,
    field_id: int | None = None,
    booking_date: date | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[Booking], int]:
    q = db.query(Booking)
    if status:
        q = q.filter(Booking.status == status)
    if user_id:
        q = q.filter(Booking.user_id == user_id)
    if field_id:
        q = q.filter(Booking.field_id == field_id)
    if booking_date:
        q = q.filter(Booking.booking_date == booking_date)
    total = q.count()
    items = (
        q.order_by(Booking.created_at.desc(), Booking.id.desc())
        .limit(limit)
        .offset((page - 1) * limit)
        .all()
    )
    return items, total


def booking_statistics(db: Session, user_id: str | None = None, field_id: int | None = None) -> dict:
    def count_status(s: str):
        return func.count(case((Booking.status == s, 1)))

    live = Booking.status.notin_(RELEASED_STATUSES)
    q = db.query(
        func.count(Booking.id),
        count_status("pending_payment"),
        count_status("confirmed"),
        count_status("cancelled"),
        count_status("completed"),
        count_status("expired"),
        func.coalesce(func.sum(case((live, Booking.total_price))), 0),
        func.coalesce(func.avg(case((live, Booking.total_price))), 0),
    )
    if user_id:
        q = q.filter(Booking.user_id == user_id)
    if field_id:
        q = q.filter(Booking.field_id == field_id)
    row = q.one()
    return {
        "total_bookings": int(row[0]),
        "pending_bookings": int(row[1]),
        "confirmed_bookings": int(row[2]),
        "cancelled_bookings": int(row[3]),
        "completed_bookings": int(row[4]),
        "expired_bookings": int(row[5]),
        "total_revenue": round(float(row[6] or 0), 2),
        "average_booking_value": round(float(row[7] or 0), 2),
    }
