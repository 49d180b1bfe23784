import logging
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from app.models.booking import Booking, RELEASED_STATUSES
from app.models.field import Field
from app.schemas.field import FieldCreate, FieldUpdate

logger = logging.getLogger(__name__)


def get_field_for_booking(db: Session, field_id: int, lock: bool = True) -> Field | None:
    """Active field by id, row-locked for the rest of the transaction when `lock` is set."""
    stmt = select(Field).where(Field.id == field_id, Field.is_active == True)  # noqa: E712
    if lock:
        stmt = stmt.with_for_update()
    return db.execute(stmt).scalar_one_or_none()


def get_field(db: Session, field_id: int, include_inactive: bool = False) -> Field | None:
    f = db.get(Field, field_id)
    if not f or (not f.is_active and not include_inactive):
        return None
    return f


def list_fields(
    db: Session,
    sport_type: str | None = None,
    location: str | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    facility: str | None = None,
    page: int = 1,
    limit: int = 10,
    include_inactive: bool = False,
) -> tuple[list[Field], int]:
    q = db.query(Field)
    if not include_inactive:
        q = q.filter(Field.is_active == True)  # noqa: E712
    if sport_type:
        q = q.filter(func.lower(Field.sport_type) == sport_type.lower())
    if location:
        q = q.filter(func.lower(Field.location_summary).like(f"%{location.lower()}%"))
    if min_price is not None:
        q = q.filter(Field.price_per_hour >= min_price)
    if max_price is not None:
        q = q.filter(Field.price_per_hour <= max_price)

    items = q.order_by(Field.created_at.desc(), Field.id.desc()).all()
    if facility:
        # facilities is a JSON list; filter in Python to stay portable across backends
        wanted = facility.lower()
        items = [f for f in items if any(x.lower() == wanted for x in (f.facilities or []))]

    total = len(items)
    offset = (page - 1) * limit
    return items[offset:offset + limit], total


def featured_fields(db: Session, limit: int = 6) -> list[Field]:
    return (
        db.query(Field)
        .filter(Field.is_active == True)  # noqa: E712
        .order_by(Field.rating.desc(), Field.reviews_count.desc(), Field.id.asc())
        .limit(limit)
        .all()
    )


def filter_options(db: Session) -> dict:
    active = db.query(Field).filter(Field.is_active == True)  # noqa: E712
    lo, hi = (
        db.query(func.min(Field.price_per_hour), func.max(Field.price_per_hour))
        .filter(Field.is_active == True)  # noqa: E712
        .one()
    )
    sport_types = sorted({f.sport_type for f in active.all() if f.sport_type})
    facilities = sorted({x for f in active.all() for x in (f.facilities or [])})
    return {
        "price_range": {"min": float(lo or 0), "max": float(hi or 0)},
        "sport_types": sport_types,
        "facilities": facilities,
    }


def location_suggestions(db: Session, q: str, limit: int = 10) -> list[str]:
    rows = (
        db.query(Field.location_summary)
        .filter(Field.is_active == True)  # noqa: E712
        .filter(func.lower(Field.location_summary).like(f"%{q.lower()}%"))
        .distinct()
        .order_by(Field.location_summary.asc())
        .limit(limit)
        .all()
    )
    return [r[0] for r in rows]


def booked_slots(db: Session, field_id: int, booking_date: date) -> list[Booking]:
    return (
        db.query(Booking)
        .filter(
            Booking.field_id == field_id,
            Booking.booking_date == booking_date,
            Booking.status.notin_(RELEASED_STATUSES),
        )
        .order_by(Booking.start_time.asc())
        .all()
    )


def create_field(db: Session, data: FieldCreate) -> Field:
    values = data.model_dump()
    values["price_per_hour"] = Decimal(str(values["price_per_hour"]))
    f = Field(**values, is_active=True)
    db.add(f)
    db.commit()
    db.refresh(f)
    logger.info("Field created id=%s name=%s", f.id, f.name)
    return f


def update_field(db: Session, field_id: int, data: FieldUpdate) -> Field | None:
    f = db.get(Field, field_id)
    if not f:
        return None
    changes = data.model_dump(exclude_unset=True)
    if "price_per_hour" in changes and changes["price_per_hour"] is not None:
        changes["price_per_hour"] = Decimal(str(changes["price_per_hour"]))
    for key, value in changes.items():
        setattr(f, key, value)
    f.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(f)
    logger.info("Field updated id=%s fields=%s", f.id, sorted(changes))
    return f


def deactivate_field(db: Session, field_id: int) -> Field | None:
    """Soft delete: the row stays so existing bookings keep their reference."""
    f = db.get(Field, field_id)
    if not f:
        return None
    f.is_active = False
    f.updated_at = datetime.now(timezone.utc)
    db.commit()
    logger.info("Field deactivated id=%s", f.id)
    return f
