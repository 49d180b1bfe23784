from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.schemas.field import FieldPage, FieldDetail, FieldSummary, FilterOptions, BookedSlot
from app.services import field_service
from app.api.pagination import page_meta

router = APIRouter(tags=["fields"])


@router.get("/fields", response_model=FieldPage)
def search_fields(
    sport_type: Optional[str] = None,
    location: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    facility: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    items, total = field_service.list_fields(
        db, sport_type=sport_type, location=location, min_price=min_price,
        max_price=max_price, facility=facility, page=page, limit=limit,
    )
    return {"data": items, "pagination": page_meta(total, page, limit)}


# Declared before /fields/{field_id} so "filters" is not parsed as an id
@router.get("/fields/filters", response_model=FilterOptions)
def get_filter_options(db: Session = Depends(get_db)):
    return field_service.filter_options(db)


@router.get("/fields/{field_id}", response_model=FieldDetail)
def get_field(field_id: int, date: Optional[date] = None, db: Session = Depends(get_db)):
    """Field details. Pass `date` (YYYY-MM-DD) to include the slots already taken that day."""
    f = field_service.get_field(db, field_id)
    if not f:
        raise HTTPException(status_code=404, detail="Field not found")
    out = FieldDetail.model_validate(f)
    if date is not None:
        out.booked_slots = [
            BookedSlot(start_time=b.start_time, end_time=b.end_time)
            for b in field_service.booked_slots(db, field_id, date)
        ]
    return out


@router.get("/featured-fields", response_model=list[FieldSummary])
def get_featured_fields(limit: int = Query(6, ge=1, le=24), db: Session = Depends(get_db)):
    return field_service.featured_fields(db, limit=limit)


@router.get("/locations/autocomplete")
def autocomplete_locations(q: str = "", limit: int = Query(10, ge=1, le=50), db: Session = Depends(get_db)):
    if not q.strip():
        return {"data": []}
    return {"data": field_service.location_suggestions(db, q.strip(), limit=limit)}
