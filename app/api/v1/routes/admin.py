import logging
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.deps import require_roles
from app.api.errors import booking_http_error
from app.api.pagination import page_meta
from app.models.user import User
from app.schemas.booking import BookingOut, BookingPage, BookingPatch, BookingStatistics, CancelRequest
from app.schemas.field import FieldCreate, FieldDetail, FieldPage, FieldUpdate
from app.schemas.user import RoleUpdate, UserOut, UserPage, UserStatistics
from app.services import booking_service, field_service, user_service
from app.services.audit_service import log_audit
from app.services.booking_service import BookingError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["admin"])

admin_only = require_roles("admin")


# -------------------------
# FIELDS
# -------------------------
@router.get("/admin/fields", response_model=FieldPage)
def admin_list_fields(page: int = Query(1, ge=1), limit: int = Query(20, ge=1, le=200),
                      db: Session = Depends(get_db), me: User = Depends(admin_only)):
    items, total = field_service.list_fields(db, page=page, limit=limit, include_inactive=True)
    return {"data": items, "pagination": page_meta(total, page, limit)}


@router.post("/admin/fields", response_model=FieldDetail, status_code=201)
def admin_create_field(body: FieldCreate, db: Session = Depends(get_db), me: User = Depends(admin_only)):
    f = field_service.create_field(db, body)
    log_audit(db, me.id, "field.create", "field", f.id, {"name": f.name})
    db.commit()
    return f


@router.put("/admin/fields/{field_id}", response_model=FieldDetail)
def admin_update_field(field_id: int, body: FieldUpdate, db: Session = Depends(get_db), me: User = Depends(admin_only)):
    f = field_service.update_field(db, field_id, body)
    if not f:
        raise HTTPException(status_code=404, detail="Field not found")
    log_audit(db, me.id, "field.update", "field", f.id, body.model_dump(exclude_unset=True))
    db.commit()
    return f


@router.delete("/admin/fields/{field_id}")
def admin_deactivate_field(field_id: int, db: Session = Depends(get_db), me: User = Depends(admin_only)):
    f = field_service.deactivate_field(db, field_id)
    if not f:
        raise HTTPException(status_code=404, detail="Field not found")
    log_audit(db, me.id, "field.deactivate", "field", field_id)
    db.commit()
    return {"ok": True, "id": field_id, "is_active": False}


# -------------------------
# BOOKINGS
# -------------------------
@router.get("/admin/bookings", response_model=BookingPage)
def admin_list_bookings(status: Optional[str] = None, user_id: Optional[str] = None,
                        field_id: Optional[int] = None, date: Optional[date] = None,
                        page: int = Query(1, ge=1), limit: int = Query(20, ge=1, le=200),
                        db: Session = Depends(get_db), me: User = Depends(admin_only)):
    items, total = booking_service.list_bookings(
        db, status=status, user_id=user_id, field_id=field_id, booking_date=date, page=page, limit=limit,
    )
    return {"data": items, "pagination": page_meta(total, page, limit)}


@router.get("/admin/bookings/statistics", response_model=BookingStatistics)
def admin_booking_statistics(user_id: Optional[str] = None, field_id: Optional[int] = None,
                             db: Session = Depends(get_db), me: User = Depends(admin_only)):
    return booking_service.booking_statistics(db, user_id=user_id, field_id=field_id)


@router.put("/admin/bookings/{booking_id}", response_model=BookingOut)
def admin_update_booking(booking_id: str, body: BookingPatch, db: Session = Depends(get_db), me: User = Depends(admin_only)):
    try:
        b = booking_service.update_booking(db, booking_id, body)
    except BookingError as e:
        raise booking_http_error(e)
    log_audit(db, me.id, "booking.update", "booking", b.id, body.model_dump(exclude_unset=True))
    db.commit()
    return b


@router.put("/admin/bookings/{booking_id}/cancel", response_model=BookingOut)
def admin_cancel_booking(booking_id: str, body: CancelRequest | None = None,
                         db: Session = Depends(get_db), me: User = Depends(admin_only)):
    reason = (body.reason if body else None) or "Admin cancellation"
    try:
        b = booking_service.cancel_booking(db, booking_id, cancelled_by=me.email, reason=reason)
    except BookingError as e:
        raise booking_http_error(e)
    log_audit(db, me.id, "booking.cancel", "booking", b.id, {"reason": reason})
    db.commit()
    return b


# -------------------------
# USERS
# -------------------------
@router.get("/admin/users", response_model=UserPage)
def admin_list_users(role: Optional[str] = None, search: Optional[str] = None,
                     page: int = Query(1, ge=1), limit: int = Query(10, ge=1, le=200),
                     db: Session = Depends(get_db), me: User = Depends(admin_only)):
    users, total = user_service.list_users(db, role=role, search=search, page=page, limit=limit)
    return {"data": users, "pagination": page_meta(total, page, limit)}


@router.get("/admin/users/statistics", response_model=UserStatistics)
def admin_user_statistics(db: Session = Depends(get_db), me: User = Depends(admin_only)):
    return user_service.user_statistics(db)


@router.put("/admin/users/{user_id}/role", response_model=UserOut)
def admin_update_role(user_id: str, body: RoleUpdate, db: Session = Depends(get_db), me: User = Depends(admin_only)):
    if user_id == me.id and body.role != "admin":
        raise HTTPException(status_code=400, detail="Cannot remove your own admin role")
    u = user_service.update_role(db, user_id, body.role)
    if not u:
        raise HTTPException(status_code=404, detail="User not found")
    log_audit(db, me.id, "user.role", "user", u.id, {"role": body.role})
    db.commit()
    return u


@router.delete("/admin/users/{user_id}")
def admin_delete_user(user_id: str, db: Session = Depends(get_db), me: User = Depends(admin_only)):
    if user_id == me.id:
        raise HTTPException(status_code=400, detail="Cannot delete your own account")
    if not user_service.delete_user(db, user_id):
        raise HTTPException(status_code=404, detail="User not found")
    log_audit(db, me.id, "user.delete", "user", user_id)
    db.commit()
    return {"ok": True}
