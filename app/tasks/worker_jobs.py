import logging
from sqlalchemy.orm import Session
from sqlalchemy.exc import ProgrammingError
from app.db.session import SessionLocal
from app.services.booking_service import expire_overdue_bookings

logger = logging.getLogger(__name__)


def expire_bookings() -> dict:
    db: Session = SessionLocal()
    try:
        try:
            expired = expire_overdue_bookings(db)
        except ProgrammingError:
            # DB not migrated yet; don't crash the worker.
            logger.warning("bookings table missing, skipping expiry sweep")
            return {"skipped": True, "reason": "missing_tables"}
        return {"expired": expired}
    finally:
        db.close()
