import logging
import os
import uuid
from decimal import Decimal

from sqlalchemy.orm import Session
from sqlalchemy import text
from sqlalchemy.exc import ProgrammingError, OperationalError

from app.db.session import SessionLocal
from app.core.security import hash_password
from app.models.user import User
from app.models.field import Field

logger = logging.getLogger(__name__)

FIELDS = [
    {
        "name": "Garuda Futsal Center",
        "location_summary": "Tembalang, Semarang",
        "address": "Jl. Pahlawan No. 10, Semarang",
        "sport_type": "Futsal",
        "capacity": 10,
        "rating": 4.9,
        "reviews_count": 150,
        "price_per_hour": Decimal("95000"),
        "facilities": ["Indoor", "Parking", "Changing Rooms"],
    },
    {
        "name": "Elite Soccer Complex",
        "location_summary": "Downtown Sports Center",
        "address": "Jl. Pemuda No. 5, Semarang",
        "sport_type": "Soccer",
        "capacity": 22,
        "rating": 4.8,
        "reviews_count": 124,
        "price_per_hour": Decimal("250000"),
        "facilities": ["Floodlights", "Parking", "Changing Rooms"],
    },
    {
        "name": "Shuttle Arena",
        "location_summary": "Banyumanik, Semarang",
        "address": "Jl. Setiabudi No. 21, Semarang",
        "sport_type": "Badminton",
        "capacity": 4,
        "rating": 4.5,
        "reviews_count": 61,
        "price_per_hour": Decimal("60000"),
        "facilities": ["Indoor", "Air Conditioning", "Equipment Rental"],
    },
]


def ensure_user(db: Session, email: str, password: str, role: str, name: str):
    u = db.query(User).filter(User.email == email).first()
    if u:
        return
    db.add(
        User(
            id=str(uuid.uuid4()),
            email=email,
            name=name,
            role=role,
            password_hash=hash_password(password),
            is_active=True,
        )
    )
    db.commit()


def ensure_field(db: Session, data: dict):
    if db.query(Field).filter(Field.name == data["name"]).first():
        return
    db.add(Field(currency="Rp", is_active=True, **data))
    db.commit()


def run(db=None):
    if db is None:
        db = SessionLocal()
    try:
        # If migrations haven't been applied yet, seeding must not crash the API.
        try:
            db.execute(text("SELECT 1 FROM users LIMIT 1"))
        except (ProgrammingError, OperationalError):
            db.rollback()
            logger.warning("users table not found yet. Skipping seeding (run alembic upgrade head).")
            return

        ensure_user(
            db,
            os.getenv("SEED_ADMIN_EMAIL", "admin@fieldbook.local"),
            os.getenv("SEED_ADMIN_PASSWORD", "admin12345"),
            "admin",
            "Admin",
        )
        for data in FIELDS:
            ensure_field(db, data)
        logger.info("Seed complete")
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    run()
