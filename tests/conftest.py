import os
import tempfile
import uuid
from datetime import date, timedelta
from decimal import Decimal

import pytest

# Settings are read at import time; point them at a throwaway SQLite file first.
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(tempfile.mkdtemp(prefix="fieldbook-"), "app.db")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from app.core.security import create_access_token, hash_password  # noqa: E402
from app.db.session import Base, get_db, make_engine  # noqa: E402
from app.main import app  # noqa: E402
from app.models.audit_log import AuditLog  # noqa: E402,F401
from app.models.booking import Booking  # noqa: E402,F401
from app.models.field import Field  # noqa: E402
from app.models.user import User  # noqa: E402


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    s = session_factory()
    yield s
    s.close()


@pytest.fixture
def client(session_factory):
    def _get_db():
        s = session_factory()
        try:
            yield s
        finally:
            s.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def tomorrow():
    return date.today() + timedelta(days=1)


@pytest.fixture
def make_field(session_factory):
    """Insert a field in its own committed session and return its id."""
    def _make(**overrides) -> int:
        values = {
            "name": "Garuda Futsal Center",
            "location_summary": "Tembalang, Semarang",
            "address": "Jl. Pahlawan No. 10",
            "sport_type": "Futsal",
            "capacity": 10,
            "rating": 4.5,
            "reviews_count": 10,
            "facilities": ["Indoor", "Parking"],
            "price_per_hour": Decimal("100"),
            "currency": "Rp",
            "is_active": True,
        }
        values.update(overrides)
        with session_factory() as s:
            f = Field(**values)
            s.add(f)
            s.commit()
            return f.id
    return _make


@pytest.fixture
def make_user(session_factory):
    """Insert a user and return (id, email, access token)."""
    def _make(role: str = "customer", password: str = "password123") -> tuple[str, str, str]:
        user_id = str(uuid.uuid4())
        email = f"{role}-{user_id[:8]}@example.com"
        with session_factory() as s:
            s.add(User(
                id=user_id,
                email=email,
                name=role.title(),
                role=role,
                password_hash=hash_password(password),
                is_active=True,
            ))
            s.commit()
        return user_id, email, create_access_token(user_id)
    return _make
