import logging
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, case
from sqlalchemy.orm import Session

from app.core.security import hash_password, verify_password
from app.models.user import User

logger = logging.getLogger(__name__)


class EmailAlreadyRegistered(ValueError):
    pass


def get_user(db: Session, user_id: str) -> User | None:
    return db.get(User, user_id)


def find_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def register_user(db: Session, name: str, email: str, password: str, role: str = "customer") -> User:
    email_l = email.strip().lower()
    if find_by_email(db, email_l):
        raise EmailAlreadyRegistered("Email already registered")
    u = User(
        id=str(uuid.uuid4()),
        email=email_l,
        name=name.strip(),
        role=role,
        password_hash=hash_password(password),
        is_active=True,
    )
    db.add(u)
    db.commit()
    db.refresh(u)
    logger.info("User registered id=%s email=%s", u.id, u.email)
    return u


def authenticate(db: Session, email: str, password: str) -> User | None:
    u = find_by_email(db, email)
    if not u or not u.is_active:
        return None
    if not verify_password(password, u.password_hash):
        return None
    return u


def change_password(db: Session, user: User, old_password: str, new_password: str) -> bool:
    if not verify_password(old_password, user.password_hash):
        return False
    user.password_hash = hash_password(new_password)
    db.commit()
    return True


def list_users(
    db: Session,
    role: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[User], int]:
    q = db.query(User)
    if role:
        q = q.filter(User.role == role)
    if search:
        ql = f"%{search.lower()}%"
        q = q.filter(func.lower(User.email).like(ql) | func.lower(User.name).like(ql))
    total = q.count()
    users = q.order_by(User.created_at.desc()).limit(limit).offset((page - 1) * limit).all()
    return users, total


def update_role(db: Session, user_id: str, role: str) -> User | None:
    u = db.get(User, user_id)
    if not u:
        return None
    u.role = role
    db.commit()
    db.refresh(u)
    logger.info("User role changed id=%s role=%s", u.id, role)
    return u


def delete_user(db: Session, user_id: str) -> bool:
    """Hard delete. Bookings keep the opaque user_id."""
    u = db.get(User, user_id)
    if not u:
        return False
    db.delete(u)
    db.commit()
    logger.info("User deleted id=%s", user_id)
    return True


def user_statistics(db: Session) -> dict:
    since = datetime.now(timezone.utc) - timedelta(days=30)
    row = db.query(
        func.count(User.id),
        func.count(case((User.role == "customer", 1))),
        func.count(case((User.role == "admin", 1))),
        func.count(case((User.created_at >= since, 1))),
    ).one()
    return {
        "total_users": int(row[0]),
        "customers": int(row[1]),
        "admins": int(row[2]),
        "new_users_last_30_days": int(row[3]),
    }
