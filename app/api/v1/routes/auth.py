import logging
from fastapi import APIRouter, Depends, HTTPException
from jose import JWTError
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.schemas.auth import LoginRequest, RegisterRequest, RefreshRequest, ChangePasswordRequest, TokenPair
from app.schemas.user import UserOut
from app.models.user import User
from app.core.security import REFRESH, create_access_token, create_refresh_token, decode_token
from app.api.deps import get_current_user
from app.services import user_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.post("/auth/register", response_model=UserOut, status_code=201)
def register(body: RegisterRequest, db: Session = Depends(get_db)):
    try:
        return user_service.register_user(db, body.name, body.email, body.password)
    except user_service.EmailAlreadyRegistered as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/auth/login", response_model=TokenPair)
def login(body: LoginRequest, db: Session = Depends(get_db)):
    user = user_service.authenticate(db, body.email, body.password)
    if not user:
        logger.info("Failed login for %s", body.email.lower())
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return TokenPair(
        access_token=create_access_token(user.id),
        refresh_token=create_refresh_token(user.id),
    )


@router.post("/auth/refresh", response_model=TokenPair)
def refresh(body: RefreshRequest, db: Session = Depends(get_db)):
    try:
        payload = decode_token(body.refresh_token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    if payload.get("type") != REFRESH:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    user = user_service.get_user(db, payload.get("sub"))
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return TokenPair(
        access_token=create_access_token(user.id),
        refresh_token=create_refresh_token(user.id),
    )


@router.get("/auth/me", response_model=UserOut)
@router.get("/profile", response_model=UserOut)
def me(me: User = Depends(get_current_user)):
    """Return the current user's profile including role."""
    return me


@router.post("/auth/change-password")
def change_password(body: ChangePasswordRequest,
                    db: Session = Depends(get_db),
                    me: User = Depends(get_current_user)):
    if not user_service.change_password(db, me, body.old_password, body.new_password):
        raise HTTPException(status_code=400, detail="Old password incorrect")
    return {"ok": True}
