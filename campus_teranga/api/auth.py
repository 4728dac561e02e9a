# campus_teranga/api/auth.py
# Роуты регистрации, логина и управления своим аккаунтом.
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from campus_teranga.core import security
from campus_teranga.db.session import get_db
from campus_teranga.models.user import User
from campus_teranga.schemas.auth import (
    AuthOut,
    ChangePasswordIn,
    LoginIn,
    MessageOut,
    ProfileUpdateIn,
    RegisterIn,
    UserEnvelopeOut,
    UserOut,
)
from campus_teranga.services import users as user_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _token_response(user: User, message: str) -> AuthOut:
    token = security.create_access_token(subject=user.id)
    return AuthOut(message=message, token=token, user=UserOut.model_validate(user))


@router.post("/register", response_model=AuthOut, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterIn, db: Session = Depends(get_db)):
    """
    Регистрация: fullName + phoneNumber + password (+ email).
    Роль всегда user, даже если в теле передано что-то другое.
    """
    user = user_service.register(
        db,
        full_name=payload.full_name,
        phone_number=payload.phone_number,
        password=payload.password,
        email=payload.email,
    )
    logger.info(f"User registered: {user.id}")
    return _token_response(user, "User created successfully")


@router.post("/login", response_model=AuthOut)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    """Логин по телефону: возвращает новый токен."""
    user = user_service.authenticate(db, payload.phone_number, payload.password)
    return _token_response(user, "Login successful")


@router.post("/logout", response_model=MessageOut)
def logout(current_user: User = Depends(security.get_current_user)):
    # Токены без состояния: клиент просто выбрасывает свой токен
    logger.info(f"User logged out: {current_user.id}")
    return MessageOut(message="Logout successful")


@router.get("/me", response_model=UserEnvelopeOut)
def me(current_user: User = Depends(security.get_current_user)):
    return UserEnvelopeOut(user=UserOut.model_validate(current_user))


@router.patch("/profile", response_model=UserEnvelopeOut)
def update_profile(
    payload: ProfileUpdateIn,
    current_user: User = Depends(security.get_current_user),
    db: Session = Depends(get_db),
):
    user = user_service.update_profile(db, current_user, payload)
    return UserEnvelopeOut(message="Profile updated successfully", user=UserOut.model_validate(user))


@router.patch("/change-password", response_model=MessageOut)
def change_password(
    payload: ChangePasswordIn,
    current_user: User = Depends(security.get_current_user),
    db: Session = Depends(get_db),
):
    user_service.change_password(db, current_user, payload.current_password, payload.password)
    logger.info(f"Password changed: {current_user.id}")
    return MessageOut(message="Password changed successfully")


@router.patch("/deactivate", response_model=MessageOut)
def deactivate(
    current_user: User = Depends(security.get_current_user),
    db: Session = Depends(get_db),
):
    user_service.deactivate(db, current_user)
    return MessageOut(message="Account deactivated successfully")
