# tests/factories.py
# Фабрики тестовых пользователей вместо seed-скриптов.
import itertools

from sqlalchemy.orm import Session

from campus_teranga.core.security import create_access_token
from campus_teranga.models.user import RoleEnum, User
from campus_teranga.services import users as user_service

DEFAULT_PASSWORD = "Passw0rd!"

_phone_seq = itertools.count(1)


def next_phone() -> str:
    return f"+22177{next(_phone_seq):07d}"


def make_user(
    db: Session,
    *,
    full_name: str = "Test Student",
    phone_number: str | None = None,
    password: str = DEFAULT_PASSWORD,
    email: str | None = None,
    role: RoleEnum = RoleEnum.user,
    is_active: bool = True,
) -> User:
    user = user_service.create_user(
        db,
        full_name=full_name,
        phone_number=phone_number or next_phone(),
        password=password,
        email=email,
        role=role,
    )
    if not is_active:
        user.is_active = False
        db.commit()
        db.refresh(user)
    return user


def auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(subject=user.id)}"}


def register_payload(**overrides) -> dict:
    payload = {
        "fullName": "Awa Ndiaye",
        "phoneNumber": "+221700000001",
        "email": "awa.ndiaye@campus-teranga.sn",
        "password": DEFAULT_PASSWORD,
        "confirmPassword": DEFAULT_PASSWORD,
    }
    payload.update(overrides)
    return {k: v for k, v in payload.items() if v is not None}
