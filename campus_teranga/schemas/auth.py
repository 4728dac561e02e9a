# campus_teranga/schemas/auth.py
# Pydantic-схемы входных данных и ответов. На проводе поля в camelCase
# (fullName, phoneNumber), внутри snake_case.
import re
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from campus_teranga.models.user import RoleEnum

FULL_NAME_RE = re.compile(r"^[a-zA-ZÀ-ÿ\s\-']+$")
PHONE_RE = re.compile(r"^\+?[1-9]\d{8,14}$")
PASSWORD_ALLOWED_RE = re.compile(r"^[a-zA-Z\d@$!%*?&]+$")
# bcrypt учитывает только первые 72 байта пароля
PASSWORD_MAX_LENGTH = 72


def normalize_phone(value: str) -> str:
    """Оставляет только цифры и '+': '+221 70-000 00 01' -> '+221700000001'."""
    return re.sub(r"[^\d+]", "", value or "")


def check_phone(value: str) -> str:
    phone = normalize_phone(value)
    if not PHONE_RE.match(phone):
        raise ValueError("Please provide a valid phone number (9 to 15 digits)")
    return phone


def check_full_name(value: str, require_two_words: bool = True) -> str:
    name = " ".join(value.split())
    if not 2 <= len(name) <= 50:
        raise ValueError("Full name must be between 2 and 50 characters")
    if not FULL_NAME_RE.match(name):
        raise ValueError("Full name can only contain letters, spaces, hyphens, and apostrophes")
    if require_two_words and len(name.split(" ")) < 2:
        raise ValueError("Please enter your first and last name")
    return name


def check_password_strength(value: str) -> str:
    if not 8 <= len(value) <= PASSWORD_MAX_LENGTH:
        raise ValueError(f"Password must be between 8 and {PASSWORD_MAX_LENGTH} characters")
    if not (re.search(r"[a-z]", value) and re.search(r"[A-Z]", value) and re.search(r"\d", value)):
        raise ValueError(
            "Password must contain at least one uppercase letter, one lowercase letter, and one number"
        )
    if not PASSWORD_ALLOWED_RE.match(value):
        raise ValueError("Password can only contain letters, numbers, and special characters @$!%*?&")
    return value


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def passwords_match(value: str | None, info: ValidationInfo) -> str | None:
    # password объявлен раньше confirm_password, поэтому уже лежит в info.data
    # (если сам password не прошёл проверку, его там нет, ошибка уже есть)
    password = info.data.get("password")
    if value is not None and password is not None and value != password:
        raise ValueError("Passwords do not match")
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Вход
# ---------------------------------------------------------------------------
class RegisterIn(CamelModel):
    # role / isActive во входе не объявлены и просто отбрасываются
    full_name: str
    phone_number: str
    email: EmailStr | None = None
    password: str
    confirm_password: str | None = None

    _blank_email = field_validator("email", mode="before")(_blank_to_none)

    @field_validator("full_name")
    @classmethod
    def _full_name(cls, v: str) -> str:
        return check_full_name(v)

    @field_validator("phone_number")
    @classmethod
    def _phone(cls, v: str) -> str:
        return check_phone(v)

    @field_validator("email")
    @classmethod
    def _email_lower(cls, v: str | None) -> str | None:
        return v.lower() if v else None

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        return check_password_strength(v)

    _confirm = field_validator("confirm_password")(passwords_match)


class LoginIn(CamelModel):
    phone_number: str
    password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)

    @field_validator("phone_number")
    @classmethod
    def _phone(cls, v: str) -> str:
        return check_phone(v)


class ProfileUpdateIn(CamelModel):
    full_name: str | None = None
    email: EmailStr | None = None
    country: str | None = Field(default=None, max_length=100)
    university: str | None = Field(default=None, max_length=150)
    # Объявлены только для явного отказа: менять их через профиль нельзя
    role: Any = None
    is_active: Any = None

    _blank_email = field_validator("email", mode="before")(_blank_to_none)

    @field_validator("full_name")
    @classmethod
    def _full_name(cls, v: str | None) -> str | None:
        return check_full_name(v, require_two_words=False) if v is not None else None

    @field_validator("email")
    @classmethod
    def _email_lower(cls, v: str | None) -> str | None:
        return v.lower() if v else None

    @property
    def touches_privileged_fields(self) -> bool:
        return bool({"role", "is_active"} & self.model_fields_set)


class ChangePasswordIn(CamelModel):
    current_password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)
    password: str
    confirm_password: str | None = None

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        return check_password_strength(v)

    _confirm = field_validator("confirm_password")(passwords_match)


class AdminUserUpdateIn(CamelModel):
    full_name: str | None = None
    email: EmailStr | None = None
    phone_number: str | None = None
    country: str | None = Field(default=None, max_length=100)
    university: str | None = Field(default=None, max_length=150)
    role: RoleEnum | None = None
    is_active: bool | None = None

    _blank_email = field_validator("email", mode="before")(_blank_to_none)

    @field_validator("full_name")
    @classmethod
    def _full_name(cls, v: str | None) -> str | None:
        return check_full_name(v, require_two_words=False) if v is not None else None

    @field_validator("phone_number")
    @classmethod
    def _phone(cls, v: str | None) -> str | None:
        return check_phone(v) if v is not None else None

    @field_validator("email")
    @classmethod
    def _email_lower(cls, v: str | None) -> str | None:
        return v.lower() if v else None


# ---------------------------------------------------------------------------
# Выход. Поля перечислены явно: password_hash сюда не попадает никогда.
# ---------------------------------------------------------------------------
class UserOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    full_name: str
    phone_number: str
    email: str | None = None
    role: RoleEnum
    is_active: bool
    country: str | None = None
    university: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class MessageOut(CamelModel):
    success: bool = True
    message: str


class AuthOut(MessageOut):
    token: str
    user: UserOut


class UserEnvelopeOut(CamelModel):
    success: bool = True
    message: str | None = None
    user: UserOut


class PaginationOut(CamelModel):
    total: int
    page: int
    limit: int
    pages: int


class UserListOut(CamelModel):
    success: bool = True
    data: list[UserOut]
    pagination: PaginationOut


class UserDataOut(CamelModel):
    success: bool = True
    data: UserOut


class StatsOut(CamelModel):
    total_users: int
    active_users: int
    users_by_role: dict[str, int]
    recent_users: list[UserOut]


class StatsEnvelopeOut(CamelModel):
    success: bool = True
    data: StatsOut
