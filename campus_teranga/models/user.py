# campus_teranga/models/user.py
# Модель пользователя: phone_number, password_hash, role, is_active.
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Enum, String

from campus_teranga.db.base import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RoleEnum(str, enum.Enum):
    # порядок объявления = порядок привилегий
    user = "user"
    admin = "admin"
    super_admin = "super_admin"

    @property
    def rank(self) -> int:
        return list(RoleEnum).index(self)

    def at_least(self, other: "RoleEnum") -> bool:
        return self.rank >= RoleEnum(other).rank


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    full_name = Column(String(50), nullable=False)
    phone_number = Column(String(16), unique=True, index=True, nullable=False)
    email = Column(String(254), unique=True, index=True, nullable=True)
    password_hash = Column(String, nullable=False)
    role = Column(Enum(RoleEnum, name="user_role"), nullable=False, default=RoleEnum.user)
    is_active = Column(Boolean, nullable=False, default=True)
    country = Column(String(100), nullable=True)
    university = Column(String(150), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        # password_hash сюда не попадает намеренно
        return f"<User id={self.id} phone={self.phone_number} role={self.role}>"
