# campus_teranga/core/security.py
# Функции для хеширования паролей, работы с JWT и зависимости-гейты
# (аутентификация и проверка ролей) для эндпоинтов.
import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from campus_teranga.core.config import JWT_AUDIENCE, JWT_ISSUER, settings
from campus_teranga.core.errors import ForbiddenError, UnauthenticatedError
from campus_teranga.db.session import get_db
from campus_teranga.models.user import RoleEnum, User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
# auto_error=False: отсутствие токена обрабатываем сами, чтобы ответ был в общем формате
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_password_hash(password: str) -> str:
    """Хешируем пароль для хранения в БД."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Проверяем пароль при логине (сравнение за постоянное время внутри passlib)."""
    return pwd_context.verify(plain_password, hashed_password)


@lru_cache(maxsize=1)
def _dummy_hash() -> str:
    return pwd_context.hash("campus-teranga-dummy-password")


def burn_password_check(plain_password: str) -> None:
    """Проверка против фиктивного хеша, когда пользователь не найден.

    Ответ на «нет такого телефона» занимает столько же, сколько на «неверный пароль».
    """
    pwd_context.verify(plain_password, _dummy_hash())


def create_access_token(subject: str, expires_delta: timedelta | None = None) -> str:
    """Создаём JWT токен с полем sub = subject (id пользователя)."""
    secret = settings.require_jwt_secret()
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode = {
        "sub": str(subject),
        "iat": now,
        "exp": now + expires_delta,
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
    }
    return jwt.encode(to_encode, secret, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Проверяет подпись, срок действия, aud и iss.

    Любая ошибка сводится к одному UnauthenticatedError с одинаковым текстом,
    чтобы не раскрывать, какая именно проверка не прошла.
    """
    secret = settings.require_jwt_secret()
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[settings.JWT_ALGORITHM],
            audience=JWT_AUDIENCE,
            issuer=JWT_ISSUER,
            # без require_aud jose пропускает токен вовсе без aud
            options={"require_aud": True, "require_iss": True, "require_exp": True, "require_sub": True},
        )
    except JWTError as e:
        logger.debug(f"Token rejected: {e}")
        raise UnauthenticatedError("Invalid or expired token")
    if not payload.get("sub"):
        raise UnauthenticatedError("Invalid or expired token")
    return payload


def get_current_user(token: str | None = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    """Возвращает текущего пользователя по JWT или бросает 401/403."""
    if not token:
        raise UnauthenticatedError("Access token is required")
    payload = decode_access_token(token)
    user = db.get(User, payload["sub"])
    if user is None:
        # токен валиден, но аккаунт уже удалён
        raise UnauthenticatedError("Invalid or expired token")
    if not user.is_active:
        raise ForbiddenError("Account is deactivated")
    return user


def require_role(minimum: RoleEnum):
    """Фабрика зависимости: пропускает пользователей с ролью не ниже minimum."""
    def _checker(current_user: User = Depends(get_current_user)) -> User:
        if not RoleEnum(current_user.role).at_least(minimum):
            logger.warning(
                f"Access denied for user {current_user.id}: role {current_user.role} < {minimum.value}"
            )
            if minimum == RoleEnum.super_admin:
                raise ForbiddenError("Access denied. Super admin privileges required.")
            raise ForbiddenError("Access denied. Admin privileges required.")
        return current_user
    return _checker


require_admin = require_role(RoleEnum.admin)
require_super_admin = require_role(RoleEnum.super_admin)
