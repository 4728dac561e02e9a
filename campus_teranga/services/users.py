# campus_teranga/services/users.py
# Хранилище учётных записей и операции над ними: поиск, создание,
# проверка пароля, смена роли, профиль, деактивация, удаление.
import logging
import math

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campus_teranga.core import security
from campus_teranga.core.errors import (
    DuplicateKeyError,
    ForbiddenError,
    InvalidCredentialsError,
    NotFoundError,
)
from campus_teranga.models.user import RoleEnum, User
from campus_teranga.schemas.auth import AdminUserUpdateIn, ProfileUpdateIn
from campus_teranga.services import audit

logger = logging.getLogger(__name__)


def get_by_id(db: Session, user_id: str) -> User | None:
    return db.get(User, user_id)


def get_by_phone(db: Session, phone_number: str) -> User | None:
    return db.query(User).filter(User.phone_number == phone_number).first()


def get_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.lower()).first()


def get_or_404(db: Session, user_id: str) -> User:
    user = get_by_id(db, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def ensure_unique(
    db: Session,
    phone_number: str | None = None,
    email: str | None = None,
    exclude_id: str | None = None,
) -> None:
    """Бросает DuplicateKeyError, если телефон или email уже заняты другим пользователем."""
    if phone_number:
        existing = get_by_phone(db, phone_number)
        if existing is not None and existing.id != exclude_id:
            raise DuplicateKeyError("User already exists with this phone number")
    if email:
        existing = get_by_email(db, email)
        if existing is not None and existing.id != exclude_id:
            raise DuplicateKeyError("User already exists with this email address")


def _commit(db: Session) -> None:
    # Уникальные индексы: последняя линия защиты при гонке двух регистраций
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity error on commit: {e.orig}")
        raise DuplicateKeyError("Phone number or email address is already in use")


def create_user(
    db: Session,
    *,
    full_name: str,
    phone_number: str,
    password: str,
    email: str | None = None,
    role: RoleEnum = RoleEnum.user,
    country: str | None = None,
    university: str | None = None,
    actor: User | None = None,
) -> User:
    """Создаёт пользователя; пароль хешируется bcrypt до записи в БД."""
    email = email.lower() if email else None
    ensure_unique(db, phone_number=phone_number, email=email)
    user = User(
        full_name=full_name.strip(),
        phone_number=phone_number,
        email=email,
        password_hash=security.get_password_hash(password),
        role=RoleEnum(role),
        is_active=True,
        country=country,
        university=university,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Integrity error on insert: {e.orig}")
        raise DuplicateKeyError("Phone number or email address is already in use")
    action = audit.USER_REGISTERED if actor is None and user.role == RoleEnum.user else audit.USER_CREATED
    audit.record(db, action, user, actor=actor, details={"role": user.role.value})
    _commit(db)
    db.refresh(user)
    return user


def register(db: Session, *, full_name: str, phone_number: str, password: str, email: str | None = None) -> User:
    """Самостоятельная регистрация: роль всегда user, аккаунт активен."""
    return create_user(
        db,
        full_name=full_name,
        phone_number=phone_number,
        password=password,
        email=email,
        role=RoleEnum.user,
    )


def verify_secret(user: User, plaintext: str) -> bool:
    return security.verify_password(plaintext, user.password_hash)


def authenticate(db: Session, phone_number: str, password: str) -> User:
    """Логин по телефону и паролю.

    «Нет такого телефона» и «неверный пароль» дают одну и ту же ошибку.
    Деактивированный аккаунт отличается (403), но только после верного пароля.
    """
    user = get_by_phone(db, phone_number)
    if user is None:
        security.burn_password_check(password)
        logger.warning("Failed login attempt: unknown phone number")
        raise InvalidCredentialsError()
    if not verify_secret(user, password):
        logger.warning(f"Failed login attempt for user {user.id}")
        raise InvalidCredentialsError()
    if not user.is_active:
        logger.info(f"Login refused for deactivated user {user.id}")
        raise ForbiddenError("Account is deactivated. Please contact support.")
    logger.info(f"User logged in: {user.id}")
    return user


def update_role(db: Session, user_id: str, new_role: RoleEnum, actor: User | None) -> User:
    """Смена роли: только super_admin.

    actor=None означает оператора с доступом к консоли (команда set-role).
    """
    if actor is not None and RoleEnum(actor.role) != RoleEnum.super_admin:
        logger.warning(f"User {actor.id} ({actor.role}) tried to change role of {user_id}")
        raise ForbiddenError("Only super admin can change user roles")
    user = get_or_404(db, user_id)
    new_role = RoleEnum(new_role)
    old_role = RoleEnum(user.role)
    if old_role != new_role:
        user.role = new_role
        audit.record(
            db, audit.USER_ROLE_CHANGED, user, actor=actor,
            details={"from": old_role.value, "to": new_role.value},
        )
        _commit(db)
        db.refresh(user)
    return user


def update_profile(db: Session, user: User, data: ProfileUpdateIn) -> User:
    """Пользователь меняет свои непривилегированные поля."""
    if data.touches_privileged_fields:
        logger.warning(f"User {user.id} tried to change role/isActive via profile update")
        raise ForbiddenError("Role and account status cannot be changed via profile update")
    changes = data.model_dump(include={"full_name", "email", "country", "university"}, exclude_unset=True)
    # пустые значения не затирают существующие
    changes = {k: v for k, v in changes.items() if v is not None}
    if "email" in changes:
        ensure_unique(db, email=changes["email"], exclude_id=user.id)
    for field, value in changes.items():
        setattr(user, field, value)
    if changes:
        _commit(db)
        db.refresh(user)
        logger.info(f"User profile updated: {user.id} fields={sorted(changes)}")
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> None:
    if not verify_secret(user, current_password):
        raise InvalidCredentialsError("Current password is incorrect", status_code=400)
    user.password_hash = security.get_password_hash(new_password)
    audit.record(db, audit.USER_PASSWORD_CHANGED, user, actor=user)
    _commit(db)


def set_active(db: Session, user: User, is_active: bool, actor: User | None = None) -> User:
    if bool(user.is_active) == is_active:
        return user
    user.is_active = is_active
    action = audit.USER_ACTIVATED if is_active else audit.USER_DEACTIVATED
    audit.record(db, action, user, actor=actor)
    _commit(db)
    db.refresh(user)
    return user


def deactivate(db: Session, user: User) -> User:
    """Самостоятельная деактивация: выданные токены перестают работать."""
    return set_active(db, user, False, actor=user)


def admin_update_user(db: Session, user_id: str, data: AdminUserUpdateIn, actor: User) -> User:
    """Изменение пользователя администратором.

    role применяется только если actor является super_admin, иначе молча игнорируется.
    Записи super_admin может менять только super_admin.
    """
    user = get_or_404(db, user_id)
    actor_role = RoleEnum(actor.role)
    if RoleEnum(user.role) == RoleEnum.super_admin and actor_role != RoleEnum.super_admin:
        raise ForbiddenError("Only super admin can modify a super admin account")

    # все проверки до первого изменения: частичных обновлений не бывает
    toggle_active = data.is_active is not None and data.is_active != bool(user.is_active)
    if toggle_active and user.id == actor.id:
        raise ForbiddenError("You cannot change the status of your own account here")
    new_role = None
    if data.role is not None and data.role != RoleEnum(user.role):
        if actor_role == RoleEnum.super_admin:
            new_role = data.role
        else:
            logger.warning(f"Role change by {actor.id} ignored: super admin privileges required")

    changes = data.model_dump(
        include={"full_name", "email", "phone_number", "country", "university"},
        exclude_unset=True,
    )
    changes = {k: v for k, v in changes.items() if v is not None}
    ensure_unique(db, phone_number=changes.get("phone_number"), email=changes.get("email"), exclude_id=user.id)

    for field, value in changes.items():
        setattr(user, field, value)
    if changes:
        audit.record(db, audit.USER_UPDATED, user, actor=actor, details={"fields": sorted(changes)})
        _commit(db)
        db.refresh(user)
    if toggle_active:
        user = set_active(db, user, data.is_active, actor=actor)
    if new_role is not None:
        user = update_role(db, user.id, new_role, actor)
    return user


def delete_user(db: Session, user_id: str, actor: User) -> None:
    """Удаление: только super_admin, и не самого себя."""
    if RoleEnum(actor.role) != RoleEnum.super_admin:
        raise ForbiddenError("Access denied. Super admin privileges required.")
    user = get_or_404(db, user_id)
    if user.id == actor.id:
        raise ForbiddenError("You cannot delete your own account")
    audit.record(db, audit.USER_DELETED, user, actor=actor, details={"role": RoleEnum(user.role).value})
    db.delete(user)
    _commit(db)


def list_users(
    db: Session,
    page: int = 1,
    limit: int = 50,
    search: str = "",
    role: RoleEnum | None = None,
) -> tuple[list[User], dict]:
    query = db.query(User)
    search = (search or "").strip()
    if search:
        query = query.filter(
            or_(
                User.full_name.icontains(search, autoescape=True),
                User.email.icontains(search, autoescape=True),
                User.phone_number.icontains(search, autoescape=True),
            )
        )
    if role is not None:
        query = query.filter(User.role == RoleEnum(role))
    total = query.count()
    users = (
        query.order_by(User.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    pagination = {
        "total": total,
        "page": page,
        "limit": limit,
        "pages": math.ceil(total / limit) if limit else 0,
    }
    return users, pagination


def stats(db: Session) -> dict:
    total = db.query(func.count(User.id)).scalar() or 0
    active = db.query(func.count(User.id)).filter(User.is_active.is_(True)).scalar() or 0
    by_role = {r.value: 0 for r in RoleEnum}
    for role, count in db.query(User.role, func.count(User.id)).group_by(User.role).all():
        by_role[RoleEnum(role).value] = count
    recent = db.query(User).order_by(User.created_at.desc()).limit(5).all()
    return {
        "total_users": total,
        "active_users": active,
        "users_by_role": by_role,
        "recent_users": recent,
    }
