# campus_teranga/services/audit.py
# Журнал действий над учётными записями: пишет в лог и в таблицу admin_actions.
import logging

from sqlalchemy.orm import Session

from campus_teranga.models.admin_action import AdminAction
from campus_teranga.models.user import User

logger = logging.getLogger("campus_teranga.audit")

USER_REGISTERED = "user.registered"
USER_CREATED = "user.created"
USER_UPDATED = "user.updated"
USER_ROLE_CHANGED = "user.role_changed"
USER_ACTIVATED = "user.activated"
USER_DEACTIVATED = "user.deactivated"
USER_PASSWORD_CHANGED = "user.password_changed"
USER_DELETED = "user.deleted"


def record(
    db: Session,
    action: str,
    target: User,
    actor: User | None = None,
    details: dict | None = None,
) -> AdminAction:
    """Добавляет запись в сессию; commit делает вызывающий вместе с основным изменением."""
    actor_id = actor.id if actor is not None else None
    entry = AdminAction(
        actor_id=actor_id,
        action=action,
        target_user_id=target.id,
        target_phone=target.phone_number,
        details=details or {},
    )
    db.add(entry)
    logger.info(f"{action}: target={target.id} actor={actor_id or '-'} details={details or {}}")
    return entry


def list_for_user(db: Session, user_id: str) -> list[AdminAction]:
    return (
        db.query(AdminAction)
        .filter(AdminAction.target_user_id == user_id)
        .order_by(AdminAction.created_at.asc())
        .all()
    )
