# campus_teranga/models/admin_action.py
# Журнал действий над учётными записями: регистрация, смена роли, удаление и т.д.
import uuid

from sqlalchemy import JSON, Column, DateTime, String

from campus_teranga.db.base import Base
from campus_teranga.models.user import utcnow


class AdminAction(Base):
    __tablename__ = "admin_actions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    # None: действие без актора (самостоятельная регистрация, CLI)
    actor_id = Column(String(36), nullable=True, index=True)
    action = Column(String(64), nullable=False)
    target_user_id = Column(String(36), nullable=True, index=True)
    target_phone = Column(String(16), nullable=True)
    details = Column(JSON, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
