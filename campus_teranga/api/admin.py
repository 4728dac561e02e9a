# campus_teranga/api/admin.py
# Управление пользователями из админки. Все роуты требуют минимум admin,
# удаление только super_admin.
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from campus_teranga.core.security import require_admin, require_super_admin
from campus_teranga.db.session import get_db
from campus_teranga.models.user import RoleEnum, User
from campus_teranga.schemas.auth import (
    AdminUserUpdateIn,
    MessageOut,
    PaginationOut,
    StatsEnvelopeOut,
    StatsOut,
    UserDataOut,
    UserListOut,
    UserOut,
)
from campus_teranga.services import users as user_service

router = APIRouter()


@router.get("/stats", response_model=StatsEnvelopeOut)
def dashboard_stats(db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    data = user_service.stats(db)
    data["recent_users"] = [UserOut.model_validate(u) for u in data["recent_users"]]
    return StatsEnvelopeOut(data=StatsOut(**data))


@router.get("/users", response_model=UserListOut)
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    search: str = Query("", max_length=100),
    role: RoleEnum | None = Query(None),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    users, pagination = user_service.list_users(db, page=page, limit=limit, search=search, role=role)
    return UserListOut(
        data=[UserOut.model_validate(u) for u in users],
        pagination=PaginationOut(**pagination),
    )


@router.get("/users/{user_id}", response_model=UserDataOut)
def get_user(user_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return UserDataOut(data=UserOut.model_validate(user_service.get_or_404(db, user_id)))


@router.put("/users/{user_id}", response_model=UserDataOut)
def update_user(
    user_id: str,
    payload: AdminUserUpdateIn,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """role применяется только для super_admin, для admin молча игнорируется."""
    user = user_service.admin_update_user(db, user_id, payload, actor=admin)
    return UserDataOut(data=UserOut.model_validate(user))


@router.delete("/users/{user_id}", response_model=MessageOut)
def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    super_admin: User = Depends(require_super_admin),
):
    user_service.delete_user(db, user_id, actor=super_admin)
    return MessageOut(message="User deleted successfully")
