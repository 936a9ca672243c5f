"""
ユーザー向け通知API
自分宛ての通知履歴を取得
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user_claims
from app.models.notification import Notification
from app.schemas.notification import NotificationListResponse
from app.services.notification_store import OPTIONAL_ERROR_COLUMN, is_missing_column_error

router = APIRouter(prefix="/api/notifications", tags=["notifications"])

_HISTORY_COLUMNS = (
    Notification.id,
    Notification.user_id,
    Notification.type,
    Notification.title,
    Notification.message,
    Notification.delivery_method,
    Notification.status,
    Notification.scheduled_at,
    Notification.sent_at,
    Notification.phone_number,
    Notification.created_at,
    Notification.updated_at,
)


def _history_query(user_id: str, columns, page: int, limit: int):
    return (
        select(*columns)
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )


@router.get("/me", response_model=NotificationListResponse, summary="通知履歴")
def get_my_notifications(
    page: int = Query(1, ge=1, description="ページ番号"),
    limit: int = Query(10, ge=1, le=100, description="1ページあたりの取得件数"),
    claims: dict = Depends(get_current_user_claims),
    db: Session = Depends(get_db),
):
    """
    ログインユーザー宛ての通知を新しい順に取得

    error_message 列がないスキーマでは、その列を除いて取得する
    """
    user_id = claims["sub"]
    total = db.execute(
        select(func.count()).select_from(Notification).where(Notification.user_id == user_id)
    ).scalar_one()

    try:
        rows = db.execute(
            _history_query(user_id, _HISTORY_COLUMNS + (Notification.error_message,), page, limit)
        ).all()
    except DBAPIError as e:
        if not is_missing_column_error(e, OPTIONAL_ERROR_COLUMN):
            raise
        db.rollback()
        rows = db.execute(_history_query(user_id, _HISTORY_COLUMNS, page, limit)).all()

    return NotificationListResponse(
        notifications=[row._asdict() for row in rows],
        total=total,
        page=page,
        limit=limit,
    )
