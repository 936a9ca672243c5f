"""
管理者向けAPI
通知の送信先ユーザー一覧、通知テンプレート一覧
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_admin
from app.models.notification_template import NotificationTemplate
from app.models.user import User
from app.schemas.template import TemplateListResponse
from app.schemas.user import UserListResponse

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/users", response_model=UserListResponse, summary="送信先ユーザー一覧")
def list_users(
    page: int = Query(1, ge=1, description="ページ番号"),
    limit: int = Query(10, ge=1, le=1000, description="1ページあたりの取得件数"),
    search: str = Query("", max_length=100, description="名前・携帯番号・メールアドレスの部分一致"),
    admin: dict = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """
    有効なユーザーを登録日時の新しい順に取得

    管理画面で通知の送信先（user_ids）を選ぶために使う
    """
    query = select(User).where(User.is_active.is_(True))
    keyword = search.strip()
    if keyword:
        pattern = f"%{keyword}%"
        query = query.where(
            or_(
                User.name.ilike(pattern),
                User.mobile_number.ilike(pattern),
                User.email.ilike(pattern),
            )
        )

    total = db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
    users = db.execute(
        query.order_by(User.created_at.desc()).offset((page - 1) * limit).limit(limit)
    ).scalars().all()

    return UserListResponse(users=users, total=total, page=page, limit=limit)


@router.get("/templates", response_model=TemplateListResponse, summary="通知テンプレート一覧")
def list_templates(
    admin: dict = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """有効な通知テンプレートを作成日時の新しい順に取得"""
    templates = db.execute(
        select(NotificationTemplate)
        .where(NotificationTemplate.is_active.is_(True))
        .order_by(NotificationTemplate.created_at.desc())
    ).scalars().all()
    return TemplateListResponse(templates=templates)
