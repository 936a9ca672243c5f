"""
ユーザー設定API
通知メッセージの言語設定
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.database import get_db
from app.dependencies import get_current_user_claims
from app.models.user import User
from app.schemas.user import PreferencesResponse, PreferencesUpdateRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])


@router.put("/me/preferences", response_model=PreferencesResponse, summary="言語設定更新")
def update_preferences(
    request: PreferencesUpdateRequest,
    claims: dict = Depends(get_current_user_claims),
    db: Session = Depends(get_db),
):
    """
    ログインユーザーの言語設定を更新

    以降に送信される通知はこの言語で整形される
    """
    user = db.get(User, claims["sub"])
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )

    user.language_preference = request.language_preference
    db.commit()
    db.refresh(user)
    logger.info(f"言語設定を更新しました: user={user.id}, language={user.language_preference}")

    return PreferencesResponse(
        message="Preferences updated successfully",
        language_preference=user.language_preference,
    )
