"""
管理者向け通知API
通知の一括登録、プロセッサー状態、手動実行、未送信一覧、統計
"""
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.dependencies import (
    get_current_admin,
    get_notification_processor,
    get_notification_store,
)
from app.schemas.notification import (
    NotificationSendRequest,
    NotificationSendResponse,
    NotificationStatsResponse,
    PendingNotificationListResponse,
    ProcessorStatusResponse,
    ProcessResponse,
)
from app.services.notification_processor import NotificationProcessor
from app.services.notification_store import (
    NotificationStore,
    NotificationValidationError,
    PendingNotification,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/notifications", tags=["admin-notifications"])

STATS_PERIOD_DAYS = 7


def _pending_to_dict(notification: PendingNotification) -> dict:
    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type,
        "title": notification.title,
        "message": notification.message,
        "delivery_method": notification.delivery_method,
        "status": notification.status,
        "scheduled_at": notification.scheduled_at,
        "created_at": notification.created_at,
        "user": {
            "mobile_number": notification.mobile_number,
            "name": notification.name,
            "language_preference": notification.language_preference,
        },
    }


@router.post("/send", response_model=NotificationSendResponse, summary="通知を一括登録")
def send_notifications(
    request: NotificationSendRequest,
    admin: dict = Depends(get_current_admin),
    store: NotificationStore = Depends(get_notification_store),
):
    """指定ユーザーへの通知を pending で登録（送信は通知プロセッサーが行う）"""
    try:
        notifications = store.enqueue(
            user_ids=request.user_ids,
            type=request.type,
            title=request.title,
            message=request.message,
            delivery_method=request.delivery_method,
            scheduled_at=request.scheduled_at,
            admin_id=admin.get("sub"),
        )
    except NotificationValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    return NotificationSendResponse(
        success=True,
        message=f"Notification queued for {len(notifications)} users via {request.delivery_method}",
        count=len(notifications),
        notifications=notifications,
    )


@router.get("/status", response_model=ProcessorStatusResponse, summary="通知プロセッサーの状態")
def get_processor_status(
    admin: dict = Depends(get_current_admin),
    processor: NotificationProcessor = Depends(get_notification_processor),
):
    return ProcessorStatusResponse(
        status=processor.get_status(),
        message="Notification processor status retrieved successfully",
    )


@router.post("/process", response_model=ProcessResponse, summary="通知処理を手動実行")
def process_notifications(
    admin: dict = Depends(get_current_admin),
    processor: NotificationProcessor = Depends(get_notification_processor),
):
    """未送信の通知を1回分処理（実行中の場合は409）"""
    already_running = HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail="Notification processor is already processing notifications",
    )
    if processor.is_processing:
        raise already_running

    logger.info("🔄 管理者が通知処理を手動実行しました")
    result = processor.process_pending_notifications()
    if result is None:
        raise already_running

    return ProcessResponse(
        success=True,
        message="Notification processing triggered successfully",
        timestamp=datetime.now(),
        **result.to_dict(),
    )


@router.get("/pending", response_model=PendingNotificationListResponse, summary="未送信の通知一覧")
def list_pending_notifications(
    page: int = Query(1, ge=1, description="ページ番号"),
    limit: int = Query(20, ge=1, le=100, description="1ページあたりの取得件数"),
    admin: dict = Depends(get_current_admin),
    store: NotificationStore = Depends(get_notification_store),
):
    notifications, total = store.list_pending(page=page, limit=limit)
    return PendingNotificationListResponse(
        notifications=[_pending_to_dict(n) for n in notifications],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/stats", response_model=NotificationStatsResponse, summary="通知統計（直近7日間）")
def get_notification_stats(
    admin: dict = Depends(get_current_admin),
    store: NotificationStore = Depends(get_notification_store),
):
    return NotificationStatsResponse(
        stats=store.get_stats(days=STATS_PERIOD_DAYS),
        period=f"Last {STATS_PERIOD_DAYS} days",
    )
