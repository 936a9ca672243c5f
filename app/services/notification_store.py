"""
通知キューストア
notifications テーブルへのアクセス（未送信取得・ステータス更新・登録・集計）を担当
"""

import uuid
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import func, insert, select, update
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.models.notification import Notification, NotificationStatus
from app.models.user import User
from app.services.delivery_channels import DeliveryMethod

logger = logging.getLogger(__name__)

# 1回の処理で取得する最大件数
DEFAULT_BATCH_SIZE = 50

# 旧スキーマでは存在しない可能性がある列
OPTIONAL_ERROR_COLUMN = "error_message"


# ============================================
# カスタム例外
# ============================================
class NotificationValidationError(Exception):
    """通知登録時の入力エラー"""

    def __init__(self, message: str, invalid_users: Optional[List[Dict[str, Any]]] = None):
        self.message = message
        self.invalid_users = invalid_users or []
        super().__init__(message)


@dataclass(frozen=True)
class PendingNotification:
    """送信対象の通知（受信者情報を結合したスナップショット）"""

    id: str
    user_id: str
    type: str
    title: str
    message: str
    delivery_method: str
    status: str
    scheduled_at: datetime
    created_at: datetime
    mobile_number: Optional[str]
    name: Optional[str]
    language_preference: Optional[str]


_PENDING_COLUMNS = (
    Notification.id,
    Notification.user_id,
    Notification.type,
    Notification.title,
    Notification.message,
    Notification.delivery_method,
    Notification.status,
    Notification.scheduled_at,
    Notification.created_at,
    User.mobile_number,
    User.name,
    User.language_preference,
)


def _to_pending(row) -> PendingNotification:
    return PendingNotification(
        id=row.id,
        user_id=row.user_id,
        type=row.type,
        title=row.title,
        message=row.message,
        delivery_method=row.delivery_method,
        status=row.status,
        scheduled_at=row.scheduled_at,
        created_at=row.created_at,
        mobile_number=row.mobile_number,
        name=row.name,
        language_preference=row.language_preference,
    )


def is_missing_column_error(error: Exception, column: str) -> bool:
    """列が存在しないことによる書き込みエラーか判定"""
    if not isinstance(error, DBAPIError):
        return False
    detail = str(error.orig) if error.orig is not None else str(error)
    return column in detail


class NotificationStore:
    """通知キューストア"""

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    @contextmanager
    def _session(self):
        db: Session = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    # ============================================
    # 通知プロセッサー用
    # ============================================
    def fetch_pending(
        self, limit: int = DEFAULT_BATCH_SIZE, now: Optional[datetime] = None
    ) -> List[PendingNotification]:
        """
        送信対象の通知を取得

        status = pending かつ scheduled_at <= now のものを作成日時の古い順に取得する

        Parameters:
            limit: 最大取得件数
            now: 基準時刻（省略時は現在時刻）

        Returns:
            PendingNotification のリスト
        """
        now = now or datetime.now()
        stmt = (
            select(*_PENDING_COLUMNS)
            .join(User, Notification.user_id == User.id)
            .where(
                Notification.status == NotificationStatus.PENDING.value,
                Notification.scheduled_at <= now,
            )
            .order_by(Notification.created_at.asc())
            .limit(limit)
        )
        with self._session() as db:
            rows = db.execute(stmt).all()
        return [_to_pending(row) for row in rows]

    def mark_status(
        self,
        notification_id: str,
        status: str,
        error_message: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        通知ステータスを更新（pending の行のみ）

        error_message 列が存在しないスキーマの場合は、その列を除いて1回だけ再試行する

        Parameters:
            notification_id: 通知ID
            status: 新しいステータス（sent / failed）
            error_message: 失敗理由
            extra: 追加で更新する列（sent_at, phone_number など）

        Returns:
            bool: 行が更新された場合True
        """
        values: Dict[str, Any] = {
            "status": status,
            "updated_at": datetime.now(),
            **(extra or {}),
        }
        if error_message:
            values[OPTIONAL_ERROR_COLUMN] = error_message

        try:
            return self._apply_update(notification_id, values) > 0
        except SQLAlchemyError as e:
            logger.error(f"通知ステータス更新エラー: id={notification_id}, error={str(e)}")
            if OPTIONAL_ERROR_COLUMN not in values or not is_missing_column_error(e, OPTIONAL_ERROR_COLUMN):
                return False

        logger.info(f"{OPTIONAL_ERROR_COLUMN} 列なしで再試行します: id={notification_id}")
        values.pop(OPTIONAL_ERROR_COLUMN)
        try:
            updated = self._apply_update(notification_id, values) > 0
        except SQLAlchemyError as e:
            logger.error(f"再試行も失敗しました: id={notification_id}, error={str(e)}")
            return False

        logger.info(f"{OPTIONAL_ERROR_COLUMN} 列なしで更新しました: id={notification_id}")
        return updated

    def _apply_update(self, notification_id: str, values: Dict[str, Any]) -> int:
        stmt = (
            update(Notification)
            .where(
                Notification.id == notification_id,
                Notification.status == NotificationStatus.PENDING.value,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        with self._session() as db:
            try:
                result = db.execute(stmt)
                db.commit()
            except SQLAlchemyError:
                db.rollback()
                raise
            return result.rowcount

    # ============================================
    # 管理画面用
    # ============================================
    def enqueue(
        self,
        user_ids: Iterable[str],
        type: str,
        title: str,
        message: str,
        delivery_method: str = DeliveryMethod.WHATSAPP.value,
        scheduled_at: Optional[datetime] = None,
        admin_id: Optional[str] = None,
    ) -> List[Notification]:
        """
        ユーザーごとに pending の通知を登録

        Raises:
            NotificationValidationError: 配信方法が不正、またはWhatsApp送信先が不足している場合
        """
        user_ids = list(dict.fromkeys(user_ids))
        valid_methods = [m.value for m in DeliveryMethod]
        if delivery_method not in valid_methods:
            raise NotificationValidationError(
                f"Invalid delivery method. Must be one of: {', '.join(valid_methods)}"
            )
        if not user_ids:
            raise NotificationValidationError("At least one user ID is required")

        now = datetime.now()
        with self._session() as db:
            users = db.execute(select(User).where(User.id.in_(user_ids))).scalars().all()
            found = {user.id: user for user in users}

            missing = [user_id for user_id in user_ids if user_id not in found]
            if missing:
                raise NotificationValidationError(
                    f"Some users ({len(missing)}) were not found",
                    invalid_users=[{"id": user_id, "name": None} for user_id in missing],
                )

            if delivery_method == DeliveryMethod.WHATSAPP.value:
                without_phone = [user for user in users if not user.mobile_number]
                if without_phone:
                    raise NotificationValidationError(
                        f"Some users ({len(without_phone)}) don't have mobile numbers for WhatsApp delivery",
                        invalid_users=[{"id": u.id, "name": u.name} for u in without_phone],
                    )

            rows = [
                {
                    "id": str(uuid.uuid4()),
                    "user_id": user_id,
                    "admin_id": admin_id,
                    "type": type,
                    "title": title,
                    "message": message,
                    "delivery_method": delivery_method,
                    "status": NotificationStatus.PENDING.value,
                    "scheduled_at": scheduled_at or now,
                    "created_at": now,
                    "updated_at": now,
                    "data": {
                        "created_by_admin": True,
                        "delivery_method": delivery_method,
                        "created_at": now.isoformat(),
                    },
                }
                for user_id in user_ids
            ]
            # error_message 列を含めずに登録する（列のない旧スキーマでも登録できる）
            try:
                db.execute(insert(Notification), rows)
                db.commit()
            except SQLAlchemyError:
                db.rollback()
                raise

        logger.info(f"通知を登録しました: {len(rows)}件 via {delivery_method}")
        return [Notification(**row) for row in rows]

    def list_pending(self, page: int = 1, limit: int = 20) -> Tuple[List[PendingNotification], int]:
        """未送信の通知一覧（新しい順）"""
        base = (
            select(*_PENDING_COLUMNS)
            .join(User, Notification.user_id == User.id)
            .where(Notification.status == NotificationStatus.PENDING.value)
        )
        with self._session() as db:
            total = db.execute(
                select(func.count()).select_from(base.subquery())
            ).scalar_one()
            rows = db.execute(
                base.order_by(Notification.created_at.desc())
                .offset((page - 1) * limit)
                .limit(limit)
            ).all()
        return [_to_pending(row) for row in rows], total

    def get_stats(self, days: int = 7) -> Dict[str, int]:
        """直近 days 日間の通知件数をステータス・配信方法ごとに集計"""
        since = datetime.now() - timedelta(days=days)
        stats = {"total": 0}
        stats.update({s.value: 0 for s in NotificationStatus})
        stats.update({m.value: 0 for m in DeliveryMethod})

        with self._session() as db:
            by_status = db.execute(
                select(Notification.status, func.count())
                .where(Notification.created_at >= since)
                .group_by(Notification.status)
            ).all()
            by_method = db.execute(
                select(Notification.delivery_method, func.count())
                .where(Notification.created_at >= since)
                .group_by(Notification.delivery_method)
            ).all()

        for status, count in by_status:
            stats[status] = count
            stats["total"] += count
        for method, count in by_method:
            stats[method] = count
        return stats
