"""
通知プロセッサー

APSchedulerで定期的に未送信の通知を取得し、配信チャネルで送信する
- 定期実行: 30秒ごと
- 初回実行: 起動5秒後（チャネル初期化を待つ）
- 1回の処理件数: 最大50件（古い順）

同時に実行される処理は常に1つだけ。実行中に来たトリガーは待たずに破棄する
（ロックは非ブロッキングで取得し、finally で必ず解放する）

失敗した通知の再送はしない。ストア書き込みに失敗した通知は pending のまま残り、
次回の処理で再取得される
"""

import logging
import threading
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta
from typing import Dict, Mapping, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from app.config import settings
from app.models.notification import NotificationStatus
from app.services.delivery_channels import (
    ChannelNotReadyError,
    DeliveryChannel,
    DeliveryError,
    DeliveryMethod,
    WhatsAppChannel,
)
from app.services.message_formatter import format_notification_message
from app.services.notification_store import (
    DEFAULT_BATCH_SIZE,
    NotificationStore,
    PendingNotification,
)
from app.services.phone_normalizer import normalize_phone_number

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 30
DEFAULT_WARMUP_SECONDS = 5

# 失敗理由
ERROR_MOBILE_NOT_FOUND = "User mobile number not found"
ERROR_INVALID_PHONE = "Invalid phone number format"
ERROR_WHATSAPP_NOT_INITIALIZED = "WhatsApp bot not initialized"
ERROR_WHATSAPP_NOT_READY = "WhatsApp bot not ready"
ERROR_SMS_NOT_IMPLEMENTED = "SMS delivery not implemented"
ERROR_UNKNOWN_METHOD = "Unknown delivery method"

# 1件ごとの処理結果
OUTCOME_SENT = "sent"
OUTCOME_FAILED = "failed"
OUTCOME_SKIPPED = "skipped"


@dataclass
class PassResult:
    """1回の処理結果サマリー"""

    fetched: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class NotificationProcessor:
    """通知プロセッサー"""

    def __init__(
        self,
        store: NotificationStore,
        channels: Mapping[str, DeliveryChannel],
        interval_seconds: int = DEFAULT_INTERVAL_SECONDS,
        warmup_seconds: int = DEFAULT_WARMUP_SECONDS,
        batch_size: int = DEFAULT_BATCH_SIZE,
        requeue_when_channel_not_ready: bool = False,
    ):
        self.store = store
        self.channels: Dict[str, DeliveryChannel] = {
            DeliveryMethod(method).value: channel for method, channel in channels.items()
        }
        self.interval_seconds = interval_seconds
        self.warmup_seconds = warmup_seconds
        self.batch_size = batch_size
        self.requeue_when_channel_not_ready = requeue_when_channel_not_ready

        self._scheduler: Optional[BackgroundScheduler] = None
        # start/stop の排他制御用
        self._state_lock = threading.Lock()
        # 処理の同時実行防止用
        self._processing_lock = threading.Lock()

    # ============================================
    # スケジューラー制御
    # ============================================
    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    @property
    def is_processing(self) -> bool:
        return self._processing_lock.locked()

    def start(self) -> None:
        """定期処理を開始（実行中なら何もしない）"""
        with self._state_lock:
            if self.is_running:
                logger.info("📢 通知プロセッサーは既に実行中です")
                return

            logger.info("🚀 通知プロセッサーを開始します...")
            scheduler = BackgroundScheduler()
            scheduler.add_job(
                self._run_scheduled_pass,
                trigger=IntervalTrigger(seconds=self.interval_seconds),
                id="notification_processing",
                name="通知送信",
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )
            scheduler.add_job(
                self._run_scheduled_pass,
                trigger=DateTrigger(
                    run_date=datetime.now() + timedelta(seconds=self.warmup_seconds)
                ),
                id="notification_processing_warmup",
                name="通知送信（初回）",
                replace_existing=True,
                max_instances=1,
            )
            scheduler.start()
            self._scheduler = scheduler

        logger.info(f"✅ 通知プロセッサー開始（{self.interval_seconds}秒ごとにチェック）")

    def stop(self) -> None:
        """定期処理を停止（実行中の処理は中断しない）"""
        with self._state_lock:
            if self._scheduler is None:
                return
            if self._scheduler.running:
                self._scheduler.shutdown(wait=False)
            self._scheduler = None
        logger.info("🛑 通知プロセッサー停止")

    def get_status(self) -> dict:
        """プロセッサーの状態を取得"""
        whatsapp = self.channels.get(DeliveryMethod.WHATSAPP.value)
        return {
            "is_running": self.is_running,
            "is_processing": self.is_processing,
            "channel_ready": bool(whatsapp and whatsapp.is_ready),
            "timestamp": datetime.now(),
        }

    def _run_scheduled_pass(self) -> None:
        try:
            self.process_pending_notifications()
        except Exception as e:
            logger.error(f"❌ 定期通知処理エラー: {str(e)}")

    # ============================================
    # 通知処理
    # ============================================
    def process_pending_notifications(self) -> Optional[PassResult]:
        """
        未送信の通知を1回分処理

        Returns:
            PassResult: 処理結果（他の処理が実行中でスキップした場合はNone）
        """
        acquired = self._processing_lock.acquire(blocking=False)
        if not acquired:
            logger.info("⏳ 通知処理が実行中のためスキップ")
            return None

        result = PassResult()
        try:
            pending = self.store.fetch_pending(limit=self.batch_size)
            result.fetched = len(pending)

            if not pending:
                logger.info("📭 送信待ちの通知はありません")
                return result

            logger.info(f"📬 {len(pending)}件の通知を処理します")

            for notification in pending:
                outcome = self.process_notification(notification)
                if outcome == OUTCOME_SENT:
                    result.sent += 1
                elif outcome == OUTCOME_FAILED:
                    result.failed += 1
                else:
                    result.skipped += 1

            logger.info(
                f"✅ 通知処理完了: 送信={result.sent}, 失敗={result.failed}, 保留={result.skipped}"
            )
        except Exception as e:
            logger.error(f"❌ 通知処理エラー: {str(e)}")
        finally:
            self._processing_lock.release()

        return result

    def process_notification(self, notification: PendingNotification) -> str:
        """
        通知1件を処理

        Returns:
            str: "sent" / "failed" / "skipped"（ステータスを書き込めず pending のまま残った場合は "skipped"）
        """
        try:
            logger.info(f"📤 通知を処理中: id={notification.id}, user={notification.user_id}")

            if not notification.mobile_number:
                return self._fail(notification, ERROR_MOBILE_NOT_FOUND)

            phone_number = normalize_phone_number(notification.mobile_number)
            if not phone_number:
                return self._fail(notification, ERROR_INVALID_PHONE)

            method = notification.delivery_method
            if method == DeliveryMethod.WHATSAPP.value:
                channel = self.channels.get(method)
                if channel is None:
                    return self._fail(notification, ERROR_WHATSAPP_NOT_INITIALIZED)

                text = format_notification_message(
                    notification.title,
                    notification.message,
                    notification.language_preference,
                )
                try:
                    self._require_ready(channel)
                    channel.send(phone_number, text)
                except ChannelNotReadyError as e:
                    if self.requeue_when_channel_not_ready:
                        logger.warning(f"WhatsAppが未接続のため保留: id={notification.id}")
                        return OUTCOME_SKIPPED
                    return self._fail(notification, e.message)
                except DeliveryError as e:
                    return self._fail(notification, e.message)
            elif method == DeliveryMethod.SMS.value:
                return self._fail(notification, ERROR_SMS_NOT_IMPLEMENTED)
            else:
                return self._fail(notification, ERROR_UNKNOWN_METHOD)

            updated = self.store.mark_status(
                notification.id,
                NotificationStatus.SENT.value,
                extra={
                    "sent_at": datetime.now(),
                    "delivery_method_used": method,
                    "phone_number": phone_number,
                },
            )
            if not updated:
                logger.warning(f"⚠️ 送信済みステータスを記録できませんでした（pending のまま）: id={notification.id}")
                return OUTCOME_SKIPPED
            logger.info(f"✅ 通知を送信しました: id={notification.id} via {method}")
            return OUTCOME_SENT

        except Exception as e:
            logger.error(f"通知処理エラー: id={notification.id}, error={str(e)}")
            try:
                updated = self.store.mark_status(notification.id, NotificationStatus.FAILED.value, str(e))
            except Exception as store_error:
                logger.error(f"失敗ステータスの記録にも失敗: id={notification.id}, error={str(store_error)}")
                return OUTCOME_SKIPPED
            return OUTCOME_FAILED if updated else OUTCOME_SKIPPED

    @staticmethod
    def _require_ready(channel: DeliveryChannel) -> None:
        """
        送信前にチャネルの準備状態を確認

        Raises:
            ChannelNotReadyError: チャネルが送信可能な状態ではない場合
        """
        if not channel.is_ready:
            raise ChannelNotReadyError(ERROR_WHATSAPP_NOT_READY)

    def _fail(self, notification: PendingNotification, reason: str) -> str:
        if not self.store.mark_status(notification.id, NotificationStatus.FAILED.value, reason):
            logger.warning(f"⚠️ 失敗ステータスを記録できませんでした（pending のまま）: id={notification.id}")
            return OUTCOME_SKIPPED
        logger.info(f"❌ 通知の送信に失敗しました: id={notification.id}, reason={reason}")
        return OUTCOME_FAILED


def create_notification_processor(store: NotificationStore, whatsapp_transport) -> NotificationProcessor:
    """設定値から通知プロセッサーを組み立てる（APIサーバー・ワーカー共通）"""
    return NotificationProcessor(
        store=store,
        channels={DeliveryMethod.WHATSAPP: WhatsAppChannel(whatsapp_transport)},
        interval_seconds=settings.NOTIFICATION_INTERVAL_SECONDS,
        warmup_seconds=settings.NOTIFICATION_WARMUP_SECONDS,
        batch_size=settings.NOTIFICATION_BATCH_SIZE,
        requeue_when_channel_not_ready=settings.NOTIFICATION_REQUEUE_WHEN_NOT_READY,
    )
