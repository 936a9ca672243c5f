"""
通知ワーカー実行スクリプト（APIサーバーとは別プロセスで通知を配信する）

使い方:
    python -m app.scripts.run_notification_worker

APIサーバー側は NOTIFICATION_WORKER_ENABLED=false にして二重配信を避けること
"""
import sys
import os
import signal
import logging
import threading
from datetime import datetime

# プロジェクトルートをパスに追加
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from dotenv import load_dotenv
load_dotenv()

from app.database import SessionLocal, engine
from app.services.notification_processor import create_notification_processor
from app.services.notification_store import NotificationStore
from app.services.whatsapp_client import WhatsAppCloudClient

REQUIRED_ENV_VARS = ["DATABASE_URL", "WHATSAPP_ACCESS_TOKEN", "WHATSAPP_PHONE_NUMBER_ID"]
STATUS_LOG_INTERVAL_SECONDS = 300

logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger("notification_worker")


def missing_env_vars() -> list:
    """未設定の必須環境変数を返す"""
    return [name for name in REQUIRED_ENV_VARS if not os.getenv(name)]


def main() -> int:
    """メイン処理"""
    print("=" * 60)
    print("🚀 通知ワーカー")
    print(f"   起動日時: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print("=" * 60)

    missing = missing_env_vars()
    if missing:
        print(f"\n❌ 必須の環境変数が未設定です: {', '.join(missing)}")
        return 1

    stop_event = threading.Event()

    def handle_signal(signum, frame):
        logger.info(f"🛑 シグナル受信 ({signal.Signals(signum).name})、停止します")
        stop_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    store = NotificationStore(SessionLocal)
    whatsapp_client = WhatsAppCloudClient()
    processor = create_notification_processor(store, whatsapp_client)

    try:
        if not whatsapp_client.start():
            logger.warning("⚠️ WhatsApp接続確認に失敗しました（準備完了まで通知は配信されません）")

        processor.start()
        logger.info("✅ 通知ワーカー起動完了")

        while not stop_event.wait(STATUS_LOG_INTERVAL_SECONDS):
            status = processor.get_status()
            logger.info(
                f"📊 ワーカー状態: running={status['is_running']}, "
                f"processing={status['is_processing']}, channel_ready={status['channel_ready']}"
            )
    finally:
        processor.stop()
        whatsapp_client.stop()
        engine.dispose()

    print("\n✅ 通知ワーカーを停止しました")
    return 0


if __name__ == "__main__":
    exit_code = main()
    sys.exit(exit_code)
