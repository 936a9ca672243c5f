"""
テスト用の共通設定・フィクスチャ
"""

import os
import uuid
from datetime import datetime, timedelta

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# テスト用の環境変数を設定（app.mainをインポートする前に設定）
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ["NOTIFICATION_WORKER_ENABLED"] = "false"
os.environ["WHATSAPP_ACCESS_TOKEN"] = ""
os.environ["WHATSAPP_PHONE_NUMBER_ID"] = ""
os.environ["WHATSAPP_VERIFY_TOKEN"] = "test-verify-token"
os.environ["AZURE_OPENAI_API_KEY"] = ""

from app.main import app
from app.config import settings
from app.database import get_db, Base
from app.dependencies import ALGORITHM, get_notification_processor, get_notification_store
from app.models import Notification, NotificationStatus, User
from app.services.delivery_channels import WhatsAppChannel
from app.services.notification_processor import NotificationProcessor
from app.services.notification_store import NotificationStore


# テスト用のインメモリSQLiteデータベース
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """テスト用のDBセッションを提供"""
    try:
        db = TestingSessionLocal()
        yield db
    finally:
        db.close()


# ============================================
# テスト用の送信クライアント
# ============================================
class FakeTransport:
    """WhatsAppCloudClient の代わりに送信内容を記録する"""

    def __init__(self, ready=True, fail_with=None, fail_for=None):
        self.is_ready = ready
        self.fail_with = fail_with
        self.fail_for = set(fail_for or [])
        self.sent = []

    def send_message(self, address, text):
        if self.fail_with and (not self.fail_for or address in self.fail_for):
            raise Exception(self.fail_with)
        self.sent.append((address, text))
        return f"wamid.{len(self.sent)}"


@pytest.fixture(scope="function")
def db_session():
    """各テスト用のDBセッション"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def legacy_schema(db_session):
    """error_message 列がない旧スキーマの notifications テーブル"""
    db_session.execute(text("ALTER TABLE notifications DROP COLUMN error_message"))
    db_session.commit()


@pytest.fixture
def store(db_session):
    """テスト用DBに接続した通知ストア"""
    return NotificationStore(TestingSessionLocal)


@pytest.fixture
def make_transport():
    """条件を指定して FakeTransport を作る"""
    return FakeTransport


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def processor(store, transport):
    """テスト用の通知プロセッサー（スケジューラーは起動しない）"""
    processor = NotificationProcessor(store, {"whatsapp": WhatsAppChannel(transport)})
    yield processor
    processor.stop()


@pytest.fixture(scope="function")
def client(db_session, store, processor):
    """テスト用のAPIクライアント"""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notification_store] = lambda: store
    app.dependency_overrides[get_notification_processor] = lambda: processor

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ============================================
# テストデータ
# ============================================
@pytest.fixture
def create_user(db_session):
    """テスト用ユーザーを作成する関数"""

    def _create_user(name="Test User", mobile_number="9876543210", language_preference="en", **overrides):
        values = {
            "id": str(uuid.uuid4()),
            "name": name,
            "mobile_number": mobile_number,
            "language_preference": language_preference,
            "is_active": True,
        }
        values.update(overrides)
        user = User(**values)
        db_session.add(user)
        db_session.commit()
        return user

    return _create_user


@pytest.fixture
def create_notification(db_session):
    """テスト用の通知を作成する関数"""

    def _create_notification(user, created_at=None, scheduled_at=None, **overrides):
        now = datetime.now()
        created_at = created_at or now - timedelta(minutes=1)
        values = {
            "id": str(uuid.uuid4()),
            "user_id": user.id,
            "type": "health_tip",
            "title": "Stay hydrated",
            "message": "Drink at least 8 glasses of water today.",
            "delivery_method": "whatsapp",
            "status": NotificationStatus.PENDING.value,
            "scheduled_at": scheduled_at or created_at,
            "created_at": created_at,
            "updated_at": created_at,
        }
        values.update(overrides)
        notification = Notification(**values)
        db_session.add(notification)
        db_session.commit()
        return notification

    return _create_notification


@pytest.fixture
def reload_notification(db_session):
    """ストア経由で更新された通知を読み直す関数"""

    def _reload(notification_id):
        db_session.expire_all()
        return db_session.get(Notification, notification_id)

    return _reload


# ============================================
# 認証ヘッダー
# ============================================
def _make_token(sub, token_type):
    return jwt.encode({"sub": sub, "type": token_type}, settings.SECRET_KEY, algorithm=ALGORITHM)


@pytest.fixture
def admin_headers():
    """管理者の認証ヘッダー"""
    return {"Authorization": f"Bearer {_make_token('admin-1', 'admin')}"}


@pytest.fixture
def user_headers_for():
    """ユーザーの認証ヘッダーを作る関数"""

    def _headers(user):
        return {"Authorization": f"Bearer {_make_token(user.id, 'user')}"}

    return _headers
