"""
FastAPI メインアプリケーション
Nivrit AI - ヘルスケアチャットボット / WhatsApp通知
"""

import logging
import threading
from contextlib import asynccontextmanager
from datetime import datetime

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text

load_dotenv()

from app.config import settings
from app.database import SessionLocal, engine
from app.rate_limiter import limiter
from app.routers.admin import router as admin_router
from app.routers.admin_notifications import router as admin_notifications_router
from app.routers.chat import router as chat_router
from app.routers.notification import router as notification_router
from app.routers.user import router as user_router
from app.routers.whatsapp import router as whatsapp_router
from app.services import ai_service
from app.services.notification_processor import create_notification_processor
from app.services.notification_store import NotificationStore
from app.services.whatsapp_bot import WhatsAppBot
from app.services.whatsapp_client import WhatsAppCloudClient

# ログ設定
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# ============================================
# ライフサイクル管理
# ============================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """アプリケーションの起動・終了処理"""
    logger.info("🚀 Nivrit AI Backend starting...")

    # DB接続テスト
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
            logger.info("✅ Database connection test successful")
    except Exception as e:
        logger.error(f"❌ Database connection test failed: {e}")

    if not ai_service.validate_env_variables():
        logger.warning("⚠️ Azure OpenAI未設定のため、AIチャットは利用できません")

    store = NotificationStore(SessionLocal)
    whatsapp_client = WhatsAppCloudClient()
    whatsapp_bot = WhatsAppBot(whatsapp_client)
    processor = create_notification_processor(store, whatsapp_client)

    app.state.notification_store = store
    app.state.whatsapp_client = whatsapp_client
    app.state.whatsapp_bot = whatsapp_bot
    app.state.notification_processor = processor

    # 接続確認はネットワーク待ちになるため別スレッドで行う（初回の通知処理はウォームアップ後）
    threading.Thread(target=whatsapp_client.start, name="whatsapp-connect", daemon=True).start()

    if settings.NOTIFICATION_WORKER_ENABLED:
        processor.start()
    else:
        logger.info("📢 通知プロセッサーは無効です（別プロセスのワーカーで実行）")

    yield

    logger.info("👋 Nivrit AI Backend shutting down...")
    processor.stop()
    whatsapp_client.stop()
    engine.dispose()


# ============================================
# FastAPI アプリケーション
# ============================================
app = FastAPI(
    title=f"{settings.PROJECT_NAME} API",
    description="ヘルスケアチャットボット・WhatsApp通知",
    version=settings.VERSION,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS設定
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# ルータ登録
app.include_router(chat_router)
app.include_router(whatsapp_router)
app.include_router(notification_router)
app.include_router(user_router)
app.include_router(admin_router)
app.include_router(admin_notifications_router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Server Error: {request.method} {request.url.path} - {exc}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "Internal server error"},
    )


# ============================================
# 基本エンドポイント
# ============================================
@app.get("/")
async def root():
    """ルートエンドポイント"""
    return {
        "message": f"{settings.PROJECT_NAME} Backend API",
        "version": settings.VERSION,
        "status": "running",
        "docs": "/docs",
    }


@app.get("/api/health")
async def health_check(request: Request):
    """ヘルスチェックエンドポイント"""
    whatsapp_client = getattr(request.app.state, "whatsapp_client", None)
    processor = getattr(request.app.state, "notification_processor", None)
    return {
        "status": "ok",
        "service": "Nivrit AI Backend",
        "timestamp": datetime.now().isoformat(),
        "ai": "Configured" if ai_service.validate_env_variables() else "Not configured",
        "whatsapp": whatsapp_client.get_status() if whatsapp_client else "Not initialized",
        "notification_processor": processor.get_status() if processor else "Not initialized",
    }


# ============================================
# 開発サーバー起動
# ============================================
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app", host="0.0.0.0", port=5000, reload=True, log_level="info"
    )
