"""
WhatsApp関連のAPIエンドポイント
ボット状態、テスト送信、Webhook（検証・受信）
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from app.config import settings
from app.dependencies import get_current_admin, get_whatsapp_client
from app.schemas.whatsapp import WhatsAppSendRequest
from app.services.phone_normalizer import normalize_phone_number
from app.services.whatsapp_client import WhatsAppAPIError, WhatsAppCloudClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/whatsapp", tags=["whatsapp"])


@router.get("/status", summary="WhatsAppボットの状態")
def get_whatsapp_status(client: WhatsAppCloudClient = Depends(get_whatsapp_client)):
    return {
        "status": "WhatsApp Bot Running" if client.is_ready else "WhatsApp Bot Not Ready",
        "timestamp": datetime.now(),
        "bot": client.get_status(),
    }


@router.post("/send", summary="WhatsAppテスト送信")
def send_whatsapp_message(
    request: WhatsAppSendRequest,
    admin: dict = Depends(get_current_admin),
    client: WhatsAppCloudClient = Depends(get_whatsapp_client),
):
    """指定番号へメッセージを直接送信（動作確認用）"""
    address = normalize_phone_number(request.number)
    if not address:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid phone number format")
    if not client.is_ready:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="WhatsApp bot not ready")

    try:
        message_id = client.send_message(address, request.message)
    except WhatsAppAPIError as e:
        logger.error(f"WhatsAppテスト送信エラー: to={address}, error={e.message}")
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to send message")

    return {"success": True, "message": "Message sent successfully", "message_id": message_id}


@router.get("/webhook", response_class=PlainTextResponse, summary="Webhook検証")
def verify_webhook(
    mode: Optional[str] = Query(None, alias="hub.mode"),
    token: Optional[str] = Query(None, alias="hub.verify_token"),
    challenge: Optional[str] = Query(None, alias="hub.challenge"),
):
    if mode == "subscribe" and settings.WHATSAPP_VERIFY_TOKEN and token == settings.WHATSAPP_VERIFY_TOKEN:
        return challenge or ""
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Verification failed")


@router.post("/webhook", summary="Webhook受信")
def receive_webhook(
    payload: dict,
    background_tasks: BackgroundTasks,
    client: WhatsAppCloudClient = Depends(get_whatsapp_client),
):
    """受信メッセージはバックグラウンドでボットが処理する"""
    background_tasks.add_task(client.dispatch_webhook, payload)
    return {"success": True}
