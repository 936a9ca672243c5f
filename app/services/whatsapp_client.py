"""
WhatsApp Cloud API クライアント

機能:
- 接続確認（準備完了フラグ）
- テキストメッセージ送信
- Webhook受信メッセージのハンドラー呼び出し
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import requests

from app.config import settings

logger = logging.getLogger(__name__)

GRAPH_API_BASE_URL = "https://graph.facebook.com"

# (接続, 読み込み) タイムアウト秒
REQUEST_TIMEOUT = (5, 20)


# ============================================
# カスタム例外
# ============================================
class WhatsAppAPIError(Exception):
    """WhatsApp Cloud API のエラー"""

    def __init__(self, message: str, status_code: Optional[int] = None, error_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        super().__init__(message)


@dataclass(frozen=True)
class InboundMessage:
    """受信メッセージ"""

    sender: str
    text: str
    message_id: Optional[str] = None


MessageHandler = Callable[[InboundMessage], None]


def _extract_error_message(response: requests.Response) -> tuple[str, Optional[int]]:
    """エラーレスポンスからメッセージとエラーコードを取り出す"""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}", None

    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return str(error.get("message") or response.text), error.get("code")
    return response.text or f"HTTP {response.status_code}", None


class WhatsAppCloudClient:
    """WhatsApp Cloud API クライアント"""

    def __init__(
        self,
        access_token: Optional[str] = None,
        phone_number_id: Optional[str] = None,
        api_version: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.access_token = access_token if access_token is not None else settings.WHATSAPP_ACCESS_TOKEN
        self.phone_number_id = (
            phone_number_id if phone_number_id is not None else settings.WHATSAPP_PHONE_NUMBER_ID
        )
        self.api_version = api_version or settings.WHATSAPP_API_VERSION
        self.session = session or requests.Session()
        self._ready = False
        self._handlers: List[MessageHandler] = []

    @property
    def is_configured(self) -> bool:
        return bool(self.access_token and self.phone_number_id)

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    def _url(self, path: str = "") -> str:
        url = f"{GRAPH_API_BASE_URL}/{self.api_version}/{self.phone_number_id}"
        return f"{url}/{path}" if path else url

    def start(self) -> bool:
        """
        接続確認を行い、成功すれば準備完了にする

        Returns:
            bool: 準備完了の場合True
        """
        if not self.is_configured:
            logger.warning("⚠️ WHATSAPP_ACCESS_TOKEN / WHATSAPP_PHONE_NUMBER_ID が未設定のため、WhatsAppは利用できません")
            self._ready = False
            return False

        logger.info("🚀 WhatsApp Cloud API に接続しています...")
        try:
            response = self.session.get(
                self._url(),
                headers=self._headers,
                params={"fields": "display_phone_number,verified_name"},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            logger.error(f"❌ WhatsApp接続エラー: {str(e)}")
            self._ready = False
            return False

        if response.status_code // 100 != 2:
            message, _ = _extract_error_message(response)
            logger.error(f"❌ WhatsApp接続確認に失敗しました: status={response.status_code}, error={message}")
            self._ready = False
            return False

        self._ready = True
        logger.info("✅ WhatsApp Cloud API の準備が完了しました")
        return True

    def stop(self) -> None:
        """送信を停止"""
        self._ready = False
        logger.info("🛑 WhatsAppクライアント停止")

    def send_message(self, address: str, text: str) -> Optional[str]:
        """
        テキストメッセージを送信

        Parameters:
            address: 宛先（国番号付きの数字のみ）
            text: 本文

        Returns:
            str: 送信されたメッセージID

        Raises:
            WhatsAppAPIError: 送信に失敗した場合
        """
        payload = {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": address,
            "type": "text",
            "text": {"preview_url": False, "body": text},
        }
        try:
            response = self.session.post(
                self._url("messages"),
                headers=self._headers,
                json=payload,
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as e:
            raise WhatsAppAPIError(f"WhatsApp request failed: {e}") from e

        if response.status_code // 100 != 2:
            message, error_code = _extract_error_message(response)
            raise WhatsAppAPIError(message, status_code=response.status_code, error_code=error_code)

        try:
            data = response.json()
        except ValueError:
            data = {}
        messages = data.get("messages") if isinstance(data, dict) else None
        message_id = messages[0].get("id") if messages else None
        logger.info(f"📤 WhatsAppメッセージ送信: to={address}, id={message_id}")
        return message_id

    # ============================================
    # 受信メッセージ
    # ============================================
    def on_message(self, handler: MessageHandler) -> None:
        """受信メッセージのハンドラーを登録"""
        self._handlers.append(handler)

    def dispatch_webhook(self, payload: Dict[str, Any]) -> int:
        """
        Webhookペイロードからテキストメッセージを取り出し、ハンドラーを呼び出す

        Returns:
            int: 処理したメッセージ数
        """
        messages = []
        for entry in payload.get("entry") or []:
            for change in entry.get("changes") or []:
                value = change.get("value") or {}
                for message in value.get("messages") or []:
                    if message.get("type") != "text":
                        continue
                    body = (message.get("text") or {}).get("body")
                    sender = message.get("from")
                    if not body or not sender:
                        continue
                    messages.append(InboundMessage(sender=sender, text=body, message_id=message.get("id")))

        for message in messages:
            for handler in self._handlers:
                try:
                    handler(message)
                except Exception as e:
                    logger.error(f"受信メッセージ処理エラー: from={message.sender}, error={str(e)}")

        return len(messages)

    def get_status(self) -> dict:
        """クライアントの状態を取得"""
        return {
            "is_ready": self.is_ready,
            "is_configured": self.is_configured,
            "phone_number_id": self.phone_number_id or None,
            "timestamp": datetime.now(),
        }
