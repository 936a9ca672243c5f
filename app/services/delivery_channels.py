"""
配信チャネル
「宛先にテキストを送る」を配信方法ごとに抽象化する
"""

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class DeliveryMethod(str, Enum):
    """配信方法"""

    WHATSAPP = "whatsapp"
    SMS = "sms"
    EMAIL = "email"


# ============================================
# カスタム例外
# ============================================
class DeliveryError(Exception):
    """配信失敗（トランスポートのエラーメッセージを保持）"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ChannelNotReadyError(DeliveryError):
    """チャネルが送信可能な状態ではない"""

    pass


# ============================================
# チャネル
# ============================================
class DeliveryChannel:
    """配信チャネルの基底クラス"""

    method: DeliveryMethod

    @property
    def is_ready(self) -> bool:
        raise NotImplementedError

    def send(self, address: str, text: str) -> None:
        """
        メッセージを送信

        Raises:
            DeliveryError: 送信に失敗した場合
        """
        raise NotImplementedError


class WhatsAppChannel(DeliveryChannel):
    """
    WhatsApp配信チャネル

    transport は is_ready と send_message(address, text) を持つクライアント
    （WhatsAppCloudClient など）。準備状態の確認は呼び出し側で行う
    """

    method = DeliveryMethod.WHATSAPP

    def __init__(self, transport):
        self.transport = transport

    @property
    def is_ready(self) -> bool:
        return bool(self.transport is not None and self.transport.is_ready)

    def send(self, address: str, text: str) -> None:
        if self.transport is None:
            raise ChannelNotReadyError("WhatsApp bot not initialized")
        try:
            self.transport.send_message(address, text)
        except DeliveryError:
            raise
        except Exception as e:
            logger.error(f"WhatsApp送信エラー: to={address}, error={str(e)}")
            raise DeliveryError(str(e)) from e
