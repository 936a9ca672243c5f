"""
通知配信・チャット関連サービス
"""

from .delivery_channels import (
    ChannelNotReadyError,
    DeliveryChannel,
    DeliveryError,
    DeliveryMethod,
    WhatsAppChannel,
)
from .message_formatter import Language, format_notification_message
from .notification_processor import NotificationProcessor, PassResult
from .notification_store import (
    NotificationStore,
    NotificationValidationError,
    PendingNotification,
)
from .phone_normalizer import normalize_phone_number

__all__ = [
    "ChannelNotReadyError",
    "DeliveryChannel",
    "DeliveryError",
    "DeliveryMethod",
    "WhatsAppChannel",
    "Language",
    "format_notification_message",
    "NotificationProcessor",
    "PassResult",
    "NotificationStore",
    "NotificationValidationError",
    "PendingNotification",
    "normalize_phone_number",
]
