"""
Pydantic Schemas for Nivrit AI Application
Based on app/models
"""

from .base import BaseSchema
from .chat import ChatRequest, ChatResponse
from .notification import (
    NotificationSendRequest,
    NotificationSendResponse,
    NotificationResponse,
    NotificationListResponse,
    PendingNotificationResponse,
    PendingNotificationListResponse,
    ProcessorStatus,
    ProcessorStatusResponse,
    ProcessResponse,
    NotificationStats,
    NotificationStatsResponse,
)
from .template import TemplateResponse, TemplateListResponse
from .user import UserSummary, UserListResponse, PreferencesUpdateRequest, PreferencesResponse
from .whatsapp import WhatsAppSendRequest

__all__ = [
    "BaseSchema",
    "ChatRequest",
    "ChatResponse",
    "NotificationSendRequest",
    "NotificationSendResponse",
    "NotificationResponse",
    "NotificationListResponse",
    "PendingNotificationResponse",
    "PendingNotificationListResponse",
    "ProcessorStatus",
    "ProcessorStatusResponse",
    "ProcessResponse",
    "NotificationStats",
    "NotificationStatsResponse",
    "TemplateResponse",
    "TemplateListResponse",
    "UserSummary",
    "UserListResponse",
    "PreferencesUpdateRequest",
    "PreferencesResponse",
    "WhatsAppSendRequest",
]
