"""Notification schemas"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from .base import BaseSchema


class NotificationSendRequest(BaseSchema):
    """Schema for queueing notifications to users"""
    user_ids: List[str] = Field(..., min_length=1)
    type: str = Field(..., min_length=1, max_length=50)
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    delivery_method: str = Field("whatsapp", max_length=20)
    scheduled_at: Optional[datetime] = None

    @field_validator("scheduled_at")
    @classmethod
    def drop_timezone(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Stored timestamps are naive local time"""
        if v is not None and v.tzinfo is not None:
            return v.astimezone().replace(tzinfo=None)
        return v


class NotificationResponse(BaseSchema):
    """Schema for notification response"""
    id: str
    user_id: str
    type: str
    title: str
    message: str
    delivery_method: str
    status: str
    scheduled_at: datetime
    sent_at: Optional[datetime] = None
    phone_number: Optional[str] = None
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class NotificationSendResponse(BaseSchema):
    """Schema for queue result"""
    success: bool
    message: str
    count: int
    notifications: List[NotificationResponse]


class RecipientInfo(BaseSchema):
    """Recipient joined from users"""
    mobile_number: Optional[str] = None
    name: Optional[str] = None
    language_preference: Optional[str] = None


class PendingNotificationResponse(BaseSchema):
    """Schema for a pending notification with its recipient"""
    id: str
    user_id: str
    type: str
    title: str
    message: str
    delivery_method: str
    status: str
    scheduled_at: datetime
    created_at: datetime
    user: RecipientInfo


class PendingNotificationListResponse(BaseSchema):
    success: bool = True
    notifications: List[PendingNotificationResponse]
    total: int
    page: int
    limit: int


class NotificationListResponse(BaseSchema):
    success: bool = True
    notifications: List[NotificationResponse]
    total: int
    page: int
    limit: int


class ProcessorStatus(BaseSchema):
    """Notification processor status"""
    is_running: bool
    is_processing: bool
    channel_ready: bool
    timestamp: datetime


class ProcessorStatusResponse(BaseSchema):
    success: bool = True
    status: ProcessorStatus
    message: str


class ProcessResponse(BaseSchema):
    success: bool
    message: str
    fetched: int = 0
    sent: int = 0
    failed: int = 0
    skipped: int = 0
    timestamp: datetime


class NotificationStats(BaseSchema):
    total: int = 0
    pending: int = 0
    sent: int = 0
    failed: int = 0
    whatsapp: int = 0
    sms: int = 0
    email: int = 0


class NotificationStatsResponse(BaseSchema):
    success: bool = True
    stats: NotificationStats
    period: str
