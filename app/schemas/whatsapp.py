"""WhatsApp schemas"""
from pydantic import Field

from .base import BaseSchema


class WhatsAppSendRequest(BaseSchema):
    """Schema for a direct WhatsApp test message"""
    number: str = Field(..., min_length=1, max_length=20)
    message: str = Field(..., min_length=1, max_length=4096)
