"""Chat schemas"""
from typing import Optional

from pydantic import Field

from .base import BaseSchema


class ChatRequest(BaseSchema):
    """Schema for a chat message"""
    message: str = Field(..., min_length=1, max_length=2000)
    language: Optional[str] = Field(None, max_length=10)
    session_id: Optional[str] = Field(None, max_length=100)


class ChatResponse(BaseSchema):
    """Schema for the assistant reply"""
    success: bool
    reply: str
    language: str
    session_id: str
