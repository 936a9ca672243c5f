"""Notification template schemas"""
from datetime import datetime
from typing import List

from .base import BaseSchema


class TemplateResponse(BaseSchema):
    """Schema for an active notification template"""
    id: str
    name: str
    type: str
    title: str
    message_template: str
    created_at: datetime


class TemplateListResponse(BaseSchema):
    success: bool = True
    templates: List[TemplateResponse]
