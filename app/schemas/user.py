"""User schemas"""
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from app.services.message_formatter import Language

from .base import BaseSchema


class UserSummary(BaseSchema):
    """Schema for a notification recipient in the admin user list"""
    id: str
    name: str
    mobile_number: Optional[str] = None
    email: Optional[str] = None
    language_preference: str
    location: Optional[str] = None
    is_active: bool
    created_at: datetime


class UserListResponse(BaseSchema):
    success: bool = True
    users: List[UserSummary]
    total: int
    page: int
    limit: int


class PreferencesUpdateRequest(BaseSchema):
    """Schema for updating the language used in notifications"""
    language_preference: str = Field(..., min_length=1, max_length=10)

    @field_validator("language_preference")
    @classmethod
    def check_language(cls, v: str) -> str:
        code = v.strip().lower()
        supported = [language.value for language in Language]
        if code not in supported:
            raise ValueError(f"Unsupported language. Must be one of: {', '.join(supported)}")
        return code


class PreferencesResponse(BaseSchema):
    success: bool = True
    message: str
    language_preference: str
