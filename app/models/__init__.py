"""
SQLAlchemy Models for Nivrit AI Healthcare Backend

Usage:
    from app.models import User, Notification
    # または
    from app.models import Base
"""

from .base import Base
from .user import User
from .notification import Notification, NotificationStatus
from .notification_template import NotificationTemplate

__all__ = [
    "Base",
    "User",
    "Notification",
    "NotificationStatus",
    "NotificationTemplate",
]
