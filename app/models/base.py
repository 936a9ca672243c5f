"""
Declarative base shared by every model
"""

from app.database import Base

__all__ = ["Base"]
