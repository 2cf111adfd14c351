# Import all models for easy access
from .base import BaseModel, TimestampMixin
from .entry import Entry
from .enums import MediaVariant, UserRole
from .user import User

__all__ = [
    "BaseModel",
    "TimestampMixin",
    "Entry",
    "User",
    "UserRole",
    "MediaVariant",
]
