"""
Enums and constants for the application.
"""
from enum import Enum
from typing import Optional


class UserRole(str, Enum):
    """User roles carried in the identity token."""
    ADMIN = "admin"
    USER = "user"

    @classmethod
    def from_claim(cls, value: Optional[str]) -> "UserRole":
        """Map a ``role`` claim to a role; unknown or missing values mean USER."""
        if not value:
            return cls.USER
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.USER


class MediaVariant(str, Enum):
    """Renditions of an Immich asset that can be proxied."""
    THUMBNAIL = "thumbnail"
    FULL = "full"

    @property
    def immich_path(self) -> str:
        return "thumbnail" if self is MediaVariant.THUMBNAIL else "original"

    @property
    def cache_control(self) -> str:
        if self is MediaVariant.THUMBNAIL:
            return "no-store"
        return "public, max-age=31536000, immutable"
