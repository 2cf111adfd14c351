"""
User schemas.
"""
from datetime import datetime
from typing import Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, field_validator

from app.models.enums import UserRole


class AuthUser(BaseModel):
    """Identity established from a verified bearer token."""
    model_config = ConfigDict(frozen=True)

    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: UserRole = UserRole.USER

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        if v:
            return v.lower().strip()
        return v

    @property
    def display_name(self) -> Optional[str]:
        parts = [p.strip() for p in (self.first_name, self.last_name) if p and p.strip()]
        if parts:
            return " ".join(parts)
        return self.email

    @classmethod
    def from_claims(cls, claims: Dict[str, Any]) -> "AuthUser":
        """Build the identity from token claims; ``sub`` is required."""
        subject = claims.get("sub")
        if not subject:
            raise ValueError("Token has no subject claim")
        return cls(
            id=str(subject),
            email=claims.get("email"),
            first_name=claims.get("first_name"),
            last_name=claims.get("last_name"),
            avatar_url=claims.get("profile_image_url"),
            role=UserRole.from_claim(claims.get("role")),
        )


class UserResponse(BaseModel):
    """User response schema."""
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: UserRole
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
