"""
User-related models.
"""
from typing import Optional

from sqlalchemy import Column, Enum as SQLAlchemyEnum, text
from sqlmodel import Field, String

from .base import TimestampMixin
from .enums import UserRole


class User(TimestampMixin, table=True):
    """
    User model, synchronised from identity token claims on login.
    """
    __tablename__ = "user"

    id: str = Field(
        sa_column=Column(String(255), primary_key=True),
        description="Identity provider subject claim",
    )
    email: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True, index=True)
    )
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    name: Optional[str] = Field(default=None, max_length=200)
    avatar_url: Optional[str] = Field(
        default=None,
        sa_column=Column(String(512), nullable=True)
    )
    role: UserRole = Field(
        default=UserRole.USER,
        sa_column=Column(
            SQLAlchemyEnum(
                UserRole,
                name="user_role_enum",
                native_enum=True,
                values_callable=lambda x: [e.value for e in x]
            ),
            nullable=False,
            server_default=text("'user'")
        )
    )
