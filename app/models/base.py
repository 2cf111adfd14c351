"""
Base models shared by all tables.
"""
import uuid
from datetime import datetime

from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field

from app.core.time_utils import utc_now


class TimestampMixin(SQLModel):
    """Creation and modification instants, stored as UTC."""
    created_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        nullable=False,
    )
    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_type=DateTime(timezone=True),
        nullable=False,
    )


class BaseModel(TimestampMixin):
    """
    Base model with a UUID primary key and timestamps.
    """
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
        nullable=False,
    )
