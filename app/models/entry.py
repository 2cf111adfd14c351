"""
Entry-related models.
"""
from datetime import date
from typing import List, Optional

from sqlalchemy import Column, String, Text, Boolean, Integer, event
from sqlalchemy.dialects.postgresql import JSONB
from sqlmodel import Field, Index, CheckConstraint, JSON

from app.core.time_utils import utc_now, day_month_key
from .base import BaseModel


def JSONType():
    return JSONB().with_variant(JSON, "sqlite")


def count_media(asset_ids: Optional[List[Optional[str]]]) -> int:
    """Number of usable (non-null, non-blank) asset ids."""
    return sum(1 for asset_id in (asset_ids or []) if asset_id and str(asset_id).strip())


def caption_present(caption: Optional[str]) -> bool:
    return bool(caption and caption.strip())


class Entry(BaseModel, table=True):
    """
    Journal entry: a caption plus Immich asset references filed under one
    local calendar date.
    """
    __tablename__ = "entry"

    user_id: str = Field(
        sa_column=Column(String(255), nullable=False, index=True),
        description="Owner, the identity provider's subject claim",
    )
    caption: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True),
    )
    media_asset_ids: List[str] = Field(
        default_factory=list,
        sa_column=Column(JSONType(), nullable=False),
        description="Immich asset ids in upload order",
    )
    local_date: date = Field(
        index=True,
        description="Calendar date the entry is filed under in the local zone",
    )
    day_month: str = Field(
        default="",
        sa_column=Column(String(5), nullable=False, index=True),
        description="MM-DD projection of local_date",
    )
    media_count: int = Field(
        default=0,
        sa_column=Column(Integer, server_default="0", nullable=False),
    )
    has_caption: bool = Field(
        default=False,
        sa_column=Column(Boolean, server_default="false", nullable=False),
    )

    __table_args__ = (
        Index('idx_entry_user_local_date', 'user_id', 'local_date'),
        Index('idx_entry_user_day_month', 'user_id', 'day_month'),
        CheckConstraint('media_count >= 0', name='check_media_count_positive'),
    )


def _refresh_derived_fields(target: Entry) -> None:
    target.media_count = count_media(target.media_asset_ids)
    target.has_caption = caption_present(target.caption)
    if target.local_date is not None:
        target.day_month = day_month_key(target.local_date)


@event.listens_for(Entry, "before_insert")
def _entry_before_insert(mapper, connection, target: Entry) -> None:
    _refresh_derived_fields(target)


@event.listens_for(Entry, "before_update")
def _entry_before_update(mapper, connection, target: Entry) -> None:
    _refresh_derived_fields(target)
    target.updated_at = utc_now()
