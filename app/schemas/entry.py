"""
Entry schemas.
"""
from datetime import datetime, date
from typing import Optional, List, Tuple

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from app.core.time_utils import ensure_utc, day_month_key


class EntryRecord(BaseModel):
    """
    Canonical read model every stored representation is normalised into.

    Bucketing and ranking only ever see this shape.
    """
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    caption: Optional[str] = None
    media_asset_ids: Tuple[Optional[str], ...] = ()
    created_at: datetime
    local_date: date
    day_month: str

    @field_validator('id', 'user_id')
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError('Must not be blank')
        return v

    @field_validator('created_at')
    @classmethod
    def validate_created_at(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode='after')
    def validate_day_month(self) -> 'EntryRecord':
        expected = day_month_key(self.local_date)
        if self.day_month != expected:
            raise ValueError(
                f'day_month {self.day_month!r} does not match local_date {self.local_date.isoformat()}'
            )
        return self

    @property
    def has_media(self) -> bool:
        return any(asset_id and asset_id.strip() for asset_id in self.media_asset_ids)

    @property
    def has_caption(self) -> bool:
        return bool(self.caption and self.caption.strip())

    @property
    def usable_asset_ids(self) -> List[str]:
        """Asset ids in stored order with null and blank ids skipped."""
        return [asset_id for asset_id in self.media_asset_ids if asset_id and asset_id.strip()]


class EntryResponse(BaseModel):
    """Entry response schema."""
    id: str
    caption: Optional[str] = None
    media_asset_ids: List[str]
    local_date: date
    day_month: str
    created_at: datetime
    has_media: bool
    has_caption: bool

    @classmethod
    def from_record(cls, record: EntryRecord) -> "EntryResponse":
        return cls(
            id=record.id,
            caption=record.caption,
            media_asset_ids=record.usable_asset_ids,
            local_date=record.local_date,
            day_month=record.day_month,
            created_at=record.created_at,
            has_media=record.has_media,
            has_caption=record.has_caption,
        )


class CalendarDay(BaseModel):
    """One day of a month rollup. Only days with at least one entry exist."""
    model_config = ConfigDict(frozen=True)

    local_date: date
    has_entries: bool = True
    has_caption: bool = False
    representative_asset_id: Optional[str] = None


class CalendarDayResponse(BaseModel):
    """Calendar day response schema."""
    local_date: date
    has_entries: bool
    has_caption: bool
    representative_asset_id: Optional[str] = None
    thumbnail_url: Optional[str] = None

    @classmethod
    def from_day(cls, day: CalendarDay, media_prefix: str) -> "CalendarDayResponse":
        thumbnail_url = None
        if day.representative_asset_id:
            thumbnail_url = f"{media_prefix}/media/immich/{day.representative_asset_id}?type=thumbnail"
        return cls(
            local_date=day.local_date,
            has_entries=day.has_entries,
            has_caption=day.has_caption,
            representative_asset_id=day.representative_asset_id,
            thumbnail_url=thumbnail_url,
        )
