"""
Entry service for creating, editing and deleting journal entries.
"""
import uuid
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.core.config import settings
from app.core.exceptions import EntryNotFoundError, FutureEntryDateError, ValidationError
from app.core.logging_config import log_debug, log_info, log_warning, log_error
from app.core.time_utils import local_today, utc_now
from app.models.entry import Entry
from app.schemas.entry import EntryRecord
from app.utils.entry_adapter import from_row


def _normalize_caption(caption: Optional[str]) -> Optional[str]:
    if caption is None:
        return None
    caption = caption.strip()
    return caption or None


class EntryService:
    """Service class for entry write operations."""

    def __init__(self, session: Session, tz_name: Optional[str] = None):
        self.session = session
        self.tz_name = tz_name or settings.local_timezone

    def _get_owned_entry(self, entry_id: uuid.UUID, user_id: str) -> Entry:
        statement = select(Entry).where(
            Entry.id == entry_id,
            Entry.user_id == user_id,
        )

        entry = self.session.exec(statement).first()
        if not entry:
            log_warning(f"Entry not found for user {user_id}: {entry_id}")
            raise EntryNotFoundError("Entry not found")
        return entry

    def _commit(self) -> None:
        """Commit database changes with proper error handling."""
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            log_error(exc)
            raise

    def parse_backfill_date(self, value: str) -> date:
        """
        Parse a ``YYYY-MM-DD`` back-fill date and reject dates after local today.

        Raises:
            ValidationError: unparsable date.
            FutureEntryDateError: date is in the future.
        """
        try:
            entry_date = date.fromisoformat((value or "").strip())
        except ValueError as exc:
            raise ValidationError(f"Invalid date '{value}', expected YYYY-MM-DD") from exc

        today = local_today(self.tz_name)
        if entry_date > today:
            raise FutureEntryDateError(
                f"Cannot create an entry for {entry_date.isoformat()}, after today ({today.isoformat()})"
            )
        return entry_date

    def create_entry(
        self,
        user_id: str,
        caption: Optional[str] = None,
        asset_ids: Optional[Iterable[str]] = None,
        entry_date: Optional[date] = None,
    ) -> Entry:
        """
        Create an entry filed under ``entry_date``, or today in the local zone.
        """
        if entry_date is not None and entry_date > local_today(self.tz_name):
            raise FutureEntryDateError("Entry date cannot be in the future")

        now = utc_now()
        entry = Entry(
            user_id=user_id,
            caption=_normalize_caption(caption),
            media_asset_ids=[asset_id for asset_id in (asset_ids or []) if asset_id],
            created_at=now,
            updated_at=now,
            local_date=entry_date or local_today(self.tz_name),
        )
        self.session.add(entry)
        self._commit()
        self.session.refresh(entry)

        log_info(
            f"Entry created for user {user_id}: {entry.id}",
            local_date=entry.local_date.isoformat(),
            media_count=entry.media_count,
        )
        return entry

    def create_past_entry(
        self,
        user_id: str,
        entry_date: date,
        caption: Optional[str] = None,
        asset_ids: Optional[Iterable[str]] = None,
    ) -> Entry:
        """Back-fill an entry for a past (or today's) date."""
        return self.create_entry(user_id, caption=caption, asset_ids=asset_ids, entry_date=entry_date)

    def get_entry_by_id(self, entry_id: uuid.UUID, user_id: str) -> Entry:
        return self._get_owned_entry(entry_id, user_id)

    def get_entry_record(self, entry_id: uuid.UUID, user_id: str) -> EntryRecord:
        return from_row(self._get_owned_entry(entry_id, user_id))

    def update_entry(
        self,
        entry_id: uuid.UUID,
        user_id: str,
        caption: Optional[str] = None,
        add_asset_ids: Optional[Iterable[str]] = None,
        remove_asset_ids: Optional[Iterable[str]] = None,
    ) -> Entry:
        """
        Replace the caption when given, append new assets and drop removed ones.

        ``local_date`` and ``created_at`` never change.
        """
        entry = self._get_owned_entry(entry_id, user_id)

        if caption is not None:
            entry.caption = _normalize_caption(caption)

        removed = set(remove_asset_ids or [])
        asset_ids: List[str] = [a for a in (entry.media_asset_ids or []) if a not in removed]
        asset_ids.extend(a for a in (add_asset_ids or []) if a)
        # Reassign so the JSON column is flagged dirty
        entry.media_asset_ids = asset_ids
        entry.updated_at = utc_now()

        self.session.add(entry)
        self._commit()
        self.session.refresh(entry)

        log_debug(
            f"Entry updated for user {user_id}: {entry.id}",
            removed=len(removed),
            media_count=entry.media_count,
        )
        return entry

    def delete_entry(self, entry_id: uuid.UUID, user_id: str) -> None:
        """Hard-delete an entry. Immich assets are left in place."""
        entry = self._get_owned_entry(entry_id, user_id)
        self.session.delete(entry)
        self._commit()
        log_info(f"Entry hard-deleted for user {user_id}: {entry_id}")
