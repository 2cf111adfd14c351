"""
Import of entries exported from the legacy document store.
"""
import uuid
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional

from sqlmodel import Session, select

from app.core.config import settings
from app.core.exceptions import MalformedEntryError
from app.core.logging_config import log_info, log_warning
from app.models.entry import Entry
from app.schemas.entry import EntryRecord
from app.utils.entry_adapter import from_legacy_document

# Fixed namespace so re-importing the same export maps to the same ids
LEGACY_ID_NAMESPACE = uuid.UUID("6f1c6a52-3d0e-4b8e-9a51-2f7f0c1d9e44")


def entry_id_for_legacy(legacy_id: str) -> uuid.UUID:
    """UUIDs pass through, anything else (e.g. ObjectId hex) maps to a stable uuid5."""
    try:
        return uuid.UUID(legacy_id)
    except (ValueError, AttributeError, TypeError):
        return uuid.uuid5(LEGACY_ID_NAMESPACE, str(legacy_id))


@dataclass
class ImportResult:
    imported: int = 0
    duplicates: int = 0
    skipped: int = 0
    errors: List[str] = field(default_factory=list)


class LegacyImportService:
    """Writes adapted legacy documents into the ``entry`` table."""

    def __init__(self, session: Session, tz_name: Optional[str] = None):
        self.session = session
        self.tz_name = tz_name or settings.local_timezone

    def _to_entry(self, record: EntryRecord) -> Entry:
        return Entry(
            id=entry_id_for_legacy(record.id),
            user_id=record.user_id,
            caption=record.caption,
            media_asset_ids=record.usable_asset_ids,
            created_at=record.created_at,
            updated_at=record.created_at,
            local_date=record.local_date,
        )

    def import_documents(self, documents: Iterable[Mapping[str, Any]]) -> ImportResult:
        """
        Import documents in one transaction. Malformed documents are skipped and
        reported; documents already imported are counted as duplicates.
        """
        result = ImportResult()
        seen = set()
        for index, document in enumerate(documents):
            try:
                record = from_legacy_document(document, self.tz_name)
            except MalformedEntryError as exc:
                result.skipped += 1
                result.errors.append(f"#{index} ({exc.entry_id or 'no id'}): {exc}")
                log_warning(f"Skipping malformed legacy document: {exc}", entry_id=exc.entry_id)
                continue

            entry = self._to_entry(record)
            if entry.id in seen or self.session.exec(select(Entry.id).where(Entry.id == entry.id)).first():
                result.duplicates += 1
                continue
            seen.add(entry.id)
            self.session.add(entry)
            result.imported += 1

        self.session.commit()
        log_info(
            "Legacy import finished",
            imported=result.imported,
            duplicates=result.duplicates,
            skipped=result.skipped,
        )
        return result
