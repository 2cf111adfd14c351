"""
Normalise stored entry representations into ``EntryRecord``.

Supported inputs:

* ``Entry`` ORM rows,
* plain mappings with the ``Entry`` column names (rows from the ranked window query),
* legacy documents exported from the old document store
  (``_id``, ``userId``, ``date``, ``dayMonth``, ``immichAssetIds``, ``createdAt``).
  Older documents may miss ``date``/``dayMonth``, wrap ``createdAt`` as
  ``{"$date": ...}`` or store it as epoch milliseconds.
"""
from datetime import date, datetime, timezone
from typing import Any, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError

from app.core.exceptions import MalformedEntryError
from app.core.time_utils import day_month_key, ensure_utc, parse_iso_datetime, to_local_date
from app.models.entry import Entry
from app.schemas.entry import EntryRecord

LEGACY_MARKERS = ("_id", "userId", "immichAssetIds", "createdAt")


def _build(entry_id: Optional[str], **fields) -> EntryRecord:
    try:
        return EntryRecord(id=entry_id, **fields)
    except PydanticValidationError as exc:
        raise MalformedEntryError(f"Invalid entry record: {exc}", entry_id=entry_id) from exc


def _as_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def _asset_tuple(value: Any, entry_id: Optional[str]):
    if value is None:
        return ()
    if isinstance(value, (str, bytes)) or not hasattr(value, "__iter__"):
        raise MalformedEntryError("Asset ids must be a list", entry_id=entry_id)
    return tuple(None if asset_id is None else str(asset_id) for asset_id in value)


def from_row(entry: Entry) -> EntryRecord:
    """Map an ``Entry`` ORM row."""
    entry_id = str(entry.id) if entry.id is not None else None
    if entry.created_at is None or entry.local_date is None:
        raise MalformedEntryError("Entry row is missing created_at or local_date", entry_id=entry_id)
    return _build(
        entry_id,
        user_id=entry.user_id,
        caption=entry.caption,
        media_asset_ids=_asset_tuple(entry.media_asset_ids, entry_id),
        created_at=ensure_utc(entry.created_at),
        local_date=entry.local_date,
        day_month=entry.day_month or day_month_key(entry.local_date),
    )


def from_mapping(row: Mapping[str, Any]) -> EntryRecord:
    """Map a mapping that uses ``Entry`` column names."""
    entry_id = str(row["id"]) if row.get("id") is not None else None
    try:
        created_at = parse_iso_datetime(row["created_at"])
        local_date = _as_date(row["local_date"])
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedEntryError(f"Entry row has invalid dates: {exc}", entry_id=entry_id) from exc
    return _build(
        entry_id,
        user_id=row.get("user_id"),
        caption=row.get("caption"),
        media_asset_ids=_asset_tuple(row.get("media_asset_ids"), entry_id),
        created_at=created_at,
        local_date=local_date,
        day_month=row.get("day_month") or day_month_key(local_date),
    )


def _legacy_id(value: Any) -> Optional[str]:
    if isinstance(value, Mapping):
        value = value.get("$oid")
    return str(value) if value is not None else None


def parse_legacy_instant(value: Any) -> datetime:
    """Parse ``createdAt`` in any of the shapes the document store produced."""
    if isinstance(value, Mapping):
        if "$date" not in value:
            raise ValueError(f"Unsupported timestamp wrapper: {sorted(value)}")
        value = value["$date"]
        if isinstance(value, Mapping):
            value = int(value["$numberLong"])
    if isinstance(value, bool):
        raise ValueError("Boolean is not a timestamp")
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, (str, datetime)):
        return parse_iso_datetime(value)
    raise ValueError(f"Unsupported timestamp type: {type(value).__name__}")


def from_legacy_document(document: Mapping[str, Any], tz_name: str) -> EntryRecord:
    """
    Map a legacy document. When ``date`` is missing the local date is derived
    from ``createdAt`` in ``tz_name``; a stored ``dayMonth`` must agree with it.
    """
    entry_id = _legacy_id(document.get("_id"))
    try:
        created_at = parse_legacy_instant(document.get("createdAt"))
        raw_date = document.get("date")
        local_date = _as_date(raw_date) if raw_date else to_local_date(created_at, tz_name)
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedEntryError(f"Legacy document has invalid dates: {exc}", entry_id=entry_id) from exc

    return _build(
        entry_id,
        user_id=document.get("userId"),
        caption=document.get("caption"),
        media_asset_ids=_asset_tuple(document.get("immichAssetIds"), entry_id),
        created_at=created_at,
        local_date=local_date,
        day_month=document.get("dayMonth") or day_month_key(local_date),
    )


def is_legacy_document(raw: Mapping[str, Any]) -> bool:
    return any(marker in raw for marker in LEGACY_MARKERS)


def adapt(raw: Any, tz_name: str) -> EntryRecord:
    """
    Normalise any supported representation.

    Raises:
        MalformedEntryError: the input cannot be mapped.
    """
    if isinstance(raw, EntryRecord):
        return raw
    if isinstance(raw, Entry):
        return from_row(raw)
    if isinstance(raw, Mapping):
        if is_legacy_document(raw):
            return from_legacy_document(raw, tz_name)
        return from_mapping(raw)
    mapping = getattr(raw, "_mapping", None)
    if mapping is not None:
        return from_mapping(mapping)
    raise MalformedEntryError(f"Unsupported entry representation: {type(raw).__name__}")
