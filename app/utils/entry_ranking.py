"""
Best-entry ranking.

Entries are ordered best first by:

1. entries with media before entries without,
2. entries with a caption before entries without,
3. earlier ``created_at`` before later,
4. ascending id as the final tiebreak.

The order is total, so the winner of any non-empty set is unique and does not
depend on the order the entries were read in.
"""
from typing import Callable, Dict, Hashable, Iterable, List, Tuple, TypeVar

from app.schemas.entry import EntryRecord

K = TypeVar("K", bound=Hashable)


def rank_key(record: EntryRecord) -> Tuple[int, int, float, str]:
    """Sort key placing the best entry first."""
    return (
        0 if record.has_media else 1,
        0 if record.has_caption else 1,
        record.created_at.timestamp(),
        record.id,
    )


def rank_entries(records: Iterable[EntryRecord]) -> List[EntryRecord]:
    """Return the records sorted best first."""
    return sorted(records, key=rank_key)


def best_entry(records: Iterable[EntryRecord]) -> EntryRecord:
    """
    Pick the single best entry.

    Raises:
        ValueError: if ``records`` is empty.
    """
    records = list(records)
    if not records:
        raise ValueError("Cannot rank an empty set of entries")
    return min(records, key=rank_key)


def best_per_group(
    records: Iterable[EntryRecord],
    key_fn: Callable[[EntryRecord], K],
) -> Dict[K, EntryRecord]:
    """Best entry of every group, keyed by ``key_fn``. Groups are returned in ascending key order."""
    winners: Dict[K, EntryRecord] = {}
    for record in records:
        key = key_fn(record)
        current = winners.get(key)
        if current is None or rank_key(record) < rank_key(current):
            winners[key] = record
    return {key: winners[key] for key in sorted(winners)}
