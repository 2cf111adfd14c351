"""
Month calendar rollup.
"""
from collections import defaultdict
from typing import Iterable, List

from app.schemas.entry import CalendarDay, EntryRecord


def rollup_calendar(records: Iterable[EntryRecord]) -> List[CalendarDay]:
    """
    Collapse entries into one ``CalendarDay`` per local date, ascending.

    A day has a caption when any of its entries does. Its representative asset
    is the first usable asset id found scanning entries oldest first and each
    entry's assets in stored order. Days without entries are not emitted.
    """
    by_day = defaultdict(list)
    for record in records:
        by_day[record.local_date].append(record)

    days = []
    for local_date in sorted(by_day):
        entries = sorted(by_day[local_date], key=lambda r: (r.created_at, r.id))
        representative = next(
            (asset_id for entry in entries for asset_id in entry.usable_asset_ids),
            None,
        )
        days.append(CalendarDay(
            local_date=local_date,
            has_entries=True,
            has_caption=any(entry.has_caption for entry in entries),
            representative_asset_id=representative,
        ))
    return days
