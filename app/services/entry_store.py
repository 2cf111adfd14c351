"""
Entry storage collaborators for the recall engine.

``EntryStore.group_and_rank`` has a client-side reference implementation;
``SQLEntryStore`` can push the same grouping and ranking down into SQL with a
``ROW_NUMBER()`` window. Both must return the same winners for the same data.
"""
from typing import Any, Iterable, List, Optional

from sqlalchemy import case, extract, func, true
from sqlalchemy.orm import aliased
from sqlmodel import Session, select

from app.core.config import settings
from app.core.exceptions import MalformedEntryError
from app.core.logging_config import LogCategory, get_logger, log_warning
from app.models.entry import Entry
from app.utils.bucketing import EntryFilter, GroupKey
from app.utils.entry_adapter import adapt
from app.utils.entry_ranking import best_entry, best_per_group

logger = get_logger(LogCategory.RECALL)


class EntryStore:
    """Base storage collaborator. Subclasses implement ``query``."""

    def __init__(self, tz_name: Optional[str] = None):
        self.tz_name = tz_name or settings.local_timezone

    def query(self, entry_filter: EntryFilter) -> List[Any]:
        """Return raw rows matching ``entry_filter``."""
        raise NotImplementedError

    def group_and_rank(self, entry_filter: EntryFilter, group_key: GroupKey) -> List[Any]:
        """Return the best row of every group of rows matching ``entry_filter``."""
        records = []
        for row in self.query(entry_filter):
            try:
                records.append(adapt(row, self.tz_name))
            except MalformedEntryError as exc:
                log_warning(
                    f"Skipping malformed entry during ranking: {exc}",
                    category=LogCategory.RECALL,
                    entry_id=exc.entry_id,
                )
        if not records:
            return []
        if group_key is GroupKey.NONE:
            return [best_entry(records)]
        return list(best_per_group(records, group_key.key_for).values())


class InMemoryEntryStore(EntryStore):
    """
    Store over an in-process list of rows in any representation the adapter
    understands. Used for legacy exports and tests.

    Rows that cannot be adapted are always returned so the caller sees them.
    """

    def __init__(self, rows: Iterable[Any] = (), tz_name: Optional[str] = None):
        super().__init__(tz_name)
        self.rows = list(rows)

    def query(self, entry_filter: EntryFilter) -> List[Any]:
        matched = []
        for row in self.rows:
            try:
                record = adapt(row, self.tz_name)
            except MalformedEntryError:
                matched.append(row)
                continue
            if entry_filter.matches(record):
                matched.append(row)
        return matched


def _filter_clauses(entry_filter: EntryFilter) -> list:
    clauses = [Entry.user_id == entry_filter.user_id]
    if entry_filter.local_date is not None:
        clauses.append(Entry.local_date == entry_filter.local_date)
    if entry_filter.date_from is not None:
        clauses.append(Entry.local_date >= entry_filter.date_from)
    if entry_filter.date_to is not None:
        clauses.append(Entry.local_date <= entry_filter.date_to)
    if entry_filter.year is not None:
        clauses.append(extract("year", Entry.local_date) == entry_filter.year)
    if entry_filter.month_before is not None:
        clauses.append(extract("month", Entry.local_date) < entry_filter.month_before)
    if entry_filter.day is not None:
        clauses.append(extract("day", Entry.local_date) == entry_filter.day)
    if entry_filter.day_month is not None:
        clauses.append(Entry.day_month == entry_filter.day_month)
    if entry_filter.before_date is not None:
        clauses.append(Entry.local_date < entry_filter.before_date)
    return clauses


def _partition_column(group_key: GroupKey):
    if group_key is GroupKey.MONTH:
        return extract("month", Entry.local_date)
    if group_key is GroupKey.YEAR:
        return extract("year", Entry.local_date)
    if group_key is GroupKey.DATE:
        return Entry.local_date
    return None


class SQLEntryStore(EntryStore):
    """Entry store backed by the ``entry`` table."""

    def __init__(self, session: Session, tz_name: Optional[str] = None, push_down: Optional[bool] = None):
        super().__init__(tz_name)
        self.session = session
        self.push_down = settings.recall_push_down if push_down is None else push_down

    def query(self, entry_filter: EntryFilter) -> List[Entry]:
        statement = (
            select(Entry)
            .where(*_filter_clauses(entry_filter))
            .order_by(Entry.created_at.asc(), Entry.id.asc())
        )
        return list(self.session.exec(statement).all())

    def group_and_rank(self, entry_filter: EntryFilter, group_key: GroupKey) -> List[Any]:
        if not self.push_down:
            return super().group_and_rank(entry_filter, group_key)

        rank = func.row_number().over(
            partition_by=_partition_column(group_key),
            order_by=(
                case((Entry.media_count > 0, 0), else_=1),
                case((Entry.has_caption == true(), 0), else_=1),
                Entry.created_at.asc(),
                Entry.id.asc(),
            ),
        ).label("best_rank")

        ranked = (
            select(Entry, rank)
            .where(*_filter_clauses(entry_filter))
            .subquery("ranked_entry")
        )
        winner = aliased(Entry, ranked)
        statement = (
            select(winner)
            .where(ranked.c.best_rank == 1)
            .order_by(ranked.c.local_date.asc())
        )
        rows = list(self.session.exec(statement).all())
        logger.debug(
            "Push-down ranking returned %d rows (group_key=%s)", len(rows), group_key.value
        )

        # A malformed winner would hide its whole group; rank those rows in process instead
        malformed = self._malformed_ids(rows)
        if malformed:
            log_warning(
                "Malformed winner in push-down ranking, re-ranking client-side",
                category=LogCategory.RECALL,
                entry_ids=malformed,
                group_key=group_key.value,
            )
            return super().group_and_rank(entry_filter, group_key)
        return rows

    def _malformed_ids(self, rows: Iterable[Entry]) -> List[str]:
        malformed = []
        for row in rows:
            try:
                adapt(row, self.tz_name)
            except MalformedEntryError as exc:
                malformed.append(exc.entry_id or str(row.id))
        return malformed
