"""
Entry recall service: the read-side operations behind the entry endpoints.
"""
import time
from typing import Any, Iterable, List, Optional

from app.core.config import settings
from app.core.exceptions import MalformedEntryError
from app.core.logging_config import LogCategory, log_debug, log_warning
from app.core.time_utils import validate_calendar_date, validate_calendar_month
from app.schemas.entry import CalendarDay, EntryRecord
from app.services.entry_store import EntryStore
from app.utils import bucketing
from app.utils.bucketing import RecallPlan
from app.utils.calendar_rollup import rollup_calendar
from app.utils.entry_adapter import adapt


class EntryReadService:
    """
    Recall queries for a single user.

    Every operation validates its calendar input before touching the store,
    makes exactly one store call and builds its result fully in memory.
    """

    def __init__(self, store: EntryStore, tz_name: Optional[str] = None):
        self.store = store
        self.tz_name = tz_name or settings.local_timezone

    def _adapt_rows(self, rows: Iterable[Any], plan: RecallPlan) -> List[EntryRecord]:
        records = []
        for row in rows:
            try:
                record = adapt(row, self.tz_name)
            except MalformedEntryError as exc:
                log_warning(
                    f"Skipping malformed entry: {exc}",
                    entry_id=exc.entry_id,
                    operation=plan.name,
                    category=LogCategory.RECALL,
                )
                continue
            if not plan.entry_filter.matches(record):
                log_warning(
                    "Skipping entry outside the requested bucket",
                    entry_id=record.id,
                    operation=plan.name,
                    category=LogCategory.RECALL,
                )
                continue
            records.append(record)
        return records

    def _run(self, plan: RecallPlan) -> List[EntryRecord]:
        started = time.perf_counter()
        if plan.best_only:
            rows = self.store.group_and_rank(plan.entry_filter, plan.group_key)
        else:
            rows = self.store.query(plan.entry_filter)
        records = plan.select(self._adapt_rows(rows, plan))
        log_debug(
            f"Recall {plan.name} returned {len(records)} entries",
            category=LogCategory.RECALL,
            user_id=plan.entry_filter.user_id,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return records

    def get_entries_for_day(self, user_id: str, year: int, month: int, day: int) -> List[EntryRecord]:
        """All entries filed under the given date, oldest first."""
        target = validate_calendar_date(year, month, day)
        return self._run(bucketing.exact_day(user_id, target))

    def get_same_day_previous_months(self, user_id: str, year: int, month: int, day: int) -> List[EntryRecord]:
        """Best entry of each earlier month of the same year on the same day number, ascending by month."""
        target = validate_calendar_date(year, month, day)
        return self._run(bucketing.same_day_previous_months(user_id, target))

    def get_same_day_previous_years(self, user_id: str, year: int, month: int, day: int) -> List[EntryRecord]:
        """Best entry of each earlier year on the same month and day, ascending by year."""
        target = validate_calendar_date(year, month, day)
        return self._run(bucketing.same_day_previous_years(user_id, target))

    def get_today_summary(self, user_id: str, year: int, month: int, day: int) -> Optional[EntryRecord]:
        """Single best entry of the given date, or None when the day is empty."""
        target = validate_calendar_date(year, month, day)
        records = self._run(bucketing.today_summary(user_id, target))
        return records[0] if records else None

    def get_calendar_entries(self, user_id: str, year: int, month: int) -> List[CalendarDay]:
        """Per-day rollup of a month. Days without entries are omitted."""
        validate_calendar_month(year, month)
        plan = bucketing.calendar_month(user_id, year, month)
        rows = self.store.query(plan.entry_filter)
        days = rollup_calendar(self._adapt_rows(rows, plan))
        log_debug(
            f"Calendar rollup for {year}-{month:02d} returned {len(days)} days",
            category=LogCategory.RECALL,
            user_id=user_id,
        )
        return days
