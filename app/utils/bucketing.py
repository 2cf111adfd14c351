"""
Temporal bucketing strategies for entry recall.

Each strategy is a plan: a filter over the entry read model, a group key and
the rule that picks what each group contributes to the result. Plans never
look at how entries are stored.
"""
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable, List, Optional

from app.core.time_utils import day_month_key, validate_calendar_month, last_day_of_month
from app.schemas.entry import EntryRecord
from app.utils.entry_ranking import best_entry, best_per_group


@dataclass(frozen=True)
class EntryFilter:
    """
    Conjunction of predicates over the entry read model.

    Unset fields do not constrain. ``user_id`` is always required.
    """
    user_id: str
    local_date: Optional[date] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    year: Optional[int] = None
    month_before: Optional[int] = None
    day: Optional[int] = None
    day_month: Optional[str] = None
    before_date: Optional[date] = None

    def __post_init__(self):
        if not self.user_id:
            raise ValueError("EntryFilter requires a user_id")

    def matches(self, record: EntryRecord) -> bool:
        if record.user_id != self.user_id:
            return False
        d = record.local_date
        if self.local_date is not None and d != self.local_date:
            return False
        if self.date_from is not None and d < self.date_from:
            return False
        if self.date_to is not None and d > self.date_to:
            return False
        if self.year is not None and d.year != self.year:
            return False
        if self.month_before is not None and d.month >= self.month_before:
            return False
        if self.day is not None and d.day != self.day:
            return False
        if self.day_month is not None and record.day_month != self.day_month:
            return False
        if self.before_date is not None and d >= self.before_date:
            return False
        return True


class GroupKey(str, Enum):
    """How matching entries are partitioned before picking the best of each group."""
    NONE = "none"
    MONTH = "month"
    YEAR = "year"
    DATE = "date"

    def key_for(self, record: EntryRecord):
        if self is GroupKey.MONTH:
            return record.local_date.month
        if self is GroupKey.YEAR:
            return record.local_date.year
        if self is GroupKey.DATE:
            return record.local_date
        return None


@dataclass(frozen=True)
class RecallPlan:
    """A strategy bound to one user and reference date."""
    name: str
    entry_filter: EntryFilter
    group_key: GroupKey = GroupKey.NONE
    best_only: bool = False

    def select(self, records: Iterable[EntryRecord]) -> List[EntryRecord]:
        """Apply the plan's selection rule to records that already match its filter."""
        records = list(records)
        if not self.best_only:
            return sorted(records, key=lambda r: (r.created_at, r.id))
        if not records:
            return []
        if self.group_key is GroupKey.NONE:
            return [best_entry(records)]
        return list(best_per_group(records, self.group_key.key_for).values())


def exact_day(user_id: str, target: date) -> RecallPlan:
    """Every entry filed under ``target``, oldest first."""
    return RecallPlan("exact_day", EntryFilter(user_id=user_id, local_date=target))


def same_day_previous_months(user_id: str, target: date) -> RecallPlan:
    """Best entry per earlier month of the same year that has the same day number."""
    return RecallPlan(
        "same_day_previous_months",
        EntryFilter(user_id=user_id, year=target.year, day=target.day, month_before=target.month),
        group_key=GroupKey.MONTH,
        best_only=True,
    )


def same_day_previous_years(user_id: str, target: date) -> RecallPlan:
    """Best entry per earlier year filed under the same month and day."""
    return RecallPlan(
        "same_day_previous_years",
        EntryFilter(user_id=user_id, day_month=day_month_key(target), before_date=target),
        group_key=GroupKey.YEAR,
        best_only=True,
    )


def today_summary(user_id: str, target: date) -> RecallPlan:
    """The single best entry of ``target``."""
    return RecallPlan(
        "today_summary",
        EntryFilter(user_id=user_id, local_date=target),
        group_key=GroupKey.NONE,
        best_only=True,
    )


def calendar_month(user_id: str, year: int, month: int) -> RecallPlan:
    """All entries of a month, for the calendar rollup."""
    first = validate_calendar_month(year, month)
    return RecallPlan(
        "calendar_month",
        EntryFilter(user_id=user_id, date_from=first, date_to=last_day_of_month(year, month)),
        group_key=GroupKey.DATE,
    )
