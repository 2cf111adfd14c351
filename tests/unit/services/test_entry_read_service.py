"""
Unit tests for EntryReadService over the SQL and in-memory stores.
"""
from datetime import date
from unittest.mock import MagicMock

import pytest
from sqlalchemy import update

from app.core.exceptions import InvalidCalendarDateError
from app.models.entry import Entry
from app.services.entry_read_service import EntryReadService
from app.services.entry_store import InMemoryEntryStore, SQLEntryStore
from app.utils.bucketing import EntryFilter, GroupKey

from tests.lib import OTHER_USER_ID, TZ, USER_ID, utc


def _service(session, push_down=True):
    return EntryReadService(SQLEntryStore(session, tz_name=TZ, push_down=push_down), tz_name=TZ)


@pytest.fixture(params=[True, False], ids=["push_down", "client_side"])
def read_service(request, session):
    return _service(session, push_down=request.param)


class TestPreviousYears:

    def test_caption_only_and_media_only_years(self, read_service, add_entry):
        y2023 = add_entry(date(2023, 3, 9), caption="Spring walk")
        y2024 = add_entry(date(2024, 3, 9), assets=["immich-2024"])

        result = read_service.get_same_day_previous_years(USER_ID, 2025, 3, 9)

        assert [r.local_date.year for r in result] == [2023, 2024]
        assert [r.id for r in result] == [str(y2023.id), str(y2024.id)]

    def test_best_entry_per_year(self, read_service, add_entry):
        add_entry(date(2022, 3, 9), caption="text", created_at=utc(2022, 3, 9, 1))
        photo = add_entry(date(2022, 3, 9), assets=["p"], created_at=utc(2022, 3, 9, 10))
        add_entry(date(2025, 3, 9), assets=["today"])
        add_entry(date(2022, 3, 9), user_id=OTHER_USER_ID, assets=["theirs"])

        result = read_service.get_same_day_previous_years(USER_ID, 2025, 3, 9)

        assert [r.id for r in result] == [str(photo.id)]


class TestPreviousMonths:

    def test_months_and_years_partition_history(self, read_service, add_entry):
        add_entry(date(2025, 1, 9), caption="jan")
        add_entry(date(2025, 2, 9), caption="feb")
        add_entry(date(2024, 3, 9), caption="last year")
        add_entry(date(2024, 5, 9), caption="neither")

        months = read_service.get_same_day_previous_months(USER_ID, 2025, 3, 9)
        years = read_service.get_same_day_previous_years(USER_ID, 2025, 3, 9)

        assert [r.local_date for r in months] == [date(2025, 1, 9), date(2025, 2, 9)]
        assert [r.local_date for r in years] == [date(2024, 3, 9)]
        assert not {r.id for r in months} & {r.id for r in years}


class TestDayAndSummary:

    def test_entries_for_day_oldest_first(self, read_service, add_entry):
        late = add_entry(date(2025, 3, 9), created_at=utc(2025, 3, 9, 15))
        early = add_entry(date(2025, 3, 9), created_at=utc(2025, 3, 9, 3))
        add_entry(date(2025, 3, 10))

        result = read_service.get_entries_for_day(USER_ID, 2025, 3, 9)

        assert [r.id for r in result] == [str(early.id), str(late.id)]

    def test_today_summary_prefers_media(self, read_service, add_entry):
        add_entry(date(2025, 3, 9), caption="words", created_at=utc(2025, 3, 9, 1))
        photo = add_entry(date(2025, 3, 9), assets=["a"], created_at=utc(2025, 3, 9, 9))

        summary = read_service.get_today_summary(USER_ID, 2025, 3, 9)

        assert summary.id == str(photo.id)

    def test_today_summary_empty_day(self, read_service):
        assert read_service.get_today_summary(USER_ID, 2025, 3, 9) is None


class TestCalendar:

    def test_month_rollup(self, read_service, add_entry):
        add_entry(date(2025, 3, 2), caption="note")
        add_entry(date(2025, 3, 20), assets=["x"], created_at=utc(2025, 3, 20, 1))
        add_entry(date(2025, 3, 20), assets=["y"], created_at=utc(2025, 3, 20, 5))
        add_entry(date(2025, 4, 1), assets=["april"])

        days = read_service.get_calendar_entries(USER_ID, 2025, 3)

        assert [d.local_date for d in days] == [date(2025, 3, 2), date(2025, 3, 20)]
        assert days[0].has_caption and days[0].representative_asset_id is None
        assert days[1].representative_asset_id == "x"


class TestPushDownEquivalence:

    @pytest.mark.parametrize("group_key,entry_filter", [
        (GroupKey.YEAR, EntryFilter(user_id=USER_ID, day_month="03-09", before_date=date(2025, 3, 9))),
        (GroupKey.MONTH, EntryFilter(user_id=USER_ID, year=2025, day=9, month_before=12)),
        (GroupKey.NONE, EntryFilter(user_id=USER_ID, local_date=date(2025, 3, 9))),
    ])
    def test_same_winners(self, session, add_entry, group_key, entry_filter):
        add_entry(date(2023, 3, 9), caption="a", created_at=utc(2023, 3, 9, 2))
        add_entry(date(2023, 3, 9), caption="b", created_at=utc(2023, 3, 9, 2))
        add_entry(date(2024, 3, 9), caption="  ", assets=["p"])
        add_entry(date(2024, 3, 9), caption="both", assets=["q"], created_at=utc(2024, 3, 9, 20))
        add_entry(date(2025, 1, 9))
        add_entry(date(2025, 2, 9), assets=["feb"])
        add_entry(date(2025, 3, 9), caption="today")
        add_entry(date(2025, 3, 9), assets=["today"], created_at=utc(2025, 3, 9, 23))

        pushed = SQLEntryStore(session, tz_name=TZ, push_down=True).group_and_rank(entry_filter, group_key)
        client = SQLEntryStore(session, tz_name=TZ, push_down=False).group_and_rank(entry_filter, group_key)

        assert [str(e.id) for e in pushed] == [r.id for r in client]

    def test_malformed_winner_falls_through_to_next_entry(self, session, add_entry, read_service):
        winner = add_entry(date(2025, 1, 9), assets=["jan"], created_at=utc(2025, 1, 9, 1))
        fallback = add_entry(date(2025, 1, 9), caption="January", created_at=utc(2025, 1, 9, 5))
        february = add_entry(date(2025, 2, 9), assets=["feb"])
        # Bypass the mapper events so the stored key disagrees with local_date
        session.connection().execute(
            update(Entry.__table__)
            .where(Entry.__table__.c.id == winner.id)
            .values(day_month="01-10")
        )
        session.expire_all()

        result = read_service.get_same_day_previous_months(USER_ID, 2025, 3, 9)

        assert [r.id for r in result] == [str(fallback.id), str(february.id)]


class TestValidation:

    @pytest.mark.parametrize("call", [
        lambda s: s.get_entries_for_day(USER_ID, 2025, 4, 31),
        lambda s: s.get_same_day_previous_months(USER_ID, 2025, 2, 30),
        lambda s: s.get_same_day_previous_years(USER_ID, 2025, 13, 1),
        lambda s: s.get_today_summary(USER_ID, 2025, 0, 1),
        lambda s: s.get_calendar_entries(USER_ID, 2025, 13),
    ])
    def test_invalid_dates_never_reach_the_store(self, call):
        store = MagicMock()
        service = EntryReadService(store, tz_name=TZ)

        with pytest.raises(InvalidCalendarDateError):
            call(service)

        store.query.assert_not_called()
        store.group_and_rank.assert_not_called()


class TestInMemoryStore:

    def test_malformed_and_foreign_rows_are_skipped(self, make_record):
        good = make_record(date(2024, 3, 9), caption="kept")
        rows = [
            good,
            make_record(date(2023, 3, 9), user_id=OTHER_USER_ID, assets=["theirs"]),
            {"_id": "broken", "userId": USER_ID, "createdAt": None},
            {
                "_id": "legacy-1",
                "userId": USER_ID,
                "immichAssetIds": ["old"],
                "createdAt": {"$date": "2022-03-09T06:00:00Z"},
            },
        ]
        service = EntryReadService(InMemoryEntryStore(rows, tz_name=TZ), tz_name=TZ)

        result = service.get_same_day_previous_years(USER_ID, 2025, 3, 9)

        assert [r.id for r in result] == ["legacy-1", good.id]

    def test_rows_outside_the_bucket_are_dropped(self, make_record):
        store = MagicMock()
        store.query.return_value = [
            make_record(date(2025, 3, 9), caption="mine"),
            make_record(date(2025, 3, 9), user_id=OTHER_USER_ID, caption="not mine"),
            make_record(date(2025, 3, 8), caption="wrong day"),
        ]
        service = EntryReadService(store, tz_name=TZ)

        result = service.get_entries_for_day(USER_ID, 2025, 3, 9)

        assert [r.caption for r in result] == ["mine"]
        store.query.assert_called_once()
