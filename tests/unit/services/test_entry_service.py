"""
Unit tests for EntryService.
"""
import uuid
from datetime import date, timedelta

import pytest

from app.core.exceptions import EntryNotFoundError, FutureEntryDateError, ValidationError
from app.core.time_utils import day_month_key, local_today
from app.services.entry_service import EntryService

from tests.lib import OTHER_USER_ID, TZ, USER_ID


@pytest.fixture
def entry_service(session):
    return EntryService(session, tz_name=TZ)


class TestCreate:

    def test_create_files_under_local_today(self, entry_service):
        entry = entry_service.create_entry(USER_ID, caption="  Morning run  ", asset_ids=["a1", "", "a2"])

        assert entry.local_date == local_today(TZ)
        assert entry.day_month == day_month_key(entry.local_date)
        assert entry.caption == "Morning run"
        assert entry.media_asset_ids == ["a1", "a2"]
        assert entry.media_count == 2
        assert entry.has_caption is True

    def test_blank_caption_is_stored_as_none(self, entry_service):
        entry = entry_service.create_entry(USER_ID, caption="   ")
        assert entry.caption is None
        assert entry.has_caption is False
        assert entry.media_count == 0

    def test_backfill_past_date(self, entry_service):
        entry = entry_service.create_past_entry(USER_ID, date(2023, 12, 25), caption="Christmas")
        assert entry.local_date == date(2023, 12, 25)
        assert entry.day_month == "12-25"

    def test_backfill_future_date_rejected(self, entry_service):
        tomorrow = local_today(TZ) + timedelta(days=1)
        with pytest.raises(FutureEntryDateError):
            entry_service.create_past_entry(USER_ID, tomorrow)


class TestParseBackfillDate:

    def test_valid(self, entry_service):
        assert entry_service.parse_backfill_date("2024-02-29") == date(2024, 2, 29)

    @pytest.mark.parametrize("value", ["2025-02-30", "09-03-2025", "", "yesterday"])
    def test_unparsable(self, entry_service, value):
        with pytest.raises(ValidationError):
            entry_service.parse_backfill_date(value)

    def test_future(self, entry_service):
        future = (local_today(TZ) + timedelta(days=3)).isoformat()
        with pytest.raises(FutureEntryDateError):
            entry_service.parse_backfill_date(future)


class TestUpdate:

    def test_add_and_remove_assets(self, entry_service, add_entry):
        entry = add_entry(date(2024, 6, 1), caption="trip", assets=["a", "b"])

        updated = entry_service.update_entry(
            entry.id, USER_ID, add_asset_ids=["c"], remove_asset_ids=["a"]
        )

        assert updated.media_asset_ids == ["b", "c"]
        assert updated.media_count == 2
        assert updated.caption == "trip"
        assert updated.local_date == date(2024, 6, 1)

    def test_clearing_caption_updates_flag(self, entry_service, add_entry):
        entry = add_entry(date(2024, 6, 1), caption="trip")
        updated = entry_service.update_entry(entry.id, USER_ID, caption="")
        assert updated.caption is None
        assert updated.has_caption is False

    def test_removing_last_asset(self, entry_service, add_entry):
        entry = add_entry(date(2024, 6, 1), assets=["only"])
        updated = entry_service.update_entry(entry.id, USER_ID, remove_asset_ids=["only"])
        assert updated.media_count == 0

    def test_other_users_entry_is_not_found(self, entry_service, add_entry):
        entry = add_entry(date(2024, 6, 1), user_id=OTHER_USER_ID)
        with pytest.raises(EntryNotFoundError):
            entry_service.update_entry(entry.id, USER_ID, caption="mine now")


class TestReadAndDelete:

    def test_get_entry_record(self, entry_service, add_entry):
        entry = add_entry(date(2024, 6, 1), assets=["x"])
        record = entry_service.get_entry_record(entry.id, USER_ID)
        assert record.id == str(entry.id)
        assert record.has_media

    def test_delete(self, entry_service, add_entry):
        entry = add_entry(date(2024, 6, 1))
        entry_service.delete_entry(entry.id, USER_ID)
        with pytest.raises(EntryNotFoundError):
            entry_service.get_entry_by_id(entry.id, USER_ID)

    def test_delete_unknown(self, entry_service):
        with pytest.raises(EntryNotFoundError):
            entry_service.delete_entry(uuid.uuid4(), USER_ID)
