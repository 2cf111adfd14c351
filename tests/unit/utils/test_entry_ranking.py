"""
Unit tests for best-entry ranking.
"""
from datetime import date
import random

import pytest

from app.utils.entry_ranking import best_entry, best_per_group, rank_entries

from tests.lib import utc


DAY = date(2025, 3, 9)


class TestBestEntry:

    def test_media_beats_caption(self, make_record):
        captioned = make_record(DAY, caption="Walk in the park", created_at=utc(2025, 3, 9, 8))
        with_media = make_record(DAY, assets=["asset-1"], created_at=utc(2025, 3, 9, 20))
        assert best_entry([captioned, with_media]) is with_media

    def test_caption_breaks_media_tie(self, make_record):
        bare = make_record(DAY, assets=["a"], created_at=utc(2025, 3, 9, 1))
        captioned = make_record(DAY, assets=["b"], caption="Sunset", created_at=utc(2025, 3, 9, 5))
        assert best_entry([bare, captioned]) is captioned

    def test_earliest_wins_when_flags_tie(self, make_record):
        early = make_record(DAY, caption="one", created_at=utc(2025, 3, 9, 1))
        late = make_record(DAY, caption="two", created_at=utc(2025, 3, 9, 2))
        assert best_entry([late, early]) is early

    def test_id_is_final_tiebreak(self, make_record):
        same_time = utc(2025, 3, 9, 6)
        first = make_record(DAY, entry_id="00000000-0000-0000-0000-00000000000a", created_at=same_time)
        second = make_record(DAY, entry_id="00000000-0000-0000-0000-00000000000b", created_at=same_time)
        assert best_entry([second, first]) is first

    def test_blank_assets_and_whitespace_caption_do_not_count(self, make_record):
        hollow = make_record(DAY, caption="   ", assets=[None, " "], created_at=utc(2025, 3, 9, 1))
        real = make_record(DAY, caption="hello", created_at=utc(2025, 3, 9, 2))
        assert best_entry([hollow, real]) is real

    def test_empty_input_raises(self):
        with pytest.raises(ValueError):
            best_entry([])

    def test_result_does_not_depend_on_input_order(self, make_record):
        records = [
            make_record(DAY, caption="c", created_at=utc(2025, 3, 9, h))
            for h in range(6)
        ] + [make_record(DAY, assets=["x"], created_at=utc(2025, 3, 9, 7))]
        expected = rank_entries(records)
        for _ in range(5):
            shuffled = records[:]
            random.shuffle(shuffled)
            assert rank_entries(shuffled) == expected
            assert best_entry(shuffled) is expected[0]

    def test_winner_is_an_input_and_ranks_first_alone(self, make_record):
        records = [
            make_record(DAY, caption="c", created_at=utc(2025, 3, 9, 3)),
            make_record(DAY, assets=["x"], created_at=utc(2025, 3, 9, 9)),
            make_record(DAY, assets=["y"], caption="both", created_at=utc(2025, 3, 9, 12)),
            make_record(DAY, created_at=utc(2025, 3, 9, 1)),
        ]
        for _ in range(5):
            shuffled = records[:]
            random.shuffle(shuffled)
            winner = best_entry(shuffled)
            assert any(winner is record for record in records)
            assert best_entry([winner]) is winner
            assert rank_entries([winner]) == [winner]


class TestBestPerGroup:

    def test_groups_in_ascending_key_order(self, make_record):
        records = [
            make_record(date(2024, 3, 9), caption="b"),
            make_record(date(2022, 3, 9), caption="a"),
            make_record(date(2024, 3, 9), assets=["z"]),
        ]
        winners = best_per_group(records, lambda r: r.local_date.year)
        assert list(winners) == [2022, 2024]
        assert winners[2024].usable_asset_ids == ["z"]
