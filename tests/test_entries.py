"""Tests for core entry logic."""

from datetime import date, datetime, timezone

import pytest

from dailydiary.core.entries import (
    ALL_MOODS,
    DEFAULT_MOOD,
    Entry,
    EntryFilter,
    SortBy,
    count_favorites,
    date_key,
    entries_on_date,
    filter_entries,
    is_date_key,
    mood_histogram,
    parse_sort,
    project_entries,
    sort_by_date_desc,
    sort_entries,
    today_key,
)


def entry(id, date, title="Title", content="Body", mood="😊", favorite=False):
    return Entry(id=id, owner_id="u", title=title, content=content, mood=mood, date=date, is_favorite=favorite)


@pytest.fixture
def entries():
    return [
        entry("1", "2024-01-10", title="Morning run", content="Felt great", mood="💪", favorite=False),
        entry("2", "2024-01-12", title="Rainy day", content="Stayed in and read", mood="😌", favorite=True),
        entry("3", "2024-01-11", title="Work stress", content="Deadline RUN-up", mood="😰", favorite=False),
        entry("4", "2024-01-12", title="Dinner", content="Pasta with friends", mood="😊", favorite=True),
        entry("5", "2024-01-09", title="Nap", content="Slept all afternoon", mood="😌", favorite=False),
    ]


class TestDateKeys:
    def test_zero_padded(self):
        assert date_key(2024, 3, 5) == "2024-03-05"

    def test_today_key(self):
        assert today_key(date(2023, 11, 1)) == "2023-11-01"

    @pytest.mark.parametrize("value", ["2024-03-05", "2024-02-29", "1999-12-31"])
    def test_valid_keys(self, value):
        assert is_date_key(value)

    @pytest.mark.parametrize("value", ["2024-3-5", "2023-02-29", "2024-13-01", "20240305", "", "2024-03-05T10:00"])
    def test_invalid_keys(self, value):
        assert not is_date_key(value)


class TestEntry:
    def test_from_document_defaults(self):
        e = Entry.from_document("abc", {"userId": "u", "title": "T", "content": "C"})
        assert e.id == "abc"
        assert e.mood == DEFAULT_MOOD
        assert e.is_favorite is False
        assert e.date == ""
        assert e.created_at is None

    def test_from_document_parses_timestamps(self):
        created = datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc)
        e = Entry.from_document(
            "abc",
            {"userId": "u", "createdAt": created, "updatedAt": "2024-01-02T10:00:00Z"},
        )
        assert e.created_at == created
        assert e.updated_at == datetime(2024, 1, 2, 10, 0, tzinfo=timezone.utc)

    def test_to_document_uses_store_field_names(self):
        e = entry("1", "2024-01-10", favorite=True)
        doc = e.to_document()
        assert doc["userId"] == "u"
        assert doc["isFavorite"] is True
        assert "id" not in doc

    def test_word_count(self):
        assert entry("1", "2024-01-10", content="one two  three\nfour").word_count() == 4


class TestFilterEntries:
    def test_no_filter_keeps_all(self, entries):
        assert filter_entries(entries) == entries

    def test_search_is_case_insensitive_on_title_and_content(self, entries):
        ids = [e.id for e in filter_entries(entries, search_text="run")]
        assert ids == ["1", "3"]

    def test_mood_filter(self, entries):
        ids = [e.id for e in filter_entries(entries, mood="😌")]
        assert ids == ["2", "5"]

    def test_search_and_mood_combined(self, entries):
        ids = [e.id for e in filter_entries(entries, search_text="read", mood="😌")]
        assert ids == ["2"]

    def test_all_moods_sentinel(self, entries):
        assert len(filter_entries(entries, mood=ALL_MOODS)) == len(entries)


class TestSortEntries:
    def test_newest_first(self, entries):
        dates = [e.date for e in sort_entries(entries, SortBy.NEWEST)]
        assert dates == sorted(dates, reverse=True)

    def test_oldest_first(self, entries):
        dates = [e.date for e in sort_entries(entries, SortBy.OLDEST)]
        assert dates == sorted(dates)

    def test_favorites_first_keeps_relative_order(self, entries):
        ids = [e.id for e in sort_entries(entries, SortBy.FAVORITES)]
        assert ids == ["2", "4", "1", "3", "5"]

    def test_newest_is_reverse_of_oldest_for_distinct_dates(self):
        distinct = [entry(str(i), f"2024-01-{day:02d}") for i, day in enumerate([5, 1, 9, 3])]
        newest = sort_entries(distinct, SortBy.NEWEST)
        assert newest == list(reversed(sort_entries(distinct, SortBy.OLDEST)))

    def test_equal_dates_are_stable(self, entries):
        ids = [e.id for e in sort_by_date_desc(entries)]
        assert ids == ["2", "4", "3", "1", "5"]

    def test_does_not_mutate_input(self, entries):
        before = list(entries)
        sort_entries(entries, SortBy.OLDEST)
        assert entries == before


class TestProjectEntries:
    def test_filter_then_sort(self, entries):
        result = project_entries(entries, EntryFilter(mood="😌", sort_by=SortBy.OLDEST))
        assert [e.id for e in result] == ["5", "2"]

    def test_returns_new_list(self, entries):
        result = project_entries(entries, EntryFilter())
        assert result is not entries


class TestEntriesOnDate:
    def test_preserves_order(self, entries):
        assert [e.id for e in entries_on_date(entries, "2024-01-12")] == ["2", "4"]

    def test_no_match(self, entries):
        assert entries_on_date(entries, "2024-02-01") == []


class TestMoodHistogram:
    def test_first_seen_order_and_counts(self, entries):
        histogram = mood_histogram(entries)
        assert [(m.mood, m.count) for m in histogram] == [("💪", 1), ("😌", 2), ("😰", 1), ("😊", 1)]

    def test_fractions_sum_to_one(self, entries):
        assert sum(m.fraction for m in mood_histogram(entries)) == pytest.approx(1.0)

    def test_counts_sum_to_total(self, entries):
        histogram = mood_histogram(entries)
        assert sum(m.count for m in histogram) == len(entries)
        assert all(0.0 <= m.fraction <= 1.0 for m in histogram)

    def test_limit(self, entries):
        assert [m.mood for m in mood_histogram(entries, limit=2)] == ["💪", "😌"]

    def test_limited_fractions_use_all_entries(self, entries):
        assert mood_histogram(entries, limit=2)[1].fraction == pytest.approx(2 / 5)

    def test_empty(self):
        assert mood_histogram([]) == []


class TestCountFavorites:
    def test_counts(self, entries):
        assert count_favorites(entries) == 2


class TestParseSort:
    def test_known(self):
        assert parse_sort("Favorites") == SortBy.FAVORITES

    def test_unknown(self):
        with pytest.raises(ValueError, match="Unknown sort"):
            parse_sort("alphabetical")
