"""Functional core - pure business logic with no I/O."""

from .entries import (
    ALL_MOODS,
    DEFAULT_MOOD,
    MOODS,
    Entry,
    EntryFilter,
    MoodCount,
    SortBy,
    date_key,
    entries_on_date,
    mood_histogram,
    project_entries,
    today_key,
)
from .calendar import CalendarDay, MonthGrid, month_grid, shift_month
from .display import format_entry, format_entry_line, format_month_grid, format_mood_histogram
from .profile import UserProfile

__all__ = [
    # Entries
    "ALL_MOODS",
    "DEFAULT_MOOD",
    "MOODS",
    "Entry",
    "EntryFilter",
    "MoodCount",
    "SortBy",
    "date_key",
    "entries_on_date",
    "mood_histogram",
    "project_entries",
    "today_key",
    # Calendar
    "CalendarDay",
    "MonthGrid",
    "month_grid",
    "shift_month",
    # Display
    "format_entry",
    "format_entry_line",
    "format_month_grid",
    "format_mood_histogram",
    # Profile
    "UserProfile",
]
