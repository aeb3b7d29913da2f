"""Pure calendar month-grid logic - no I/O dependencies."""

import calendar as _calendar
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Iterator

from .entries import date_key


@dataclass
class CalendarDay:
    """A day cell in the month grid."""

    day: int
    date_key: str
    has_entries: bool = False
    is_today: bool = False


@dataclass
class MonthGrid:
    """A displayed month: leading blank cells then one cell per day."""

    year: int
    month: int
    leading_blanks: int
    days: list[CalendarDay] = field(default_factory=list)

    @property
    def title(self) -> str:
        return date(self.year, self.month, 1).strftime("%B %Y")

    def cells(self) -> Iterator[CalendarDay | None]:
        """Yield None for each leading blank, then the days in order."""
        for _ in range(self.leading_blanks):
            yield None
        yield from self.days

    def weeks(self) -> list[list[CalendarDay | None]]:
        """Cells chunked into Sunday-first rows of 7, last row padded."""
        cells = list(self.cells())
        rows = [cells[i : i + 7] for i in range(0, len(cells), 7)]
        if rows and len(rows[-1]) < 7:
            rows[-1].extend([None] * (7 - len(rows[-1])))
        return rows

    def occupied_days(self) -> list[CalendarDay]:
        return [d for d in self.days if d.has_entries]


def days_in_month(year: int, month: int) -> int:
    """Gregorian month length."""
    return _calendar.monthrange(year, month)[1]


def first_weekday(year: int, month: int) -> int:
    """Weekday of the 1st, 0 = Sunday."""
    # date.weekday() has Monday = 0
    return (date(year, month, 1).weekday() + 1) % 7


def month_grid(
    year: int,
    month: int,
    occupied: Iterable[str] = (),
    today: date | None = None,
) -> MonthGrid:
    """
    Build the grid for a month.

    Pure function - no I/O.

    Args:
        year: Four-digit year
        month: Month number (1-12)
        occupied: Date keys that have at least one entry
        today: Date to flag as today (defaults to date.today())

    Returns:
        MonthGrid with one CalendarDay per day of the month
    """
    occupied_keys = set(occupied)
    today = today or date.today()
    today_k = date_key(today.year, today.month, today.day)

    days = []
    for day in range(1, days_in_month(year, month) + 1):
        key = date_key(year, month, day)
        days.append(
            CalendarDay(
                day=day,
                date_key=key,
                has_entries=key in occupied_keys,
                is_today=key == today_k,
            )
        )

    return MonthGrid(
        year=year,
        month=month,
        leading_blanks=first_weekday(year, month),
        days=days,
    )


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    """Move `delta` months forward (or back when negative)."""
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def parse_month(value: str) -> tuple[int, int]:
    """Parse YYYY-MM into (year, month)."""
    try:
        year_str, month_str = value.split("-")
        year, month = int(year_str), int(month_str)
    except ValueError:
        raise ValueError(f"Invalid month '{value}' (expected YYYY-MM)")
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month '{value}' (month must be 01-12)")
    return year, month
