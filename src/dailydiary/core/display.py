"""Pure text rendering for entries, calendar and moods - no I/O dependencies."""

from .calendar import CalendarDay, MonthGrid
from .entries import Entry, MoodCount

WEEKDAY_HEADER = ("Su", "Mo", "Tu", "We", "Th", "Fr", "Sa")


def format_entry_line(entry: Entry) -> str:
    """
    One-line summary for entry lists.

    Pure function - no I/O.
    """
    star = "★" if entry.is_favorite else " "
    return f"{star} {entry.date} {entry.mood} {entry.title}  ({entry.id})"


def format_entry(entry: Entry) -> str:
    """Full entry as markdown."""
    favorite = " ★" if entry.is_favorite else ""
    header = f"## {entry.mood} {entry.title}{favorite}"
    meta = f"_{entry.date} · {entry.word_count()} words · id {entry.id}_"
    return f"{header}\n{meta}\n\n{entry.content.strip()}"


def _format_cell(day: CalendarDay | None) -> str:
    if day is None:
        return "    "
    if day.is_today:
        return f"[{day.day:>2}]"
    marker = "*" if day.has_entries else " "
    return f" {day.day:>2}{marker}"


def format_month_grid(grid: MonthGrid) -> str:
    """
    Render a Sunday-first month grid.

    Occupied days carry a `*`, today is bracketed.
    Pure function - no I/O.
    """
    lines = [grid.title.center(28).rstrip(), "".join(f" {d} " for d in WEEKDAY_HEADER)]
    for week in grid.weeks():
        lines.append("".join(_format_cell(day) for day in week).rstrip())
    return "\n".join(lines)


def format_mood_histogram(histogram: list[MoodCount], width: int = 20) -> str:
    """Bars proportional to each mood's share of all entries."""
    if not histogram:
        return "No entries yet."

    lines = []
    for bar in histogram:
        filled = round(bar.fraction * width)
        lines.append(f"{bar.mood} {'█' * filled}{'░' * (width - filled)} {bar.count} ({bar.fraction:.0%})")
    return "\n".join(lines)
