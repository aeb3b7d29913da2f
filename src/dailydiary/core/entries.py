"""Pure entry domain logic - no I/O dependencies."""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum

MOODS = ("😊", "😌", "😢", "😍", "🤔", "😴", "🥳", "😤", "😎", "🤗", "😰", "💪")
DEFAULT_MOOD = "😊"
ALL_MOODS = "all"


def date_key(year: int, month: int, day: int) -> str:
    """Stable YYYY-MM-DD key used for equality and grouping."""
    return f"{year:04d}-{month:02d}-{day:02d}"


def today_key(as_of: date | None = None) -> str:
    """Date key for today (or `as_of`)."""
    d = as_of or date.today()
    return date_key(d.year, d.month, d.day)


def is_date_key(value: str) -> bool:
    """Check that a string is a well-formed YYYY-MM-DD key."""
    if len(value) != 10:
        return False
    try:
        return date.fromisoformat(value).isoformat() == value
    except ValueError:
        return False


def _parse_timestamp(value) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass
class Entry:
    """A single journal record."""

    id: str
    owner_id: str
    title: str
    content: str
    mood: str = DEFAULT_MOOD
    date: str = ""
    is_favorite: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def matches_text(self, needle: str) -> bool:
        """Case-insensitive substring match on title or content."""
        needle = needle.lower()
        return needle in self.title.lower() or needle in self.content.lower()

    def word_count(self) -> int:
        return len(self.content.split())

    @classmethod
    def from_document(cls, doc_id: str, data: dict) -> "Entry":
        """Create Entry from a store document."""
        return cls(
            id=doc_id,
            owner_id=data.get("userId", ""),
            title=data.get("title", "") or "",
            content=data.get("content", "") or "",
            mood=data.get("mood") or DEFAULT_MOOD,
            date=data.get("date", "") or "",
            is_favorite=bool(data.get("isFavorite", False)),
            created_at=_parse_timestamp(data.get("createdAt")),
            updated_at=_parse_timestamp(data.get("updatedAt")),
        )

    def to_document(self) -> dict:
        """Client-writable fields in store document form (no id, no timestamps)."""
        return {
            "userId": self.owner_id,
            "title": self.title,
            "content": self.content,
            "mood": self.mood,
            "date": self.date,
            "isFavorite": self.is_favorite,
        }


class SortBy(Enum):
    """List ordering for projected entries."""

    NEWEST = "newest"
    OLDEST = "oldest"
    FAVORITES = "favorites"


@dataclass(frozen=True)
class EntryFilter:
    """Search, mood filter and sort order applied by `project_entries`."""

    search_text: str = ""
    mood: str = ALL_MOODS
    sort_by: SortBy = SortBy.NEWEST


@dataclass(frozen=True)
class MoodCount:
    """One bar of the mood histogram."""

    mood: str
    count: int
    fraction: float


def sort_by_date_desc(entries: list[Entry]) -> list[Entry]:
    """Baseline snapshot order: newest date first, stable for equal dates."""
    return sorted(entries, key=lambda e: e.date, reverse=True)


def filter_entries(entries: list[Entry], search_text: str = "", mood: str = ALL_MOODS) -> list[Entry]:
    """
    Keep entries matching the search text and mood.

    Pure function - no I/O.
    """
    return [
        e
        for e in entries
        if (not search_text or e.matches_text(search_text))
        and (mood == ALL_MOODS or e.mood == mood)
    ]


def sort_entries(entries: list[Entry], sort_by: SortBy) -> list[Entry]:
    """
    Order entries for display.

    Favorites keeps the incoming order among entries with the same flag.
    Pure function - no I/O.
    """
    match sort_by:
        case SortBy.NEWEST:
            return sorted(entries, key=lambda e: e.date, reverse=True)
        case SortBy.OLDEST:
            return sorted(entries, key=lambda e: e.date)
        case SortBy.FAVORITES:
            return sorted(entries, key=lambda e: not e.is_favorite)


def project_entries(entries: list[Entry], entry_filter: EntryFilter) -> list[Entry]:
    """Filter then sort. Returns a new list."""
    filtered = filter_entries(entries, entry_filter.search_text, entry_filter.mood)
    return sort_entries(filtered, entry_filter.sort_by)


def entries_on_date(entries: list[Entry], key: str) -> list[Entry]:
    """Entries whose date equals `key`, in the given order."""
    return [e for e in entries if e.date == key]


def mood_histogram(entries: list[Entry], limit: int | None = None) -> list[MoodCount]:
    """
    Count entries per mood in first-seen order.

    Each fraction is count / total entries; zero entries yields an empty list.
    """
    counts: dict[str, int] = {}
    for e in entries:
        counts[e.mood] = counts.get(e.mood, 0) + 1

    total = len(entries)
    histogram = [
        MoodCount(mood=mood, count=count, fraction=count / total if total else 0.0)
        for mood, count in counts.items()
    ]
    if limit is not None:
        histogram = histogram[:limit]
    return histogram


def count_favorites(entries: list[Entry]) -> int:
    return sum(1 for e in entries if e.is_favorite)


def parse_sort(value: str) -> SortBy:
    """Parse a sort name, raising ValueError on unknown names."""
    try:
        return SortBy(value.lower())
    except ValueError:
        options = ", ".join(s.value for s in SortBy)
        raise ValueError(f"Unknown sort '{value}' (expected one of: {options})")
