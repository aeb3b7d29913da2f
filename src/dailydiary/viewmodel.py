"""Entry view-model: the signed-in user's entries and their derived projections.

The snapshot is a read-through cache. It is replaced wholesale by `load()`
and by nothing else; every successful write is followed by a full reload,
and a failed write leaves it untouched.
"""

import logging
from datetime import date

from .core.calendar import MonthGrid, month_grid
from .core.entries import (
    Entry,
    EntryFilter,
    MoodCount,
    count_favorites,
    entries_on_date,
    mood_histogram,
    project_entries,
    sort_by_date_desc,
)
from .errors import InvalidTransition, StoreError, StoreUnavailable, StoreWriteFailed
from .ports.entry_store import EntryStore

logger = logging.getLogger(__name__)


class EntryViewModel:
    """Fetches, caches and projects one owner's entries."""

    def __init__(self, store: EntryStore, owner_id: str):
        self.store = store
        self.owner_id = owner_id
        self.entries: tuple[Entry, ...] = ()
        self.loading = False
        self.selected_date: str | None = None
        self.pending_delete: str | None = None

    # ============== Loading ==============

    async def load(self, owner_id: str | None = None) -> tuple[Entry, ...]:
        """
        Replace the snapshot with a fresh fetch, newest date first.

        Raises StoreUnavailable on permission or connectivity errors (the
        previous snapshot stays visible). Any other fetch error yields an
        empty snapshot.
        """
        if owner_id is not None:
            self.owner_id = owner_id

        self.loading = True
        try:
            docs = await self.store.query_by_owner(self.owner_id)
        except StoreError as e:
            if e.is_unavailable:
                logger.error(f"Entries unavailable for {self.owner_id}: {e}")
                raise StoreUnavailable(f"Failed to load entries: {e}") from e
            logger.warning(f"Failed to load entries, showing none: {e}")
            docs = []
        finally:
            self.loading = False

        entries = [Entry.from_document(doc_id, data) for doc_id, data in docs]
        self.entries = tuple(sort_by_date_desc(entries))
        logger.debug(f"Loaded {len(self.entries)} entries for {self.owner_id}")
        return self.entries

    # ============== Projections ==============

    @property
    def total(self) -> int:
        return len(self.entries)

    def get(self, entry_id: str) -> Entry:
        """Entry by id from the snapshot. Raises KeyError if absent."""
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        raise KeyError(entry_id)

    def project(self, entry_filter: EntryFilter | None = None) -> list[Entry]:
        """Filtered, sorted copy of the snapshot."""
        return project_entries(list(self.entries), entry_filter or EntryFilter())

    def entries_on_date(self, key: str) -> list[Entry]:
        return entries_on_date(list(self.entries), key)

    def representative_entry(self, key: str) -> Entry | None:
        """The entry a calendar cell opens: first match in snapshot order."""
        matches = self.entries_on_date(key)
        return matches[0] if matches else None

    def mood_histogram(self, limit: int | None = None) -> list[MoodCount]:
        return mood_histogram(list(self.entries), limit)

    def favorite_count(self) -> int:
        return count_favorites(list(self.entries))

    def month_grid(self, year: int, month: int, today: date | None = None) -> MonthGrid:
        """Calendar grid for a month, marking days that have entries."""
        occupied = {e.date for e in self.entries}
        return month_grid(year, month, occupied=occupied, today=today)

    def select_date(self, key: str) -> Entry | None:
        """
        Select a calendar cell.

        Returns the entry to show, or None when the day is empty and a new
        draft should be started for it.
        """
        self.selected_date = key
        return self.representative_entry(key)

    # ============== Delete / Favorite ==============

    def request_delete(self, entry_id: str) -> Entry:
        """First phase of delete: remember the id, no store call."""
        entry = self.get(entry_id)
        self.pending_delete = entry_id
        return entry

    def cancel_delete(self) -> None:
        self.pending_delete = None

    async def confirm_delete(self) -> str:
        """Second phase of delete: remove permanently, then reload."""
        if self.pending_delete is None:
            raise InvalidTransition("No delete has been requested")

        entry_id = self.pending_delete
        self.pending_delete = None
        try:
            await self.store.delete_by_id(entry_id)
        except StoreError as e:
            logger.error(f"Failed to delete entry {entry_id}: {e}")
            raise StoreWriteFailed("Failed to delete entry") from e

        await self.load()
        return entry_id

    async def toggle_favorite(self, entry_id: str) -> bool:
        """Write the negated favorite flag, reload, and return the new value."""
        new_value = not self.get(entry_id).is_favorite
        try:
            await self.store.update_by_id(entry_id, {"isFavorite": new_value})
        except StoreError as e:
            logger.error(f"Failed to toggle favorite on {entry_id}: {e}")
            raise StoreWriteFailed("Failed to update favorite") from e

        await self.load()
        return new_value
