"""Entry editor: draft state and its save/cancel lifecycle."""

import logging
from dataclasses import dataclass, replace
from enum import IntEnum, auto
from typing import Callable

from .core.entries import DEFAULT_MOOD, MOODS, Entry, is_date_key, today_key
from .errors import InvalidTransition, StoreError, StoreWriteFailed, ValidationError
from .viewmodel import EntryViewModel

logger = logging.getLogger(__name__)


class EditorState(IntEnum):
    """States of the entry editor."""

    IDLE = auto()
    DRAFTING = auto()
    SAVING = auto()


@dataclass
class Draft:
    """Unsaved entry fields."""

    title: str = ""
    content: str = ""
    mood: str = DEFAULT_MOOD
    date: str | None = None

    def missing_fields(self) -> list[str]:
        """Required fields that are empty or whitespace."""
        return [name for name in ("title", "content") if not getattr(self, name).strip()]


class EntryEditor:
    """
    Drafting and committing one entry at a time.

    IDLE -> DRAFTING (start_new / start_edit) -> SAVING (commit) -> IDLE.
    A failed save returns to DRAFTING with the draft intact; cancel returns
    to IDLE without touching the store.
    """

    def __init__(self, view_model: EntryViewModel, today: Callable[[], str] = today_key):
        self.view_model = view_model
        self._today = today
        self.state = EditorState.IDLE
        self.draft: Draft | None = None
        self.editing_id: str | None = None

    @property
    def is_editing(self) -> bool:
        return self.editing_id is not None

    def _require(self, *states: EditorState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.name for s in states)
            raise InvalidTransition(f"Editor is {self.state.name}, expected {allowed}")

    def _reset(self) -> None:
        self.state = EditorState.IDLE
        self.draft = None
        self.editing_id = None

    def start_new(self, date_key: str | None = None) -> Draft:
        """Begin a new entry, optionally for a specific date."""
        self._require(EditorState.IDLE, EditorState.DRAFTING)
        self.draft = Draft(date=date_key)
        self.editing_id = None
        self.state = EditorState.DRAFTING
        return self.draft

    def start_edit(self, entry: Entry) -> Draft:
        """Begin editing an existing entry."""
        self._require(EditorState.IDLE, EditorState.DRAFTING)
        self.draft = Draft(
            title=entry.title,
            content=entry.content,
            mood=entry.mood,
            date=entry.date or None,
        )
        self.editing_id = entry.id
        self.state = EditorState.DRAFTING
        return self.draft

    def update_draft(self, **fields) -> Draft:
        """Change draft fields (title, content, mood, date)."""
        self._require(EditorState.DRAFTING)
        self.draft = replace(self.draft, **fields)
        return self.draft

    def _validate(self) -> str:
        """Check the draft and resolve its date. Returns the date key."""
        missing = self.draft.missing_fields()
        if missing:
            raise ValidationError("Please fill in title and content", missing)
        if self.draft.mood not in MOODS:
            raise ValidationError(f"Unknown mood '{self.draft.mood}'", ["mood"])

        entry_date = self.draft.date or self.view_model.selected_date or self._today()
        if not is_date_key(entry_date):
            raise ValidationError(f"Invalid date '{entry_date}' (expected YYYY-MM-DD)", ["date"])
        return entry_date

    async def commit(self) -> str:
        """
        Save the draft, reload the view-model, and return the entry id.

        Raises ValidationError before any store call, or StoreWriteFailed
        after returning to DRAFTING with the draft preserved.
        """
        self._require(EditorState.DRAFTING)
        entry_date = self._validate()

        fields = {
            "title": self.draft.title,
            "content": self.draft.content,
            "mood": self.draft.mood,
            "date": entry_date,
        }
        store = self.view_model.store

        self.state = EditorState.SAVING
        try:
            if self.editing_id:
                await store.update_by_id(self.editing_id, fields)
                entry_id = self.editing_id
            else:
                entry_id = await store.create(
                    {**fields, "userId": self.view_model.owner_id, "isFavorite": False}
                )
        except StoreError as e:
            self.state = EditorState.DRAFTING
            action = "update" if self.editing_id else "create"
            logger.error(f"Failed to {action} entry: {e}")
            raise StoreWriteFailed(f"Failed to {action} entry") from e
        except Exception:
            self.state = EditorState.DRAFTING
            raise

        self.view_model.selected_date = None
        try:
            await self.view_model.load()
        finally:
            self._reset()
        return entry_id

    def cancel(self) -> None:
        """Discard the draft."""
        self._require(EditorState.IDLE, EditorState.DRAFTING)
        self._reset()
