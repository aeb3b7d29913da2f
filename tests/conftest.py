"""Shared test fixtures for dailydiary."""

import pytest

from dailydiary.errors import NOT_FOUND, UNKNOWN, StoreError
from dailydiary.viewmodel import EntryViewModel

OWNER = "user-1"


class FakeEntryStore:
    """In-memory EntryStore that records every call and can be told to fail."""

    def __init__(self, docs: dict[str, dict] | None = None):
        self.docs = {doc_id: dict(doc) for doc_id, doc in (docs or {}).items()}
        self.calls: list[tuple] = []
        self.errors: dict[str, StoreError] = {}
        self._created = 0

    def fail(self, method: str, code: str = UNKNOWN) -> None:
        self.errors[method] = StoreError(code, f"{method} failed")

    def heal(self) -> None:
        self.errors.clear()

    def _record(self, method: str, *args) -> None:
        self.calls.append((method, *args))
        if method in self.errors:
            raise self.errors[method]

    @property
    def writes(self) -> list[tuple]:
        return [call for call in self.calls if call[0] != "query_by_owner"]

    async def create(self, fields: dict) -> str:
        self._record("create", fields)
        self._created += 1
        entry_id = f"new{self._created}"
        self.docs[entry_id] = {**fields, "createdAt": "2024-03-01T10:00:00+00:00"}
        return entry_id

    async def query_by_owner(self, owner_id: str) -> list[tuple[str, dict]]:
        self._record("query_by_owner", owner_id)
        return [(doc_id, dict(doc)) for doc_id, doc in self.docs.items() if doc.get("userId") == owner_id]

    async def update_by_id(self, entry_id: str, fields: dict) -> None:
        self._record("update_by_id", entry_id, fields)
        if entry_id not in self.docs:
            raise StoreError(NOT_FOUND, entry_id)
        self.docs[entry_id].update(fields)

    async def delete_by_id(self, entry_id: str) -> None:
        self._record("delete_by_id", entry_id)
        self.docs.pop(entry_id, None)


def make_doc(title: str, date: str, mood: str = "😊", favorite: bool = False, owner: str = OWNER, content: str = "") -> dict:
    return {
        "userId": owner,
        "title": title,
        "content": content or f"Notes about {title.lower()}",
        "mood": mood,
        "date": date,
        "isFavorite": favorite,
    }


@pytest.fixture
def sample_docs():
    """Entries for two owners across a few dates, in store order."""
    return {
        "a": make_doc("Beach day", "2024-03-02", mood="😎", favorite=True),
        "b": make_doc("Quiet Sunday", "2024-03-03", mood="😌"),
        "c": make_doc("Late night thoughts", "2024-03-01", mood="🤔"),
        "d": make_doc("Second note", "2024-03-02", mood="😊"),
        "x": make_doc("Someone else", "2024-03-04", owner="user-2"),
    }


@pytest.fixture
def store(sample_docs):
    return FakeEntryStore(sample_docs)


@pytest.fixture
def view_model(store):
    return EntryViewModel(store, OWNER)
