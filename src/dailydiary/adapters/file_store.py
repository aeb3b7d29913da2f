"""File-based entry and profile storage adapters."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from dailydiary.errors import NOT_FOUND, UNKNOWN, StoreError

from .firestore import ENTRIES_COLLECTION, PROFILES_COLLECTION, auto_id

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class _JsonCollection:
    """A whole collection kept as one JSON object of {id: document}."""

    def __init__(self, data_dir: Path | str, name: str):
        self.data_dir = Path(data_dir).expanduser()
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.path = self.data_dir / f"{name}.json"

    def read_all(self) -> dict[str, dict]:
        if not self.path.exists():
            return {}
        try:
            docs = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(UNKNOWN, f"Failed to read {self.path}: {e}")
        if not isinstance(docs, dict):
            raise StoreError(UNKNOWN, f"Failed to read {self.path}: expected a JSON object")
        return docs

    def write_all(self, docs: dict[str, dict]) -> None:
        tmp = self.path.with_suffix(".json.tmp")
        try:
            tmp.write_text(json.dumps(docs, indent=2, ensure_ascii=False))
            tmp.replace(self.path)
        except OSError as e:
            raise StoreError(UNKNOWN, f"Failed to write {self.path}: {e}")


class FileEntryStore:
    """
    File-based entry storage.

    Implements EntryStore protocol. All entries live in one JSON file,
    timestamps are assigned here at write time.
    """

    def __init__(self, data_dir: Path | str):
        self._collection = _JsonCollection(data_dir, ENTRIES_COLLECTION)

    @property
    def path(self) -> Path:
        return self._collection.path

    async def create(self, fields: dict) -> str:
        docs = self._collection.read_all()
        entry_id = auto_id()
        now = _now()
        docs[entry_id] = {**fields, "createdAt": now, "updatedAt": now}
        self._collection.write_all(docs)
        logger.debug(f"Created entry {entry_id} in {self.path}")
        return entry_id

    async def query_by_owner(self, owner_id: str) -> list[tuple[str, dict]]:
        docs = self._collection.read_all()
        return [(doc_id, doc) for doc_id, doc in docs.items() if doc.get("userId") == owner_id]

    async def update_by_id(self, entry_id: str, fields: dict) -> None:
        docs = self._collection.read_all()
        if entry_id not in docs:
            raise StoreError(NOT_FOUND, f"No entry with id {entry_id}")
        docs[entry_id] = {**docs[entry_id], **fields, "updatedAt": _now()}
        self._collection.write_all(docs)

    async def delete_by_id(self, entry_id: str) -> None:
        docs = self._collection.read_all()
        if docs.pop(entry_id, None) is None:
            logger.debug(f"Delete of missing entry {entry_id} ignored")
            return
        self._collection.write_all(docs)


class FileProfileStore:
    """
    File-based profile storage.

    Implements ProfileStore protocol.
    """

    def __init__(self, data_dir: Path | str):
        self._collection = _JsonCollection(data_dir, PROFILES_COLLECTION)

    async def get(self, owner_id: str) -> dict | None:
        return self._collection.read_all().get(owner_id)

    async def upsert(self, owner_id: str, fields: dict, merge: bool = True) -> None:
        docs = self._collection.read_all()
        existing = docs.get(owner_id, {}) if merge else {}
        docs[owner_id] = {**existing, **fields, "updatedAt": _now()}
        self._collection.write_all(docs)
