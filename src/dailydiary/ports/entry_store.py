"""Entry storage interface."""

from typing import Protocol


class EntryStore(Protocol):
    """
    Interface for the remote document store holding diary entries.

    Implementations raise dailydiary.errors.StoreError on failure.
    """

    async def create(self, fields: dict) -> str:
        """Create a document. The store assigns id, createdAt and updatedAt."""
        ...

    async def query_by_owner(self, owner_id: str) -> list[tuple[str, dict]]:
        """Fetch (id, document) pairs whose userId equals owner_id. Unordered."""
        ...

    async def update_by_id(self, entry_id: str, fields: dict) -> None:
        """Merge fields into a document and refresh updatedAt."""
        ...

    async def delete_by_id(self, entry_id: str) -> None:
        """Permanently remove a document."""
        ...
