"""User profile storage interface."""

from typing import Protocol


class ProfileStore(Protocol):
    """Interface for reading and writing per-user profile documents."""

    async def get(self, owner_id: str) -> dict | None:
        """Read the profile document. Returns None if not found."""
        ...

    async def upsert(self, owner_id: str, fields: dict, merge: bool = True) -> None:
        """Write profile fields, merging into an existing document by default."""
        ...
