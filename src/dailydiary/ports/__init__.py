"""Ports - interfaces/protocols for external dependencies."""

from .entry_store import EntryStore
from .profile_store import ProfileStore
from .identity import Identity, IdentityProvider

__all__ = [
    "EntryStore",
    "ProfileStore",
    "Identity",
    "IdentityProvider",
]
