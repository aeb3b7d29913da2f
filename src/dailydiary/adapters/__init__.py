"""Adapters - I/O implementations of ports."""

from .firestore import FirestoreClient, FirestoreEntryStore, FirestoreProfileStore
from .firebase_auth import FirebaseAuthAdapter
from .file_store import FileEntryStore, FileProfileStore

__all__ = [
    "FirestoreClient",
    "FirestoreEntryStore",
    "FirestoreProfileStore",
    "FirebaseAuthAdapter",
    "FileEntryStore",
    "FileProfileStore",
]
