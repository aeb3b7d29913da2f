"""Shared wiring layer between the CLI and Telegram.

Builds stores and the identity adapter from config, and bundles a
view-model with its editor for the signed-in owner.
"""

import logging
from dataclasses import dataclass

from .adapters.file_store import FileEntryStore, FileProfileStore
from .adapters.firebase_auth import FirebaseAuthAdapter
from .adapters.firestore import FirestoreClient, FirestoreEntryStore, FirestoreProfileStore
from .config import Config, Session
from .core.profile import UserProfile
from .editor import EntryEditor
from .errors import AuthenticationError, ConfigurationError, StoreError, StoreWriteFailed
from .ports.entry_store import EntryStore
from .ports.identity import IdentityProvider
from .ports.profile_store import ProfileStore
from .viewmodel import EntryViewModel

logger = logging.getLogger(__name__)

LOCAL_OWNER_ID = "local"


@dataclass
class Diary:
    """Everything a presentation layer needs for one signed-in owner."""

    owner_id: str
    view_model: EntryViewModel
    editor: EntryEditor
    profiles: ProfileStore


def get_identity(config: Config, session: Session | None = None) -> FirebaseAuthAdapter:
    """Build the Firebase auth adapter."""
    return FirebaseAuthAdapter(config=config, session=session)


def get_stores(
    config: Config, identity: FirebaseAuthAdapter | None = None
) -> tuple[EntryStore, ProfileStore]:
    """Resolve entry and profile stores from config."""
    if config.store_backend == "file":
        return FileEntryStore(config.data_dir), FileProfileStore(config.data_dir)

    if not config.firebase_project_id:
        raise ConfigurationError("FIREBASE_PROJECT_ID not configured in diary.conf")
    if identity is None:
        raise AuthenticationError("Not signed in. Run 'diary login' first.")

    client = FirestoreClient(
        project_id=config.firebase_project_id,
        token_provider=identity.id_token,
        timeout=config.request_timeout,
    )
    return FirestoreEntryStore(client), FirestoreProfileStore(client)


def resolve_owner_id(config: Config, session: Session) -> str:
    """Owner for the view-model: the signed-in user, or a fixed local owner offline."""
    if session.signed_in:
        return session.user_id
    if config.store_backend == "file":
        return LOCAL_OWNER_ID
    raise AuthenticationError("Not signed in. Run 'diary login' first.")


def open_diary(config: Config, session: Session | None = None) -> Diary:
    """Wire a view-model and editor for the current owner. Does not load."""
    session = session or Session.load()
    owner_id = resolve_owner_id(config, session)

    identity = None
    if config.store_backend == "firestore":
        identity = get_identity(config, session)
    entries, profiles = get_stores(config, identity)

    view_model = EntryViewModel(entries, owner_id)
    return Diary(
        owner_id=owner_id,
        view_model=view_model,
        editor=EntryEditor(view_model),
        profiles=profiles,
    )


async def load_profile(profiles: ProfileStore, owner_id: str) -> UserProfile:
    """Read the profile document; a missing document is an empty profile."""
    try:
        data = await profiles.get(owner_id)
    except StoreError as e:
        logger.warning(f"Failed to load profile for {owner_id}: {e}")
        return UserProfile()
    return UserProfile.from_document(data)


async def save_profile(
    profiles: ProfileStore,
    owner_id: str,
    profile: UserProfile,
    identity: IdentityProvider | None = None,
) -> None:
    """Update the account display name (when signed in), then upsert the profile."""
    if identity is not None and identity.current is not None:
        await identity.update_display_name(profile.name)

    try:
        await profiles.upsert(owner_id, profile.to_document(), merge=True)
    except StoreError as e:
        logger.error(f"Failed to save profile for {owner_id}: {e}")
        raise StoreWriteFailed("Failed to update profile") from e
