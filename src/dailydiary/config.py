"""Configuration management for Daily Diary."""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

DIARY_HOME = Path(os.environ.get("DIARY_HOME", Path.home() / ".dailydiary"))
CONFIG_FILE = DIARY_HOME / "config" / "diary.conf"
SESSION_FILE = DIARY_HOME / "config" / ".session.json"
DATA_DIR = DIARY_HOME / "data"


@dataclass
class Config:
    """Daily Diary configuration."""

    firebase_api_key: str = ""
    firebase_project_id: str = ""
    store_backend: str = "firestore"
    entries_dir: str = ""
    request_timeout: float = 15.0
    timezone: str = ""
    # Telegram bot settings
    telegram_bot_token: str = ""
    telegram_allowed_users: list[int] = field(default_factory=list)
    telegram_reminder_time: str = "21:00"

    @property
    def data_dir(self) -> Path:
        if self.entries_dir:
            return Path(self.entries_dir).expanduser()
        return DATA_DIR


@dataclass
class Session:
    """Signed-in Firebase session."""

    id_token: str = ""
    refresh_token: str = ""
    user_id: str = ""
    email: str = ""
    display_name: str = ""
    expires_at: int = 0

    @property
    def signed_in(self) -> bool:
        return bool(self.user_id)

    def save(self) -> None:
        """Save session to file."""
        SESSION_FILE.parent.mkdir(parents=True, exist_ok=True)
        SESSION_FILE.write_text(
            json.dumps(
                {
                    "id_token": self.id_token,
                    "refresh_token": self.refresh_token,
                    "user_id": self.user_id,
                    "email": self.email,
                    "display_name": self.display_name,
                    "expires_at": self.expires_at,
                }
            )
        )
        SESSION_FILE.chmod(0o600)

    @classmethod
    def load(cls) -> "Session":
        """Load session from file."""
        if not SESSION_FILE.exists():
            return cls()
        try:
            data = json.loads(SESSION_FILE.read_text())
            return cls(
                id_token=data.get("id_token", ""),
                refresh_token=data.get("refresh_token", ""),
                user_id=data.get("user_id", ""),
                email=data.get("email", ""),
                display_name=data.get("display_name", ""),
                expires_at=data.get("expires_at", 0),
            )
        except (json.JSONDecodeError, KeyError):
            return cls()

    @staticmethod
    def clear() -> None:
        """Delete the saved session."""
        SESSION_FILE.unlink(missing_ok=True)


def _unquote(value: str) -> str:
    """Strip surrounding quotes, or an inline comment from unquoted values."""
    # Handle quoted values with inline comments: "value" # comment
    for quote in ('"', "'"):
        if value.startswith(quote):
            end_quote = value.find(quote, 1)
            return value[1:end_quote] if end_quote != -1 else value[1:]
    if "#" in value:
        value = value.split("#")[0].strip()
    return value


def load_config(path: Path | None = None) -> Config:
    """Load configuration from diary.conf file."""
    config = Config()
    path = path or CONFIG_FILE

    if not path.exists():
        return config

    for line in path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue

        if "=" not in line:
            continue

        key, _, value = line.partition("=")
        key = key.strip().lower()
        value = _unquote(value.strip())

        match key:
            case "firebase_api_key":
                config.firebase_api_key = value
            case "firebase_project_id":
                config.firebase_project_id = value
            case "store_backend":
                if value.lower() in ("firestore", "file"):
                    config.store_backend = value.lower()
                else:
                    logger.warning(f"Unknown STORE_BACKEND '{value}', using {config.store_backend}")
            case "entries_dir":
                config.entries_dir = value
            case "request_timeout":
                try:
                    config.request_timeout = float(value)
                except ValueError:
                    logger.warning(f"Invalid REQUEST_TIMEOUT '{value}', using {config.request_timeout}")
            case "timezone":
                config.timezone = value
            case "telegram_bot_token":
                config.telegram_bot_token = value
            case "telegram_allowed_users":
                config.telegram_allowed_users = [int(u.strip()) for u in value.split(",") if u.strip()]
            case "telegram_reminder_time":
                config.telegram_reminder_time = value
            case _:
                logger.debug(f"Ignoring unknown config key: {key}")

    return config
