"""Conversation states for Telegram bot."""

from enum import IntEnum, auto


class WriteStates(IntEnum):
    """States for the write-an-entry conversation."""

    TITLE = auto()
    CONTENT = auto()
    MOOD = auto()
