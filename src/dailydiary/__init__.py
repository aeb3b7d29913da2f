"""Daily Diary - mood journal client."""

__version__ = "0.1.0"
