"""
Daily Diary exception hierarchy.

Store adapters raise StoreError with a normalized code. The view-model and
editor convert those into ValidationError, StoreUnavailable or
StoreWriteFailed at their operation boundary, so presentation code only
ever handles the kinds below.
"""

PERMISSION_DENIED = "permission-denied"
UNAVAILABLE = "unavailable"
NOT_FOUND = "not-found"
UNKNOWN = "unknown"


class DiaryError(Exception):
    """Base exception class for all diary errors."""


class ConfigurationError(DiaryError):
    """Raised when required settings are missing from diary.conf."""


class AuthenticationError(DiaryError):
    """Raised when sign-in, sign-up or session refresh fails."""


class ValidationError(DiaryError):
    """Raised when a draft is missing a required field."""

    def __init__(self, message: str, fields: list[str] | None = None):
        super().__init__(message)
        self.fields = fields or []


class StoreError(DiaryError):
    """Raised by store adapters. `code` is one of the module-level codes."""

    def __init__(self, code: str, message: str = ""):
        super().__init__(message or code)
        self.code = code

    @property
    def is_unavailable(self) -> bool:
        """Permission or connectivity problem rather than a bad request."""
        return self.code in (PERMISSION_DENIED, UNAVAILABLE)


class StoreUnavailable(DiaryError):
    """Raised when the store refuses access or cannot be reached."""


class StoreWriteFailed(DiaryError):
    """Raised when a create, update, delete or favorite toggle fails."""


class InvalidTransition(DiaryError):
    """Raised when an operation is called from the wrong state."""
