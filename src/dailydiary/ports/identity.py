"""Identity provider interface."""

from dataclasses import dataclass
from typing import Callable, Protocol


@dataclass
class Identity:
    """The signed-in account."""

    user_id: str
    email: str = ""
    display_name: str = ""


IdentityListener = Callable[[Identity | None], None]


class IdentityProvider(Protocol):
    """Interface for account sign-up, sign-in and identity changes."""

    @property
    def current(self) -> Identity | None:
        """The signed-in identity, or None."""
        ...

    async def sign_up(self, email: str, password: str, display_name: str) -> Identity:
        """Create an account and sign in."""
        ...

    async def sign_in(self, email: str, password: str) -> Identity:
        """Sign in with email and password."""
        ...

    async def sign_out(self) -> None:
        """Forget the current session."""
        ...

    async def update_display_name(self, display_name: str) -> Identity:
        """Change the display name on the account."""
        ...

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Call listener on every identity change. Returns an unsubscribe function."""
        ...
