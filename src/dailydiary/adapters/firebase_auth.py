"""Firebase Authentication adapter - Identity Toolkit REST with session persistence."""

import asyncio
import functools
import logging
import time
from typing import Callable

import requests

from dailydiary.config import Config, Session, load_config
from dailydiary.errors import AuthenticationError, ConfigurationError, ValidationError
from dailydiary.ports.identity import Identity, IdentityListener

logger = logging.getLogger(__name__)

IDENTITY_BASE = "https://identitytoolkit.googleapis.com/v1"
SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"
MIN_PASSWORD_LENGTH = 6

ERROR_MESSAGES = {
    "INVALID_EMAIL": "Please enter a valid email address.",
    "MISSING_EMAIL": "Please enter a valid email address.",
    "USER_DISABLED": "This account has been disabled.",
    "EMAIL_NOT_FOUND": "No account found with this email.",
    "INVALID_PASSWORD": "Incorrect password. Please try again.",
    "INVALID_LOGIN_CREDENTIALS": "Invalid email or password. Please check and try again.",
    "EMAIL_EXISTS": "This email is already registered. Please login instead.",
    "WEAK_PASSWORD": "Password is too weak. Please use at least 6 characters.",
    "TOO_MANY_ATTEMPTS_TRY_LATER": "Too many failed attempts. Please try again later.",
    "OPERATION_NOT_ALLOWED": "Email/password sign-in is not enabled.",
}
NETWORK_ERROR_MESSAGE = "Network error. Please check your internet connection."
DEFAULT_ERROR_MESSAGE = "An error occurred. Please try again."


def validate_new_password(password: str, confirm_password: str) -> None:
    """Check a sign-up password before any network call."""
    if password != confirm_password:
        raise ValidationError("Passwords do not match!", ["confirm_password"])
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters!", ["password"]
        )


def friendly_error(code: str) -> str:
    """Translate an Identity Toolkit error code to a user-facing message."""
    # Codes may carry detail: "WEAK_PASSWORD : Password should be at least 6 characters"
    return ERROR_MESSAGES.get(code.split(":")[0].strip(), DEFAULT_ERROR_MESSAGE)


class FirebaseAuthAdapter:
    """
    Firebase email/password authentication.

    Implements IdentityProvider protocol. Handles sign-in, token refresh and
    session persistence. No business logic - just I/O.
    """

    def __init__(
        self,
        config: Config | None = None,
        session: Session | None = None,
        http: requests.Session | None = None,
        persist: bool = True,
    ):
        self.config = config or load_config()
        if not self.config.firebase_api_key:
            raise ConfigurationError("FIREBASE_API_KEY not configured in diary.conf")
        self.session = session or Session.load()
        self.persist = persist
        self._http = http or requests.Session()
        self._listeners: list[IdentityListener] = []

    @property
    def current(self) -> Identity | None:
        if not self.session.signed_in:
            return None
        return Identity(
            user_id=self.session.user_id,
            email=self.session.email,
            display_name=self.session.display_name,
        )

    def subscribe(self, listener: IdentityListener) -> Callable[[], None]:
        """Call listener now and on every identity change."""
        self._listeners.append(listener)
        listener(self.current)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        identity = self.current
        for listener in list(self._listeners):
            listener(identity)

    def _save(self) -> None:
        if self.persist:
            self.session.save()

    def _post(self, url: str, **kwargs) -> dict:
        """POST to a Firebase auth endpoint, mapping failures to AuthenticationError."""
        try:
            resp = self._http.post(
                url,
                params={"key": self.config.firebase_api_key},
                timeout=self.config.request_timeout,
                **kwargs,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.warning(f"Firebase auth unreachable: {e}")
            raise AuthenticationError(NETWORK_ERROR_MESSAGE)

        if resp.status_code != 200:
            try:
                code = resp.json().get("error", {}).get("message", "")
            except ValueError:
                code = ""
            logger.info(f"Firebase auth rejected request: {code or resp.status_code}")
            raise AuthenticationError(friendly_error(code))

        return resp.json()

    def _apply_sign_in(self, data: dict) -> Identity:
        self.session = Session(
            id_token=data["idToken"],
            refresh_token=data.get("refreshToken", ""),
            user_id=data["localId"],
            email=data.get("email", ""),
            display_name=data.get("displayName", ""),
            expires_at=int(time.time()) + int(data.get("expiresIn", 3600)),
        )
        self._save()
        self._notify()
        return self.current

    # ============== Blocking calls ==============

    def _sign_up(self, email: str, password: str, display_name: str) -> Identity:
        data = self._post(
            f"{IDENTITY_BASE}/accounts:signUp",
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        self._apply_sign_in(data)
        if display_name:
            return self._update_display_name(display_name)
        return self.current

    def _sign_in(self, email: str, password: str) -> Identity:
        data = self._post(
            f"{IDENTITY_BASE}/accounts:signInWithPassword",
            json={"email": email, "password": password, "returnSecureToken": True},
        )
        return self._apply_sign_in(data)

    def _update_display_name(self, display_name: str) -> Identity:
        data = self._post(
            f"{IDENTITY_BASE}/accounts:update",
            json={
                "idToken": self.id_token(),
                "displayName": display_name,
                "returnSecureToken": True,
            },
        )
        self.session.display_name = data.get("displayName", display_name)
        if data.get("idToken"):
            self.session.id_token = data["idToken"]
            self.session.refresh_token = data.get("refreshToken", self.session.refresh_token)
            self.session.expires_at = int(time.time()) + int(data.get("expiresIn", 3600))
        self._save()
        self._notify()
        return self.current

    def _refresh_token(self) -> None:
        """Refresh the ID token."""
        if not self.session.refresh_token:
            raise AuthenticationError("No refresh token. Run 'diary login' first.")

        data = self._post(
            SECURE_TOKEN_URL,
            data={"grant_type": "refresh_token", "refresh_token": self.session.refresh_token},
        )
        self.session.id_token = data["id_token"]
        if "refresh_token" in data:
            self.session.refresh_token = data["refresh_token"]
        self.session.expires_at = int(time.time()) + int(data.get("expires_in", 3600))
        self._save()
        logger.debug("Refreshed Firebase ID token")

    def id_token(self) -> str:
        """Current ID token, refreshed if expired or expiring soon."""
        if not self.session.id_token:
            raise AuthenticationError("Not signed in. Run 'diary login' first.")

        # Refresh if expiring within 5 minutes
        if self.session.expires_at and time.time() >= self.session.expires_at - 300:
            self._refresh_token()
        return self.session.id_token

    # ============== IdentityProvider ==============

    async def _run(self, fn: Callable, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(fn, *args))

    async def sign_up(self, email: str, password: str, display_name: str) -> Identity:
        return await self._run(self._sign_up, email, password, display_name)

    async def sign_in(self, email: str, password: str) -> Identity:
        return await self._run(self._sign_in, email, password)

    async def update_display_name(self, display_name: str) -> Identity:
        return await self._run(self._update_display_name, display_name)

    async def sign_out(self) -> None:
        self.session = Session()
        if self.persist:
            Session.clear()
        self._notify()
