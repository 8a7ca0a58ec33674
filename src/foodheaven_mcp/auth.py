"""Authentication service: sign-up, sign-in, sign-out and session-change events."""

import hashlib
import logging
import secrets
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional
from uuid import uuid4

import requests

from foodheaven_mcp.config import FirebaseSettings
from foodheaven_mcp.errors import AuthError, RemoteError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


@dataclass
class AuthUser:
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    id_token: Optional[str] = None


AuthListener = Callable[[Optional[AuthUser]], Awaitable[None]]


def _validate_credentials(email: str, password: str) -> None:
    if not email or "@" not in email:
        raise AuthError("Please enter a valid email address.", code="INVALID_EMAIL")
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise AuthError(
            f"Password should be at least {MIN_PASSWORD_LENGTH} characters.",
            code="WEAK_PASSWORD",
        )


class AuthService(ABC):
    def __init__(self):
        self.current_user: Optional[AuthUser] = None
        self._listeners: list[AuthListener] = []

    def on_auth_state_changed(self, listener: AuthListener) -> Callable[[], None]:
        """Register ``listener`` for session changes. Returns the unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def _set_user(self, user: Optional[AuthUser]) -> None:
        self.current_user = user
        for listener in list(self._listeners):
            try:
                await listener(user)
            except Exception:
                logger.exception("Auth state listener failed")

    @abstractmethod
    async def sign_up(
        self, email: str, password: str, display_name: Optional[str] = None
    ) -> AuthUser:
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthUser:
        pass

    async def sign_out(self) -> None:
        if self.current_user is None:
            return
        logger.info(f"Signing out {self.current_user.email}")
        await self._set_user(None)


def _hash_password(password: str, salt: str) -> str:
    return hashlib.sha256(f"{salt}:{password}".encode()).hexdigest()


class MemoryAuthService(AuthService):
    """Accounts kept in process memory, for the ``memory`` backend and tests."""

    def __init__(self):
        super().__init__()
        self._accounts: dict[str, dict] = {}

    async def sign_up(self, email, password, display_name=None):
        _validate_credentials(email, password)
        key = email.lower()
        if key in self._accounts:
            raise AuthError("An account with this email already exists.", code="EMAIL_EXISTS")
        salt = secrets.token_hex(8)
        account = {
            "uid": uuid4().hex[:28],
            "email": email,
            "display_name": display_name,
            "salt": salt,
            "password": _hash_password(password, salt),
        }
        self._accounts[key] = account
        user = AuthUser(uid=account["uid"], email=email, display_name=display_name)
        await self._set_user(user)
        return user

    async def sign_in(self, email, password):
        account = self._accounts.get((email or "").lower())
        if account is None or account["password"] != _hash_password(password, account["salt"]):
            raise AuthError("Invalid email or password.", code="INVALID_LOGIN_CREDENTIALS")
        user = AuthUser(
            uid=account["uid"], email=account["email"], display_name=account["display_name"]
        )
        await self._set_user(user)
        return user


class FirebaseAuthService(AuthService):
    """Email/password accounts through the Firebase Identity Toolkit REST API."""

    def __init__(self, settings: FirebaseSettings):
        super().__init__()
        self.settings = settings

    def _post(self, endpoint: str, payload: dict) -> dict:
        url = f"{self.settings.auth_url}/accounts:{endpoint}"
        try:
            resp = requests.post(
                url,
                params={"key": self.settings.api_key},
                json=payload,
                timeout=self.settings.request_timeout,
            )
        except requests.RequestException as e:
            logger.exception(f"Auth request {endpoint} failed")
            raise RemoteError(f"Authentication service unreachable: {e}") from e

        try:
            data = resp.json() if resp.content else {}
        except ValueError as e:
            logger.warning(f"Auth request {endpoint} returned HTTP {resp.status_code} with a non-JSON body")
            raise RemoteError("Authentication service returned an invalid response") from e
        if resp.status_code >= 400:
            message = data.get("error", {}).get("message", f"HTTP {resp.status_code}")
            # Messages look like "WEAK_PASSWORD : Password should be at least 6 characters"
            code = message.split(" ")[0]
            raise AuthError(message, code=code)
        return data

    def _user_from(self, data: dict) -> AuthUser:
        return AuthUser(
            uid=data["localId"],
            email=data.get("email"),
            display_name=data.get("displayName") or None,
            id_token=data.get("idToken"),
        )

    async def sign_up(self, email, password, display_name=None):
        _validate_credentials(email, password)
        data = self._post(
            "signUp", {"email": email, "password": password, "returnSecureToken": True}
        )
        if display_name:
            data.update(
                self._post(
                    "update",
                    {
                        "idToken": data["idToken"],
                        "displayName": display_name,
                        "returnSecureToken": True,
                    },
                )
            )
        user = self._user_from(data)
        await self._set_user(user)
        return user

    async def sign_in(self, email, password):
        data = self._post(
            "signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        user = self._user_from(data)
        await self._set_user(user)
        return user
