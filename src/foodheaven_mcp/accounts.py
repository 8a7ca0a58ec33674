import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from foodheaven_mcp.auth import AuthService, AuthUser
from foodheaven_mcp.errors import AuthorizationError, FoodHeavenError
from foodheaven_mcp.models import Role, UserProfile
from foodheaven_mcp.notify import Notifier
from foodheaven_mcp.profile import profile_from_snapshot
from foodheaven_mcp.remote import USERS, DocumentStore

logger = logging.getLogger(__name__)


@dataclass
class AuthResult:
    user: AuthUser
    redirect: str


class Accounts:
    """Sign-up/sign-in flows and the client-side role gate.

    The role read here only decides which page to show. Whoever can write
    ``users/<uid>.role`` can open the admin views, so the database access
    rules have to enforce admin-only writes on ``items`` and ``orders``.
    """

    def __init__(self, auth: AuthService, remote: DocumentStore, notifier: Notifier):
        self.auth = auth
        self.remote = remote
        self.notifier = notifier

    def _new_profile(self, user: AuthUser, name: Optional[str]) -> dict:
        return {
            "email": user.email,
            "name": name,
            "role": Role.CUSTOMER.value,
            "createdAt": datetime.now(timezone.utc),
        }

    async def sign_up(self, email: str, password: str, name: str = "") -> AuthResult:
        user = await self.auth.sign_up(email, password, display_name=name or None)
        try:
            await self.remote.set(USERS, user.uid, self._new_profile(user, name or None))
        except FoodHeavenError:
            logger.exception("Sign up: profile write failed")
            self.notifier.push("Signed up, but your profile could not be saved.", "error")
        self.notifier.push("Sign up successful! Redirecting to menu.")
        return AuthResult(user, "menu")

    async def sign_in(self, email: str, password: str) -> AuthResult:
        user = await self.auth.sign_in(email, password)
        return AuthResult(user, await self.handle_auth_success(user))

    async def handle_auth_success(self, user: AuthUser) -> str:
        """Create the profile on first login and pick the landing page by role."""
        try:
            snap = await self.remote.get(USERS, user.uid)
            if snap is None:
                await self.remote.set(USERS, user.uid, self._new_profile(user, user.display_name))
                return "menu"
            profile = profile_from_snapshot(snap)
        except FoodHeavenError:
            logger.exception("Login: role check failed")
            self.notifier.push(
                "Login successful, but failed to fetch role. Redirecting to menu.", "error"
            )
            return "menu"
        return "admin" if profile and profile.is_admin else "menu"

    async def sign_out(self) -> None:
        await self.auth.sign_out()
        self.notifier.push("Logged out successfully")

    async def load_profile(self, uid: str) -> Optional[UserProfile]:
        return profile_from_snapshot(await self.remote.get(USERS, uid))

    async def require_admin(self) -> UserProfile:
        """Fail closed: anything but a readable admin profile signs the user out."""
        user = self.auth.current_user
        if user is None:
            raise AuthorizationError("Please sign in as an administrator.", redirect="index")

        try:
            profile = await self.load_profile(user.uid)
        except FoodHeavenError:
            logger.exception("Error checking admin status")
            profile = None

        if profile is None or not profile.is_admin:
            logger.warning(f"Denied admin access to {user.email}")
            await self.auth.sign_out()
            raise AuthorizationError(
                "Access Denied: You are not authorized as an administrator.", redirect="index"
            )
        return profile
