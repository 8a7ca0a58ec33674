import logging
from contextlib import AsyncExitStack
from typing import Any, Optional

from foodheaven_mcp import views
from foodheaven_mcp.accounts import Accounts
from foodheaven_mcp.admin import MenuAdmin
from foodheaven_mcp.auth import AuthService, AuthUser, FirebaseAuthService, MemoryAuthService
from foodheaven_mcp.cart import CartManager
from foodheaven_mcp.checkout import Checkout
from foodheaven_mcp.config import FoodHeavenConfig
from foodheaven_mcp.firestore import FirestoreDocumentStore
from foodheaven_mcp.local_store import LocalStore
from foodheaven_mcp.menu import MenuCache
from foodheaven_mcp.notify import Notifier
from foodheaven_mcp.orders import OrdersFeed
from foodheaven_mcp.profile import AddressBook, Preferences
from foodheaven_mcp.remote import DocumentStore, MemoryDocumentStore
from foodheaven_mcp.sync import BestEffortWriter
from foodheaven_mcp.wishlist import WishlistManager

logger = logging.getLogger(__name__)


class AppContext:
    """Everything one storefront session owns.

    Managers get their collaborators injected here; ``screen`` holds the
    latest rendered payload of each view and is refreshed by the managers'
    change callbacks.
    """

    def __init__(
        self,
        config: FoodHeavenConfig,
        local: LocalStore,
        remote: DocumentStore,
        auth: AuthService,
        notifier: Optional[Notifier] = None,
    ):
        self.config = config
        self.local = local
        self.remote = remote
        self.auth = auth
        self.notifier = notifier or Notifier()
        self.writer = BestEffortWriter(self.notifier)
        self.screen: dict[str, Any] = {}

        self.menu = MenuCache(remote, self.notifier, on_render=self._render_menu)
        self.cart = CartManager(local, self.notifier, on_change=self._render_cart)
        self.wishlist = WishlistManager(
            local,
            remote,
            self.writer,
            self.notifier,
            self.menu,
            current_uid=self.current_uid,
            on_change=self._render_wishlist,
        )
        self.checkout = Checkout(
            self.cart,
            remote,
            self.notifier,
            config.pricing,
            config.storage.audit_log_path,
        )
        self.accounts = Accounts(auth, remote, self.notifier)
        self.menu_admin = MenuAdmin(remote, self.notifier)
        self.preferences = Preferences(local, self.notifier, config.prefers_dark)
        self.addresses = AddressBook(local, self.notifier)

        self.orders_feed: Optional[OrdersFeed] = None
        self._admin_scope: Optional[AsyncExitStack] = None
        self._unsubscribe_auth = auth.on_auth_state_changed(self._on_auth_state_changed)

    @property
    def symbol(self) -> str:
        return self.config.pricing.currency_symbol

    @property
    def current_user(self) -> Optional[AuthUser]:
        return self.auth.current_user

    def current_uid(self) -> Optional[str]:
        user = self.auth.current_user
        return user.uid if user else None

    # --- Rendering ---

    def _render_menu(self, menu: MenuCache) -> None:
        self.screen["menu"] = views.render_menu(menu, self.cart, self.wishlist, self.symbol)

    def _render_cart(self, cart: CartManager, item_id: Optional[str] = None) -> None:
        self.screen["cart"] = views.render_cart(cart, self.symbol)
        if self.menu.loaded:
            self._render_menu(self.menu)

    def _render_wishlist(self, wishlist, item_id: Optional[str] = None) -> None:
        self.screen["wishlist"] = views.render_wishlist(wishlist, self.symbol)
        if self.menu.loaded:
            self._render_menu(self.menu)

    def _render_orders(self, feed: OrdersFeed) -> None:
        self.screen["orders"] = views.render_orders_feed(feed, self.symbol)

    def render_all(self) -> dict[str, Any]:
        self._render_cart(self.cart)
        self._render_wishlist(self.wishlist)
        return self.screen

    # --- Session ---

    async def _on_auth_state_changed(self, user: Optional[AuthUser]) -> None:
        if user:
            logger.info(f"Signed in as {user.email}")
            await self.wishlist.sync_from_remote(user.uid)
        else:
            await self.close_admin_dashboard()
            self._render_wishlist(self.wishlist)

    async def open_admin_dashboard(self) -> OrdersFeed:
        """Check the admin role and open the live orders feed for this dashboard."""
        await self.accounts.require_admin()
        if self.orders_feed is not None and self.orders_feed.active:
            return self.orders_feed

        scope = AsyncExitStack()
        feed = await scope.enter_async_context(
            OrdersFeed(self.remote, self.notifier, on_render=self._render_orders)
        )
        self._admin_scope = scope
        self.orders_feed = feed
        return feed

    async def close_admin_dashboard(self) -> None:
        if self._admin_scope is not None:
            scope, self._admin_scope = self._admin_scope, None
            await scope.aclose()
        self.orders_feed = None
        self.screen.pop("orders", None)

    async def aclose(self) -> None:
        try:
            await self.close_admin_dashboard()
            outcomes = await self.writer.drain()
            if outcomes:
                logger.info(f"Flushed {len(outcomes)} pending remote writes")
        finally:
            self._unsubscribe_auth()
            self.remote.close()


def build_context(config: FoodHeavenConfig) -> AppContext:
    local = LocalStore(config.storage.state_path)
    if config.backend.kind == "memory":
        logger.info("Using in-memory document store and accounts")
        remote: DocumentStore = MemoryDocumentStore()
        auth: AuthService = MemoryAuthService()
    else:
        remote = FirestoreDocumentStore(config.backend.firebase)
        auth = FirebaseAuthService(config.backend.firebase)
    return AppContext(config, local, remote, auth)
