import logging
from typing import Any

from foodheaven_mcp import views
from foodheaven_mcp.menu import SECTIONS
from foodheaven_mcp.session import AppContext
from foodheaven_mcp.tools.common import failure

logger = logging.getLogger(__name__)


async def get_menu(
    app: AppContext,
    section: str = "All",
    reload: bool = False,
) -> dict[str, Any]:
    """Get the menu grouped by page section. Loads the catalog on first use."""
    if section != "All" and section not in SECTIONS:
        return {
            "success": False,
            "error": f"Unknown section '{section}'. Use one of: All, {', '.join(SECTIONS)}.",
            "code": "UNKNOWN_SECTION",
        }

    if reload or not app.menu.loaded:
        if not await app.menu.reload():
            return {
                "success": False,
                "error": "Failed to load menu. Please refresh.",
                "code": "MENU_FETCH_FAILED",
            }

    rendered = views.render_menu(app.menu, app.cart, app.wishlist, app.symbol)
    if section != "All":
        rendered["sections"] = {section: rendered["sections"].get(section, [])}
    return {"success": True, "item_count": len(app.menu), **rendered}


async def search_menu_items(app: AppContext, query: str) -> dict[str, Any]:
    """Filter menu cards whose name or description contains ``query``."""
    try:
        if not app.menu.loaded:
            await app.menu.reload()
        matches = app.menu.search(query)
        rendered = views.render_menu(app.menu, app.cart, app.wishlist, app.symbol, items=matches)
        return {"success": True, "result_count": len(matches), **rendered}
    except Exception as e:
        logger.exception("Error searching menu")
        return failure(e, "SEARCH_FAILED")
