from typing import Any

from foodheaven_mcp.errors import AuthorizationError, FoodHeavenError


def failure(error: Exception, code: str) -> dict[str, Any]:
    """Tool error payload. Known errors carry their own code."""
    if isinstance(error, FoodHeavenError):
        code = error.code
    result: dict[str, Any] = {"success": False, "error": str(error), "code": code}
    if isinstance(error, AuthorizationError):
        result["redirect"] = error.redirect
    return result
