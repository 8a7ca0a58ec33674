"""Error taxonomy shared by the managers, the remote backends and the tools."""


class FoodHeavenError(Exception):
    """Base class. ``code`` is the machine-readable value returned by tools."""

    code = "ERROR"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        if code:
            self.code = code


class ValidationError(FoodHeavenError):
    """Input rejected before any write happened."""

    code = "INVALID_INPUT"


class RemoteError(FoodHeavenError):
    """A read, write or subscribe against the remote document store failed."""

    code = "REMOTE_FAILED"


class NotFoundError(FoodHeavenError):
    """The addressed document does not exist (anymore)."""

    code = "NOT_FOUND"


class AuthError(FoodHeavenError):
    """Sign-up or sign-in was refused by the authentication service."""

    code = "AUTH_FAILED"


class AuthorizationError(FoodHeavenError):
    """The current session may not use the requested view."""

    code = "FORBIDDEN"

    def __init__(self, message: str, redirect: str = "index"):
        super().__init__(message)
        self.redirect = redirect


class StorageError(FoodHeavenError):
    """The local store could not be written."""

    code = "STORAGE_FAILED"
