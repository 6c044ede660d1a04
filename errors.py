"""Error types shared by the screens.

Every error is caught where the failing operation runs and turned into
something the user sees (a transient message, a flash or a field error).
"""


class StorefrontError(Exception):
    """Base exception for every storefront screen failure."""


class ValidationError(StorefrontError):
    """Raised when local field checks fail before any remote call."""


class RemoteWriteError(StorefrontError):
    """Raised when a create, update or delete on the document store fails."""


class RemoteReadError(StorefrontError):
    """Raised when a lookup or a subscription read fails."""


class NotFoundError(StorefrontError):
    """Raised when a postal code cannot be resolved."""
