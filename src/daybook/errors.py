"""Error taxonomy shared by adapters and controllers."""


class DaybookError(Exception):
    """Base class for expected, user-visible failures."""

    pass


class AuthError(DaybookError):
    """Raised when the identity provider rejects a request."""

    pass


class StoreError(DaybookError):
    """Raised when an entry store operation fails."""

    pass


class AuthUnavailableError(AuthError):
    """Raised when the identity provider cannot be reached or fails server-side."""

    pass
