"""Identity provider interface."""

from typing import Callable, Protocol

from daybook.core.users import AuthEvent, AuthSession, SignUpResult

AuthListener = Callable[[AuthEvent, AuthSession | None], None]


class Subscription(Protocol):
    """Handle returned by a subscription. Release it with unsubscribe()."""

    def unsubscribe(self) -> None:
        ...


class IdentityProvider(Protocol):
    """Interface for an external identity provider that pushes session changes."""

    def get_session(self) -> AuthSession | None:
        """Return the current valid session, or None."""
        ...

    def on_auth_state_change(self, callback: AuthListener) -> Subscription:
        """Register for session-change events."""
        ...

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """Sign in. Raises AuthError when rejected."""
        ...

    def sign_up(self, email: str, password: str, full_name: str) -> SignUpResult:
        """Create an account with profile metadata. Raises AuthError when rejected."""
        ...

    def sign_out(self) -> None:
        """End the current session."""
        ...

    def access_token(self) -> str | None:
        """Bearer token for the current session, if any."""
        ...
