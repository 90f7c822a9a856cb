"""Local identity adapter - a single always-signed-in user for offline use."""

import logging

from daybook.core.users import AuthEvent, AuthSession, SignUpResult
from daybook.errors import AuthError
from daybook.ports.identity_provider import AuthListener

logger = logging.getLogger(__name__)


class _Subscription:
    def __init__(self, listeners: list[AuthListener], callback: AuthListener):
        self._listeners = listeners
        self.callback = callback

    def unsubscribe(self) -> None:
        if self.callback in self._listeners:
            self._listeners.remove(self.callback)


class LocalIdentity:
    """
    Local identity provider.

    Implements IdentityProvider protocol for the file store when no
    Supabase project is configured. There are no accounts to sign in to.
    """

    def __init__(self, user_id: str = "local", name: str = "User"):
        self.user = {"id": user_id, "email": "", "user_metadata": {"full_name": name}}
        self._session: AuthSession | None = AuthSession(access_token="local", user=self.user)
        self._listeners: list[AuthListener] = []

    def on_auth_state_change(self, callback: AuthListener) -> _Subscription:
        self._listeners.append(callback)
        return _Subscription(self._listeners, callback)

    def _emit(self, event: AuthEvent) -> None:
        for listener in list(self._listeners):
            listener(event, self._session)

    def get_session(self) -> AuthSession | None:
        return self._session

    def access_token(self) -> str | None:
        return self._session.access_token if self._session else None

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        raise AuthError("Local mode has no accounts. Configure SUPABASE_URL to sign in.")

    def sign_up(self, email: str, password: str, full_name: str) -> SignUpResult:
        raise AuthError("Local mode has no accounts. Configure SUPABASE_URL to sign up.")

    def sign_out(self) -> None:
        logger.info("Signing out of local mode")
        self._session = None
        self._emit(AuthEvent.SIGNED_OUT)
