"""Supabase Auth adapter - password auth over the GoTrue REST API."""

import logging
import threading

import requests

from daybook.config import StoredSession
from daybook.core.users import AuthEvent, AuthSession, SignUpResult
from daybook.errors import AuthError, AuthUnavailableError
from daybook.ports.identity_provider import AuthListener

logger = logging.getLogger(__name__)


class _Subscription:
    """Registration handle returned by on_auth_state_change."""

    def __init__(self, provider: "SupabaseAuth", callback: AuthListener):
        self._provider = provider
        self.callback = callback

    def unsubscribe(self) -> None:
        self._provider._remove_listener(self.callback)


class SupabaseAuth:
    """
    Supabase Auth adapter.

    Implements IdentityProvider protocol. Keeps the session on disk so a
    restart resumes it, refreshes tokens expiring within 5 minutes, and
    broadcasts every session change to subscribers.
    """

    def __init__(
        self,
        url: str,
        anon_key: str,
        stored: StoredSession | None = None,
        timeout: float = 15.0,
        session: requests.Session | None = None,
    ):
        self.auth_url = f"{url.rstrip('/')}/auth/v1"
        self.anon_key = anon_key
        self.stored = stored or StoredSession.load()
        self.timeout = timeout
        self._http = session or requests.Session()
        self._listeners: list[AuthListener] = []
        self._lock = threading.Lock()
        self._session: AuthSession | None = None
        if self.stored.access_token:
            self._session = AuthSession(
                access_token=self.stored.access_token,
                refresh_token=self.stored.refresh_token,
                expires_at=self.stored.expires_at,
                user=self.stored.user,
            )

    # ---- events ----

    def on_auth_state_change(self, callback: AuthListener) -> _Subscription:
        """Register for session-change events."""
        with self._lock:
            self._listeners.append(callback)
        return _Subscription(self, callback)

    def _remove_listener(self, callback: AuthListener) -> None:
        with self._lock:
            if callback in self._listeners:
                self._listeners.remove(callback)

    def _emit(self, event: AuthEvent, session: AuthSession | None) -> None:
        with self._lock:
            listeners = list(self._listeners)
        logger.info(f"Auth event: {event.value}")
        for listener in listeners:
            listener(event, session)

    # ---- session state ----

    def _set_session(self, session: AuthSession | None) -> None:
        self._session = session
        if session is None:
            self.stored.clear()
            return
        self.stored.access_token = session.access_token
        self.stored.refresh_token = session.refresh_token
        self.stored.expires_at = session.expires_at
        self.stored.user = session.user
        self.stored.save()

    def _post(self, path: str, payload: dict, token: str | None = None) -> dict:
        """POST to the auth API, normalizing failures to AuthError."""
        headers = {"apikey": self.anon_key}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            resp = self._http.post(
                f"{self.auth_url}{path}", json=payload, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Auth request {path} failed: {e}")
            raise AuthUnavailableError(f"Could not reach the sign-in service: {e}") from e

        if not resp.ok:
            message = _error_message(resp)
            logger.warning(f"Auth request {path} returned {resp.status_code}: {message}")
            if resp.status_code >= 500:
                raise AuthUnavailableError(message)
            raise AuthError(message)

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as e:
            raise AuthError(f"Unreadable response from the sign-in service: {e}") from e

    def _refresh(self) -> AuthSession:
        """Exchange the refresh token for a new session."""
        if not self._session or not self._session.refresh_token:
            raise AuthError("No refresh token.")
        data = self._post(
            "/token?grant_type=refresh_token",
            {"refresh_token": self._session.refresh_token},
        )
        session = AuthSession.from_api(data)
        self._set_session(session)
        self._emit(AuthEvent.TOKEN_REFRESHED, session)
        return session

    def get_session(self) -> AuthSession | None:
        """Return the current valid session, refreshing it if it expires soon."""
        if self._session is None:
            return None
        if self._session.expires_soon():
            try:
                return self._refresh()
            except AuthUnavailableError as e:
                # Keep the stored session so the next call can refresh again
                logger.warning(f"Session refresh unavailable: {e}")
                return None if self._session.expires_soon(margin=0) else self._session
            except AuthError as e:
                logger.warning(f"Session refresh rejected, signing out: {e}")
                self._set_session(None)
                self._emit(AuthEvent.SIGNED_OUT, None)
                return None
        return self._session

    def access_token(self) -> str | None:
        """Bearer token for the current session, if any."""
        session = self.get_session()
        return session.access_token if session else None

    # ---- intents ----

    def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        """Sign in with email and password."""
        data = self._post("/token?grant_type=password", {"email": email, "password": password})
        session = AuthSession.from_api(data)
        self._set_session(session)
        self._emit(AuthEvent.SIGNED_IN, session)
        return session

    def sign_up(self, email: str, password: str, full_name: str) -> SignUpResult:
        """Create an account. Without auto-confirm the session is None."""
        data = self._post(
            "/signup",
            {"email": email, "password": password, "data": {"full_name": full_name}},
        )
        if data.get("access_token"):
            session = AuthSession.from_api(data)
            self._set_session(session)
            self._emit(AuthEvent.SIGNED_IN, session)
            return SignUpResult(user=session.user, session=session)
        # Unconfirmed accounts come back as a bare user object
        user = data.get("user") or (data if data.get("id") else None)
        return SignUpResult(user=user, session=None)

    def sign_out(self) -> None:
        """End the session. The local session is always cleared."""
        token = self._session.access_token if self._session else None
        if token:
            try:
                self._post("/logout", {}, token=token)
            except AuthError as e:
                logger.warning(f"Server sign-out failed, clearing local session: {e}")
        self._set_session(None)
        self._emit(AuthEvent.SIGNED_OUT, None)


def _error_message(resp: requests.Response) -> str:
    """Pull the auth server's error message out of a failed response."""
    try:
        data = resp.json()
    except ValueError:
        return resp.text or f"Request failed with status {resp.status_code}"
    if isinstance(data, dict):
        return (
            data.get("msg")
            or data.get("error_description")
            or data.get("message")
            or data.get("error")
            or str(data)
        )
    return str(data)
