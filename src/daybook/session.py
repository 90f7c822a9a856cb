"""Session controller - the signed-in user's lifecycle.

The provider's event subscription is the only thing that sets current_user.
login() and signup() only ask the provider to act; the resulting session
change arrives through the same subscription.
"""

import asyncio
import inspect
import logging
from typing import Any, Callable

from .core.users import AuthEvent, AuthSession, User, map_user
from .errors import AuthError
from .ports.identity_provider import IdentityProvider, Subscription

logger = logging.getLogger(__name__)

LOGIN_FAILED_MESSAGE = "Đăng nhập thất bại. Vui lòng kiểm tra email hoặc mật khẩu."
SIGNUP_CONFIRM_MESSAGE = "Đăng ký thành công! Vui lòng kiểm tra email để xác thực tài khoản."
SIGNUP_FAILED_MESSAGE = "Đăng ký thất bại."

UserListener = Callable[[User | None], Any]


class SessionController:
    """Owns current_user and the login/signup/logout intents."""

    def __init__(self, provider: IdentityProvider, timeout: float | None = 30.0):
        self.provider = provider
        self.timeout = timeout
        self.current_user: User | None = None
        self.loading = True
        self.busy = False
        self.error = ""
        self.notice = ""
        # Form fields
        self.email = ""
        self.password = ""
        self.name = ""
        self._listeners: list[UserListener] = []
        self._pending: set[asyncio.Future] = set()
        self._subscription: Subscription | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.current_user is not None

    def add_listener(self, callback: UserListener) -> None:
        """Call `callback(user)` whenever the signed-in user changes."""
        self._listeners.append(callback)

    # ---- lifecycle ----

    async def start(self) -> None:
        """Subscribe to provider events and pick up an existing session."""
        self._loop = asyncio.get_running_loop()
        self._subscription = self.provider.on_auth_state_change(self._handle_auth_event)
        try:
            session = await asyncio.to_thread(self.provider.get_session)
        except AuthError as e:
            logger.warning(f"Could not restore session: {e}")
            session = None
        self._apply(AuthEvent.INITIAL_SESSION, session)
        self.loading = False

    async def stop(self) -> None:
        """Unsubscribe and wait for listener work to finish."""
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        await self.settle()

    async def __aenter__(self) -> "SessionController":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def settle(self) -> None:
        """Wait for work scheduled by listeners (e.g. a collection reload)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ---- events ----

    def _handle_auth_event(self, event: AuthEvent, session: AuthSession | None) -> None:
        """Provider callback. May arrive on a worker thread."""
        if self._loop is None:
            self._apply(event, session)
            return
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self._loop:
            self._apply(event, session)
        else:
            self._loop.call_soon_threadsafe(self._apply, event, session)

    def _apply(self, event: AuthEvent, session: AuthSession | None) -> None:
        """Replace current_user from a session event."""
        user = map_user(session.user) if session and session.user else None
        previous = self.current_user
        self.current_user = user
        logger.debug(f"{event.value}: user={user.id if user else None}")
        if user == previous:
            return
        for listener in list(self._listeners):
            result = listener(user)
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._pending.add(task)
                task.add_done_callback(self._pending.discard)

    # ---- intents ----

    async def _call(self, func, *args):
        return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=self.timeout)

    def _begin(self) -> None:
        self.busy = True
        self.error = ""
        self.notice = ""

    async def login(self, email: str | None = None, password: str | None = None) -> bool:
        """Ask the provider to sign in. Failure detail is logged, not shown."""
        if email is not None:
            self.email = email
        if password is not None:
            self.password = password

        self._begin()
        try:
            await self._call(self.provider.sign_in_with_password, self.email, self.password)
        except (AuthError, asyncio.TimeoutError) as e:
            logger.warning(f"Login failed for {self.email}: {e!r}")
            self.error = LOGIN_FAILED_MESSAGE
            return False
        finally:
            self.busy = False
        return True

    async def signup(
        self,
        email: str | None = None,
        password: str | None = None,
        name: str | None = None,
    ) -> bool:
        """
        Ask the provider to create an account.

        An account that still needs email confirmation sets `notice` and
        stays signed out until the user confirms out of band.
        """
        if email is not None:
            self.email = email
        if password is not None:
            self.password = password
        if name is not None:
            self.name = name

        self._begin()
        try:
            result = await self._call(
                self.provider.sign_up, self.email, self.password, self.name
            )
        except AuthError as e:
            logger.warning(f"Signup failed for {self.email}: {e}")
            self.error = str(e) or SIGNUP_FAILED_MESSAGE
            return False
        except asyncio.TimeoutError:
            logger.warning(f"Signup timed out for {self.email}")
            self.error = SIGNUP_FAILED_MESSAGE
            return False
        finally:
            self.busy = False

        if result.needs_confirmation:
            self.notice = SIGNUP_CONFIRM_MESSAGE
        return True

    async def logout(self) -> bool:
        """Ask the provider to sign out and clear the form."""
        try:
            await self._call(self.provider.sign_out)
        except (AuthError, asyncio.TimeoutError) as e:
            logger.error(f"Logout failed: {e!r}")
            self.error = str(e) or "Logout failed."
            return False
        self.email = ""
        self.password = ""
        self.name = ""
        self.error = ""
        self.notice = ""
        return True
