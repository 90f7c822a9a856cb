"""Composition root shared by the CLI and any other front end.

Builds the adapters named in the config and wires the controllers together.
Nothing here is a module-level singleton; tests pass fakes instead.
"""

import logging
from dataclasses import dataclass
from typing import Callable

from .adapters.file_store import FileEntryStore
from .adapters.gemini import GeminiService
from .adapters.local_identity import LocalIdentity
from .adapters.supabase_auth import SupabaseAuth
from .adapters.supabase_store import SupabaseEntryStore
from .collection import EntryCollection
from .config import Config, load_config
from .core.entries import now_ms
from .core.users import User
from .editor import EntryEditor
from .ports.entry_store import EntryStore
from .ports.identity_provider import IdentityProvider
from .ports.llm_service import LLMService
from .reflection import ReflectionGenerator
from .session import SessionController

logger = logging.getLogger(__name__)


def get_provider(config: Config) -> IdentityProvider:
    """Supabase auth when a project is configured, else the local user."""
    if config.supabase_url and config.supabase_anon_key:
        return SupabaseAuth(
            config.supabase_url, config.supabase_anon_key, timeout=config.request_timeout
        )
    if config.store_backend != "file":
        raise ValueError(
            "SUPABASE_URL and SUPABASE_ANON_KEY not configured. "
            "Add them to daybook.conf or set STORE_BACKEND=file"
        )
    return LocalIdentity(user_id=config.local_user_id or "local")


def get_store(config: Config, provider: IdentityProvider) -> EntryStore:
    """Resolve the entry store backend from config."""
    if config.store_backend == "file":
        return FileEntryStore(config.entries_path())
    if config.store_backend != "supabase":
        raise ValueError(f"Unknown STORE_BACKEND: {config.store_backend}")
    return SupabaseEntryStore(
        config.supabase_url,
        config.supabase_anon_key,
        access_token=provider.access_token,
        timeout=config.request_timeout,
    )


def get_llm(config: Config) -> LLMService | None:
    """Gemini when a key is configured. None means reflections are unavailable."""
    if not config.gemini_api_key:
        logger.info("No Gemini API key configured; reflections unavailable")
        return None
    return GeminiService(
        config.gemini_api_key, model=config.gemini_model, timeout=config.request_timeout
    )


@dataclass
class Daybook:
    """The wired-up client: session, collection and editor over shared adapters."""

    config: Config
    provider: IdentityProvider
    store: EntryStore
    session: SessionController
    collection: EntryCollection
    generator: ReflectionGenerator
    editor: EntryEditor

    @property
    def user(self) -> User | None:
        return self.session.current_user

    def _on_user_change(self, user: User | None):
        """Reload entries for a new user; forget everything on sign-out."""
        if user is None:
            self.editor.close()
            self.collection.clear()
            return None
        return self.collection.reload(user.id)

    async def start(self) -> None:
        await self.session.start()
        await self.session.settle()

    async def stop(self) -> None:
        await self.session.stop()

    async def __aenter__(self) -> "Daybook":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()


def create_app(
    config: Config | None = None,
    provider: IdentityProvider | None = None,
    store: EntryStore | None = None,
    llm: LLMService | None = None,
    clock: Callable[[], int] = now_ms,
) -> Daybook:
    """Build a Daybook from config, letting callers substitute any adapter."""
    config = config or load_config()
    provider = provider or get_provider(config)
    store = store or get_store(config, provider)
    if llm is None:
        llm = get_llm(config)

    timeout = config.operation_timeout
    session = SessionController(provider, timeout=timeout)
    collection = EntryCollection(store, timeout=timeout)
    generator = ReflectionGenerator(llm, timeout=timeout)
    editor = EntryEditor(
        store,
        generator,
        collection,
        current_user=lambda: session.current_user,
        clock=clock,
        timeout=timeout,
    )

    app = Daybook(
        config=config,
        provider=provider,
        store=store,
        session=session,
        collection=collection,
        generator=generator,
        editor=editor,
    )
    session.add_listener(app._on_user_change)
    return app
