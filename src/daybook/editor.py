"""Entry editor state machine.

Owns the draft being written or viewed and coordinates save, delete and
reflection generation against it. The state doubles as a mutual-exclusion
gate: at most one save, delete or reflection request is in flight.

Every open/close bumps a draft token. Async work captures the token when it
starts and drops its result if the token has moved on, so a late response
for an abandoned draft never lands on the draft that replaced it.
"""

import asyncio
import copy
import inspect
import logging
from enum import Enum
from typing import Awaitable, Callable

from .collection import EntryCollection
from .core.entries import Draft, JournalEntry, Mood, now_ms
from .core.users import User
from .errors import StoreError
from .ports.entry_store import EntryStore
from .reflection import ReflectionGenerator

logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "Title and content are required."
NOT_SIGNED_IN_MESSAGE = "Sign in to save entries."
SAVE_FAILED_MESSAGE = "Failed to save entry"
DELETE_FAILED_MESSAGE = "Failed to delete entry"

Confirm = Callable[[], bool | Awaitable[bool]]


class EditorState(Enum):
    """Editor states."""

    IDLE = "idle"
    EDITING = "editing"
    VIEWING = "viewing"
    SAVING = "saving"
    GENERATING_REFLECTION = "generating_reflection"
    DELETING = "deleting"


BUSY_STATES = frozenset(
    {EditorState.SAVING, EditorState.GENERATING_REFLECTION, EditorState.DELETING}
)


class EntryEditor:
    """Draft owner for one editor surface."""

    def __init__(
        self,
        store: EntryStore,
        generator: ReflectionGenerator,
        collection: EntryCollection,
        current_user: Callable[[], User | None],
        clock: Callable[[], int] = now_ms,
        timeout: float | None = 30.0,
    ):
        self.store = store
        self.generator = generator
        self.collection = collection
        self.current_user = current_user
        self.clock = clock
        self.timeout = timeout

        self.state = EditorState.IDLE
        self.draft: Draft | None = None
        self.dirty = False
        self.error = ""
        self.validation_failed = False
        self._token = 0
        self._resume_state = EditorState.EDITING

    @property
    def busy(self) -> bool:
        """True while a save, delete or reflection request is in flight."""
        return self.state in BUSY_STATES

    @property
    def token(self) -> int:
        return self._token

    def _open(self, draft: Draft | None, state: EditorState) -> None:
        self._token += 1
        self.draft = draft
        self.state = state
        self.dirty = False
        self.error = ""
        self.validation_failed = False

    async def _run(self, func, *args):
        return await asyncio.wait_for(asyncio.to_thread(func, *args), timeout=self.timeout)

    def _reload_user_id(self) -> str | None:
        user = self.current_user()
        return user.id if user else None

    # ---- opening and closing ----

    def open_new(self) -> bool:
        """Start a fresh draft. Only from IDLE or VIEWING."""
        if self.state not in (EditorState.IDLE, EditorState.VIEWING):
            logger.debug(f"open_new ignored in state {self.state.value}")
            return False
        self._open(Draft.blank(), EditorState.EDITING)
        return True

    def open_existing(self, entry: JournalEntry, read_only: bool = False) -> None:
        """Edit (or view) a copy of a stored entry. Allowed from any state."""
        state = EditorState.VIEWING if read_only else EditorState.EDITING
        self._open(Draft.from_entry(entry), state)

    def close(self) -> None:
        """Discard the draft. In-flight calls keep running but their results are dropped."""
        self._open(None, EditorState.IDLE)

    def update_draft(
        self,
        title: str | None = None,
        content: str | None = None,
        mood: Mood | str | None = None,
        tags: list[str] | None = None,
    ) -> bool:
        """Apply user edits. The reflection is not user-editable."""
        editable = self.state is EditorState.EDITING or (
            self.state is EditorState.GENERATING_REFLECTION
            and self._resume_state is EditorState.EDITING
        )
        if not editable or self.draft is None:
            return False

        if title is not None:
            self.draft.title = title
        if content is not None:
            self.draft.content = content
        if mood is not None:
            self.draft.mood = Mood(mood)
        if tags is not None:
            self.draft.tags = [t.strip() for t in tags if t.strip()]
        self.dirty = True
        self.error = ""
        self.validation_failed = False
        return True

    # ---- mutations ----

    async def save(self) -> bool:
        """
        Persist the draft.

        On success the collection is reloaded before the editor returns to
        IDLE. On failure the draft is kept and the editor is back in EDITING
        with `error` set.
        """
        if self.state is not EditorState.EDITING or self.draft is None:
            logger.debug(f"save ignored in state {self.state.value}")
            return False

        if not self.draft.is_complete:
            self.error = REQUIRED_FIELDS_MESSAGE
            self.validation_failed = True
            return False

        user = self.current_user()
        if user is None:
            self.error = NOT_SIGNED_IN_MESSAGE
            return False

        token = self._token
        self.error = ""
        self.validation_failed = False
        self.state = EditorState.SAVING

        record = self.draft.to_entry(user.id, self.clock())
        # Keep the id so a retry after an ambiguous failure updates instead of duplicating
        self.draft.id = record.id

        try:
            saved = await self._run(self.store.upsert, record)
        except StoreError as e:
            message = str(e) or SAVE_FAILED_MESSAGE
        except asyncio.TimeoutError:
            message = "Saving timed out. Please try again."
        else:
            message = ""

        if message:
            logger.error(f"Failed to save entry {record.id}: {message}")
            if token == self._token:
                self.error = message
                self.state = EditorState.EDITING
            return False

        logger.info(f"Saved entry {saved.id}")
        try:
            await self.collection.reload(user.id)
        finally:
            if token == self._token:
                self.close()
        return True

    async def delete(self, entry_id: str | None, confirm: Confirm) -> bool:
        """
        Delete an entry after the caller's confirmation gate says yes.

        `entry_id` defaults to the open draft's id. On failure `error` is set
        and the current view is left as it was.
        """
        allowed = (EditorState.IDLE, EditorState.EDITING, EditorState.VIEWING)
        if self.state not in allowed:
            logger.debug(f"delete ignored in state {self.state.value}")
            return False

        entry_id = entry_id or (self.draft.id if self.draft else None)
        if not entry_id:
            return False

        answer = confirm()
        if inspect.isawaitable(answer):
            answer = await answer
        if not answer or self.state not in allowed:
            return False

        token = self._token
        previous = self.state
        self.error = ""
        self.state = EditorState.DELETING

        try:
            await self._run(self.store.remove, entry_id)
        except (StoreError, asyncio.TimeoutError) as e:
            logger.error(f"Failed to delete entry {entry_id}: {e!r}")
            if token == self._token:
                self.error = DELETE_FAILED_MESSAGE
                self.state = previous
            return False

        logger.info(f"Deleted entry {entry_id}")
        try:
            await self.collection.reload(self._reload_user_id())
        finally:
            if token == self._token:
                self.close()
        return True

    async def generate_reflection(self) -> str | None:
        """
        Ask for a reflection on the draft and merge it in.

        Whatever string comes back becomes the draft's reflection. Returns
        None when the request was not started or its draft was abandoned.
        """
        if self.state not in (EditorState.EDITING, EditorState.VIEWING):
            logger.debug(f"generate_reflection ignored in state {self.state.value}")
            return None
        if self.draft is None or not self.draft.is_complete:
            return None

        token = self._token
        self._resume_state = self.state
        self.state = EditorState.GENERATING_REFLECTION

        text = await self.generator.generate(copy.deepcopy(self.draft))

        if token != self._token:
            logger.info("Dropping reflection for a draft that is no longer open")
            return None

        self.draft.ai_reflection = text
        if self._resume_state is EditorState.EDITING:
            self.dirty = True
        self.state = self._resume_state
        return text
