"""Entry collection view model - the loaded list plus search."""

import asyncio
import logging

from .core.entries import JournalEntry, filter_entries
from .errors import StoreError
from .ports.entry_store import EntryStore

logger = logging.getLogger(__name__)


class EntryCollection:
    """
    Holds the user's entries as last loaded from the store.

    The list is only ever replaced wholesale by reload() or clear(); nothing
    patches it in place. Both bump a generation counter, and a reload whose
    generation is no longer current drops its result.
    """

    def __init__(self, store: EntryStore, timeout: float | None = 30.0):
        self.store = store
        self.timeout = timeout
        self.entries: list[JournalEntry] = []
        self.query = ""
        self.loading = False
        self.error = ""
        self.user_id: str | None = None
        self._generation = 0

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    @property
    def visible(self) -> list[JournalEntry]:
        """Entries matching the current search query."""
        return filter_entries(self.entries, self.query)

    def set_query(self, text: str) -> None:
        self.query = text

    def get(self, entry_id: str) -> JournalEntry | None:
        return next((e for e in self.entries if e.id == entry_id), None)

    async def reload(self, user_id: str | None = None) -> bool:
        """Fetch the list again. Keeps the previous list if the fetch fails."""
        if user_id is not None:
            self.user_id = user_id
        self._generation += 1
        generation = self._generation
        self.loading = True
        try:
            loaded = await asyncio.wait_for(
                asyncio.to_thread(self.store.list_entries, self.user_id),
                timeout=self.timeout,
            )
        except StoreError as e:
            logger.error(f"Failed to load entries: {e}")
            if generation == self._generation:
                self.error = str(e)
            return False
        except asyncio.TimeoutError:
            logger.error(f"Loading entries timed out after {self.timeout}s")
            if generation == self._generation:
                self.error = "Loading entries timed out."
            return False
        finally:
            if generation == self._generation:
                self.loading = False

        if generation != self._generation:
            logger.debug("Dropping entries from a superseded reload")
            return False

        self.entries = list(loaded)
        self.error = ""
        return True

    def clear(self) -> None:
        """Drop everything, e.g. after sign-out."""
        self._generation += 1
        self.loading = False
        self.entries = []
        self.query = ""
        self.error = ""
        self.user_id = None
