"""Entry store interface."""

from typing import Protocol

from daybook.core.entries import Draft, JournalEntry


class EntryStore(Protocol):
    """Interface for persisting journal entries in a single collection."""

    def list_entries(self, user_id: str | None = None) -> list[JournalEntry]:
        """List entries, newest first. Raises StoreError on failure."""
        ...

    def upsert(self, entry: JournalEntry | Draft) -> JournalEntry:
        """Insert or replace by id. Returns the persisted record."""
        ...

    def remove(self, entry_id: str) -> None:
        """Delete an entry by id."""
        ...
