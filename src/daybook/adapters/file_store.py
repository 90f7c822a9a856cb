"""File-based entry storage adapter."""

import json
import logging
import threading
from pathlib import Path
from typing import Callable

from daybook.core.entries import Draft, JournalEntry, now_ms, sort_newest_first, to_row
from daybook.errors import StoreError

logger = logging.getLogger(__name__)


class FileEntryStore:
    """
    File-based entry storage.

    Implements EntryStore protocol. All entries live in one JSON file as
    wire rows, so records take the same ISO round trip as the remote store.
    """

    def __init__(self, path: Path | str, clock: Callable[[], int] = now_ms):
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.clock = clock
        self._lock = threading.Lock()

    def _read_rows(self) -> dict[str, dict]:
        """Load rows keyed by id."""
        if not self.path.exists():
            return {}
        try:
            return {row["id"]: row for row in json.loads(self.path.read_text())}
        except (OSError, json.JSONDecodeError, KeyError, TypeError) as e:
            raise StoreError(f"Could not read {self.path}: {e}") from e

    def _write_rows(self, rows: dict[str, dict]) -> None:
        tmp = self.path.with_suffix(".tmp")
        try:
            tmp.write_text(json.dumps(list(rows.values()), indent=2, ensure_ascii=False))
            tmp.replace(self.path)
        except OSError as e:
            raise StoreError(f"Could not write {self.path}: {e}") from e

    def list_entries(self, user_id: str | None = None) -> list[JournalEntry]:
        """List entries, newest first."""
        with self._lock:
            rows = self._read_rows()
        entries = []
        for row in rows.values():
            if user_id and row.get("user_id") != user_id:
                continue
            try:
                entries.append(JournalEntry.from_row(row))
            except (KeyError, TypeError, ValueError) as e:
                raise StoreError(f"Malformed entry {row.get('id')!r}: {e}") from e
        return sort_newest_first(entries)

    def upsert(self, entry: JournalEntry | Draft) -> JournalEntry:
        """Insert or replace by id."""
        try:
            row = to_row(entry, self.clock())
        except ValueError as e:
            raise StoreError(str(e)) from e

        with self._lock:
            rows = self._read_rows()
            existing = rows.get(row["id"])
            if existing and existing.get("user_id") != row["user_id"]:
                raise StoreError("Entry belongs to another user.")
            rows[row["id"]] = row
            self._write_rows(rows)

        logger.debug(f"Saved entry {row['id']}")
        return JournalEntry.from_row(row)

    def remove(self, entry_id: str) -> None:
        """Delete an entry by id."""
        with self._lock:
            rows = self._read_rows()
            if entry_id not in rows:
                raise StoreError(f"Entry not found: {entry_id}")
            del rows[entry_id]
            self._write_rows(rows)
