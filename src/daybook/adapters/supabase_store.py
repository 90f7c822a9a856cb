"""Supabase REST adapter - HTTP client for the entries table."""

import logging
from typing import Callable

import requests

from daybook.core.entries import Draft, JournalEntry, now_ms, to_row
from daybook.errors import StoreError

logger = logging.getLogger(__name__)

TABLE = "entries"


class SupabaseEntryStore:
    """
    Supabase (PostgREST) entry store.

    Implements EntryStore protocol. Row ownership is enforced server-side by
    the bearer token's row-level security policy. No business logic - just I/O.
    """

    def __init__(
        self,
        url: str,
        anon_key: str,
        access_token: Callable[[], str | None],
        timeout: float = 15.0,
        session: requests.Session | None = None,
        clock: Callable[[], int] = now_ms,
    ):
        self.base_url = f"{url.rstrip('/')}/rest/v1/{TABLE}"
        self.anon_key = anon_key
        self.access_token = access_token
        self.timeout = timeout
        self.clock = clock
        self._session = session or requests.Session()

    def _headers(self) -> dict[str, str]:
        token = self.access_token()
        if not token:
            raise StoreError("Not signed in.")
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {token}",
        }

    def _request(self, method: str, **kwargs) -> requests.Response:
        """Make an authenticated request, normalizing failures to StoreError."""
        headers = self._headers()
        headers.update(kwargs.pop("headers", {}))
        try:
            resp = self._session.request(
                method, self.base_url, headers=headers, timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            logger.error(f"Entry store {method} failed: {e}")
            raise StoreError(f"Could not reach the journal store: {e}") from e

        if not resp.ok:
            message = _error_message(resp)
            logger.error(f"Entry store {method} returned {resp.status_code}: {message}")
            raise StoreError(message)
        return resp

    def _request_json(self, method: str, **kwargs) -> dict | list:
        resp = self._request(method, **kwargs)
        try:
            return resp.json()
        except ValueError as e:
            raise StoreError(f"Unreadable response from the journal store: {e}") from e

    def list_entries(self, user_id: str | None = None) -> list[JournalEntry]:
        """List entries, newest first."""
        params = {"select": "*", "order": "created_at.desc"}
        if user_id:
            params["user_id"] = f"eq.{user_id}"
        rows = self._request_json("GET", params=params)
        return [_parse_row(row) for row in rows or []]

    def upsert(self, entry: JournalEntry | Draft) -> JournalEntry:
        """Insert or replace by id. Returns the row the server persisted."""
        try:
            payload = to_row(entry, self.clock())
        except ValueError as e:
            raise StoreError(str(e)) from e

        rows = self._request_json(
            "POST",
            json=payload,
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        if isinstance(rows, list):
            if not rows:
                raise StoreError("Save returned no record.")
            rows = rows[0]
        return _parse_row(rows)

    def remove(self, entry_id: str) -> None:
        """Delete an entry by id."""
        self._request("DELETE", params={"id": f"eq.{entry_id}"})


def _parse_row(row: dict) -> JournalEntry:
    try:
        return JournalEntry.from_row(row)
    except (KeyError, ValueError, TypeError) as e:
        logger.error(f"Malformed entry row: {row!r}")
        raise StoreError(f"Malformed entry from store: {e}") from e


def _error_message(resp: requests.Response) -> str:
    """Pull PostgREST's error message out of a failed response."""
    try:
        data = resp.json()
    except ValueError:
        return resp.text or f"Request failed with status {resp.status_code}"
    if isinstance(data, dict):
        return data.get("message") or data.get("error") or str(data)
    return str(data)
