"""Tests for the file-based entry store."""

import json
from dataclasses import replace

import pytest

from daybook.adapters.file_store import FileEntryStore
from daybook.core.entries import Draft, JournalEntry, Mood
from daybook.errors import StoreError

from fakes import T0, FakeClock


@pytest.fixture
def file_store(tmp_path, clock):
    return FileEntryStore(tmp_path / "data" / "entries.json", clock=clock)


class TestFileEntryStore:
    def test_creates_parent_directory(self, tmp_path):
        FileEntryStore(tmp_path / "nested" / "dir" / "entries.json")
        assert (tmp_path / "nested" / "dir").is_dir()

    def test_list_empty(self, file_store):
        assert file_store.list_entries() == []

    def test_upsert_new_entry_generates_id_and_timestamps(self, file_store):
        saved = file_store.upsert(Draft(user_id="u1", title="Morning", content="Felt good", mood=Mood.HAPPY))

        assert saved.id
        assert saved.created_at == saved.updated_at == T0
        assert file_store.list_entries() == [saved]

    def test_upsert_writes_wire_rows(self, file_store):
        saved = file_store.upsert(Draft(user_id="u1", title="T", content="C"))

        rows = json.loads(file_store.path.read_text())

        assert rows[0]["id"] == saved.id
        assert rows[0]["user_id"] == "u1"
        assert rows[0]["created_at"] == "2025-01-15T10:00:00.000+00:00"
        assert "ai_reflection" in rows[0]

    def test_round_trip_preserves_all_fields(self, file_store, clock):
        entry = JournalEntry(
            id="e1",
            user_id="u1",
            title="Title",
            content="Body",
            mood=Mood.INSPIRED,
            tags=["a", "b"],
            created_at=T0 - 12_345,
            updated_at=T0 - 12_345,
            ai_reflection="Nice.",
        )

        saved = file_store.upsert(entry)
        (listed,) = file_store.list_entries()

        assert listed == saved
        assert listed.created_at == T0 - 12_345
        assert listed.updated_at == clock.now
        assert listed.tags == ["a", "b"]
        assert listed.ai_reflection == "Nice."

    def test_upsert_replaces_existing_record(self, file_store, clock):
        first = file_store.upsert(Draft(user_id="u1", title="T", content="C"))
        clock.now += 60_000

        second = file_store.upsert(replace(first, content="Edited"))

        assert second.id == first.id
        assert second.created_at == first.created_at
        assert second.updated_at == first.updated_at + 60_000
        assert [e.content for e in file_store.list_entries()] == ["Edited"]

    def test_list_newest_first_and_filters_owner(self, file_store, clock):
        older = file_store.upsert(Draft(user_id="u1", title="old", content="c"))
        clock.now += 1000
        newer = file_store.upsert(Draft(user_id="u1", title="new", content="c"))
        file_store.upsert(Draft(user_id="u2", title="other", content="c"))

        assert [e.id for e in file_store.list_entries("u1")] == [newer.id, older.id]
        assert len(file_store.list_entries()) == 3

    def test_upsert_requires_user(self, file_store):
        with pytest.raises(StoreError, match="user_id"):
            file_store.upsert(Draft(title="T", content="C"))

    def test_upsert_rejects_other_users_record(self, file_store):
        saved = file_store.upsert(Draft(user_id="u1", title="T", content="C"))
        with pytest.raises(StoreError, match="another user"):
            file_store.upsert(Draft(id=saved.id, user_id="u2", title="T", content="C"))

    def test_remove(self, file_store):
        saved = file_store.upsert(Draft(user_id="u1", title="T", content="C"))
        file_store.remove(saved.id)
        assert file_store.list_entries() == []

    def test_remove_twice_errors_but_leaves_collection_clean(self, file_store):
        saved = file_store.upsert(Draft(user_id="u1", title="T", content="C"))
        file_store.remove(saved.id)

        with pytest.raises(StoreError, match="not found"):
            file_store.remove(saved.id)

        assert all(e.id != saved.id for e in file_store.list_entries())

    def test_corrupt_file_raises_store_error(self, tmp_path):
        path = tmp_path / "entries.json"
        path.write_text("{broken")
        with pytest.raises(StoreError):
            FileEntryStore(path, clock=FakeClock()).list_entries()

    def test_null_timestamp_raises_store_error(self, file_store):
        file_store.upsert(Draft(user_id="u1", title="T", content="C"))
        rows = json.loads(file_store.path.read_text())
        rows[0]["created_at"] = None
        file_store.path.write_text(json.dumps(rows))

        with pytest.raises(StoreError, match="Malformed"):
            file_store.list_entries()
