"""Functional core - pure business logic with no I/O."""

from .entries import (
    Mood,
    JournalEntry,
    Draft,
    to_row,
    to_iso,
    from_iso,
    filter_entries,
    sort_newest_first,
)
from .users import User, AuthSession, AuthEvent, SignUpResult, map_user
from .reflection import build_reflection_prompt

__all__ = [
    # Entries
    "Mood",
    "JournalEntry",
    "Draft",
    "to_row",
    "to_iso",
    "from_iso",
    "filter_entries",
    "sort_newest_first",
    # Users
    "User",
    "AuthSession",
    "AuthEvent",
    "SignUpResult",
    "map_user",
    # Reflection
    "build_reflection_prompt",
]
