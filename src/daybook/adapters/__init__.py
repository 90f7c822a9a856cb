"""Adapters - I/O implementations of ports."""

from .supabase_store import SupabaseEntryStore
from .supabase_auth import SupabaseAuth
from .file_store import FileEntryStore
from .local_identity import LocalIdentity
from .gemini import GeminiService

__all__ = [
    "SupabaseEntryStore",
    "SupabaseAuth",
    "FileEntryStore",
    "LocalIdentity",
    "GeminiService",
]
