"""Ports - interfaces/protocols for external dependencies."""

from .entry_store import EntryStore
from .identity_provider import IdentityProvider, Subscription, AuthListener
from .llm_service import LLMService

__all__ = [
    "EntryStore",
    "IdentityProvider",
    "Subscription",
    "AuthListener",
    "LLMService",
]
