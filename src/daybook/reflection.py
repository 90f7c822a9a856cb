"""Reflection generation - best-effort AI commentary on an entry.

generate() never raises. Missing credentials, timeouts, upstream errors and
empty responses all come back as a displayable placeholder string.
"""

import asyncio
import logging

from .core.entries import Mood
from .core.reflection import (
    CONNECTION_FAILED_MESSAGE,
    EMPTY_RESPONSE_MESSAGE,
    UNAVAILABLE_MESSAGE,
    build_reflection_prompt,
)
from .ports.llm_service import LLMService

logger = logging.getLogger(__name__)


class ReflectionGenerator:
    """Turns (title, mood, content) into a short reflection."""

    def __init__(self, llm: LLMService | None, timeout: float | None = 30.0):
        self.llm = llm
        self.timeout = timeout

    @property
    def available(self) -> bool:
        return self.llm is not None

    async def generate(self, entry) -> str:
        """Reflect on anything with title, mood and content attributes."""
        if self.llm is None:
            return UNAVAILABLE_MESSAGE

        mood = entry.mood.value if isinstance(entry.mood, Mood) else entry.mood
        prompt = build_reflection_prompt(entry.title or "", mood or "", entry.content or "")

        try:
            text = await asyncio.wait_for(
                asyncio.to_thread(self.llm.generate, prompt), timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.error(f"Reflection timed out after {self.timeout}s")
            return CONNECTION_FAILED_MESSAGE
        except Exception as e:
            logger.error(f"Reflection failed: {e}")
            return CONNECTION_FAILED_MESSAGE

        if not isinstance(text, str) or not text.strip():
            return EMPTY_RESPONSE_MESSAGE
        return text.strip()
