"""Gemini adapter - REST wrapper for Google's generateContent endpoint."""

import logging

import requests

from daybook.config import DEFAULT_GEMINI_MODEL

logger = logging.getLogger(__name__)

API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"


class GeminiService:
    """
    Gemini text generation adapter.

    Implements LLMService protocol. Single-shot prompt completion with
    thinking disabled for the lowest latency.
    """

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_GEMINI_MODEL,
        timeout: float = 15.0,
        session: requests.Session | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._session = session or requests.Session()

    def generate(self, prompt: str) -> str:
        """Generate text from a prompt. Returns "" when the model sends no text."""
        try:
            resp = self._session.post(
                f"{API_BASE}/{self.model}:generateContent",
                headers={"x-goog-api-key": self.api_key},
                json={
                    "contents": [{"parts": [{"text": prompt}]}],
                    "generationConfig": {"thinkingConfig": {"thinkingBudget": 0}},
                },
                timeout=self.timeout,
            )
        except requests.Timeout:
            raise RuntimeError(f"Gemini timed out after {self.timeout}s")
        except requests.RequestException as e:
            raise RuntimeError(f"Gemini request failed: {e}")

        if resp.status_code != 200:
            logger.error(f"Gemini API error {resp.status_code}: {resp.text}")
            raise RuntimeError(f"Gemini API error {resp.status_code}")

        return _response_text(resp.json())


def _response_text(data: dict) -> str:
    """Join the text parts of the first candidate."""
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts if not part.get("thought"))
