"""Tests for reflection generation and the Gemini adapter."""

import asyncio
import time
from unittest.mock import MagicMock

import pytest
import requests

from daybook.adapters.gemini import API_BASE, GeminiService
from daybook.core.entries import Draft, Mood
from daybook.core.reflection import (
    CONNECTION_FAILED_MESSAGE,
    EMPTY_RESPONSE_MESSAGE,
    UNAVAILABLE_MESSAGE,
    build_reflection_prompt,
)
from daybook.reflection import ReflectionGenerator

from fakes import FakeLLM


@pytest.fixture
def draft():
    return Draft(title="Morning", content="Felt good", mood=Mood.HAPPY)


class TestBuildReflectionPrompt:
    def test_embeds_entry_fields(self):
        prompt = build_reflection_prompt("Morning", "happy", "Felt good")
        assert "Entry Title: Morning" in prompt
        assert "Mood: happy" in prompt
        assert "Content: Felt good" in prompt
        assert "under 100 words" in prompt
        assert "empathetic" in prompt


class TestReflectionGenerator:
    def test_returns_model_text(self, draft):
        llm = FakeLLM(text="  Keep walking.  ")
        result = asyncio.run(ReflectionGenerator(llm).generate(draft))
        assert result == "Keep walking."
        assert "Mood: happy" in llm.prompts[0]

    def test_no_credential_short_circuits(self, draft):
        assert asyncio.run(ReflectionGenerator(None).generate(draft)) == UNAVAILABLE_MESSAGE

    def test_upstream_error_becomes_placeholder(self, draft):
        llm = FakeLLM(error=RuntimeError("Gemini API error 500"))
        assert asyncio.run(ReflectionGenerator(llm).generate(draft)) == CONNECTION_FAILED_MESSAGE

    def test_empty_response_becomes_placeholder(self, draft):
        assert asyncio.run(ReflectionGenerator(FakeLLM(text="   ")).generate(draft)) == EMPTY_RESPONSE_MESSAGE

    def test_timeout_becomes_placeholder(self, draft):
        llm = MagicMock()
        llm.generate.side_effect = lambda prompt: time.sleep(0.5) or "late"
        generator = ReflectionGenerator(llm, timeout=0.05)
        assert asyncio.run(generator.generate(draft)) == CONNECTION_FAILED_MESSAGE

    @pytest.mark.parametrize(
        "error", [ValueError("bad json"), KeyError("candidates"), requests.ConnectionError("offline")]
    )
    def test_never_raises(self, draft, error):
        result = asyncio.run(ReflectionGenerator(FakeLLM(error=error)).generate(draft))
        assert isinstance(result, str)

    def test_accepts_plain_string_mood(self):
        entry = MagicMock(title="T", content="C", mood="calm")
        llm = FakeLLM()
        asyncio.run(ReflectionGenerator(llm).generate(entry))
        assert "Mood: calm" in llm.prompts[0]


def _response(status=200, payload=None):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload
    resp.text = "error body"
    return resp


class TestGeminiService:
    def test_generate_posts_low_latency_request(self):
        http = MagicMock(spec=requests.Session)
        http.post.return_value = _response(
            payload={"candidates": [{"content": {"parts": [{"text": "Hello "}, {"text": "there"}]}}]}
        )
        service = GeminiService("key", model="gemini-test", session=http)

        assert service.generate("prompt") == "Hello there"
        assert http.post.call_args.args[0] == f"{API_BASE}/gemini-test:generateContent"
        body = http.post.call_args.kwargs["json"]
        assert body["contents"][0]["parts"][0]["text"] == "prompt"
        assert body["generationConfig"]["thinkingConfig"]["thinkingBudget"] == 0
        assert http.post.call_args.kwargs["headers"]["x-goog-api-key"] == "key"

    def test_no_candidates_returns_empty(self):
        http = MagicMock(spec=requests.Session)
        http.post.return_value = _response(payload={"candidates": []})
        assert GeminiService("key", session=http).generate("prompt") == ""

    def test_http_error_raises(self):
        http = MagicMock(spec=requests.Session)
        http.post.return_value = _response(status=503, payload={})
        with pytest.raises(RuntimeError, match="503"):
            GeminiService("key", session=http).generate("prompt")

    def test_timeout_raises(self):
        http = MagicMock(spec=requests.Session)
        http.post.side_effect = requests.Timeout()
        with pytest.raises(RuntimeError, match="timed out"):
            GeminiService("key", timeout=2, session=http).generate("prompt")
