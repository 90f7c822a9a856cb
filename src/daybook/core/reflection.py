"""Reflection prompt and fallback messages."""

UNAVAILABLE_MESSAGE = "AI insights are unavailable (API Key missing)."
EMPTY_RESPONSE_MESSAGE = "Could not generate a reflection at this time."
CONNECTION_FAILED_MESSAGE = "Unable to connect to AI service."

FALLBACK_MESSAGES = frozenset(
    {UNAVAILABLE_MESSAGE, EMPTY_RESPONSE_MESSAGE, CONNECTION_FAILED_MESSAGE}
)


def build_reflection_prompt(title: str, mood: str, content: str) -> str:
    """Compile the reflection prompt for one entry."""
    return f"""You are a supportive, wise, and empathetic journaling assistant.
Read the following journal entry and provide a brief, thoughtful reflection or insight.
It should be encouraging, stoic, or offer a new perspective.
Keep it under 100 words.

Entry Title: {title}
Mood: {mood}
Content: {content}
"""
