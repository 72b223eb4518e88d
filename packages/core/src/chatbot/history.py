"""Pure transforms over message content: titles and outbound history."""

from typing import Any

from chatbot.models import Message

DEFAULT_TITLE = "New chat"
TITLE_MAX_WORDS = 8
TITLE_MAX_CHARS = 80


def _first_text(parts: list[Any]) -> str:
    for part in parts:
        if isinstance(part, str):
            return part
        if not isinstance(part, dict):
            continue
        if part.get("type") == "text" and isinstance(part.get("text"), str):
            return part["text"]
        if part.get("type") == "input_text" and isinstance(part.get("input_text"), str):
            return part["input_text"]
    return ""


def make_title_from_message(message: Message, fallback: str = DEFAULT_TITLE) -> str:
    """Derive a short chat title from the first text-bearing part.

    Keeps the first eight words and caps the result at 80 characters.
    Returns ``fallback`` when the message carries no text.
    """
    words = _first_text(message.parts).split()[:TITLE_MAX_WORDS]
    title = " ".join(words)[:TITLE_MAX_CHARS]
    return title or fallback


def convert_to_ui_messages(messages: list[Message]) -> list[dict[str, Any]]:
    """Map stored messages, already in creation order, to UI message dicts."""
    return [m.to_ui_dict() for m in messages]


def build_history(previous: list[Message], new_message: Message) -> list[dict[str, Any]]:
    """Return the full ordered history to send outbound: prior turns plus
    the message being submitted."""
    return convert_to_ui_messages(previous) + [new_message.to_ui_dict()]
