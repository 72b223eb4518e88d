"""Tests for chat title derivation and history assembly."""

from datetime import datetime, timezone

from chatbot.history import (
    DEFAULT_TITLE,
    build_history,
    convert_to_ui_messages,
    make_title_from_message,
)


class TestMakeTitleFromMessage:
    def test_uses_first_text_part(self, make_message):
        msg = make_message(
            parts=[
                {"type": "file", "mediaType": "image/png", "name": "a.png", "url": "https://x.test/a.png"},
                {"type": "text", "text": "Plan a trip to Lisbon"},
                {"type": "text", "text": "ignored"},
            ]
        )
        assert make_title_from_message(msg) == "Plan a trip to Lisbon"

    def test_keeps_first_eight_words(self, make_message):
        msg = make_message("one two three four five six seven eight nine ten")
        assert make_title_from_message(msg) == "one two three four five six seven eight"

    def test_collapses_whitespace(self, make_message):
        msg = make_message("  hello \n\n   world  ")
        assert make_title_from_message(msg) == "hello world"

    def test_truncates_to_80_characters(self, make_message):
        msg = make_message(" ".join(["x" * 30] * 8))
        title = make_title_from_message(msg)
        assert len(title) == 80
        assert title.startswith("x" * 30)

    def test_accepts_input_text_parts(self, make_message):
        msg = make_message(parts=[{"type": "input_text", "input_text": "Summarise this"}])
        assert make_title_from_message(msg) == "Summarise this"

    def test_accepts_bare_string_parts(self, make_message):
        msg = make_message(parts=["just a string"])
        assert make_title_from_message(msg) == "just a string"

    def test_falls_back_without_text(self, make_message):
        msg = make_message(
            parts=[{"type": "file", "mediaType": "image/png", "name": "a.png", "url": "https://x.test/a.png"}]
        )
        assert make_title_from_message(msg) == DEFAULT_TITLE

    def test_falls_back_on_blank_text(self, make_message):
        assert make_title_from_message(make_message("   ")) == DEFAULT_TITLE

    def test_custom_fallback(self, make_message):
        assert make_title_from_message(make_message(parts=[]), fallback="Untitled") == "Untitled"


class TestHistory:
    def test_convert_preserves_order_and_shape(self, make_message):
        created = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
        first = make_message("first", chat_id="c1", id="m1", created_at=created)
        second = make_message("second", chat_id="c1", id="m2", role="assistant", created_at=created)

        ui = convert_to_ui_messages([first, second])

        assert [m["id"] for m in ui] == ["m1", "m2"]
        assert ui[1] == {
            "id": "m2",
            "role": "assistant",
            "parts": [{"type": "text", "text": "second"}],
            "metadata": {"createdAt": "2026-01-01T12:00:00+00:00"},
        }

    def test_build_history_appends_new_message(self, make_message):
        previous = [make_message("earlier", id="m1")]
        new = make_message("now", id="m2")

        history = build_history(previous, new)

        assert [m["id"] for m in history] == ["m1", "m2"]

    def test_build_history_for_new_chat(self, make_message):
        new = make_message("hello", id="m1")
        assert build_history([], new) == [new.to_ui_dict()]
