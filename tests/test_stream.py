"""Tests for the UI message stream output channel."""

import json

import pytest

from chatbot.stream import SSE_DONE, UIMessageStream, to_sse


class TestUIMessageStream:
    def test_full_sequence(self):
        stream = UIMessageStream("m1")

        chunks = stream.start() + stream.delta("Hello") + stream.delta(", world") + stream.close()

        assert chunks == [
            {"type": "start", "messageId": "m1"},
            {"type": "text-start", "id": "m1"},
            {"type": "text-delta", "id": "m1", "delta": "Hello"},
            {"type": "text-delta", "id": "m1", "delta": ", world"},
            {"type": "text-end", "id": "m1"},
            {"type": "finish"},
        ]
        assert stream.text == "Hello, world"

    def test_delta_starts_stream_implicitly(self):
        stream = UIMessageStream("m1")
        assert stream.delta("hi")[0] == {"type": "start", "messageId": "m1"}
        assert stream.start() == []

    def test_empty_delta_emits_nothing(self):
        stream = UIMessageStream("m1")
        stream.start()
        assert stream.delta("") == []

    def test_close_without_text(self):
        stream = UIMessageStream("m1")
        assert stream.close() == [{"type": "start", "messageId": "m1"}, {"type": "finish"}]

    def test_close_is_idempotent(self):
        stream = UIMessageStream("m1")
        stream.delta("hi")
        stream.close()
        assert stream.closed
        assert stream.close() == []

    def test_write_after_close_rejected(self):
        stream = UIMessageStream("m1")
        stream.close()
        with pytest.raises(RuntimeError):
            stream.delta("late")


def test_sse_framing():
    frame = to_sse({"type": "text-delta", "id": "m1", "delta": "héllo"})
    assert frame.startswith("data: ")
    assert frame.endswith("\n\n")
    assert json.loads(frame[len("data: "):]) == {"type": "text-delta", "id": "m1", "delta": "héllo"}
    assert SSE_DONE == "data: [DONE]\n\n"
