"""Incremental output channel for one assistant message.

Chunks follow the UI message stream protocol the browser renders:

    {"type": "start", "messageId": M}
    {"type": "text-start", "id": M}
    {"type": "text-delta", "id": M, "delta": "..."}
    {"type": "text-end", "id": M}
    {"type": "finish"}

and are framed for the wire as Server-Sent Events, terminated by
``data: [DONE]``.
"""

import json
from typing import Any

SSE_DONE = "data: [DONE]\n\n"


def to_sse(chunk: dict[str, Any]) -> str:
    """Frame a single chunk as an SSE ``data:`` event."""
    return f"data: {json.dumps(chunk, ensure_ascii=False)}\n\n"


class UIMessageStream:
    """Produces the ordered chunks for one streamed assistant message.

    ``close()`` is the single finalize operation: it ends any open text
    block and emits ``finish``. It is idempotent, so callers can invoke it
    on every exit path without tracking whether it already ran.
    """

    def __init__(self, message_id: str) -> None:
        self.message_id = message_id
        self._started = False
        self._text_open = False
        self._closed = False
        self._parts: list[str] = []

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def text(self) -> str:
        """All text written so far."""
        return "".join(self._parts)

    def start(self) -> list[dict[str, Any]]:
        if self._started:
            return []
        self._started = True
        return [{"type": "start", "messageId": self.message_id}]

    def delta(self, text: str) -> list[dict[str, Any]]:
        """Append text to the message, opening the text block if needed."""
        if self._closed:
            raise RuntimeError("Cannot write to a closed message stream")
        if not text:
            return []

        chunks = self.start()
        if not self._text_open:
            self._text_open = True
            chunks.append({"type": "text-start", "id": self.message_id})
        self._parts.append(text)
        chunks.append({"type": "text-delta", "id": self.message_id, "delta": text})
        return chunks

    def close(self) -> list[dict[str, Any]]:
        if self._closed:
            return []
        self._closed = True

        chunks = self.start()
        if self._text_open:
            self._text_open = False
            chunks.append({"type": "text-end", "id": self.message_id})
        chunks.append({"type": "finish"})
        return chunks
