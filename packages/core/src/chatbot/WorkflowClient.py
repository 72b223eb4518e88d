"""HTTP client for the external workflow webhook that produces replies.

The client never raises on transport or upstream failures: every outcome is
turned into reply text the user can read, so a conversation always shows
something for the turn that was sent.
"""

import json
from collections.abc import Generator
from dataclasses import dataclass
from typing import Any

import requests

from chatbot.errors import ChatError
from chatbot.log import get_logger

logger = get_logger(__name__)

# Keys checked, in order, for the reply text in a JSON response.
REPLY_KEYS = ("output", "answer", "text", "message")

UNREACHABLE_REPLY = "Sorry, I couldn't reach the agent right now."
NO_REPLY = "I didn't receive a reply from the agent."


@dataclass(frozen=True)
class WorkflowConfig:
    """Where and how to reach the workflow webhook.

    Attributes:
        url: Webhook endpoint. ``None`` means the service is offline.
        token: Optional bearer token sent as ``Authorization``.
        timeout: Seconds to wait for the connection and each read.
    """

    url: str | None = None
    token: str | None = None
    timeout: float = 60.0

    @property
    def configured(self) -> bool:
        return bool(self.url)


def extract_reply_text(data: Any) -> str:
    """Pull the reply text out of a decoded JSON body.

    The first of ``REPLY_KEYS`` whose value is not ``None`` wins. If that
    yields an empty string (or the body is not an object) the whole body is
    serialised back as the reply.
    """
    answer = ""
    if isinstance(data, dict):
        for key in REPLY_KEYS:
            if data.get(key) is not None:
                value = data[key]
                answer = value if isinstance(value, str) else json.dumps(value)
                break
    return answer or json.dumps(data)


def _is_json(content_type: str) -> bool:
    return "application/json" in content_type.lower()


class WorkflowClient:
    """Sends a conversation to the workflow webhook and yields the reply."""

    def __init__(
        self, config: WorkflowConfig, session: requests.Session | None = None
    ) -> None:
        self._config = config
        self._session = session or requests.Session()

    @property
    def config(self) -> WorkflowConfig:
        return self._config

    def ensure_configured(self) -> None:
        """Raise ``offline:chat`` when no webhook endpoint is configured."""
        if not self._config.configured:
            logger.error("workflow_url_missing")
            raise ChatError("offline:chat", "Workflow endpoint is not configured")

    def _headers(self) -> dict[str, str]:
        headers = {"content-type": "application/json"}
        if self._config.token:
            headers["Authorization"] = f"Bearer {self._config.token}"
        return headers

    def stream_reply(self, payload: dict[str, Any]) -> Generator[str, None, None]:
        """POST ``payload`` and yield the reply text in one or more pieces.

        Plain-text replies are yielded as they arrive; JSON replies are
        decoded in full and yielded once. Closing the generator early closes
        the upstream response.
        """
        self.ensure_configured()

        try:
            response = self._session.post(
                self._config.url,
                json=payload,
                headers=self._headers(),
                stream=True,
                timeout=self._config.timeout,
            )
        except requests.RequestException as e:
            logger.error("workflow_unreachable", error=str(e))
            yield UNREACHABLE_REPLY
            return

        with response:
            try:
                yield from self._read_reply(response)
            except requests.RequestException as e:
                logger.error("workflow_read_failed", error=str(e))
                yield UNREACHABLE_REPLY

    def _read_reply(self, response: requests.Response) -> Generator[str, None, None]:
        content_type = response.headers.get("content-type", "")
        if "charset" not in content_type.lower():
            response.encoding = "utf-8"

        if not response.ok:
            logger.warning(
                "workflow_error_status",
                status=response.status_code,
                reason=response.reason,
            )
            yield response.text or (
                f"Sorry, the workflow returned {response.status_code} {response.reason}."
            )
            return

        if _is_json(content_type):
            try:
                data = response.json()
            except ValueError:
                data = {}
            yield extract_reply_text(data) or NO_REPLY
            return

        emitted = False
        for piece in response.iter_content(chunk_size=None, decode_unicode=True):
            if piece:
                emitted = True
                yield piece
        if not emitted:
            yield NO_REPLY
