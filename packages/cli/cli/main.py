"""Interactive command-line client for the Chat Relay API."""

import json
import os
import uuid
from collections.abc import Iterable, Iterator

import requests
from dotenv import load_dotenv  # type: ignore


def iter_sse_chunks(lines: Iterable[str]) -> Iterator[dict]:
    """Decode SSE ``data:`` lines into chunk dicts, stopping at ``[DONE]``."""
    for line in lines:
        if not line or not line.startswith("data:"):
            continue
        data = line[len("data:"):].strip()
        if data == "[DONE]":
            return
        yield json.loads(data)


def build_request_body(chat_id: str, text: str, model: str = "chat-model") -> dict:
    """Build a ``POST /chat`` body for a single text message."""
    return {
        "id": chat_id,
        "message": {
            "id": str(uuid.uuid4()),
            "role": "user",
            "parts": [{"type": "text", "text": text}],
        },
        "selectedChatModel": model,
        "selectedVisibilityType": "private",
    }


def send_message(
    session: requests.Session, base_url: str, chat_id: str, text: str
) -> Iterator[str]:
    """Post one message and yield the reply text as it streams in.

    Raises:
        RuntimeError: If the API rejects the request.
    """
    with session.post(
        f"{base_url.rstrip('/')}/chat",
        json=build_request_body(chat_id, text),
        stream=True,
        timeout=90,
    ) as response:
        if not response.ok:
            try:
                message = response.json().get("message") or response.reason
            except ValueError:
                message = response.reason
            raise RuntimeError(f"{response.status_code}: {message}")

        lines = response.iter_lines(decode_unicode=True)
        for chunk in iter_sse_chunks(lines):
            if chunk.get("type") == "text-delta":
                yield chunk.get("delta", "")


def main():
    """Run the interactive chat REPL.

    Loads environment configuration, then enters a read-eval-print loop that
    sends each line to the API within a single conversation.
    """
    load_dotenv()

    base_url = os.environ.get("CHAT_API_URL", "http://localhost:3000")
    api_key = os.environ["CHAT_API_KEY"]

    session = requests.Session()
    session.headers["Authorization"] = f"Bearer {api_key}"

    print("Chat Relay (type 'quit' or 'exit' to stop)")
    print("-" * 42)

    chat_id = str(uuid.uuid4())

    while True:
        try:
            user_input = input("\nYou: ").strip()
        except (KeyboardInterrupt, EOFError):
            print("\nGoodbye!")
            break

        if not user_input:
            continue
        if user_input.lower() in ("quit", "exit"):
            print("Goodbye!")
            break

        print("\nAssistant: ", end="", flush=True)
        try:
            for delta in send_message(session, base_url, chat_id, user_input):
                print(delta, end="", flush=True)
            print()
        except (requests.RequestException, RuntimeError) as e:
            print(f"\nError: {e}")


if __name__ == "__main__":
    main()
