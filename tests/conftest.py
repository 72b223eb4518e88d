"""Pytest configuration and shared fixtures."""

import json
import uuid
from unittest.mock import MagicMock

import pytest
import requests
from fastapi.testclient import TestClient
from requests.structures import CaseInsensitiveDict

from api.config import Settings
from chatbot.entitlements import Entitlements
from chatbot.models import Message, User
from database.ChatRepository import ChatRepository
from database.DatabaseProvider import DatabaseProvider

WEBHOOK_URL = "https://workflow.example.test/webhook/chat"


def _make_response(
    body: bytes | str | dict = b"",
    status_code: int = 200,
    content_type: str | None = "application/json",
    reason: str = "OK",
) -> requests.Response:
    """Build a fully-read ``requests.Response`` with the given body."""
    if isinstance(body, dict):
        body = json.dumps(body)
    if isinstance(body, str):
        body = body.encode("utf-8")

    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    response.headers = CaseInsensitiveDict(
        {"content-type": content_type} if content_type else {}
    )
    response._content = body
    response._content_consumed = True
    return response


def _make_body(chat_id: str | None = None, text: str = "What is the answer?") -> dict:
    return {
        "id": chat_id or str(uuid.uuid4()),
        "message": {
            "id": str(uuid.uuid4()),
            "role": "user",
            "parts": [{"type": "text", "text": text}],
        },
        "selectedChatModel": "chat-model",
        "selectedVisibilityType": "private",
    }


@pytest.fixture
def make_response():
    """Factory for canned workflow responses."""
    return _make_response


@pytest.fixture
def make_body():
    """Factory for valid ``POST /chat`` bodies."""
    return _make_body


@pytest.fixture
def make_message():
    def _factory(text: str = "Hello there", chat_id: str = "", **kwargs) -> Message:
        return Message(
            id=kwargs.pop("id", str(uuid.uuid4())),
            chat_id=chat_id,
            role=kwargs.pop("role", "user"),
            parts=kwargs.pop("parts", [{"type": "text", "text": text}]),
            **kwargs,
        )

    return _factory


@pytest.fixture
def alice():
    return User(id="alice", type="regular")


@pytest.fixture
def bob():
    return User(id="bob", type="guest")


@pytest.fixture
def db_provider(tmp_path):
    provider = DatabaseProvider(str(tmp_path / "chat.db"))
    yield provider
    provider.close()


@pytest.fixture
def repository(db_provider):
    return ChatRepository(db_provider.get_connection())


@pytest.fixture
def workflow_session():
    """A mock ``requests.Session`` whose POST returns ``{"answer": "42"}``."""
    session = MagicMock(spec=requests.Session)
    session.post.return_value = _make_response({"answer": "42"})
    return session


@pytest.fixture
def settings(tmp_path, alice, bob):
    return Settings(
        db_path=str(tmp_path / "api.db"),
        webhook_url=WEBHOOK_URL,
        webhook_token="workflow-secret",
        api_keys={"alice-key": alice, "bob-key": bob},
        entitlements={
            "guest": Entitlements(max_messages_per_day=2),
            "regular": Entitlements(max_messages_per_day=100),
        },
    )


@pytest.fixture
def build_client(workflow_session):
    """Return a function that wires the app for the given settings."""
    from api.main import app, init_state

    providers = []

    def _build(settings: Settings) -> TestClient:
        providers.append(init_state(app, settings, workflow_session=workflow_session))
        return TestClient(app)

    yield _build

    for provider in providers:
        provider.close()


@pytest.fixture
def client(build_client, settings):
    return build_client(settings)


@pytest.fixture
def app_repository(client) -> ChatRepository:
    return client.app.state.repository
