"""Tests for the chat error taxonomy."""

import pytest

from chatbot.errors import GENERIC_MESSAGE, ChatError


@pytest.mark.parametrize(
    "code,status",
    [
        ("bad_request:api", 400),
        ("unauthorized:chat", 401),
        ("forbidden:chat", 403),
        ("not_found:chat", 404),
        ("rate_limit:chat", 429),
        ("offline:chat", 503),
    ],
)
def test_status_codes(code, status):
    assert ChatError(code).status_code == status


def test_visible_error_body():
    error = ChatError("forbidden:chat", cause="owned by someone else")
    body = error.to_dict()
    assert body["code"] == "forbidden:chat"
    assert body["cause"] == "owned by someone else"
    assert "another user" in body["message"]


def test_database_errors_are_log_only():
    error = ChatError("bad_request:database", cause="Failed to save chat")
    assert error.is_log_only
    assert error.status_code == 400
    assert error.to_dict() == {"code": "", "message": GENERIC_MESSAGE}


def test_unknown_type_rejected():
    with pytest.raises(ValueError):
        ChatError("teapot:chat")


def test_unknown_code_uses_generic_message():
    assert ChatError("bad_request:chat").message == GENERIC_MESSAGE
