"""Structured chat errors with stable ``<type>:<surface>`` codes."""

from typing import Any

STATUS_BY_TYPE: dict[str, int] = {
    "bad_request": 400,
    "unauthorized": 401,
    "forbidden": 403,
    "not_found": 404,
    "rate_limit": 429,
    "offline": 503,
}

# Surfaces whose details are logged server-side but never shown to clients.
LOG_ONLY_SURFACES = frozenset({"database"})

GENERIC_MESSAGE = "Something went wrong. Please try again later."

_MESSAGES: dict[str, str] = {
    "bad_request:api": (
        "The request couldn't be processed. Please check your input and try again."
    ),
    "unauthorized:chat": (
        "You need to sign in to view this chat. Please sign in and try again."
    ),
    "forbidden:chat": (
        "This chat belongs to another user. Please check the chat ID and try again."
    ),
    "not_found:chat": (
        "The requested chat was not found. Please check the chat ID and try again."
    ),
    "rate_limit:chat": (
        "You have exceeded your maximum number of messages for the day. "
        "Please try again later."
    ),
    "offline:chat": (
        "We're having trouble sending your message. Please check your "
        "internet connection and try again."
    ),
}


def get_message_by_code(code: str) -> str:
    """Return the user-facing message for an error code."""
    if code.endswith(":database"):
        return "An error occurred while executing a database query."
    return _MESSAGES.get(code, GENERIC_MESSAGE)


class ChatError(Exception):
    """An error that maps onto one HTTP status and a stable client code.

    Attributes:
        code: The full ``<type>:<surface>`` code, e.g. ``"forbidden:chat"``.
        type: The taxonomy part of the code (``bad_request``, ``forbidden``, ...).
        surface: Where the error originated (``api``, ``chat``, ``database``).
        cause: Optional detail for logs and (for visible surfaces) clients.
    """

    def __init__(self, code: str, cause: str | None = None) -> None:
        error_type, _, surface = code.partition(":")
        if error_type not in STATUS_BY_TYPE:
            raise ValueError(f"Unknown chat error type: '{error_type}'")

        self.code = code
        self.type = error_type
        self.surface = surface
        self.cause = cause
        self.message = get_message_by_code(code)
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_BY_TYPE[self.type]

    @property
    def is_log_only(self) -> bool:
        return self.surface in LOG_ONLY_SURFACES

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON body sent to clients."""
        if self.is_log_only:
            return {"code": "", "message": GENERIC_MESSAGE}
        return {"code": self.code, "message": self.message, "cause": self.cause}
