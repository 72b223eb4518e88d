"""API key authentication dependencies."""

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader

from chatbot.errors import ChatError
from chatbot.models import User

_api_key_header = APIKeyHeader(name="Authorization", auto_error=False)


async def get_optional_user(
    request: Request,
    authorization: str | None = Depends(_api_key_header),
) -> User | None:
    """Resolve the ``Authorization: Bearer <key>`` header to a user.

    Returns:
        The user the key belongs to, or ``None`` when the header is missing
        or the key is unknown. Routes decide when to reject, so that request
        validation errors are reported before auth errors.
    """
    if not authorization:
        return None

    # Accept "Bearer <key>" or a bare key
    token = authorization.removeprefix("Bearer ").strip()
    return request.app.state.settings.api_keys.get(token)


async def require_user(user: User | None = Depends(get_optional_user)) -> User:
    """Like ``get_optional_user`` but rejects anonymous callers.

    Raises:
        ChatError ``unauthorized:chat`` if no valid key was presented.
    """
    if user is None:
        raise ChatError("unauthorized:chat")
    return user
