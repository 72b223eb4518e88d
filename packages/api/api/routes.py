"""API route definitions."""

from contextlib import closing

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError

from api.auth import get_optional_user, require_user
from api.config import Settings
from api.rate_limit import enforce_daily_quota, get_limit, get_remaining, get_reset_time
from api.schemas import ChatSchema, PostRequestBody, RateLimitStatus
from chatbot.ChatBot import ChatBot
from chatbot.errors import ChatError
from chatbot.models import User
from chatbot.stream import SSE_DONE, to_sse
from database.ChatRepository import ChatRepository

router = APIRouter()

RESUMABLE_STREAMS_DISABLED = "Resumable streams are disabled."


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------


@router.get("/health")
async def health_check():
    """Basic liveness probe -- no auth required."""
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _bot_dependency(request: Request) -> ChatBot:
    """Retrieve the shared ChatBot instance from app state."""
    return request.app.state.bot


def _repository_dependency(request: Request) -> ChatRepository:
    return request.app.state.repository


def _settings_dependency(request: Request) -> Settings:
    return request.app.state.settings


async def _parse_body(request: Request) -> PostRequestBody:
    try:
        return PostRequestBody.model_validate(await request.json())
    except (ValueError, ValidationError) as e:
        raise ChatError("bad_request:api") from e


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


@router.post("/chat")
async def post_chat(
    request: Request,
    user: User | None = Depends(get_optional_user),
    bot: ChatBot = Depends(_bot_dependency),
    repository: ChatRepository = Depends(_repository_dependency),
    settings: Settings = Depends(_settings_dependency),
):
    """Submit a user message and stream the assistant's reply as SSE.

    Validation, auth, quota, and ownership failures are returned as JSON
    errors before the stream opens. Once the stream opens the status is
    always 200; upstream failures arrive as apology text in the message.
    """
    body = await _parse_body(request)

    if user is None:
        raise ChatError("unauthorized:chat")

    count = enforce_daily_quota(repository, user, settings.entitlements)

    chat_id = str(body.conversation_id)
    turn = bot.prepare_turn(
        user,
        chat_id,
        body.message.to_message(chat_id),
        body.selected_model,
        body.visibility,
    )

    limit = get_limit(user, settings.entitlements)

    def _event_generator():
        with closing(bot.relay(turn)) as chunks:
            for chunk in chunks:
                yield to_sse(chunk)
        yield SSE_DONE

    return StreamingResponse(
        _event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-RateLimit-Limit": str(limit),
            # The message just accepted counts against the allowance.
            "X-RateLimit-Remaining": str(max(0, limit - count - 1)),
        },
    )


@router.delete("/chat", response_model=ChatSchema)
async def delete_chat(
    chat_id: str | None = Query(None, alias="id"),
    user: User | None = Depends(get_optional_user),
    bot: ChatBot = Depends(_bot_dependency),
):
    """Delete a chat owned by the caller and return the deleted record."""
    if not chat_id:
        raise ChatError("bad_request:api")
    if user is None:
        raise ChatError("unauthorized:chat")

    return ChatSchema.from_chat(bot.delete_chat(user, chat_id))


@router.get("/chat/{chat_id}/stream")
async def resume_stream(chat_id: str):
    """Resumable streams are switched off; the endpoint shape is kept."""
    return JSONResponse(
        {"error": RESUMABLE_STREAMS_DISABLED},
        status_code=status.HTTP_404_NOT_FOUND,
    )


# ---------------------------------------------------------------------------
# Rate-limit status
# ---------------------------------------------------------------------------


@router.get("/rate-limit", response_model=RateLimitStatus)
async def get_rate_limit_status(
    user: User = Depends(require_user),
    repository: ChatRepository = Depends(_repository_dependency),
    settings: Settings = Depends(_settings_dependency),
):
    """Return the current daily quota status for the calling user."""
    return RateLimitStatus(
        limit=get_limit(user, settings.entitlements),
        remaining=get_remaining(repository, user, settings.entitlements),
        reset=get_reset_time(repository, user),
    )
