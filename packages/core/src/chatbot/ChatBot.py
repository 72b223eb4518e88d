"""Core chat module: guards a chat turn, persists it, and relays the reply."""

import uuid
from collections.abc import Generator
from dataclasses import dataclass, field
from typing import Any

from chatbot.errors import ChatError
from chatbot.history import build_history, make_title_from_message
from chatbot.log import get_logger
from chatbot.models import Chat, Message, User
from chatbot.stream import UIMessageStream
from chatbot.WorkflowClient import UNREACHABLE_REPLY, WorkflowClient
from database.ChatRepository import ChatRepository

logger = get_logger(__name__)


def generate_uuid() -> str:
    return str(uuid.uuid4())


@dataclass
class Turn:
    """A user message that has been accepted and persisted, ready to relay."""

    chat: Chat
    user: User
    message: Message
    selected_model: str
    history: list[dict[str, Any]] = field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        """Build the JSON body sent to the workflow webhook."""
        return {
            "chatId": self.chat.id,
            "model": self.selected_model,
            "message": self.message.to_ui_dict(),
            "history": self.history,
            "user": self.user.to_dict(),
        }


class ChatBot:
    """Chat relay backed by a repository and an external workflow."""

    def __init__(self, repository: ChatRepository, workflow: WorkflowClient) -> None:
        """Initialize the chatbot.

        Args:
            repository: Storage for chats and messages.
            workflow: Client for the webhook that produces assistant replies.
        """
        self._repository = repository
        self._workflow = workflow

    def prepare_turn(
        self,
        user: User,
        chat_id: str,
        message: Message,
        selected_model: str,
        visibility: str = "private",
    ) -> Turn:
        """Accept a user message: ensure the chat, persist the message.

        Everything that can reject the request happens here, before any
        output is streamed, so failures surface as plain error responses.

        Raises:
            ChatError: ``offline:chat`` when the workflow is not configured,
                ``forbidden:chat`` when the chat belongs to another user, or
                ``bad_request:database`` when storage fails.
        """
        self._workflow.ensure_configured()

        chat = self._repository.get_chat_by_id(chat_id)
        if chat is None:
            chat = self._repository.save_chat(
                Chat(
                    id=chat_id,
                    user_id=user.id,
                    title=make_title_from_message(message),
                    visibility=visibility,
                )
            )
            logger.info("chat_created", chat_id=chat.id, user_id=chat.user_id)

        # Also covers losing a creation race to another user's request.
        if chat.user_id != user.id:
            raise ChatError("forbidden:chat")

        previous = self._repository.get_messages_by_chat_id(chat_id)
        message.chat_id = chat_id
        message.role = "user"
        self._repository.save_messages([message])

        return Turn(
            chat=chat,
            user=user,
            message=message,
            selected_model=selected_model,
            history=build_history(previous, message),
        )

    def relay(self, turn: Turn) -> Generator[dict[str, Any], None, None]:
        """Forward a prepared turn and yield the reply as UI stream chunks.

        Never raises once started: upstream and unexpected failures become
        an apology in the message text. The stream is finalized on every
        exit path, and the assistant reply is persisted once it completes.
        """
        stream = UIMessageStream(generate_uuid())
        replies = self._workflow.stream_reply(turn.to_payload())

        try:
            yield from stream.start()
            try:
                for piece in replies:
                    yield from stream.delta(piece)
            except Exception:
                logger.exception("relay_failed", chat_id=turn.chat.id)
                yield from stream.delta(UNREACHABLE_REPLY)
            yield from stream.close()
        finally:
            replies.close()
            if not stream.closed:
                # The consumer went away mid-stream.
                stream.close()
                logger.info("relay_cancelled", chat_id=turn.chat.id)

        self._save_reply(turn, stream)

    def _save_reply(self, turn: Turn, stream: UIMessageStream) -> None:
        reply = Message(
            id=stream.message_id,
            chat_id=turn.chat.id,
            role="assistant",
            parts=[{"type": "text", "text": stream.text}],
        )
        try:
            self._repository.save_messages([reply])
        except ChatError as e:
            logger.warning(
                "assistant_persist_failed", chat_id=turn.chat.id, cause=e.cause
            )

    def delete_chat(self, user: User, chat_id: str) -> Chat:
        """Delete a chat owned by ``user`` and return the deleted record.

        Raises:
            ChatError: ``not_found:chat`` or ``forbidden:chat``.
        """
        chat = self._repository.get_chat_by_id(chat_id)
        if chat is None:
            raise ChatError("not_found:chat")
        if chat.user_id != user.id:
            raise ChatError("forbidden:chat")

        deleted = self._repository.delete_chat_by_id(chat_id)
        if deleted is None:
            raise ChatError("not_found:chat")
        logger.info("chat_deleted", chat_id=chat_id, user_id=user.id)
        return deleted
