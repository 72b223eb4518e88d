"""Pydantic request/response models for the API."""

from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, HttpUrl
from pydantic.alias_generators import to_camel

from chatbot.models import Chat, Message


class TextPart(BaseModel):
    """A plain text content part."""

    type: Literal["text"]
    text: str = Field(min_length=1, max_length=2000)


class FilePart(BaseModel):
    """An image attached to the message by URL."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal["file"]
    media_type: Literal["image/jpeg", "image/png"] = Field(alias="mediaType")
    name: str = Field(min_length=1, max_length=100)
    url: HttpUrl


MessagePart = Annotated[TextPart | FilePart, Field(discriminator="type")]


class ChatMessageSchema(BaseModel):
    """The user message carried in a chat request."""

    id: UUID
    role: Literal["user"]
    parts: list[MessagePart] = Field(min_length=1)

    def to_message(self, chat_id: str) -> Message:
        return Message(
            id=str(self.id),
            chat_id=chat_id,
            role=self.role,
            parts=[p.model_dump(mode="json", by_alias=True) for p in self.parts],
        )


class PostRequestBody(BaseModel):
    """Body for ``POST /chat``."""

    model_config = ConfigDict(populate_by_name=True)

    conversation_id: UUID = Field(alias="id")
    message: ChatMessageSchema
    selected_model: Literal["chat-model", "chat-model-reasoning"] = Field(
        alias="selectedChatModel"
    )
    visibility: Literal["public", "private"] = Field(alias="selectedVisibilityType")


class ChatSchema(BaseModel):
    """A chat record as returned to clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    user_id: str
    title: str
    visibility: str
    created_at: str

    @classmethod
    def from_chat(cls, chat: Chat) -> "ChatSchema":
        return cls(
            id=chat.id,
            user_id=chat.user_id,
            title=chat.title,
            visibility=chat.visibility,
            created_at=chat.created_at.isoformat(),
        )


class RateLimitStatus(BaseModel):
    """Current daily quota status for the calling user."""

    limit: int
    remaining: int
    reset: str
