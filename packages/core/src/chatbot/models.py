"""Data models for users, chats, and messages."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class User:
    """The authenticated caller.

    Attributes:
        id: Stable user identifier.
        type: Entitlement tier, ``"guest"`` or ``"regular"``.
    """

    id: str
    type: str = "regular"

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "type": self.type}


@dataclass
class Chat:
    """A conversation thread owned by exactly one user."""

    id: str
    user_id: str
    title: str
    visibility: str = "private"
    created_at: datetime = field(default_factory=utcnow)

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "visibility": self.visibility,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass
class Message:
    """A single turn in a conversation.

    Attributes:
        id: Message identifier (UUID string).
        chat_id: The chat this message belongs to.
        role: ``"user"`` or ``"assistant"``.
        parts: Ordered content parts, e.g. ``{"type": "text", "text": "hi"}``.
        attachments: Reserved for out-of-band attachments; currently unused.
        created_at: When the message was created (UTC).
    """

    id: str
    chat_id: str
    role: str
    parts: list[dict[str, Any]]
    attachments: list[dict[str, Any]] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)

    @property
    def text(self) -> str:
        """Concatenated text of all ``text`` parts."""
        return "".join(
            p.get("text", "") for p in self.parts if p.get("type") == "text"
        )

    def to_ui_dict(self) -> dict[str, Any]:
        """Serialize into the message shape the UI and the workflow consume."""
        return {
            "id": self.id,
            "role": self.role,
            "parts": self.parts,
            "metadata": {"createdAt": self.created_at.isoformat()},
        }
