"""Chat and message persistence on top of a single SQLite connection.

Every public method runs under one lock and one implicit transaction, and
wraps driver errors into ``ChatError("bad_request:database")`` so callers
only ever deal with the chat error taxonomy.
"""

import json
import sqlite3
import threading
from datetime import datetime, timedelta, timezone

from chatbot.errors import ChatError
from chatbot.models import Chat, Message, utcnow


def _to_db(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_db(value: str) -> datetime:
    return datetime.fromisoformat(value)


class ChatRepository:
    """Reads and writes chats and messages.

    The repository never decides policy (ownership, quotas); it only
    reports what is stored.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Chats
    # ------------------------------------------------------------------

    def get_chat_by_id(self, chat_id: str) -> Chat | None:
        rows = self._query(
            "SELECT * FROM chats WHERE id = ?", (chat_id,), "Failed to get chat by id"
        )
        return self._row_to_chat(rows[0]) if rows else None

    def save_chat(self, chat: Chat) -> Chat:
        """Insert a chat unless one with the same id already exists.

        Returns:
            The chat as stored. When a concurrent request created the same
            id first, this is *that* row, which may belong to another user.
        """
        with self._guard("Failed to save chat"):
            self._connection.execute(
                "INSERT INTO chats (id, user_id, title, visibility, created_at) "
                "VALUES (?, ?, ?, ?, ?) ON CONFLICT(id) DO NOTHING",
                (
                    chat.id,
                    chat.user_id,
                    chat.title,
                    chat.visibility,
                    _to_db(chat.created_at),
                ),
            )
            row = self._connection.execute(
                "SELECT * FROM chats WHERE id = ?", (chat.id,)
            ).fetchone()
        return self._row_to_chat(row)

    def delete_chat_by_id(self, chat_id: str) -> Chat | None:
        """Delete a chat and its messages, returning the deleted chat."""
        with self._guard("Failed to delete chat by id"):
            row = self._connection.execute(
                "SELECT * FROM chats WHERE id = ?", (chat_id,)
            ).fetchone()
            if row is None:
                return None
            self._connection.execute("DELETE FROM messages WHERE chat_id = ?", (chat_id,))
            self._connection.execute("DELETE FROM chats WHERE id = ?", (chat_id,))
        return self._row_to_chat(row)

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def get_messages_by_chat_id(self, chat_id: str) -> list[Message]:
        rows = self._query(
            "SELECT * FROM messages WHERE chat_id = ? ORDER BY created_at ASC, rowid ASC",
            (chat_id,),
            "Failed to get messages by chat id",
        )
        return [self._row_to_message(row) for row in rows]

    def save_messages(self, messages: list[Message]) -> None:
        with self._guard("Failed to save messages"):
            self._connection.executemany(
                "INSERT INTO messages (id, chat_id, role, parts, attachments, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                [
                    (
                        m.id,
                        m.chat_id,
                        m.role,
                        json.dumps(m.parts),
                        json.dumps(m.attachments),
                        _to_db(m.created_at),
                    )
                    for m in messages
                ],
            )

    def get_message_count_by_user_id(
        self, user_id: str, difference_in_hours: int = 24
    ) -> int:
        """Count user-role messages the user sent across all of their chats
        within the trailing window."""
        since = utcnow() - timedelta(hours=difference_in_hours)
        rows = self._query(
            "SELECT COUNT(m.id) AS count FROM messages m "
            "JOIN chats c ON c.id = m.chat_id "
            "WHERE c.user_id = ? AND m.role = 'user' AND m.created_at >= ?",
            (user_id, _to_db(since)),
            "Failed to get message count by user id",
        )
        return int(rows[0]["count"])

    def get_oldest_message_time_by_user_id(
        self, user_id: str, difference_in_hours: int = 24
    ) -> datetime | None:
        since = utcnow() - timedelta(hours=difference_in_hours)
        rows = self._query(
            "SELECT MIN(m.created_at) AS oldest FROM messages m "
            "JOIN chats c ON c.id = m.chat_id "
            "WHERE c.user_id = ? AND m.role = 'user' AND m.created_at >= ?",
            (user_id, _to_db(since)),
            "Failed to get oldest message by user id",
        )
        oldest = rows[0]["oldest"]
        return _from_db(oldest) if oldest else None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _query(self, sql: str, params: tuple, failure: str) -> list[sqlite3.Row]:
        with self._guard(failure):
            return self._connection.execute(sql, params).fetchall()

    def _guard(self, failure: str) -> "_Transaction":
        return _Transaction(self._connection, self._lock, failure)

    @staticmethod
    def _row_to_chat(row: sqlite3.Row) -> Chat:
        return Chat(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            visibility=row["visibility"],
            created_at=_from_db(row["created_at"]),
        )

    @staticmethod
    def _row_to_message(row: sqlite3.Row) -> Message:
        return Message(
            id=row["id"],
            chat_id=row["chat_id"],
            role=row["role"],
            parts=json.loads(row["parts"]),
            attachments=json.loads(row["attachments"]),
            created_at=_from_db(row["created_at"]),
        )


class _Transaction:
    """Hold the repository lock for one transaction and translate errors."""

    def __init__(
        self, connection: sqlite3.Connection, lock: threading.Lock, failure: str
    ) -> None:
        self._connection = connection
        self._lock = lock
        self._failure = failure

    def __enter__(self) -> None:
        self._lock.acquire()

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            if exc_type is None:
                self._connection.commit()
                return False
            self._connection.rollback()
        except sqlite3.Error as e:
            raise ChatError("bad_request:database", self._failure) from e
        finally:
            self._lock.release()

        if issubclass(exc_type, sqlite3.Error):
            raise ChatError("bad_request:database", self._failure) from exc
        return False
