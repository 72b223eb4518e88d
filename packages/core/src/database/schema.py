"""
Schema DDL for the chat relay database.

Defines the table structures, constraints, and indexes as a single SQL
string constant. Every statement is idempotent so the script can run on
each startup against an existing database file.

Tables:
    chats      — One conversation thread, owned by exactly one user
    messages   — One turn in a conversation (user or assistant), immutable
"""

SCHEMA_SQL = """
-- ============================================================================
-- CHATS: One conversation thread per row
-- ============================================================================

CREATE TABLE IF NOT EXISTS chats (
    id TEXT PRIMARY KEY,      -- Client-generated UUID; unique across users
    user_id TEXT NOT NULL,
    title TEXT NOT NULL,
    visibility TEXT NOT NULL DEFAULT 'private'
        CHECK(visibility IN ('public', 'private')),
    created_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_chats_user_id ON chats(user_id);

-- ============================================================================
-- MESSAGES: Append-only conversation turns
-- ============================================================================

CREATE TABLE IF NOT EXISTS messages (
    id TEXT PRIMARY KEY,
    chat_id TEXT NOT NULL,
    role TEXT NOT NULL CHECK(role IN ('user', 'assistant')),
    parts TEXT NOT NULL,        -- JSON array of typed content parts
    attachments TEXT NOT NULL DEFAULT '[]',
    created_at TIMESTAMP NOT NULL,
    FOREIGN KEY (chat_id) REFERENCES chats(id) ON DELETE CASCADE
);

-- History reads are always ordered by creation time within one chat
CREATE INDEX IF NOT EXISTS idx_messages_chat_created ON messages(chat_id, created_at);
CREATE INDEX IF NOT EXISTS idx_messages_created ON messages(created_at);
"""
