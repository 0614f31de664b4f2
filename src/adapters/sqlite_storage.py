"""SQLite storage adapter.

Implements the core StoragePort using a simple SQLite database.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import Any, List, Optional

from core.models import ChatMessage, Conversation, StoredConversation


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the StoragePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - conversations: one row per chat thread
        - messages: user and assistant messages with the committed ad id
        - settings: JSON blobs keyed by name
        """

        with self._connect() as conn:
            # Ids are minted by the app, not by SQLite, so they match the
            # in-memory identities used for ad placement.
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS conversations (
                    id INTEGER PRIMARY KEY,
                    title TEXT NOT NULL,
                    provider TEXT NOT NULL,
                    model TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )
            # ad_id is NULL when the reply was committed to "no ad".
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS messages (
                    id INTEGER PRIMARY KEY,
                    conversation_id INTEGER NOT NULL,
                    role TEXT NOT NULL,
                    content TEXT NOT NULL,
                    ad_id INTEGER,
                    created_at TIMESTAMP NOT NULL
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS settings (
                    key TEXT PRIMARY KEY,
                    data TEXT NOT NULL
                )
                """
            )

    def save_conversation(self, conversation: Conversation) -> None:
        """Upsert the conversation header (title, provider, model)."""

        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO conversations (id, title, provider, model, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    title = excluded.title,
                    provider = excluded.provider,
                    model = excluded.model,
                    updated_at = excluded.updated_at
                """,
                (
                    conversation.id,
                    conversation.title,
                    conversation.provider,
                    conversation.model,
                    now.isoformat(),
                ),
            )

    def add_message(
        self, conversation_id: int, message: ChatMessage, ad_id: Optional[int] = None
    ) -> None:
        """Append a message and touch the owning conversation."""

        now = datetime.now(timezone.utc).isoformat()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO messages (id, conversation_id, role, content, ad_id, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (message.id, conversation_id, message.role, message.content, ad_id, now),
            )
            conn.execute(
                "UPDATE conversations SET updated_at = ? WHERE id = ?",
                (now, conversation_id),
            )

    def delete_conversation(self, conversation_id: int) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM messages WHERE conversation_id = ?", (conversation_id,))
            conn.execute("DELETE FROM conversations WHERE id = ?", (conversation_id,))

    def load_conversations(self) -> List[StoredConversation]:
        """Return every conversation with its messages in id order."""

        with self._connect() as conn:
            conversation_rows = conn.execute(
                "SELECT id, title, provider, model FROM conversations ORDER BY id"
            ).fetchall()
            message_rows = conn.execute(
                "SELECT id, conversation_id, role, content, ad_id FROM messages ORDER BY id"
            ).fetchall()

        stored = {
            row["id"]: StoredConversation(
                conversation=Conversation(
                    id=row["id"],
                    model=row["model"],
                    provider=row["provider"],
                    title=row["title"],
                )
            )
            for row in conversation_rows
        }
        for row in message_rows:
            record = stored.get(row["conversation_id"])
            if record is None:
                continue
            record.conversation.messages.append(
                ChatMessage(role=row["role"], content=row["content"], id=row["id"])
            )
            if row["ad_id"] is not None:
                record.ad_ids[row["id"]] = int(row["ad_id"])
        return list(stored.values())

    def save_setting(self, key: str, value: Any) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO settings (key, data) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET data = excluded.data
                """,
                (key, json.dumps(value)),
            )

    def get_setting(self, key: str, default: Any = None) -> Any:
        with self._connect() as conn:
            row = conn.execute("SELECT data FROM settings WHERE key = ?", (key,)).fetchone()
        return json.loads(row["data"]) if row else default
