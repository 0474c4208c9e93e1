"""SQLite storage implementation."""

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Protocol, Sequence

import aiosqlite

from ..config import resolve_db_path
from ..errors import StorageError
from ..logging_config import get_logger
from ..models import (
    Chat,
    Contact,
    LastSeenVisibility,
    MediaDescriptor,
    Message,
    MessageKind,
    MessageStatus,
    TraceEvent,
    User,
    ordered_pair,
)

logger = get_logger(__name__)

_STATUS_RANK_SQL = (
    "CASE status WHEN 'sent' THEN 0 WHEN 'delivered' THEN 1 WHEN 'read' THEN 2 END"
)


def _to_iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _from_iso(value: str | None) -> datetime | None:
    if not value:
        return None
    ts = datetime.fromisoformat(value)
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class IStorage(Protocol):
    """Persistent storage for users, chats, messages and contacts (SQLite)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Users
    async def save_user(self, user: User) -> None:
        """Insert or replace a user."""
        ...

    async def get_user(self, user_id: str) -> User | None:
        """Get a user by ID."""
        ...

    async def find_user_by_phone(self, phone_number: str) -> User | None:
        """Get a user by phone number."""
        ...

    async def set_presence(self, user_id: str, is_online: bool, last_seen: datetime) -> None:
        """Update a user's online flag and last-seen timestamp."""
        ...

    # Contacts
    async def upsert_contact(self, owner_id: str, contact_user_id: str, saved_name: str) -> Contact:
        """Save or rename a contact."""
        ...

    async def delete_contact(self, owner_id: str, contact_user_id: str) -> bool:
        """Delete a contact. Returns False if none existed."""
        ...

    async def get_contacts(self, owner_id: str) -> list[Contact]:
        """All contacts saved by a user."""
        ...

    async def has_contact(self, owner_id: str, contact_user_id: str) -> bool:
        """Whether owner saved contact_user_id as a contact."""
        ...

    # Chats
    async def get_or_create_chat(self, user_a: str, user_b: str) -> Chat:
        """Get the pair's chat, creating it if absent."""
        ...

    async def find_chat(self, user_a: str, user_b: str) -> Chat | None:
        """Get the pair's chat if it exists."""
        ...

    async def get_chat(self, chat_id: str) -> Chat | None:
        """Get a chat by ID."""
        ...

    async def list_chats(self, user_id: str, archived: bool = False) -> list[Chat]:
        """Visible chats of a user, most recent activity first."""
        ...

    async def chat_partners(self, user_id: str) -> set[str]:
        """Every other participant across the user's chats."""
        ...

    async def record_chat_activity(self, chat_id: str, message_id: str, at: datetime) -> None:
        """Point the chat at its newest message."""
        ...

    async def recount_unread(self, chat_id: str, user_id: str) -> int:
        """Set a participant's unread counter to their unread messages."""
        ...

    async def set_hidden(self, chat_id: str, user_ids: Iterable[str], hidden: bool) -> None:
        """Set the hidden flag for some participants."""
        ...

    async def toggle_archived(self, chat_id: str, user_id: str) -> bool | None:
        """Flip the archived flag. None if the user is not a participant."""
        ...

    # Messages
    async def save_message(self, message: Message) -> None:
        """Insert a new message."""
        ...

    async def get_message(self, message_id: str) -> Message | None:
        """Get a message by ID."""
        ...

    async def get_messages(self, chat_id: str) -> list[Message]:
        """All messages of a chat ordered by creation time."""
        ...

    async def advance_status(self, message_id: str, status: MessageStatus) -> bool:
        """Move status forward. False if it would not advance."""
        ...

    async def mark_read(self, chat_id: str, reader_id: str) -> list[str]:
        """Mark others' messages read. Returns distinct senders affected."""
        ...

    async def mark_delivered_to(self, recipient_id: str) -> list[tuple[str, str]]:
        """Advance sent messages addressed to a user. Returns (message_id, sender_id)."""
        ...

    async def set_reaction(self, message_id: str, user_id: str, emoji: str) -> None:
        """Set a user's single reaction on a message."""
        ...

    async def delete_reaction(self, message_id: str, user_id: str) -> bool:
        """Remove a user's reaction. False if there was none."""
        ...

    async def add_deleted_for(self, message_id: str, user_id: str) -> bool:
        """Hide a message for one user. False if already hidden."""
        ...

    async def clear_chat_for(self, chat_id: str, user_id: str) -> int:
        """Hide every message of a chat for one user."""
        ...

    async def scrub_message(self, message_id: str, placeholder: str) -> bool:
        """Delete for everyone. False if already deleted."""
        ...

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        ...

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)
        self._conn.row_factory = aiosqlite.Row

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    async def _run(
        self,
        sql: str,
        params: Sequence[Any] = (),
        *,
        fetch: bool = False,
        commit: bool = False,
    ) -> tuple[int, list[aiosqlite.Row]]:
        """Execute one statement; returns (rowcount, rows)."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        try:
            cursor = await self._conn.execute(sql, params)
            rows = list(await cursor.fetchall()) if fetch else []
            rowcount = cursor.rowcount
            if commit:
                await self._conn.commit()
        except sqlite3.Error as exc:
            logger.error("Storage statement failed: %s", exc, exc_info=True)
            raise StorageError() from exc
        return rowcount, rows

    async def _query(self, sql: str, params: Sequence[Any] = ()) -> list[aiosqlite.Row]:
        _, rows = await self._run(sql, params, fetch=True)
        return rows

    async def _mutate(self, sql: str, params: Sequence[Any] = ()) -> int:
        rowcount, _ = await self._run(sql, params, commit=True)
        return rowcount

    async def _mutate_returning(
        self, sql: str, params: Sequence[Any] = ()
    ) -> list[aiosqlite.Row]:
        _, rows = await self._run(sql, params, fetch=True, commit=True)
        return rows

    # Users
    async def save_user(self, user: User) -> None:
        """Insert or replace a user."""
        await self._mutate(
            """
            INSERT INTO users
            (id, phone_number, name, is_online, last_seen, last_seen_visibility)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                phone_number = excluded.phone_number,
                name = excluded.name,
                is_online = excluded.is_online,
                last_seen = excluded.last_seen,
                last_seen_visibility = excluded.last_seen_visibility
            """,
            (
                user.id,
                user.phone_number,
                user.name,
                int(user.is_online),
                _to_iso(user.last_seen) if user.last_seen else None,
                user.last_seen_visibility.value,
            ),
        )

    async def get_user(self, user_id: str) -> User | None:
        """Get a user by ID."""
        rows = await self._query("SELECT * FROM users WHERE id = ?", (user_id,))
        return self._row_to_user(rows[0]) if rows else None

    async def find_user_by_phone(self, phone_number: str) -> User | None:
        """Get a user by phone number."""
        rows = await self._query(
            "SELECT * FROM users WHERE phone_number = ?", (phone_number,)
        )
        return self._row_to_user(rows[0]) if rows else None

    async def set_presence(self, user_id: str, is_online: bool, last_seen: datetime) -> None:
        """Update a user's online flag and last-seen timestamp."""
        await self._mutate(
            "UPDATE users SET is_online = ?, last_seen = ? WHERE id = ?",
            (int(is_online), _to_iso(last_seen), user_id),
        )

    @staticmethod
    def _row_to_user(row: aiosqlite.Row) -> User:
        return User(
            id=row["id"],
            phone_number=row["phone_number"],
            name=row["name"],
            is_online=bool(row["is_online"]),
            last_seen=_from_iso(row["last_seen"]),
            last_seen_visibility=LastSeenVisibility(row["last_seen_visibility"]),
        )

    # Contacts
    async def upsert_contact(self, owner_id: str, contact_user_id: str, saved_name: str) -> Contact:
        """Save or rename a contact."""
        updated_at = _now()
        await self._mutate(
            """
            INSERT INTO contacts (owner_id, contact_user_id, saved_name, updated_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(owner_id, contact_user_id) DO UPDATE SET
                saved_name = excluded.saved_name,
                updated_at = excluded.updated_at
            """,
            (owner_id, contact_user_id, saved_name, _to_iso(updated_at)),
        )
        return Contact(
            owner_id=owner_id,
            contact_user_id=contact_user_id,
            saved_name=saved_name,
            updated_at=updated_at,
        )

    async def delete_contact(self, owner_id: str, contact_user_id: str) -> bool:
        """Delete a contact. Returns False if none existed."""
        deleted = await self._mutate(
            "DELETE FROM contacts WHERE owner_id = ? AND contact_user_id = ?",
            (owner_id, contact_user_id),
        )
        return deleted > 0

    async def get_contacts(self, owner_id: str) -> list[Contact]:
        """All contacts saved by a user."""
        rows = await self._query(
            "SELECT * FROM contacts WHERE owner_id = ? ORDER BY saved_name",
            (owner_id,),
        )
        return [
            Contact(
                owner_id=row["owner_id"],
                contact_user_id=row["contact_user_id"],
                saved_name=row["saved_name"],
                updated_at=_from_iso(row["updated_at"]),
            )
            for row in rows
        ]

    async def has_contact(self, owner_id: str, contact_user_id: str) -> bool:
        """Whether owner saved contact_user_id as a contact."""
        rows = await self._query(
            "SELECT 1 FROM contacts WHERE owner_id = ? AND contact_user_id = ?",
            (owner_id, contact_user_id),
        )
        return bool(rows)

    # Chats
    async def get_or_create_chat(self, user_a: str, user_b: str) -> Chat:
        """Get the pair's chat, creating it if absent.

        The UNIQUE(user_low, user_high) constraint decides concurrent
        creations; the loser's insert is ignored and both read the winner.
        Member rows are (re)inserted idempotently so a reader never sees a
        chat without its per-participant state.
        """
        low, high = ordered_pair(user_a, user_b)
        now = _to_iso(_now())
        await self._run(
            """
            INSERT OR IGNORE INTO chats (id, user_low, user_high, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (str(uuid.uuid4()), low, high, now, now),
        )
        rows = await self._query(
            "SELECT id FROM chats WHERE user_low = ? AND user_high = ?", (low, high)
        )
        chat_id = rows[0]["id"]
        await self._mutate(
            """
            INSERT OR IGNORE INTO chat_members (chat_id, user_id)
            VALUES (?, ?), (?, ?)
            """,
            (chat_id, low, chat_id, high),
        )
        chat = await self.get_chat(chat_id)
        if chat is None:
            raise StorageError()
        return chat

    async def find_chat(self, user_a: str, user_b: str) -> Chat | None:
        """Get the pair's chat if it exists."""
        low, high = ordered_pair(user_a, user_b)
        rows = await self._query(
            "SELECT * FROM chats WHERE user_low = ? AND user_high = ?", (low, high)
        )
        chats = await self._load_chats(rows)
        return chats[0] if chats else None

    async def get_chat(self, chat_id: str) -> Chat | None:
        """Get a chat by ID."""
        rows = await self._query("SELECT * FROM chats WHERE id = ?", (chat_id,))
        chats = await self._load_chats(rows)
        return chats[0] if chats else None

    async def list_chats(self, user_id: str, archived: bool = False) -> list[Chat]:
        """Visible chats of a user, most recent activity first."""
        rows = await self._query(
            """
            SELECT c.*
            FROM chats c
            JOIN chat_members m ON m.chat_id = c.id
            WHERE m.user_id = ? AND m.hidden = 0 AND m.archived = ?
            ORDER BY c.updated_at DESC
            """,
            (user_id, int(archived)),
        )
        return await self._load_chats(rows)

    async def chat_partners(self, user_id: str) -> set[str]:
        """Every other participant across the user's chats."""
        rows = await self._query(
            """
            SELECT DISTINCT other.user_id
            FROM chat_members me
            JOIN chat_members other
                ON other.chat_id = me.chat_id AND other.user_id != me.user_id
            WHERE me.user_id = ?
            """,
            (user_id,),
        )
        return {row["user_id"] for row in rows}

    async def record_chat_activity(self, chat_id: str, message_id: str, at: datetime) -> None:
        """Point the chat at its newest message; an older message never wins."""
        stamp = _to_iso(at)
        await self._mutate(
            """
            UPDATE chats SET last_message_id = ?, updated_at = ?
            WHERE id = ? AND updated_at <= ?
            """,
            (message_id, stamp, chat_id, stamp),
        )

    async def recount_unread(self, chat_id: str, user_id: str) -> int:
        """Set a participant's unread counter to the messages still unread for them.

        Inserts bump the counter through a trigger, so a message arriving while
        history is being read is either counted here or by its own insert.
        """
        rows = await self._mutate_returning(
            """
            UPDATE chat_members SET unread_count = (
                SELECT COUNT(*) FROM messages m
                WHERE m.chat_id = chat_members.chat_id
                  AND m.sender_id != chat_members.user_id
                  AND m.status != 'read'
                  AND NOT EXISTS (
                      SELECT 1 FROM message_deletions d
                      WHERE d.message_id = m.id AND d.user_id = chat_members.user_id
                  )
            )
            WHERE chat_id = ? AND user_id = ?
            RETURNING unread_count
            """,
            (chat_id, user_id),
        )
        return rows[0]["unread_count"] if rows else 0

    async def set_hidden(self, chat_id: str, user_ids: Iterable[str], hidden: bool) -> None:
        """Set the hidden flag for some participants."""
        user_ids = list(user_ids)
        if not user_ids:
            return
        placeholders = ",".join("?" * len(user_ids))
        await self._mutate(
            f"""
            UPDATE chat_members SET hidden = ?
            WHERE chat_id = ? AND user_id IN ({placeholders})
            """,
            (int(hidden), chat_id, *user_ids),
        )

    async def toggle_archived(self, chat_id: str, user_id: str) -> bool | None:
        """Flip the archived flag. None if the user is not a participant."""
        rows = await self._mutate_returning(
            """
            UPDATE chat_members SET archived = 1 - archived
            WHERE chat_id = ? AND user_id = ?
            RETURNING archived
            """,
            (chat_id, user_id),
        )
        return bool(rows[0]["archived"]) if rows else None

    async def _load_chats(self, rows: list[aiosqlite.Row]) -> list[Chat]:
        if not rows:
            return []

        chat_ids = [row["id"] for row in rows]
        placeholders = ",".join("?" * len(chat_ids))
        member_rows = await self._query(
            f"SELECT * FROM chat_members WHERE chat_id IN ({placeholders})",
            chat_ids,
        )

        chats = {
            row["id"]: Chat(
                id=row["id"],
                participants=(row["user_low"], row["user_high"]),
                created_at=_from_iso(row["created_at"]),
                updated_at=_from_iso(row["updated_at"]),
                last_message_id=row["last_message_id"],
            )
            for row in rows
        }
        for member in member_rows:
            chat = chats[member["chat_id"]]
            chat.unread[member["user_id"]] = member["unread_count"]
            chat.hidden[member["user_id"]] = bool(member["hidden"])
            chat.archived[member["user_id"]] = bool(member["archived"])

        return [chats[chat_id] for chat_id in chat_ids]

    # Messages
    async def save_message(self, message: Message) -> None:
        """Insert a new message."""
        if not message.id:
            message.id = str(uuid.uuid4())
        if message.updated_at is None:
            message.updated_at = message.created_at

        await self._mutate(
            """
            INSERT INTO messages
            (id, chat_id, sender_id, kind, text, media, status, is_deleted,
             forwarded_from, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                message.id,
                message.chat_id,
                message.sender_id,
                message.kind.value,
                message.text,
                json.dumps(message.media.to_dict()) if message.media else None,
                message.status.value,
                int(message.is_deleted),
                message.forwarded_from,
                _to_iso(message.created_at),
                _to_iso(message.updated_at),
            ),
        )

    async def get_message(self, message_id: str) -> Message | None:
        """Get a message by ID."""
        rows = await self._query("SELECT * FROM messages WHERE id = ?", (message_id,))
        if not rows:
            return None
        messages = await self._load_messages(rows, "message_id = ?", (message_id,))
        return messages[0]

    async def get_messages(self, chat_id: str) -> list[Message]:
        """All messages of a chat ordered by creation time."""
        rows = await self._query(
            """
            SELECT * FROM messages
            WHERE chat_id = ?
            ORDER BY created_at ASC, rowid ASC
            """,
            (chat_id,),
        )
        return await self._load_messages(
            rows,
            "message_id IN (SELECT id FROM messages WHERE chat_id = ?)",
            (chat_id,),
        )

    async def advance_status(self, message_id: str, status: MessageStatus) -> bool:
        """Move status forward. False if it would not advance."""
        updated = await self._mutate(
            f"""
            UPDATE messages SET status = ?, updated_at = ?
            WHERE id = ? AND {_STATUS_RANK_SQL} < ?
            """,
            (status.value, _to_iso(_now()), message_id, status.rank),
        )
        return updated > 0

    async def mark_read(self, chat_id: str, reader_id: str) -> list[str]:
        """Mark others' messages read. Returns distinct senders affected."""
        rows = await self._mutate_returning(
            """
            UPDATE messages SET status = 'read', updated_at = ?
            WHERE chat_id = ? AND sender_id != ? AND status != 'read'
            RETURNING sender_id
            """,
            (_to_iso(_now()), chat_id, reader_id),
        )
        senders: list[str] = []
        for row in rows:
            if row["sender_id"] not in senders:
                senders.append(row["sender_id"])
        return senders

    async def mark_delivered_to(self, recipient_id: str) -> list[tuple[str, str]]:
        """Advance sent messages addressed to a user. Returns (message_id, sender_id)."""
        rows = await self._mutate_returning(
            """
            UPDATE messages SET status = 'delivered', updated_at = ?
            WHERE status = 'sent'
              AND sender_id != ?
              AND chat_id IN (SELECT chat_id FROM chat_members WHERE user_id = ?)
            RETURNING id, sender_id
            """,
            (_to_iso(_now()), recipient_id, recipient_id),
        )
        return [(row["id"], row["sender_id"]) for row in rows]

    async def set_reaction(self, message_id: str, user_id: str, emoji: str) -> None:
        """Set a user's single reaction on a message."""
        await self._mutate(
            """
            INSERT INTO message_reactions (message_id, user_id, emoji, created_at)
            VALUES (?, ?, ?, ?)
            ON CONFLICT(message_id, user_id) DO UPDATE SET
                emoji = excluded.emoji,
                created_at = excluded.created_at
            """,
            (message_id, user_id, emoji, _to_iso(_now())),
        )

    async def delete_reaction(self, message_id: str, user_id: str) -> bool:
        """Remove a user's reaction. False if there was none."""
        deleted = await self._mutate(
            "DELETE FROM message_reactions WHERE message_id = ? AND user_id = ?",
            (message_id, user_id),
        )
        return deleted > 0

    async def add_deleted_for(self, message_id: str, user_id: str) -> bool:
        """Hide a message for one user. False if already hidden."""
        inserted = await self._mutate(
            "INSERT OR IGNORE INTO message_deletions (message_id, user_id) VALUES (?, ?)",
            (message_id, user_id),
        )
        return inserted > 0

    async def clear_chat_for(self, chat_id: str, user_id: str) -> int:
        """Hide every message of a chat for one user."""
        return await self._mutate(
            """
            INSERT OR IGNORE INTO message_deletions (message_id, user_id)
            SELECT id, ? FROM messages WHERE chat_id = ?
            """,
            (user_id, chat_id),
        )

    async def scrub_message(self, message_id: str, placeholder: str) -> bool:
        """Delete for everyone. False if already deleted."""
        updated = await self._mutate(
            """
            UPDATE messages SET is_deleted = 1, text = ?, media = NULL, updated_at = ?
            WHERE id = ? AND is_deleted = 0
            """,
            (placeholder, _to_iso(_now()), message_id),
        )
        return updated > 0

    async def _load_messages(
        self,
        rows: list[aiosqlite.Row],
        scope_sql: str,
        scope_params: Sequence[Any],
    ) -> list[Message]:
        if not rows:
            return []

        reactions: dict[str, dict[str, str]] = {}
        for row in await self._query(
            f"""
            SELECT message_id, user_id, emoji FROM message_reactions
            WHERE {scope_sql}
            ORDER BY created_at ASC
            """,
            scope_params,
        ):
            reactions.setdefault(row["message_id"], {})[row["user_id"]] = row["emoji"]

        deleted_for: dict[str, set[str]] = {}
        for row in await self._query(
            f"SELECT message_id, user_id FROM message_deletions WHERE {scope_sql}",
            scope_params,
        ):
            deleted_for.setdefault(row["message_id"], set()).add(row["user_id"])

        return [
            Message(
                id=row["id"],
                chat_id=row["chat_id"],
                sender_id=row["sender_id"],
                kind=MessageKind(row["kind"]),
                created_at=_from_iso(row["created_at"]),
                text=row["text"],
                media=(
                    MediaDescriptor.from_dict(json.loads(row["media"]))
                    if row["media"]
                    else None
                ),
                status=MessageStatus(row["status"]),
                reactions=reactions.get(row["id"], {}),
                deleted_for=deleted_for.get(row["id"], set()),
                is_deleted=bool(row["is_deleted"]),
                forwarded_from=row["forwarded_from"],
                updated_at=_from_iso(row["updated_at"]),
            )
            for row in rows
        ]

    # TraceEvents
    async def save_trace_event(self, event: TraceEvent) -> None:
        """Save a trace event."""
        await self._mutate(
            """
            INSERT INTO trace_events (id, event_type, actor, data, timestamp)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                event.id or str(uuid.uuid4()),
                event.event_type,
                event.actor,
                json.dumps(event.data, default=str),
                _to_iso(event.timestamp),
            ),
        )

    async def get_trace_events(
        self,
        after: datetime | None = None,
        event_types: list[str] | None = None,
        actor: str | None = None,
        limit: int = 100,
    ) -> list[TraceEvent]:
        """Get trace events with optional filters."""
        conditions = []
        params: list[Any] = []

        if after:
            conditions.append("timestamp > ?")
            params.append(_to_iso(after))
        if event_types:
            placeholders = ",".join("?" * len(event_types))
            conditions.append(f"event_type IN ({placeholders})")
            params.extend(event_types)
        if actor:
            conditions.append("actor = ?")
            params.append(actor)

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        query = f"""
            SELECT id, event_type, actor, data, timestamp
            FROM trace_events
            {where_clause}
            ORDER BY timestamp DESC
            LIMIT ?
        """
        params.append(limit)

        rows = await self._query(query, params)
        return [
            TraceEvent(
                id=row["id"],
                event_type=row["event_type"],
                actor=row["actor"],
                data=json.loads(row["data"]),
                timestamp=_from_iso(row["timestamp"]),
            )
            for row in rows
        ]

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        tables = [
            "message_reactions",
            "message_deletions",
            "messages",
            "chat_members",
            "chats",
            "contacts",
            "trace_events",
            "users",
        ]

        for table in tables:
            await self._mutate(f"DELETE FROM {table}")
