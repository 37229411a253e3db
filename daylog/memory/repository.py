# daylog/memory/repository.py
"""
Backing stores for sessions and content status.

SessionStore and ContentStatusTracker (see daylog.memory.stores) talk to
these interfaces only. The in-memory backends are the default; the SQLite
backends persist the same shapes to disk.
"""

from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

from daylog.core.daykey import DayKey
from daylog.memory.db import get_connection, init_db
from daylog.memory.models import ChatMessage, ChatMode, ContentStatus


class SessionBackend(ABC):
    @abstractmethod
    def load(self, day: DayKey) -> List[ChatMessage]:
        """Return the day's messages in order; empty list when absent."""

    @abstractmethod
    def save(self, day: DayKey, messages: List[ChatMessage]) -> None:
        """Replace the day's messages wholesale."""

    @abstractmethod
    def delete(self, day: DayKey) -> None:
        ...

    @abstractmethod
    def get_summary_generated(self, day: DayKey) -> bool:
        ...

    @abstractmethod
    def set_summary_generated(self, day: DayKey, generated: bool) -> None:
        ...


class StatusBackend(ABC):
    @abstractmethod
    def load(self, day: DayKey) -> Optional[ContentStatus]:
        ...

    @abstractmethod
    def save(self, day: DayKey, status: ContentStatus) -> None:
        ...


# ---------- IN-MEMORY ----------

class InMemorySessionBackend(SessionBackend):
    def __init__(self) -> None:
        self._sessions: Dict[DayKey, List[ChatMessage]] = {}
        self._summaries_generated: Dict[DayKey, bool] = {}

    def load(self, day: DayKey) -> List[ChatMessage]:
        return list(self._sessions.get(day, []))

    def save(self, day: DayKey, messages: List[ChatMessage]) -> None:
        self._sessions[day] = list(messages)

    def delete(self, day: DayKey) -> None:
        self._sessions.pop(day, None)
        self._summaries_generated.pop(day, None)

    def get_summary_generated(self, day: DayKey) -> bool:
        return self._summaries_generated.get(day, False)

    def set_summary_generated(self, day: DayKey, generated: bool) -> None:
        self._summaries_generated[day] = generated


class InMemoryStatusBackend(StatusBackend):
    def __init__(self) -> None:
        self._statuses: Dict[DayKey, ContentStatus] = {}

    def load(self, day: DayKey) -> Optional[ContentStatus]:
        status = self._statuses.get(day)
        return replace(status) if status is not None else None

    def save(self, day: DayKey, status: ContentStatus) -> None:
        self._statuses[day] = replace(status)


# ---------- SQLITE ----------

class SqliteSessionBackend(SessionBackend):
    def __init__(self, db_path: Union[str, Path]) -> None:
        self.db_path = db_path
        init_db(db_path)

    def load(self, day: DayKey) -> List[ChatMessage]:
        conn = get_connection(self.db_path)
        cur = conn.cursor()

        cur.execute(
            """
            SELECT id, content, is_user, timestamp, is_ignored_in_entry,
                   mode, is_system_notification, notification_title
            FROM messages
            WHERE day = ?
            ORDER BY position ASC
            """,
            (str(day),),
        )
        rows = cur.fetchall()
        conn.close()

        return [
            ChatMessage(
                id=row["id"],
                content=row["content"],
                is_user=bool(row["is_user"]),
                timestamp=datetime.fromisoformat(row["timestamp"]),
                is_ignored_in_entry=bool(row["is_ignored_in_entry"]),
                mode=ChatMode(row["mode"]) if row["mode"] else None,
                is_system_notification=bool(row["is_system_notification"]),
                notification_title=row["notification_title"],
            )
            for row in rows
        ]

    def save(self, day: DayKey, messages: List[ChatMessage]) -> None:
        conn = get_connection(self.db_path)
        cur = conn.cursor()

        cur.execute("DELETE FROM messages WHERE day = ?", (str(day),))
        cur.executemany(
            """
            INSERT INTO messages (
                day, position, id, content, is_user, timestamp,
                is_ignored_in_entry, mode, is_system_notification, notification_title
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    str(day),
                    position,
                    msg.id,
                    msg.content,
                    int(msg.is_user),
                    msg.timestamp.isoformat(),
                    int(msg.is_ignored_in_entry),
                    msg.mode.value if msg.mode else None,
                    int(msg.is_system_notification),
                    msg.notification_title,
                )
                for position, msg in enumerate(messages)
            ],
        )
        conn.commit()
        conn.close()

    def delete(self, day: DayKey) -> None:
        conn = get_connection(self.db_path)
        cur = conn.cursor()

        cur.execute("DELETE FROM messages WHERE day = ?", (str(day),))
        cur.execute("DELETE FROM session_flags WHERE day = ?", (str(day),))
        conn.commit()
        conn.close()

    def get_summary_generated(self, day: DayKey) -> bool:
        conn = get_connection(self.db_path)
        cur = conn.cursor()

        cur.execute("SELECT summary_generated FROM session_flags WHERE day = ?", (str(day),))
        row = cur.fetchone()
        conn.close()
        return bool(row["summary_generated"]) if row else False

    def set_summary_generated(self, day: DayKey, generated: bool) -> None:
        conn = get_connection(self.db_path)
        cur = conn.cursor()

        cur.execute(
            """
            INSERT INTO session_flags (day, summary_generated)
            VALUES (?, ?)
            ON CONFLICT(day) DO UPDATE SET summary_generated = excluded.summary_generated
            """,
            (str(day), int(generated)),
        )
        conn.commit()
        conn.close()


class SqliteStatusBackend(StatusBackend):
    def __init__(self, db_path: Union[str, Path]) -> None:
        self.db_path = db_path
        init_db(db_path)

    def load(self, day: DayKey) -> Optional[ContentStatus]:
        conn = get_connection(self.db_path)
        cur = conn.cursor()

        cur.execute(
            """
            SELECT has_entry, has_summary, entry_message_count, entry_last_updated
            FROM content_status
            WHERE day = ?
            """,
            (str(day),),
        )
        row = cur.fetchone()
        conn.close()

        if row is None:
            return None
        updated = row["entry_last_updated"]
        return ContentStatus(
            has_entry=bool(row["has_entry"]),
            has_summary=bool(row["has_summary"]),
            entry_message_count_at_creation=row["entry_message_count"],
            entry_last_updated=datetime.fromisoformat(updated) if updated else None,
        )

    def save(self, day: DayKey, status: ContentStatus) -> None:
        conn = get_connection(self.db_path)
        cur = conn.cursor()

        updated = status.entry_last_updated.isoformat() if status.entry_last_updated else None
        cur.execute(
            """
            INSERT INTO content_status (day, has_entry, has_summary, entry_message_count, entry_last_updated)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(day) DO UPDATE SET
                has_entry = excluded.has_entry,
                has_summary = excluded.has_summary,
                entry_message_count = excluded.entry_message_count,
                entry_last_updated = excluded.entry_last_updated
            """,
            (
                str(day),
                int(status.has_entry),
                int(status.has_summary),
                status.entry_message_count_at_creation,
                updated,
            ),
        )
        conn.commit()
        conn.close()


def build_backends(storage: str, db_path: Union[str, Path]):
    """Return (SessionBackend, StatusBackend) for a settings storage name."""
    if storage == "sqlite":
        return SqliteSessionBackend(db_path), SqliteStatusBackend(db_path)
    return InMemorySessionBackend(), InMemoryStatusBackend()
