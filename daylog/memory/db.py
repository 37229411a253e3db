# daylog/memory/db.py

import sqlite3
from pathlib import Path
from typing import Union


def get_connection(db_path: Union[str, Path]) -> sqlite3.Connection:
    """
    Return a SQLite connection.
    Uses Row factory to allow dict-like access.
    Caller is responsible for closing.
    """
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: Union[str, Path]) -> None:
    """
    Initialize the database schema if it does not exist.
    Safe to call multiple times.
    """
    conn = get_connection(db_path)
    cur = conn.cursor()

    # messages: one row per chat message, ordered within a day by position
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS messages (
            day TEXT NOT NULL,                 -- 'YYYY-MM-DD'
            position INTEGER NOT NULL,
            id TEXT NOT NULL,
            content TEXT NOT NULL,
            is_user INTEGER NOT NULL,
            timestamp TEXT NOT NULL,
            is_ignored_in_entry INTEGER NOT NULL DEFAULT 0,
            mode TEXT,                         -- 'chat', 'log' or NULL
            is_system_notification INTEGER NOT NULL DEFAULT 0,
            notification_title TEXT,
            PRIMARY KEY (day, position)
        )
        """
    )

    # session_flags: per-day session annotations
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS session_flags (
            day TEXT PRIMARY KEY,
            summary_generated INTEGER NOT NULL DEFAULT 0
        )
        """
    )

    # content_status: derived entry/summary bookkeeping per day
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS content_status (
            day TEXT PRIMARY KEY,
            has_entry INTEGER NOT NULL DEFAULT 0,
            has_summary INTEGER NOT NULL DEFAULT 0,
            entry_message_count INTEGER NOT NULL DEFAULT 0,
            entry_last_updated TEXT
        )
        """
    )

    cur.execute("CREATE INDEX IF NOT EXISTS idx_messages_day ON messages(day, position)")

    conn.commit()
    conn.close()
