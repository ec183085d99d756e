"""SQLite storage adapter.

Implements the core StoragePort using a simple SQLite database with one row
per chat session.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from typing import Optional

from core.errors import StoreError
from core.models import (
    DEFAULT_INTERVAL_MS,
    SCHEMA_VERSION,
    SessionState,
    session_state_from_dict,
    session_state_to_dict,
)


class SQLiteStorage:
    """Thin SQLite wrapper that satisfies the StoragePort contract."""

    def __init__(self, db_path: str, default_interval_ms: int = DEFAULT_INTERVAL_MS) -> None:
        self._db_path = db_path
        self._default_interval_ms = default_interval_ms

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create tables if they do not exist.

        Tables:
        - sessions: one JSON state blob per chat session
        """

        try:
            with self._connect() as conn:
                # Fields:
                # - session_id: chat id as text (PRIMARY KEY)
                # - schema_version: layout version of the state column
                # - state: JSON encoded SessionState
                # - updated_at: timestamp of the last write, for debugging
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS sessions (
                        session_id TEXT PRIMARY KEY,
                        schema_version INTEGER NOT NULL,
                        state TEXT NOT NULL,
                        updated_at TIMESTAMP NOT NULL
                    )
                    """
                )
        except sqlite3.Error as exc:
            raise StoreError(f"cannot initialise {self._db_path}: {exc}") from exc

    def read(self, session_id: str) -> Optional[SessionState]:
        """Return the stored state for a session, if any."""

        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT state FROM sessions WHERE session_id = ?",
                    (session_id,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"cannot read session {session_id}: {exc}") from exc

        if row is None:
            return None
        try:
            data = json.loads(row["state"])
        except ValueError as exc:
            raise StoreError(f"session {session_id} is not valid JSON") from exc
        return session_state_from_dict(data, self._default_interval_ms)

    def write(self, session_id: str, state: SessionState) -> None:
        """Upsert the full state of a session."""

        payload = json.dumps(session_state_to_dict(state), sort_keys=True)
        now = datetime.now(timezone.utc)
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO sessions (session_id, schema_version, state, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(session_id) DO UPDATE SET
                        schema_version = excluded.schema_version,
                        state = excluded.state,
                        updated_at = excluded.updated_at
                    """,
                    (session_id, SCHEMA_VERSION, payload, now.isoformat()),
                )
        except sqlite3.Error as exc:
            raise StoreError(f"cannot write session {session_id}: {exc}") from exc

    def list_keys(self) -> list[str]:
        """Return every stored session id, oldest write first."""

        try:
            with self._connect() as conn:
                rows = conn.execute("SELECT session_id FROM sessions ORDER BY updated_at").fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"cannot list sessions: {exc}") from exc
        return [row["session_id"] for row in rows]
