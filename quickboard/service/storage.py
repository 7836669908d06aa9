"""
SQLite storage for accounts and board documents.

Boards are kept as opaque JSON documents keyed by user id; the service
never looks inside them.
"""

from __future__ import annotations

import json
import sqlite3
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from loguru import logger

from ..board.model import default_board


class UserExistsError(Exception):
    """Raised when registering a username that is already taken."""


@dataclass(frozen=True)
class User:
    id: str
    username: str
    password_hash: str


class Repository(Protocol):
    def get_user(self, username: str) -> User | None: ...

    def create_user(self, username: str, password_hash: str) -> User: ...

    def load_or_seed(self, user_id: str) -> dict[str, Any]: ...

    def save(self, user_id: str, document: dict[str, Any]) -> None: ...


@contextmanager
def _connect(db_path: Path) -> Iterator[sqlite3.Connection]:
    """Open a WAL-mode connection; commit on success, roll back on error, always close."""
    conn = sqlite3.connect(db_path, timeout=10.0)
    conn.row_factory = sqlite3.Row
    try:
        conn.execute("PRAGMA journal_mode = WAL")
        with conn:
            yield conn
    finally:
        conn.close()


class SQLiteRepository:
    """Users and boards in a single SQLite file."""

    def __init__(self, db_path: str | Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    def _init_schema(self) -> None:
        with _connect(self.db_path) as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    username TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    created_at TEXT NOT NULL DEFAULT (datetime('now'))
                )
            """)
            conn.execute("""
                CREATE TABLE IF NOT EXISTS boards (
                    user_id TEXT PRIMARY KEY,
                    document TEXT NOT NULL,
                    updated_at TEXT NOT NULL DEFAULT (datetime('now'))
                )
            """)

    # -------------------- users --------------------
    def get_user(self, username: str) -> User | None:
        with _connect(self.db_path) as conn:
            row = conn.execute(
                "SELECT id, username, password_hash FROM users WHERE username = ?",
                (username,),
            ).fetchone()
        if row is None:
            return None
        return User(id=row["id"], username=row["username"], password_hash=row["password_hash"])

    def create_user(self, username: str, password_hash: str) -> User:
        # Millisecond timestamps as ids, bumped on collision.
        user_id = str(int(time.time() * 1000))
        with _connect(self.db_path) as conn:
            try:
                while conn.execute("SELECT 1 FROM users WHERE id = ?", (user_id,)).fetchone():
                    user_id = str(int(user_id) + 1)
                conn.execute(
                    "INSERT INTO users (id, username, password_hash) VALUES (?, ?, ?)",
                    (user_id, username, password_hash),
                )
            except sqlite3.IntegrityError as exc:
                raise UserExistsError(username) from exc
        logger.info(f"Created user {username} ({user_id})")
        return User(id=user_id, username=username, password_hash=password_hash)

    # -------------------- boards --------------------
    def load_or_seed(self, user_id: str) -> dict[str, Any]:
        """
        Return the user's board, storing the seed board first if none exists.

        The insert and read happen in one transaction and the insert is a
        no-op when a row exists, so concurrent first loads agree on one board.
        """
        seed = json.dumps(default_board().to_dict())
        with _connect(self.db_path) as conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO boards (user_id, document) VALUES (?, ?)",
                (user_id, seed),
            )
            if cursor.rowcount:
                logger.info(f"Seeded default board for user {user_id}")
            row = conn.execute(
                "SELECT document FROM boards WHERE user_id = ?", (user_id,)
            ).fetchone()
        return json.loads(row["document"])

    def save(self, user_id: str, document: dict[str, Any]) -> None:
        """Overwrite the stored board unconditionally."""
        with _connect(self.db_path) as conn:
            conn.execute(
                """
                INSERT INTO boards (user_id, document, updated_at)
                VALUES (?, ?, datetime('now'))
                ON CONFLICT(user_id) DO UPDATE SET
                    document = excluded.document,
                    updated_at = excluded.updated_at
                """,
                (user_id, json.dumps(document)),
            )
