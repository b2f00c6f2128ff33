"""Mapping between Discord users and their BattleTags."""

import logging
import sqlite3
import threading
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class User:
    """A Discord user id and the BattleTag set for it."""

    # Discord id (snowflake) of the user
    id: str
    battle_tag: str
    # Discord id of whoever last set the BattleTag. Lets the "real" user
    # take precedence, while others may still set one until they do.
    created_by: str

    @property
    def set_by_owner(self) -> bool:
        return self.created_by == self.id


class UserStoreError(Exception):
    """Raised when the user store cannot be read or written."""


class UserSource(Protocol):
    def get(self, user_id: str) -> User | None:
        """Return the user for a Discord id, or None if there is none."""
        ...

    def save(self, user: User) -> None:
        ...

    def close(self) -> None:
        ...


class MemoryUserSource:
    """User source kept in memory, lost on restart."""

    def __init__(self):
        self._users: dict[str, User] = {}

    def get(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    def save(self, user: User) -> None:
        self._users[user.id] = user

    def close(self) -> None:
        pass


class SqliteUserSource:
    """User source stored in a SQLite database file."""

    def __init__(self, path: str):
        self.path = path
        self._lock = threading.Lock()
        try:
            self._conn = sqlite3.connect(path, timeout=5.0, check_same_thread=False)
            with self._conn:
                self._conn.execute(
                    "CREATE TABLE IF NOT EXISTS users ("
                    " id TEXT PRIMARY KEY,"
                    " battle_tag TEXT NOT NULL,"
                    " created_by TEXT NOT NULL)"
                )
        except sqlite3.Error as e:
            raise UserStoreError(f"Could not open user database {path}: {e}") from e
        logger.info(f"Using SQLite user source: {path}")

    def get(self, user_id: str) -> User | None:
        try:
            with self._lock:
                row = self._conn.execute(
                    "SELECT id, battle_tag, created_by FROM users WHERE id = ?",
                    (user_id,),
                ).fetchone()
        except sqlite3.Error as e:
            raise UserStoreError(f"Could not read user {user_id}: {e}") from e
        if row is None:
            return None
        return User(id=row[0], battle_tag=row[1], created_by=row[2])

    def save(self, user: User) -> None:
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    "INSERT INTO users (id, battle_tag, created_by) VALUES (?, ?, ?)"
                    " ON CONFLICT(id) DO UPDATE SET"
                    " battle_tag = excluded.battle_tag,"
                    " created_by = excluded.created_by",
                    (user.id, user.battle_tag, user.created_by),
                )
        except sqlite3.Error as e:
            raise UserStoreError(f"Could not save user {user.id}: {e}") from e

    def close(self) -> None:
        with self._lock:
            self._conn.close()


def create_user_source(db_path: str | None) -> UserSource:
    """SQLite user source if a path is given, in-memory otherwise."""
    if db_path:
        return SqliteUserSource(db_path)
    logger.info("Using in-memory user source")
    return MemoryUserSource()
