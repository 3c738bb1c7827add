"""
SQLite Storage Backend

Implements the controller store on a SQLite database file.

Tables:
- config_versions - Append-only configuration history (version is UNIQUE)
- agents - Registered agent identities

Every write transaction starts with BEGIN IMMEDIATE, which takes the
database write lock up front. Two concurrent updates therefore cannot both
read the same "latest" row and both insert version + 1.
"""

import os
import sqlite3
import uuid
from contextlib import contextmanager
from typing import Iterator, List, Optional

from ..exceptions import StoreError, VersionConflictError
from ..models import AgentIdentity, ConfigRecord
from .base import ConfigStore, ConfigTransaction


SCHEMA = """
CREATE TABLE IF NOT EXISTS config_versions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    url TEXT NOT NULL,
    poll_interval INTEGER NOT NULL,
    version INTEGER NOT NULL UNIQUE,
    created_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS agents (
    agent_id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    registered_at TEXT NOT NULL
);
"""

_SELECT_CONFIG = "SELECT url, poll_interval, version, created_at FROM config_versions"


def _row_to_config(row: sqlite3.Row) -> ConfigRecord:
    return ConfigRecord(
        url=row['url'],
        poll_interval=row['poll_interval'],
        version=row['version'],
        created_at=row['created_at'],
    )


def _row_to_agent(row: sqlite3.Row) -> AgentIdentity:
    return AgentIdentity(
        agent_id=row['agent_id'],
        name=row['name'],
        registered_at=row['registered_at'],
    )


class SQLiteTransaction(ConfigTransaction):
    """ConfigTransaction bound to an open SQLite connection."""

    def __init__(self, conn: sqlite3.Connection):
        self._conn = conn

    def get_latest_config(self) -> Optional[ConfigRecord]:
        try:
            row = self._conn.execute(
                f"{_SELECT_CONFIG} ORDER BY version DESC LIMIT 1"
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to read latest config: {e}") from e
        return _row_to_config(row) if row else None

    def insert_config(self, record: ConfigRecord) -> None:
        try:
            self._conn.execute(
                "INSERT INTO config_versions (url, poll_interval, version, created_at) "
                "VALUES (?, ?, ?, ?)",
                (record.url, record.poll_interval, record.version, record.created_at)
            )
        except sqlite3.IntegrityError as e:
            raise VersionConflictError(record.version) from e
        except sqlite3.Error as e:
            raise StoreError(f"Failed to insert config version {record.version}: {e}") from e


class SQLiteConfigStore(ConfigStore):
    """
    SQLite storage implementation.

    A new connection is opened per operation so the store can be shared
    between request threads.
    """

    def __init__(self, db_path: str = '/app/data/controller.db', busy_timeout: float = 30.0):
        """
        Initialize SQLite storage.

        Args:
            db_path: Path of the database file
            busy_timeout: Seconds to wait for the write lock
        """
        self.db_path = db_path
        self.busy_timeout = busy_timeout

        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        self._init_db()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.db_path,
            timeout=self.busy_timeout,
            isolation_level=None,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open database {self.db_path}: {e}") from e
        try:
            yield conn
        finally:
            conn.close()

    def _init_db(self):
        """Create tables if they do not exist."""
        with self._connection() as conn:
            try:
                conn.executescript(SCHEMA)
            except sqlite3.Error as e:
                raise StoreError(f"Failed to initialize schema: {e}") from e

    def ping(self) -> bool:
        try:
            with self._connection() as conn:
                conn.execute("SELECT 1").fetchone()
            return True
        except (StoreError, sqlite3.Error):
            return False

    # =========================================================================
    # Config Version History
    # =========================================================================

    @contextmanager
    def transaction(self) -> Iterator[ConfigTransaction]:
        with self._connection() as conn:
            try:
                conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                raise StoreError(f"Failed to begin transaction: {e}") from e
            try:
                yield SQLiteTransaction(conn)
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            try:
                conn.execute("COMMIT")
            except sqlite3.Error as e:
                raise StoreError(f"Failed to commit transaction: {e}") from e

    def get_latest_config(self) -> Optional[ConfigRecord]:
        try:
            with self._connection() as conn:
                row = conn.execute(
                    f"{_SELECT_CONFIG} ORDER BY version DESC LIMIT 1"
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to read latest config: {e}") from e
        return _row_to_config(row) if row else None

    def get_config_history(self, limit: int = 50) -> List[ConfigRecord]:
        try:
            with self._connection() as conn:
                rows = conn.execute(
                    f"{_SELECT_CONFIG} ORDER BY version DESC LIMIT ?",
                    (limit,)
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to read config history: {e}") from e
        return [_row_to_config(row) for row in rows]

    # =========================================================================
    # Agent Operations
    # =========================================================================

    def create_agent(self, name: str) -> AgentIdentity:
        agent = AgentIdentity(agent_id=str(uuid.uuid4()), name=name)
        try:
            with self._connection() as conn:
                conn.execute(
                    "INSERT INTO agents (agent_id, name, registered_at) VALUES (?, ?, ?)",
                    (agent.agent_id, agent.name, agent.registered_at)
                )
        except sqlite3.Error as e:
            raise StoreError(f"Failed to create agent '{name}': {e}") from e
        return agent

    def get_agent(self, agent_id: str) -> Optional[AgentIdentity]:
        try:
            with self._connection() as conn:
                row = conn.execute(
                    "SELECT agent_id, name, registered_at FROM agents WHERE agent_id = ?",
                    (agent_id,)
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to read agent {agent_id}: {e}") from e
        return _row_to_agent(row) if row else None

    def get_all_agents(self) -> List[AgentIdentity]:
        try:
            with self._connection() as conn:
                rows = conn.execute(
                    "SELECT agent_id, name, registered_at FROM agents "
                    "ORDER BY registered_at DESC"
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to list agents: {e}") from e
        return [_row_to_agent(row) for row in rows]
