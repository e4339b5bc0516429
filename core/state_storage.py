"""Persistent application state backed by SQLite3.

Each piece of state (proxy configuration, history) is one JSON record stored under its own key and
rewritten wholesale on every change. The connection runs in autocommit mode with full
synchronisation, so a record is durable once ``save`` returns.
"""

from __future__ import annotations

import json
import sqlite3
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Self

from utils.errors import PersistenceError
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging


__all__: list[str] = ["StateStorage"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class StateStorage:
    """Key/value store of JSON records.

    Attributes:
        db_path (Path): Path to the SQLite database file.
        _connection (sqlite3.Connection | None): Active database connection.
    """

    def __init__(self, db_path: str | Path) -> None:
        """Initialize the storage with the path to the database file.

        Args:
            db_path (str | Path): Path to the SQLite database file.

        Raises:
            PersistenceError: If the database path is empty.
        """
        logger.debug("Initializing %s", self.__class__.__name__)

        if str(db_path).strip() == "":
            msg = "The state database path is empty"
            raise PersistenceError(msg)

        self.db_path: Path = Path(db_path)
        self._connection: sqlite3.Connection | None = None
        logger.debug("Database path set to: %s", self.db_path)

    def __enter__(self) -> Self:
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        self.close()

    def open(self) -> None:
        """Open the connection and create the table if needed.

        Raises:
            PersistenceError: If the database cannot be opened or initialised.
        """
        if self._connection is not None:
            return
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
                isolation_level=None,  # Autocommit mode
            )
            self._connection.execute("PRAGMA synchronous = FULL")
            self._connection.execute(
                """
                CREATE TABLE IF NOT EXISTS state (
                    key TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
        except (OSError, sqlite3.Error) as err:
            self._connection = None
            msg = f"Could not open the state database ({err})"
            raise PersistenceError(msg, path=self.db_path) from err
        logger.debug("State database ready")

    @property
    def connection(self) -> sqlite3.Connection:
        if self._connection is None:
            self.open()
        assert self._connection is not None  # noqa: S101
        return self._connection

    def load(self, key: str) -> Any | None:
        """Return the record stored under ``key``, or None if there is none.

        Raises:
            PersistenceError: If the database cannot be read or the record is not valid JSON.
        """
        try:
            row: tuple[str] | None = self.connection.execute(
                "SELECT payload FROM state WHERE key = ?",
                (key,),
            ).fetchone()
        except sqlite3.Error as err:
            msg = f"Could not read '{key}' ({err})"
            raise PersistenceError(msg, path=self.db_path) from err

        if row is None:
            logger.debug("No record stored for key: %s", key)
            return None

        try:
            value: Any = json.loads(row[0])
        except json.JSONDecodeError as err:
            msg = f"Stored record '{key}' is corrupt ({err})"
            raise PersistenceError(msg, path=self.db_path) from err
        logger.debug("Loaded record for key: %s", key)
        return value

    def save(self, key: str, value: Any) -> None:
        """Replace the record stored under ``key``.

        Raises:
            PersistenceError: If the value cannot be serialised or written.
        """
        try:
            payload: str = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as err:
            msg = f"Record '{key}' is not serialisable ({err})"
            raise PersistenceError(msg) from err

        try:
            self.connection.execute(
                "INSERT OR REPLACE INTO state (key, payload, updated_at) VALUES (?, ?, ?)",
                (key, payload, time.time()),
            )
        except sqlite3.Error as err:
            msg = f"Could not write '{key}' ({err})"
            raise PersistenceError(msg, path=self.db_path) from err
        logger.debug("Saved record for key: %s", key)

    def delete(self, key: str) -> None:
        """Remove the record stored under ``key`` (no-op if absent)."""
        try:
            self.connection.execute("DELETE FROM state WHERE key = ?", (key,))
        except sqlite3.Error as err:
            msg = f"Could not delete '{key}' ({err})"
            raise PersistenceError(msg, path=self.db_path) from err
        logger.debug("Deleted record for key: %s", key)

    def close(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            logger.debug("Database connection closed")
