"""Native preference stores.

A preference store is a flat key -> scalar map with built-in persistence,
in the manner of a platform preferences API: typed getters that fall back to
the zero value, typed setters, presence checks and deletion, but no way to
list the stored keys. ``PreferencesBackend`` adds the key index on top.

- **SQLitePreferences**: one sqlite3 table, durable across processes
- **MemoryPreferences**: in-memory store for testing
"""

import sqlite3
import threading
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from copy import deepcopy
from pathlib import Path
from typing import Protocol

from localstore.core.exceptions import StoreIOError
from localstore.core.models import DEFAULT_FLOAT, DEFAULT_INT, DEFAULT_STRING


class PreferenceStore(Protocol):
    """Protocol for native preference store implementations."""

    def get_int(self, key: str) -> int: ...

    def get_float(self, key: str) -> float: ...

    def get_string(self, key: str) -> str: ...

    def set_int(self, key: str, value: int) -> None: ...

    def set_float(self, key: str, value: float) -> None: ...

    def set_string(self, key: str, value: str) -> None: ...

    def has_key(self, key: str) -> bool: ...

    def delete_key(self, key: str) -> None: ...

    def delete_all(self) -> None: ...

    def save(self) -> None: ...

    def transaction(self) -> AbstractContextManager[None]:
        """Group writes so they persist together or not at all."""
        ...

    def close(self) -> None: ...


class SQLitePreferences:
    """Preference store kept in an sqlite3 database file."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self._lock = threading.RLock()
        self._transaction_active = threading.local()
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.conn: sqlite3.Connection | None = sqlite3.connect(
                str(self.db_path), check_same_thread=False
            )
        except (OSError, sqlite3.Error) as e:
            raise StoreIOError(str(self.db_path), str(e)) from e
        self.initialize()

    @property
    def connection(self) -> sqlite3.Connection:
        """Get the connection, ensuring it exists."""
        if self.conn is None:
            raise RuntimeError("Preference database is closed")
        return self.conn

    def initialize(self) -> None:
        """Create database schema."""
        try:
            self.connection.execute("PRAGMA journal_mode=WAL")
            self.connection.execute("""
                CREATE TABLE IF NOT EXISTS preferences (
                    key TEXT PRIMARY KEY,
                    type TEXT NOT NULL,
                    value
                )
            """)
            self.connection.commit()
        except sqlite3.Error as e:
            raise StoreIOError(str(self.db_path), str(e)) from e

    def _read(self, key: str, type_tag: str, default):
        with self._lock:
            row = self.connection.execute(
                "SELECT type, value FROM preferences WHERE key = ?", (key,)
            ).fetchone()
        if row is None or row[0] != type_tag or row[1] is None:
            return default
        return row[1]

    def _execute(self, sql: str, params: tuple = ()) -> None:
        """Run a write statement, committing unless a transaction is open."""
        with self._lock:
            try:
                self.connection.execute(sql, params)
                self._commit_unless_in_transaction()
            except sqlite3.Error as e:
                raise StoreIOError(str(self.db_path), str(e)) from e

    def _write(self, key: str, type_tag: str, value) -> None:
        self._execute(
            """
            INSERT INTO preferences (key, type, value) VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                type = excluded.type,
                value = excluded.value
        """,
            (key, type_tag, value),
        )

    def _commit_unless_in_transaction(self) -> None:
        if not getattr(self._transaction_active, "active", False):
            self.connection.commit()

    def get_int(self, key: str) -> int:
        return int(self._read(key, "int", DEFAULT_INT))

    def get_float(self, key: str) -> float:
        try:
            return float(self._read(key, "float", DEFAULT_FLOAT))
        except ValueError:
            return DEFAULT_FLOAT

    def get_string(self, key: str) -> str:
        return str(self._read(key, "string", DEFAULT_STRING))

    def set_int(self, key: str, value: int) -> None:
        self._write(key, "int", int(value))

    def set_float(self, key: str, value: float) -> None:
        # Stored as text: SQLite turns a NaN REAL into NULL.
        self._write(key, "float", repr(float(value)))

    def set_string(self, key: str, value: str) -> None:
        self._write(key, "string", value)

    def has_key(self, key: str) -> bool:
        with self._lock:
            cursor = self.connection.execute(
                "SELECT 1 FROM preferences WHERE key = ? LIMIT 1", (key,)
            )
            return cursor.fetchone() is not None

    def delete_key(self, key: str) -> None:
        self._execute("DELETE FROM preferences WHERE key = ?", (key,))

    def delete_all(self) -> None:
        self._execute("DELETE FROM preferences")

    def save(self) -> None:
        with self._lock:
            try:
                self._commit_unless_in_transaction()
            except sqlite3.Error as e:
                raise StoreIOError(str(self.db_path), str(e)) from e

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Transaction context manager."""
        with self._lock:
            self._transaction_active.active = True
            in_transaction = self.connection.in_transaction

            if not in_transaction:
                self.connection.execute("BEGIN")

            try:
                yield
                if not in_transaction:
                    try:
                        self.connection.commit()
                    except sqlite3.Error as e:
                        raise StoreIOError(str(self.db_path), str(e)) from e
            except Exception:
                if not in_transaction:
                    self.connection.rollback()
                raise
            finally:
                self._transaction_active.active = False

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.connection.close()
            self.conn = None

    def __repr__(self) -> str:
        return f"SQLitePreferences({str(self.db_path)!r})"


class MemoryPreferences:
    """In-memory preference store for testing purposes."""

    def __init__(self):
        self._data: dict[str, tuple[str, int | float | str]] = {}
        self._transaction_data: dict[str, tuple[str, int | float | str]] | None = None
        self._in_transaction = False
        self.save_count = 0

    def _get_data(self) -> dict[str, tuple[str, int | float | str]]:
        """Get the active data store."""
        if self._in_transaction and self._transaction_data is not None:
            return self._transaction_data
        return self._data

    def _read(self, key: str, type_tag: str, default):
        item = self._get_data().get(key)
        if item is None or item[0] != type_tag:
            return default
        return item[1]

    def get_int(self, key: str) -> int:
        return self._read(key, "int", DEFAULT_INT)

    def get_float(self, key: str) -> float:
        return self._read(key, "float", DEFAULT_FLOAT)

    def get_string(self, key: str) -> str:
        return self._read(key, "string", DEFAULT_STRING)

    def set_int(self, key: str, value: int) -> None:
        self._get_data()[key] = ("int", int(value))

    def set_float(self, key: str, value: float) -> None:
        self._get_data()[key] = ("float", float(value))

    def set_string(self, key: str, value: str) -> None:
        self._get_data()[key] = ("string", value)

    def has_key(self, key: str) -> bool:
        return key in self._get_data()

    def delete_key(self, key: str) -> None:
        self._get_data().pop(key, None)

    def delete_all(self) -> None:
        self._get_data().clear()

    def save(self) -> None:
        self.save_count += 1

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """Begin a transaction."""
        if self._in_transaction:
            raise RuntimeError("Already in a transaction")

        self._in_transaction = True
        self._transaction_data = deepcopy(self._data)

        try:
            yield
        except Exception:
            self._transaction_data = None
            self._in_transaction = False
            raise

        self._data = self._transaction_data
        self._transaction_data = None
        self._in_transaction = False

    def close(self) -> None:
        pass

    def __repr__(self) -> str:
        return "MemoryPreferences()"
