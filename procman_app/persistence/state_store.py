"""Key-value persistence for the tracked collections."""

import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional, Protocol, Sequence, TypeVar

import structlog

from ..errors import PersistenceCorruptError, PersistenceError
from ..models.records import ActiveProcess, Plot, Process

PLOTS_KEY = "plots"
PROCESSES_KEY = "processes"
ACTIVE_PROCESSES_KEY = "activeProcesses"

T = TypeVar("T", Plot, Process, ActiveProcess)


class KeyValueStore(Protocol):
    """Durable string storage keyed by collection name."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set_many(self, items: dict[str, str]) -> None:
        """Write every item or none of them."""
        ...


class MemoryKeyValueStore:
    """Process-local key-value store."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set_many(self, items: dict[str, str]) -> None:
        with self._lock:
            self._data.update(items)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data)


class SQLiteKeyValueStore:
    """SQLite-backed key-value store."""

    def __init__(self, db_path: str = "procman.db", timeout: float = 30.0):
        self.db_path = Path(db_path)
        self.timeout = timeout
        self.logger = structlog.get_logger(__name__)
        self._lock = threading.Lock()

        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        if self.db_path.parent and not self.db_path.parent.exists():
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._get_connection() as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            conn.commit()

    @contextmanager
    def _get_connection(self):
        """Get database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path, timeout=self.timeout)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            self.logger.error("Database error", db_path=str(self.db_path), error=str(e))
            raise
        finally:
            if conn:
                conn.close()

    def get(self, key: str) -> Optional[str]:
        try:
            with self._get_connection() as conn:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE key = ?", (key,)
                ).fetchone()
                return row["value"] if row else None
        except sqlite3.Error as e:
            raise PersistenceError(
                f"Failed to read {key}: {e}", operation="get", target=key
            ) from e

    def set_many(self, items: dict[str, str]) -> None:
        now = datetime.now(timezone.utc).isoformat()

        with self._lock:
            try:
                with self._get_connection() as conn:
                    conn.executemany("""
                        INSERT OR REPLACE INTO kv_store (key, value, updated_at)
                        VALUES (?, ?, ?)
                    """, [(key, value, now) for key, value in items.items()])
                    conn.commit()
            except sqlite3.Error as e:
                raise PersistenceError(
                    f"Failed to write {', '.join(items)}: {e}",
                    operation="set_many",
                    target=str(self.db_path)
                ) from e

    def keys(self) -> list[str]:
        with self._get_connection() as conn:
            return [row["key"] for row in conn.execute("SELECT key FROM kv_store ORDER BY key")]


class PersistenceGateway:
    """Loads and saves plots, processes and active processes as JSON arrays."""

    def __init__(self, store: KeyValueStore):
        self.store = store
        self.logger = structlog.get_logger(__name__)

    def load(self, key: str, seed: Sequence[T], record_type: type[T]) -> list[T]:
        """
        Read a collection, falling back to ``seed`` when absent, empty or corrupt.

        The seed is written back so the next start finds a stored value.

        Args:
            key: Collection key
            seed: Records used on first run
            record_type: Record class providing ``from_dict``

        Returns:
            Loaded records, or a copy of ``seed``

        Raises:
            PersistenceError: if the underlying store cannot be read
        """
        raw = self.store.get(key)

        records: Optional[list[T]] = None
        if raw is not None and raw.strip():
            try:
                records = self._decode(key, raw, record_type)
            except PersistenceCorruptError as e:
                self.logger.warning(
                    "Stored collection is corrupt, re-seeding",
                    key=key,
                    error=str(e)
                )

        if records:
            self.logger.info("Loaded collection", key=key, count=len(records))
            return records

        self.logger.info("Seeding collection", key=key, count=len(seed))
        try:
            self.store.set_many({key: self._encode(key, seed)})
        except PersistenceError as e:
            self.logger.error("Failed to write seed", key=key, error=str(e))
        return list(seed)

    def load_all(
        self,
        seed_plots: Sequence[Plot],
        seed_processes: Sequence[Process],
        seed_active: Sequence[ActiveProcess] = ()
    ) -> tuple[list[Plot], list[Process], list[ActiveProcess]]:
        """Load the three collections."""
        return (
            self.load(PLOTS_KEY, seed_plots, Plot),
            self.load(PROCESSES_KEY, seed_processes, Process),
            self.load(ACTIVE_PROCESSES_KEY, seed_active, ActiveProcess),
        )

    def save_all(
        self,
        plots: Iterable[Plot],
        processes: Iterable[Process],
        active_processes: Iterable[ActiveProcess]
    ) -> None:
        """
        Serialize and write all three collections in one transaction.

        Everything is serialized before anything is written, so an encoding
        failure leaves the stored state untouched.

        Raises:
            PersistenceError: on serialization or write failure
        """
        payload = {
            PLOTS_KEY: self._encode(PLOTS_KEY, list(plots)),
            PROCESSES_KEY: self._encode(PROCESSES_KEY, list(processes)),
            ACTIVE_PROCESSES_KEY: self._encode(ACTIVE_PROCESSES_KEY, list(active_processes)),
        }
        self.store.set_many(payload)

        self.logger.debug("Saved collections", keys=list(payload))

    def _encode(self, key: str, records: Sequence[Any]) -> str:
        try:
            return json.dumps([record.to_dict() for record in records])
        except (TypeError, ValueError, AttributeError) as e:
            raise PersistenceError(
                f"Failed to serialize {key}: {e}", operation="serialize", target=key
            ) from e

    def _decode(self, key: str, raw: str, record_type: type[T]) -> list[T]:
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError(f"expected a JSON array, got {type(data).__name__}")
            return [record_type.from_dict(entry) for entry in data]
        except (ValueError, TypeError, KeyError, AttributeError) as e:
            # json.JSONDecodeError is a ValueError
            raise PersistenceCorruptError(
                f"Cannot decode {key}: {e}", key=key, raw_value=raw[:200]
            ) from e
