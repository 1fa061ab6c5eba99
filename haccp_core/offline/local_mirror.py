# =============================================================================
# haccp_core/offline/local_mirror.py
# Local snapshot storage used as fallback and write-through copy
# =============================================================================
"""
LocalMirror - one JSON snapshot per collection, stored under a fixed key.

The storage backend is injected:
- SQLiteSnapshotStore: on-disk database, survives restarts (default)
- MemorySnapshotStore: process memory, for tests and throwaway sessions
"""

from __future__ import annotations
import copy
import json
import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol

from haccp_core.logging import get_logger

logger = get_logger(__name__)

# Fixed snapshot keys, one per collection
DAILY_LOGS_KEY = "haccp_logs"
TRACEABILITY_KEY = "haccp_traceability"
INVENTORY_KEY = "haccp_inventory"
MOVEMENTS_KEY = "haccp_movements"

Snapshot = List[Dict[str, Any]]


class SnapshotStore(Protocol):
    """Minimal get/set interface the mirror needs from a backend."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, payload: str) -> None:
        ...


class MemorySnapshotStore:
    """Dictionary-backed store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, payload: str) -> None:
        self._data[key] = payload


class SQLiteSnapshotStore:
    """
    SQLite-backed store with one row per snapshot key.

    Connections are thread-local; Streamlit may run scripts from different
    threads across reruns.
    """

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS mirror_snapshots (
            key TEXT PRIMARY KEY,
            payload TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._local = threading.local()
        self._initialized = False

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if getattr(self._local, "connection", None) is None:
            self._local.connection = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._local.connection.row_factory = sqlite3.Row
        return self._local.connection

    @contextmanager
    def transaction(self):
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def initialize(self) -> None:
        if self._initialized:
            return
        with self.transaction() as conn:
            conn.execute(self.SCHEMA)
        self._initialized = True
        logger.info(f"Local mirror initialized at: {self.db_path}")

    def get(self, key: str) -> Optional[str]:
        self.initialize()
        row = self._get_connection().execute(
            "SELECT payload FROM mirror_snapshots WHERE key = ?", [key]
        ).fetchone()
        return row["payload"] if row else None

    def set(self, key: str, payload: str) -> None:
        self.initialize()
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO mirror_snapshots (key, payload, updated_at)
                VALUES (?, ?, ?)
                """,
                [key, payload, datetime.now().isoformat()],
            )

    def close(self) -> None:
        """Close database connection."""
        if getattr(self._local, "connection", None) is not None:
            self._local.connection.close()
            self._local.connection = None


class LocalMirror:
    """
    JSON snapshots of whole collections.

    Reads never raise: a missing or unreadable snapshot is an empty list.
    Values are deep-copied in and out so callers cannot mutate the stored
    snapshot by accident.
    """

    def __init__(self, store: SnapshotStore):
        self.store = store

    def get(self, key: str) -> Snapshot:
        try:
            payload = self.store.get(key)
        except Exception as e:
            logger.error(f"Local mirror read failed for {key}: {e}")
            return []

        if not payload:
            return []

        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt local snapshot {key}: {e}")
            return []

        if not isinstance(data, list):
            logger.error(f"Local snapshot {key} is not a list; ignoring it")
            return []
        return copy.deepcopy(data)

    def set(self, key: str, records: Snapshot) -> None:
        """Replace the snapshot for `key`. Errors propagate to the caller."""
        self.store.set(key, json.dumps(records, ensure_ascii=False, default=str))
        logger.debug(f"Local mirror {key}: {len(records)} records")


# Process-wide mirror
_local_mirror: Optional[LocalMirror] = None
_lock = threading.Lock()


def get_local_mirror(db_path: Optional[Path] = None) -> LocalMirror:
    """Get the global LocalMirror backed by SQLite."""
    global _local_mirror
    if _local_mirror is None:
        with _lock:
            if _local_mirror is None:
                if db_path is None:
                    from haccp_core.config import get_settings
                    db_path = get_settings().local_db_path
                _local_mirror = LocalMirror(SQLiteSnapshotStore(db_path))
    return _local_mirror
