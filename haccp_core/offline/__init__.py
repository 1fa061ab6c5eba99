# =============================================================================
# haccp_core/offline/__init__.py
# Remote-first storage with a local mirror fallback
# =============================================================================

from .local_mirror import (
    LocalMirror,
    SnapshotStore,
    MemorySnapshotStore,
    SQLiteSnapshotStore,
    get_local_mirror,
    DAILY_LOGS_KEY,
    TRACEABILITY_KEY,
    INVENTORY_KEY,
    MOVEMENTS_KEY,
)
from .connection_manager import (
    ConnectionManager,
    ConnectionStatus,
    ConnectionState,
    get_connection_manager,
)
from .repository import (
    DataSource,
    RepositoryResult,
    PhotoRef,
    SyncedCollection,
    SynchronizingRepository,
    get_repository,
    MOVEMENTS_MIRROR_LIMIT,
)

__all__ = [
    # Local mirror
    "LocalMirror",
    "SnapshotStore",
    "MemorySnapshotStore",
    "SQLiteSnapshotStore",
    "get_local_mirror",
    "DAILY_LOGS_KEY",
    "TRACEABILITY_KEY",
    "INVENTORY_KEY",
    "MOVEMENTS_KEY",
    # Connection
    "ConnectionManager",
    "ConnectionStatus",
    "ConnectionState",
    "get_connection_manager",
    # Repository
    "DataSource",
    "RepositoryResult",
    "PhotoRef",
    "SyncedCollection",
    "SynchronizingRepository",
    "get_repository",
    "MOVEMENTS_MIRROR_LIMIT",
]
