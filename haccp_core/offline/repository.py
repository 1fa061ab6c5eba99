# =============================================================================
# haccp_core/offline/repository.py
# Synchronizing Repository - single API for remote-first, mirror-backed data
# =============================================================================
"""
SynchronizingRepository - the only data API the pages use.

For every collection:
- list():   remote first; on any failure the local mirror snapshot
- upsert(): merge into the current collection, write the mirror, then try
            the remote; a remote failure is logged and never rolls back
- delete(): drop from the mirror, then best-effort remote delete

Results say where the data came from (LIVE / DEGRADED / FAILED) instead of
raising. One attempt per call, no retry.

Usage:
------
from haccp_core.offline import get_repository

repository = get_repository()
result = repository.list_daily_logs()
if result.is_degraded:
    st.warning("Données locales")
logs = result.data
"""

from __future__ import annotations
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from haccp_core.data.supabase_client import HaccpRemoteStore, to_data_url
from haccp_core.domain import (
    DailyLog,
    InventoryItem,
    StockMovement,
    TraceabilityRecord,
    new_id,
)
from haccp_core.domain.constants import template_items
from haccp_core.errors import (
    ErrorKind,
    HaccpError,
    RemoteSchemaError,
    ValidationError,
    error_kind_of,
)
from haccp_core.logging import get_logger
from haccp_core.utils import CancellationToken

from .connection_manager import ConnectionManager
from .local_mirror import (
    DAILY_LOGS_KEY,
    INVENTORY_KEY,
    MOVEMENTS_KEY,
    TRACEABILITY_KEY,
    LocalMirror,
)

logger = get_logger(__name__)

T = TypeVar("T")

# The mirror keeps a little more history than a remote read returns
MOVEMENTS_MIRROR_LIMIT = 50


class DataSource(Enum):
    """Where the data of a repository result came from."""
    LIVE = "live"           # Remote store answered
    DEGRADED = "degraded"   # Remote failed or unconfigured; local mirror used
    FAILED = "failed"       # Neither tier usable; data is empty


@dataclass
class RepositoryResult(Generic[T]):
    """
    Outcome of a repository call.

    For reads `data` is the collection; for writes it is the collection as
    stored in the mirror after the write.
    """
    source: DataSource
    data: List[T] = field(default_factory=list)
    error_kind: Optional[ErrorKind] = None
    error: Optional[str] = None

    def __bool__(self) -> bool:
        return self.source != DataSource.FAILED

    @property
    def is_live(self) -> bool:
        return self.source == DataSource.LIVE

    @property
    def is_degraded(self) -> bool:
        return self.source == DataSource.DEGRADED

    @property
    def first(self) -> Optional[T]:
        return self.data[0] if self.data else None

    @classmethod
    def live(cls, data: List[T]) -> RepositoryResult[T]:
        return cls(source=DataSource.LIVE, data=data)

    @classmethod
    def degraded(cls, data: List[T], error: Optional[BaseException] = None,
                 kind: Optional[ErrorKind] = None) -> RepositoryResult[T]:
        return cls(
            source=DataSource.DEGRADED,
            data=data,
            error_kind=kind or (error_kind_of(error) if error else None),
            error=str(error) if error else None,
        )

    @classmethod
    def failed(cls, error: BaseException, kind: Optional[ErrorKind] = None) -> RepositoryResult[T]:
        return cls(
            source=DataSource.FAILED,
            data=[],
            error_kind=kind or error_kind_of(error),
            error=str(error),
        )


@dataclass(frozen=True)
class CollectionSpec(Generic[T]):
    """How one collection is keyed, ordered and serialised in the mirror."""
    name: str
    mirror_key: str
    natural_key: Callable[[Any], str]
    to_dict: Callable[[Any], Dict[str, Any]]
    from_dict: Callable[[Dict[str, Any]], Any]
    prepend_new: bool = True
    mirror_limit: Optional[int] = None


class SyncedCollection(Generic[T]):
    """Remote-first reads and mirror-first writes for one collection."""

    def __init__(
        self,
        spec: CollectionSpec,
        mirror: LocalMirror,
        remote_configured: Callable[[], bool],
        fetch_remote: Callable[[Optional[CancellationToken]], List[T]],
        save_remote: Callable[[T, Optional[CancellationToken]], None],
        delete_remote: Optional[Callable[[str, Optional[CancellationToken]], None]] = None,
        connection: Optional[ConnectionManager] = None,
    ):
        self.spec = spec
        self.mirror = mirror
        self._remote_configured = remote_configured
        self._fetch_remote = fetch_remote
        self._save_remote = save_remote
        self._delete_remote = delete_remote
        self._connection = connection

    # --- mirror helpers -------------------------------------------------------

    def snapshot(self) -> List[T]:
        """Current mirror content as records; unreadable rows are skipped."""
        records = []
        for row in self.mirror.get(self.spec.mirror_key):
            try:
                records.append(self.spec.from_dict(row))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable {self.spec.name} row in local mirror: {e}")
        return records

    def _write_mirror(self, records: List[T]) -> None:
        if self.spec.mirror_limit is not None:
            records = records[: self.spec.mirror_limit]
        self.mirror.set(self.spec.mirror_key, [self.spec.to_dict(r) for r in records])

    def _merge(self, records: List[T], record: T) -> List[T]:
        key = self.spec.natural_key(record)
        merged = list(records)
        for index, existing in enumerate(merged):
            if self.spec.natural_key(existing) == key:
                merged[index] = record
                break
        else:
            if self.spec.prepend_new:
                merged.insert(0, record)
            else:
                merged.append(record)

        # Drop any later duplicates of the same key left by an older snapshot
        seen = set()
        unique = []
        for existing in merged:
            existing_key = self.spec.natural_key(existing)
            if existing_key in seen:
                continue
            seen.add(existing_key)
            unique.append(existing)

        if self.spec.mirror_limit is not None:
            unique = unique[: self.spec.mirror_limit]
        return unique

    # --- remote bookkeeping ---------------------------------------------------

    def _remote_failed(self, operation: str, error: BaseException) -> None:
        if isinstance(error, RemoteSchemaError):
            logger.error(
                f"Schema error during {operation} on {self.spec.name}: {error}. "
                "The Supabase tables are not set up."
            )
        else:
            logger.warning(f"Remote {operation} failed for {self.spec.name}: {error}")
        if self._connection is not None and error_kind_of(error) != ErrorKind.CANCELLED:
            self._connection.report_failure(str(error))

    def _remote_succeeded(self) -> None:
        if self._connection is not None:
            self._connection.report_success()

    # --- public API -----------------------------------------------------------

    def list(self, cancel: Optional[CancellationToken] = None) -> RepositoryResult[T]:
        """Remote collection, or the mirror snapshot when the remote fails."""
        if self._remote_configured():
            try:
                records = self._fetch_remote(cancel)
                self._remote_succeeded()
                return RepositoryResult.live(records)
            except Exception as e:
                self._remote_failed("read", e)
                remote_error: Optional[BaseException] = e
        else:
            logger.debug(f"Remote not configured; reading {self.spec.name} from local mirror")
            remote_error = None

        try:
            snapshot = self.snapshot()
        except Exception as e:
            logger.error(f"Local mirror unusable for {self.spec.name}: {e}")
            return RepositoryResult.failed(e)

        if remote_error is None:
            return RepositoryResult.degraded(snapshot, kind=ErrorKind.REMOTE_UNCONFIGURED)
        return RepositoryResult.degraded(snapshot, error=remote_error)

    def upsert(self, record: T, cancel: Optional[CancellationToken] = None) -> RepositoryResult[T]:
        """Insert or replace `record` by natural key in both tiers."""
        current = self.list(cancel).data
        merged = self._merge(current, record)

        try:
            self._write_mirror(merged)
        except Exception as e:
            logger.error(f"Local mirror write failed for {self.spec.name}: {e}")
            return RepositoryResult.failed(e)

        return self._push(merged, lambda: self._save_remote(record, cancel), "write")

    def delete(self, record_id: str, cancel: Optional[CancellationToken] = None) -> RepositoryResult[T]:
        """Remove a record by id from the mirror, then from the remote."""
        if self._delete_remote is None:
            # Stock movements are an append-only ledger
            logger.warning(f"Refused delete of {self.spec.name} record {record_id}")
            return RepositoryResult.failed(
                ValidationError(
                    "Les mouvements de stock ne peuvent pas être supprimés.",
                    details={"collection": self.spec.name, "id": record_id},
                )
            )

        current = self.list(cancel).data
        remaining = [r for r in current if getattr(r, "id", None) != record_id]

        try:
            self._write_mirror(remaining)
        except Exception as e:
            logger.error(f"Local mirror write failed for {self.spec.name}: {e}")
            return RepositoryResult.failed(e)

        return self._push(remaining, lambda: self._delete_remote(record_id, cancel), "delete")

    def _push(self, stored: List[T], remote_call: Callable[[], None], operation: str) -> RepositoryResult[T]:
        if not self._remote_configured():
            return RepositoryResult.degraded(stored, kind=ErrorKind.REMOTE_UNCONFIGURED)
        try:
            remote_call()
        except Exception as e:
            self._remote_failed(operation, e)
            return RepositoryResult.degraded(stored, error=e)
        self._remote_succeeded()
        return RepositoryResult.live(stored)


@dataclass
class PhotoRef:
    """Where an uploaded photo ended up."""
    url: str
    stored_remotely: bool
    error_kind: Optional[ErrorKind] = None


class SynchronizingRepository:
    """
    Facade over the four synchronized collections.

    This is the main entry point for all data operations in the application.
    """

    def __init__(
        self,
        mirror: LocalMirror,
        remote: HaccpRemoteStore,
        connection: Optional[ConnectionManager] = None,
    ):
        self.mirror = mirror
        self.remote = remote
        self.connection = connection
        configured = lambda: self.remote.configured  # noqa: E731

        self.daily_logs: SyncedCollection[DailyLog] = SyncedCollection(
            CollectionSpec(
                name="daily_logs",
                mirror_key=DAILY_LOGS_KEY,
                natural_key=lambda log: log.date,
                to_dict=lambda log: log.to_dict(),
                from_dict=DailyLog.from_dict,
            ),
            mirror,
            configured,
            fetch_remote=remote.fetch_daily_logs,
            save_remote=remote.upsert_daily_log,
            connection=connection,
        )
        self.traceability: SyncedCollection[TraceabilityRecord] = SyncedCollection(
            CollectionSpec(
                name="traceability",
                mirror_key=TRACEABILITY_KEY,
                natural_key=lambda record: record.id,
                to_dict=lambda record: record.to_dict(),
                from_dict=TraceabilityRecord.from_dict,
            ),
            mirror,
            configured,
            fetch_remote=remote.fetch_traceability,
            save_remote=remote.insert_traceability,
            delete_remote=remote.delete_traceability,
            connection=connection,
        )
        self.inventory: SyncedCollection[InventoryItem] = SyncedCollection(
            CollectionSpec(
                name="inventory",
                mirror_key=INVENTORY_KEY,
                natural_key=lambda item: item.id,
                to_dict=lambda item: item.to_dict(),
                from_dict=InventoryItem.from_dict,
                prepend_new=False,
            ),
            mirror,
            configured,
            fetch_remote=remote.fetch_inventory,
            save_remote=remote.upsert_inventory_item,
            delete_remote=remote.delete_inventory_item,
            connection=connection,
        )
        self.movements: SyncedCollection[StockMovement] = SyncedCollection(
            CollectionSpec(
                name="movements",
                mirror_key=MOVEMENTS_KEY,
                natural_key=lambda movement: movement.id,
                to_dict=lambda movement: movement.to_dict(),
                from_dict=StockMovement.from_dict,
                mirror_limit=MOVEMENTS_MIRROR_LIMIT,
            ),
            mirror,
            configured,
            fetch_remote=lambda cancel: remote.fetch_movements(cancel=cancel),
            save_remote=remote.insert_movement,
            connection=connection,
        )

    # =========================================================================
    # STATUS
    # =========================================================================

    def is_available(self) -> bool:
        """Whether the remote store is configured and reachable."""
        if self.connection is not None:
            return self.connection.is_available()
        return self.remote.configured

    # =========================================================================
    # DAILY LOGS
    # =========================================================================

    def list_daily_logs(self, cancel: Optional[CancellationToken] = None) -> RepositoryResult[DailyLog]:
        return self.daily_logs.list(cancel)

    def upsert_daily_log(self, log: DailyLog, cancel: Optional[CancellationToken] = None) -> RepositoryResult[DailyLog]:
        return self.daily_logs.upsert(log, cancel)

    def ensure_daily_log(self, date: str, cancel: Optional[CancellationToken] = None) -> RepositoryResult[DailyLog]:
        """
        Log for `date`, created from the checklist template when missing.

        Returns a result whose `first` is the log.
        """
        listed = self.list_daily_logs(cancel)
        existing = next((log for log in listed.data if log.date == date), None)
        if existing is not None:
            return RepositoryResult(listed.source, [existing], listed.error_kind, listed.error)

        log = DailyLog(id=new_id(), date=date, items=template_items())
        logger.info(f"Creating daily log for {date}")
        saved = self.upsert_daily_log(log, cancel)
        return RepositoryResult(saved.source, [log], saved.error_kind, saved.error)

    def update_check_item(
        self,
        date: str,
        item_id: str,
        cancel: Optional[CancellationToken] = None,
        **changes: Any,
    ) -> RepositoryResult[DailyLog]:
        """
        Apply `changes` to one item of the log for `date` and save the log.

        Returns a result whose `first` is the updated log.
        """
        ensured = self.ensure_daily_log(date, cancel)
        log = ensured.first
        if log is None or log.find_item(item_id) is None:
            return RepositoryResult.failed(
                ValidationError(f"Unknown checklist item {item_id!r} for {date}")
            )

        updated = log.with_item_changes(item_id, **changes)
        saved = self.upsert_daily_log(updated, cancel)
        return RepositoryResult(saved.source, [updated], saved.error_kind, saved.error)

    # =========================================================================
    # TRACEABILITY
    # =========================================================================

    def list_traceability(self, cancel: Optional[CancellationToken] = None) -> RepositoryResult[TraceabilityRecord]:
        return self.traceability.list(cancel)

    def add_traceability_record(
        self,
        record: TraceabilityRecord,
        cancel: Optional[CancellationToken] = None,
    ) -> RepositoryResult[TraceabilityRecord]:
        return self.traceability.upsert(record, cancel)

    def delete_traceability_record(
        self,
        record_id: str,
        cancel: Optional[CancellationToken] = None,
    ) -> RepositoryResult[TraceabilityRecord]:
        return self.traceability.delete(record_id, cancel)

    def upload_photo(
        self,
        content: bytes,
        filename: str,
        content_type: str = "image/jpeg",
        cancel: Optional[CancellationToken] = None,
    ) -> PhotoRef:
        """Public URL of the uploaded photo, or a data URL when storage fails."""
        if self.remote.configured:
            try:
                url = self.remote.upload_photo(content, filename, content_type, cancel=cancel)
                return PhotoRef(url=url, stored_remotely=True)
            except HaccpError as e:
                logger.error(f"Photo storage failed, embedding photo instead: {e}")
                return PhotoRef(url=to_data_url(content, content_type), stored_remotely=False,
                                error_kind=e.kind)
        return PhotoRef(url=to_data_url(content, content_type), stored_remotely=False,
                        error_kind=ErrorKind.REMOTE_UNCONFIGURED)

    # =========================================================================
    # INVENTORY & MOVEMENTS
    # =========================================================================

    def list_inventory(self, cancel: Optional[CancellationToken] = None) -> RepositoryResult[InventoryItem]:
        return self.inventory.list(cancel)

    def upsert_inventory_item(
        self,
        item: InventoryItem,
        cancel: Optional[CancellationToken] = None,
    ) -> RepositoryResult[InventoryItem]:
        return self.inventory.upsert(item, cancel)

    def delete_inventory_item(
        self,
        item_id: str,
        cancel: Optional[CancellationToken] = None,
    ) -> RepositoryResult[InventoryItem]:
        return self.inventory.delete(item_id, cancel)

    def list_movements(self, cancel: Optional[CancellationToken] = None) -> RepositoryResult[StockMovement]:
        return self.movements.list(cancel)

    def add_movement(
        self,
        movement: StockMovement,
        cancel: Optional[CancellationToken] = None,
    ) -> RepositoryResult[StockMovement]:
        return self.movements.upsert(movement, cancel)


# Singleton accessor
_repository: Optional[SynchronizingRepository] = None
_lock = threading.Lock()


def get_repository() -> SynchronizingRepository:
    """
    Get the global SynchronizingRepository.

    Usage:
        from haccp_core.offline import get_repository

        logs = get_repository().list_daily_logs().data
    """
    global _repository
    if _repository is None:
        with _lock:
            if _repository is None:
                from .connection_manager import get_connection_manager
                from .local_mirror import get_local_mirror
                _repository = SynchronizingRepository(
                    mirror=get_local_mirror(),
                    remote=HaccpRemoteStore(),
                    connection=get_connection_manager(),
                )
    return _repository
