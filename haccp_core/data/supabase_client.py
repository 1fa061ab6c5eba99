# =============================================================================
# haccp_core/data/supabase_client.py
# Supabase Client Configuration for the HACCP register
# Handles database connections and per-table CRUD operations
# =============================================================================

from __future__ import annotations
import base64
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import streamlit as st
from supabase import Client, ClientOptions, create_client

from haccp_core.config import Settings, get_settings
from haccp_core.domain import DailyLog, InventoryItem, StockMovement, TraceabilityRecord
from haccp_core.errors import (
    MalformedResponseError,
    RemoteError,
    RemoteSchemaError,
    RemoteUnavailableError,
    RemoteUnconfiguredError,
)
from haccp_core.logging import get_logger
from haccp_core.utils import CancellationToken, check_cancelled

logger = get_logger(__name__)

# Supabase table names
DAILY_LOGS_TABLE = "haccp_logs"
TRACEABILITY_TABLE = "haccp_traceability"
INVENTORY_TABLE = "haccp_inventory"
MOVEMENTS_TABLE = "haccp_movements"
PHOTO_BUCKET = "traceability-photos"

# Postgres "relation does not exist"
UNDEFINED_TABLE_CODE = "42P01"

# Remote movement reads return only the most recent ones
MOVEMENTS_REMOTE_LIMIT = 30


def get_supabase_client(settings: Optional[Settings] = None) -> Optional[Client]:
    """
    Initialize and return a Supabase client.

    Returns:
        Supabase client instance or None if not configured
    """
    settings = settings or get_settings()
    if not settings.remote_configured:
        return None

    try:
        options = ClientOptions(
            postgrest_client_timeout=settings.request_timeout,
            storage_client_timeout=int(settings.request_timeout),
        )
        return create_client(settings.supabase_url, settings.supabase_key, options=options)
    except Exception as e:
        logger.error(f"Failed to initialize Supabase client: {e}")
        return None


@st.cache_resource(ttl=3600)  # Cache for 1 hour, then refresh
def get_cached_supabase_client() -> Optional[Client]:
    """Get cached Supabase client (reused across sessions)."""
    return get_supabase_client()


def classify_remote_error(error: Exception, table: str, operation: str) -> RemoteError:
    """Map a Supabase/postgrest/httpx exception onto the remote error family."""
    if isinstance(error, RemoteError):
        return error

    code = str(getattr(error, "code", "") or "")
    message = str(getattr(error, "message", "") or error)

    if code == UNDEFINED_TABLE_CODE:
        logger.error(f"Table {table} does not exist in Supabase. Run scripts/check_supabase_schema.py")
        return RemoteSchemaError(
            f"Table {table} is missing",
            table=table,
            operation=operation,
            details={"postgres_code": code},
        )

    if isinstance(error, (KeyError, TypeError, ValueError)):
        return MalformedResponseError(
            f"Unexpected response while {operation} {table}: {message}",
            table=table,
            operation=operation,
        )

    return RemoteUnavailableError(
        f"{operation} on {table} failed: {message}",
        table=table,
        operation=operation,
        details={"postgres_code": code} if code else None,
    )


class SupabaseService:
    """
    Generic Supabase service for one table.

    Every method performs exactly one request and raises a RemoteError
    subclass on failure; callers decide how to degrade.
    """

    def __init__(self, table_name: str, client: Optional[Client] = None, use_cached_client: bool = True):
        """
        Initialize service for a specific table.

        Args:
            table_name: Name of the Supabase table
            client: Explicit client
            use_cached_client: Fall back to the process-wide client when `client` is None
        """
        self.table_name = table_name
        self.client = client
        if client is None and use_cached_client:
            self.client = get_cached_supabase_client()

    def is_connected(self) -> bool:
        """Check if Supabase client is available."""
        return self.client is not None

    def _require_client(self, operation: str) -> Client:
        if self.client is None:
            raise RemoteUnconfiguredError(
                "Supabase is not configured",
                table=self.table_name,
                operation=operation,
            )
        return self.client

    def _run(self, operation: str, request: Callable[[Client], Any]) -> Any:
        client = self._require_client(operation)
        try:
            response = request(client)
        except Exception as e:
            raise classify_remote_error(e, self.table_name, operation) from e
        return response

    def fetch_all(
        self,
        order_by: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch records from the table.

        Args:
            order_by: Column to order by (optional)
            ascending: Sort order (default: ascending)
            limit: Maximum number of rows (optional)

        Returns:
            List of row dictionaries
        """
        def _request(client: Client):
            query = client.table(self.table_name).select("*")
            if order_by:
                query = query.order(order_by, desc=not ascending)
            if limit:
                query = query.limit(limit)
            return query.execute()

        response = self._run("fetching", _request)
        data = getattr(response, "data", None)
        if not isinstance(data, list):
            raise MalformedResponseError(
                f"Expected a list of rows from {self.table_name}, got {type(data).__name__}",
                table=self.table_name,
                operation="fetching",
            )
        return data

    def insert(self, data: Dict[str, Any]) -> None:
        """Insert a single record."""
        self._run("inserting", lambda client: client.table(self.table_name).insert(data).execute())

    def upsert(self, data: Dict[str, Any], on_conflict: Optional[str] = None) -> None:
        """
        Insert or update a record.

        Args:
            data: Dictionary with column:value pairs (must include the conflict key)
            on_conflict: Unique column to resolve conflicts on (default: primary key)
        """
        def _request(client: Client):
            table = client.table(self.table_name)
            if on_conflict:
                return table.upsert(data, on_conflict=on_conflict).execute()
            return table.upsert(data).execute()

        self._run("upserting", _request)

    def delete(self, filters: Dict[str, Any]) -> None:
        """Delete records matching filters."""
        def _request(client: Client):
            query = client.table(self.table_name).delete()
            for col, val in filters.items():
                query = query.eq(col, val)
            return query.execute()

        self._run("deleting", _request)


class HaccpRemoteStore:
    """
    Remote store adapter: one method per collection operation.

    Records go in and out as domain objects. Every method checks the
    cancellation token before its single request.
    """

    def __init__(self, client: Optional[Client] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        if client is None:
            client = get_cached_supabase_client() if self.settings.remote_configured else None
        self.client = client
        self.logs = SupabaseService(DAILY_LOGS_TABLE, client, use_cached_client=False)
        self.traceability = SupabaseService(TRACEABILITY_TABLE, client, use_cached_client=False)
        self.inventory = SupabaseService(INVENTORY_TABLE, client, use_cached_client=False)
        self.movements = SupabaseService(MOVEMENTS_TABLE, client, use_cached_client=False)

    @property
    def configured(self) -> bool:
        return self.client is not None

    def _parse(self, table: str, rows: List[Dict[str, Any]], parse: Callable[[Dict[str, Any]], Any]) -> List[Any]:
        try:
            return [parse(row) for row in rows]
        except (KeyError, TypeError, ValueError) as e:
            raise MalformedResponseError(
                f"Unreadable row in {table}: {e}",
                table=table,
                operation="parsing",
            ) from e

    # --- DAILY LOGS ---------------------------------------------------------

    def fetch_daily_logs(self, cancel: Optional[CancellationToken] = None) -> List[DailyLog]:
        check_cancelled(cancel, "fetch daily logs")
        rows = self.logs.fetch_all(order_by="date", ascending=False)

        def _row_to_log(row: Dict[str, Any]) -> DailyLog:
            payload = dict(row.get("data") or {})
            payload["id"] = row["id"]
            payload["date"] = row["date"]
            return DailyLog.from_dict(payload)

        return self._parse(DAILY_LOGS_TABLE, rows, _row_to_log)

    def upsert_daily_log(self, log: DailyLog, cancel: Optional[CancellationToken] = None) -> None:
        check_cancelled(cancel, "save daily log")
        # One row per date: the date is the conflict key, the id is kept stable
        self.logs.upsert(
            {"id": log.id, "date": log.date, "data": log.to_dict()},
            on_conflict="date",
        )

    # --- TRACEABILITY ---------------------------------------------------------

    def fetch_traceability(self, cancel: Optional[CancellationToken] = None) -> List[TraceabilityRecord]:
        check_cancelled(cancel, "fetch traceability")
        rows = self.traceability.fetch_all(order_by="date", ascending=False)
        return self._parse(TRACEABILITY_TABLE, rows, TraceabilityRecord.from_dict)

    def insert_traceability(self, record: TraceabilityRecord, cancel: Optional[CancellationToken] = None) -> None:
        check_cancelled(cancel, "save traceability record")
        self.traceability.insert(record.to_dict())

    def delete_traceability(self, record_id: str, cancel: Optional[CancellationToken] = None) -> None:
        check_cancelled(cancel, "delete traceability record")
        self.traceability.delete({"id": record_id})

    # --- INVENTORY ----------------------------------------------------------

    def fetch_inventory(self, cancel: Optional[CancellationToken] = None) -> List[InventoryItem]:
        check_cancelled(cancel, "fetch inventory")
        rows = self.inventory.fetch_all(order_by="name", ascending=True)
        return self._parse(INVENTORY_TABLE, rows, InventoryItem.from_dict)

    def upsert_inventory_item(self, item: InventoryItem, cancel: Optional[CancellationToken] = None) -> None:
        check_cancelled(cancel, "save inventory item")
        self.inventory.upsert(item.to_dict())

    def delete_inventory_item(self, item_id: str, cancel: Optional[CancellationToken] = None) -> None:
        check_cancelled(cancel, "delete inventory item")
        self.inventory.delete({"id": item_id})

    # --- MOVEMENTS ----------------------------------------------------------

    def fetch_movements(
        self,
        limit: int = MOVEMENTS_REMOTE_LIMIT,
        cancel: Optional[CancellationToken] = None,
    ) -> List[StockMovement]:
        check_cancelled(cancel, "fetch movements")
        rows = self.movements.fetch_all(order_by="date", ascending=False, limit=limit)
        return self._parse(MOVEMENTS_TABLE, rows, StockMovement.from_dict)

    def insert_movement(self, movement: StockMovement, cancel: Optional[CancellationToken] = None) -> None:
        check_cancelled(cancel, "save movement")
        self.movements.insert(movement.to_dict())

    # --- PHOTOS -------------------------------------------------------------

    def upload_photo(
        self,
        content: bytes,
        filename: str,
        content_type: str = "image/jpeg",
        cancel: Optional[CancellationToken] = None,
    ) -> str:
        """
        Upload a traceability photo and return its public URL.

        Object names are `trace-<epoch ms>-<filename with spaces replaced>`.
        """
        check_cancelled(cancel, "upload photo")
        if self.client is None:
            raise RemoteUnconfiguredError("Supabase is not configured", table=PHOTO_BUCKET, operation="uploading")

        object_name = f"trace-{int(datetime.now().timestamp() * 1000)}-{'_'.join(filename.split())}"
        try:
            bucket = self.client.storage.from_(PHOTO_BUCKET)
            bucket.upload(
                path=object_name,
                file=content,
                file_options={"content-type": content_type},
            )
            url = bucket.get_public_url(object_name)
        except Exception as e:
            raise classify_remote_error(e, PHOTO_BUCKET, "uploading") from e

        if not isinstance(url, str) or not url:
            raise MalformedResponseError("Storage returned no public URL", table=PHOTO_BUCKET, operation="uploading")
        return url


def to_data_url(content: bytes, content_type: str = "image/jpeg") -> str:
    """Embed raw image bytes as a base64 data URL."""
    return f"data:{content_type};base64,{base64.b64encode(content).decode('ascii')}"
