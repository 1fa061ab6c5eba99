# =============================================================================
# tests/unit/test_supabase_client.py
# Unit Tests for the Supabase adapter
# =============================================================================

import base64
from unittest.mock import MagicMock

import httpx
import pytest

from haccp_core.data.supabase_client import (
    HaccpRemoteStore,
    PHOTO_BUCKET,
    SupabaseService,
    classify_remote_error,
    get_supabase_client,
    to_data_url,
)
from haccp_core.domain import DailyLog, InventoryItem
from haccp_core.errors import (
    ErrorKind,
    MalformedResponseError,
    OperationCancelledError,
    RemoteSchemaError,
    RemoteUnavailableError,
    RemoteUnconfiguredError,
)
from haccp_core.offline import DataSource, LocalMirror, MemorySnapshotStore, SynchronizingRepository
from haccp_core.services import PhotoUpload, TraceabilityService
from haccp_core.utils import CancellationToken


class PostgresError(Exception):
    """Shaped like postgrest's APIError"""

    def __init__(self, code, message):
        super().__init__(message)
        self.code = code
        self.message = message


class TestClassifyRemoteError:

    def test_missing_table(self):
        error = classify_remote_error(
            PostgresError("42P01", 'relation "public.haccp_logs" does not exist'), "haccp_logs", "fetching"
        )

        assert isinstance(error, RemoteSchemaError)
        assert error.details["table"] == "haccp_logs"
        assert error.details["postgres_code"] == "42P01"

    def test_other_postgres_error(self):
        error = classify_remote_error(PostgresError("23505", "duplicate key"), "haccp_logs", "inserting")
        assert isinstance(error, RemoteUnavailableError)

    def test_network_error(self):
        error = classify_remote_error(ConnectionError("timed out"), "haccp_inventory", "fetching")

    def test_connect_error_keeps_table_details(self):
        error = classify_remote_error(httpx.ConnectError("[Errno 101] Network is unreachable"), "haccp_logs", "fetching")

        assert isinstance(error, RemoteUnavailableError)
        assert error.kind == ErrorKind.REMOTE_UNAVAILABLE
        assert error.details == {"table": "haccp_logs", "operation": "fetching"}

        assert isinstance(error, RemoteUnavailableError)
        assert "timed out" in error.message

    def test_shape_errors(self):
        assert isinstance(classify_remote_error(KeyError("id"), "t", "parsing"), MalformedResponseError)

    def test_remote_errors_pass_through(self):
        original = RemoteUnconfiguredError("not configured")
        assert classify_remote_error(original, "t", "x") is original


class TestSupabaseService:

    def test_fetch_all_orders_and_limits(self, mock_supabase):
        query = mock_supabase.table.return_value.select.return_value
        query.order.return_value.limit.return_value.execute.return_value.data = [{"id": "1"}]

        rows = SupabaseService("haccp_movements", mock_supabase).fetch_all(
            order_by="date", ascending=False, limit=30
        )

        assert rows == [{"id": "1"}]
        mock_supabase.table.assert_called_with("haccp_movements")
        query.order.assert_called_once_with("date", desc=True)
        query.order.return_value.limit.assert_called_once_with(30)

    def test_fetch_all_rejects_non_list(self, mock_supabase):
        mock_supabase.table.return_value.select.return_value.execute.return_value.data = None

        with pytest.raises(MalformedResponseError):
            SupabaseService("haccp_logs", mock_supabase).fetch_all()

    def test_request_errors_are_classified(self, mock_supabase):
        mock_supabase.table.return_value.insert.return_value.execute.side_effect = PostgresError("42P01", "missing")

        with pytest.raises(RemoteSchemaError):
            SupabaseService("haccp_movements", mock_supabase).insert({"id": "1"})

    def test_delete_filters(self, mock_supabase):
        SupabaseService("haccp_traceability", mock_supabase).delete({"id": "tr-1"})
        mock_supabase.table.return_value.delete.return_value.eq.assert_called_once_with("id", "tr-1")

    def test_without_client(self):
        service = SupabaseService("haccp_logs", None, use_cached_client=False)

        assert not service.is_connected()
        with pytest.raises(RemoteUnconfiguredError):
            service.fetch_all()


class TestHaccpRemoteStore:

    def test_daily_logs_from_jsonb_rows(self, mock_supabase, settings):
        query = mock_supabase.table.return_value.select.return_value.order.return_value
        query.execute.return_value.data = [{
            "id": "row-id",
            "date": "2024-06-01",
            "data": {"items": [{"id": "g-hygiene", "label": "Mains", "category": "general", "completed": True}],
                     "isLocked": True},
        }]

        logs = HaccpRemoteStore(mock_supabase, settings).fetch_daily_logs()

        assert logs[0].id == "row-id"
        assert logs[0].is_locked
        assert logs[0].find_item("g-hygiene").completed

    def test_unreadable_row_is_malformed(self, mock_supabase, settings):
        query = mock_supabase.table.return_value.select.return_value.order.return_value
        query.execute.return_value.data = [{"name": "no id"}]

        with pytest.raises(MalformedResponseError):
            HaccpRemoteStore(mock_supabase, settings).fetch_inventory()

    def test_daily_log_upsert_conflicts_on_date(self, mock_supabase, settings, template_log):
        HaccpRemoteStore(mock_supabase, settings).upsert_daily_log(template_log)

        args, kwargs = mock_supabase.table.return_value.upsert.call_args
        assert args[0]["date"] == "2024-06-01"
        assert args[0]["data"]["items"][0]["id"] == "op-tables"
        assert kwargs == {"on_conflict": "date"}

    def test_inventory_upsert_is_snake_case(self, mock_supabase, settings):
        item = InventoryItem(id="i1", name="Tomate", current_quantity=25, last_delivery_temp=3.5)
        HaccpRemoteStore(mock_supabase, settings).upsert_inventory_item(item)

        payload = mock_supabase.table.return_value.upsert.call_args.args[0]
        assert payload["current_quantity"] == 25
        assert payload["last_delivery_temp"] == 3.5

    def test_cancelled_call_never_reaches_client(self, mock_supabase, settings):
        token = CancellationToken()
        token.cancel()

        with pytest.raises(OperationCancelledError):
            HaccpRemoteStore(mock_supabase, settings).fetch_traceability(cancel=token)
        mock_supabase.table.assert_not_called()

    def test_unconfigured_store(self, settings):
        store = HaccpRemoteStore(settings=settings)

        assert not store.configured
        with pytest.raises(RemoteUnconfiguredError):
            store.fetch_inventory()
        with pytest.raises(RemoteUnconfiguredError):
            store.upload_photo(b"x", "a.jpg")

    def test_photo_upload(self, mock_supabase, settings):
        bucket = mock_supabase.storage.from_.return_value
        bucket.get_public_url.return_value = "https://demo.supabase.co/storage/v1/object/public/x.jpg"

        url = HaccpRemoteStore(mock_supabase, settings).upload_photo(b"jpeg", "etiquette du saumon.jpg")

        assert url.endswith("x.jpg")
        mock_supabase.storage.from_.assert_called_with(PHOTO_BUCKET)
        path = bucket.upload.call_args.kwargs["path"]
        assert path.startswith("trace-")
        assert path.endswith("-etiquette_du_saumon.jpg")

    def test_inventory_delete_by_id(self, mock_supabase, settings):
        HaccpRemoteStore(mock_supabase, settings).delete_inventory_item("inv-1")

        mock_supabase.table.assert_called_with("haccp_inventory")
        mock_supabase.table.return_value.delete.return_value.eq.assert_called_once_with("id", "inv-1")

    def test_photo_upload_without_url(self, mock_supabase, settings):
        mock_supabase.storage.from_.return_value.get_public_url.return_value = None

        with pytest.raises(MalformedResponseError):
            HaccpRemoteStore(mock_supabase, settings).upload_photo(b"jpeg", "a.jpg")


class TestHelpers:

    def test_to_data_url(self):
        url = to_data_url(b"abc", "image/png")
        assert url == "data:image/png;base64," + base64.b64encode(b"abc").decode("ascii")

    def test_no_client_without_credentials(self, settings):
        assert get_supabase_client(settings) is None


class TestNetworkDown:
    """httpx connection errors through the store, repository and service"""

    @pytest.fixture
    def unreachable(self, mock_supabase):
        down = httpx.ConnectError("[Errno 101] Network is unreachable")
        mock_supabase.table.return_value.select.return_value.order.return_value.execute.side_effect = down
        mock_supabase.table.return_value.insert.return_value.execute.side_effect = down
        mock_supabase.storage.from_.return_value.upload.side_effect = down
        return mock_supabase

    @pytest.fixture
    def repository(self, unreachable, settings):
        return SynchronizingRepository(LocalMirror(MemorySnapshotStore()), HaccpRemoteStore(unreachable, settings))

    def test_read_reports_remote_unavailable(self, repository):
        result = repository.list_traceability()

        assert result.source == DataSource.DEGRADED
        assert result.error_kind == ErrorKind.REMOTE_UNAVAILABLE

    def test_photo_falls_back_to_data_url(self, repository):
        ref = repository.upload_photo(b"jpeg", "a.jpg")

        assert not ref.stored_remotely
        assert ref.url.startswith("data:image/jpeg;base64,")
        assert ref.error_kind == ErrorKind.REMOTE_UNAVAILABLE

    def test_receipt_is_still_recorded(self, repository, clock):
        service = TraceabilityService(repository=repository, clock=clock)

        outcome = service.record_receipt("Saumon", "2024-06-05", photo=PhotoUpload(b"jpeg", "a.jpg"))

        assert outcome.record.photo_url.startswith("data:image/jpeg;base64,")
        assert outcome.result.is_degraded
        assert [r.item_name for r in repository.list_traceability().data] == ["Saumon"]
