# =============================================================================
# tests/unit/test_repository.py
# Unit Tests for SynchronizingRepository
# =============================================================================

import pytest
from unittest.mock import MagicMock

from haccp_core.domain import (
    DailyLog,
    InventoryItem,
    MovementType,
    StockMovement,
    TraceabilityRecord,
)
from haccp_core.errors import ErrorKind, RemoteSchemaError
from haccp_core.offline import (
    DAILY_LOGS_KEY,
    INVENTORY_KEY,
    MOVEMENTS_KEY,
    MOVEMENTS_MIRROR_LIMIT,
    TRACEABILITY_KEY,
    DataSource,
    LocalMirror,
    SynchronizingRepository,
)
from haccp_core.utils import CancellationToken


def _movement(index: int) -> StockMovement:
    return StockMovement(
        id=f"mv-{index}",
        item_id="inv-tomate",
        item_name="Tomate",
        type=MovementType.IN,
        quantity=1,
        date=f"2024-06-01T10:{index:02d}:00",
        reason="Livraison",
    )


class TestRepositoryReads:
    """Remote first, mirror on failure"""

    def test_live_read(self, repository, fake_remote, template_log, connection):
        fake_remote.logs[template_log.date] = template_log

        result = repository.list_daily_logs()

        assert result.source == DataSource.LIVE
        assert result.is_live
        assert [log.date for log in result.data] == ["2024-06-01"]
        connection.report_success.assert_called()

    def test_failed_remote_returns_mirror_snapshot(self, repository, fake_remote, mirror):
        snapshot = [
            {"id": "t1", "date": "2024-06-01T08:00:00", "item_name": "Saumon",
             "lot_number": "L1", "expiry_date": "2024-06-05", "photo_url": None},
        ]
        mirror.set(TRACEABILITY_KEY, snapshot)
        fake_remote.failing = True

        result = repository.list_traceability()

        assert result.is_degraded
        assert result.error_kind == ErrorKind.REMOTE_UNAVAILABLE
        assert [record.to_dict() for record in result.data] == snapshot
        # The snapshot itself is left untouched
        assert mirror.get(TRACEABILITY_KEY) == snapshot

    def test_failure_is_reported_to_connection(self, repository, fake_remote, connection):
        fake_remote.failing = True
        repository.list_inventory()
        connection.report_failure.assert_called_once()

    def test_unconfigured_remote_reads_mirror(self, offline_repository, mirror):
        mirror.set(INVENTORY_KEY, [{"id": "i1", "name": "Tomate", "current_quantity": 4}])

        result = offline_repository.list_inventory()

        assert result.is_degraded
        assert result.error_kind == ErrorKind.REMOTE_UNCONFIGURED
        assert result.data[0].name == "Tomate"

    def test_schema_error_is_classified(self, repository, fake_remote):
        fake_remote.error = RemoteSchemaError("Table haccp_logs is missing", table="haccp_logs")

        result = repository.list_daily_logs()

        assert result.is_degraded
        assert result.error_kind == ErrorKind.REMOTE_SCHEMA

    def test_cancelled_read_is_degraded_and_not_reported(self, repository, fake_remote, connection):
        token = CancellationToken()
        token.cancel()

        result = repository.list_daily_logs(cancel=token)

        assert result.is_degraded
        assert result.error_kind == ErrorKind.CANCELLED
        assert fake_remote.calls == []
        connection.report_failure.assert_not_called()

    def test_unreadable_mirror_rows_are_skipped(self, offline_repository, mirror):
        mirror.set(INVENTORY_KEY, [{"name": "no id"}, {"id": "i1", "name": "Tomate", "current_quantity": 1}])

        result = offline_repository.list_inventory()

        assert [item.id for item in result.data] == ["i1"]


class TestRepositoryWrites:
    """Mirror first, then remote"""

    def test_write_reaches_both_tiers(self, repository, fake_remote, mirror, template_log):
        result = repository.upsert_daily_log(template_log)

        assert result.is_live
        assert "2024-06-01" in fake_remote.logs
        assert [row["date"] for row in mirror.get(DAILY_LOGS_KEY)] == ["2024-06-01"]

    def test_write_survives_remote_failure(self, repository, fake_remote, template_log):
        fake_remote.failing = True

        result = repository.upsert_daily_log(template_log)

        assert result
        assert result.is_degraded
        listed = repository.list_daily_logs()
        assert [log.id for log in listed.data].count(template_log.id) == 1

    def test_one_log_per_date(self, repository, fake_remote, template_log):
        fake_remote.failing = True
        repository.upsert_daily_log(template_log)

        second = template_log.with_item_changes("t-bar-am", completed=True, value=3.0)
        second.id = "another-id"
        repository.upsert_daily_log(second)
        third = second.with_item_changes("t-bar-pm", completed=True, value=4.0)
        repository.upsert_daily_log(third)

        logs = repository.list_daily_logs().data
        assert len([log for log in logs if log.date == "2024-06-01"]) == 1
        stored = logs[0]
        assert stored.id == "another-id"
        assert stored.find_item("t-bar-am").completed
        assert stored.find_item("t-bar-pm").value == 4.0

    def test_new_records_are_prepended(self, offline_repository):
        for day in ("2024-06-01", "2024-06-02"):
            offline_repository.upsert_daily_log(DailyLog(id=day, date=day))

        assert [log.date for log in offline_repository.list_daily_logs().data] == ["2024-06-02", "2024-06-01"]

    def test_inventory_appends(self, offline_repository):
        offline_repository.upsert_inventory_item(InventoryItem(id="a", name="Tomate", current_quantity=1))
        offline_repository.upsert_inventory_item(InventoryItem(id="b", name="Beurre", current_quantity=1))

        assert [item.id for item in offline_repository.list_inventory().data] == ["a", "b"]

    def test_movements_mirror_is_capped(self, offline_repository, mirror):
        for index in range(MOVEMENTS_MIRROR_LIMIT + 5):
            offline_repository.add_movement(_movement(index))

        stored = mirror.get(MOVEMENTS_KEY)
        assert len(stored) == MOVEMENTS_MIRROR_LIMIT
        assert stored[0]["id"] == f"mv-{MOVEMENTS_MIRROR_LIMIT + 4}"

    def test_mirror_write_failure_fails(self, fake_remote, template_log):
        store = MagicMock()
        store.get.return_value = None
        store.set.side_effect = OSError("disk full")
        repository = SynchronizingRepository(LocalMirror(store), fake_remote)

        result = repository.upsert_daily_log(template_log)

        assert not result
        assert result.source == DataSource.FAILED
        assert "disk full" in result.error
        # Nothing is pushed when the local copy could not be written
        assert "upsert_daily_log" not in fake_remote.calls

    def test_unconfigured_write_is_degraded(self, offline_repository, template_log):
        result = offline_repository.upsert_daily_log(template_log)

        assert result.is_degraded
        assert result.error_kind == ErrorKind.REMOTE_UNCONFIGURED
        assert result.data[0].id == template_log.id


class TestDailyLogHelpers:
    """ensure_daily_log / update_check_item"""

    def test_ensure_creates_from_template(self, repository, fake_remote):
        result = repository.ensure_daily_log("2024-06-03")

        log = result.first
        assert log.date == "2024-06-03"
        assert log.total_count == 22
        assert log.completed_count == 0
        assert "2024-06-03" in fake_remote.logs

    def test_ensure_reuses_existing_log(self, repository):
        first = repository.ensure_daily_log("2024-06-03").first
        again = repository.ensure_daily_log("2024-06-03").first
        assert again.id == first.id

    def test_update_check_item(self, repository, fake_remote):
        result = repository.update_check_item("2024-06-03", "g-hygiene", completed=True)

        assert result.first.find_item("g-hygiene").completed
        assert fake_remote.logs["2024-06-03"].find_item("g-hygiene").completed

    def test_update_unknown_item_fails(self, repository):
        result = repository.update_check_item("2024-06-03", "nope", completed=True)

        assert result.source == DataSource.FAILED
        assert result.error_kind == ErrorKind.INVALID_INPUT


class TestTraceabilityAndPhotos:
    """Deletes and photo uploads"""

    def test_delete_removes_from_both_tiers(self, repository, fake_remote, mirror):
        record = TraceabilityRecord(id="tr-1", date="2024-06-01T08:00:00",
                                    item_name="Saumon", expiry_date="2024-06-05")
        repository.add_traceability_record(record)

        result = repository.delete_traceability_record("tr-1")

        assert result.is_live
        assert result.data == []
        assert fake_remote.traceability == []
        assert mirror.get(TRACEABILITY_KEY) == []

    def test_inventory_delete(self, repository, fake_remote, mirror):
        repository.upsert_inventory_item(InventoryItem(id="inv-1", name="Tomate", current_quantity=3))

        result = repository.delete_inventory_item("inv-1")

        assert result.is_live
        assert fake_remote.inventory == {}
        assert mirror.get(INVENTORY_KEY) == []

    def test_movements_are_append_only(self, repository, fake_remote, mirror):
        repository.add_movement(_movement(1))
        fake_remote.calls.clear()

        result = repository.movements.delete("mv-1")

        assert result.source == DataSource.FAILED
        assert result.error_kind == ErrorKind.INVALID_INPUT
        assert fake_remote.calls == []
        assert [row["id"] for row in mirror.get(MOVEMENTS_KEY)] == ["mv-1"]

    def test_photo_upload_live(self, repository):
        ref = repository.upload_photo(b"jpeg", "etiquette saumon.jpg")

        assert ref.stored_remotely
        assert ref.url.startswith("https://")
        assert ref.error_kind is None

    def test_photo_upload_falls_back_to_data_url(self, repository, fake_remote):
        fake_remote.failing = True

        ref = repository.upload_photo(b"jpeg", "etiquette.jpg")

        assert not ref.stored_remotely
        assert ref.url.startswith("data:image/jpeg;base64,")
        assert ref.error_kind == ErrorKind.REMOTE_UNAVAILABLE

    def test_photo_upload_unconfigured(self, offline_repository):
        ref = offline_repository.upload_photo(b"png", "etiquette.png", "image/png")

        assert ref.url.startswith("data:image/png;base64,")
        assert ref.error_kind == ErrorKind.REMOTE_UNCONFIGURED
