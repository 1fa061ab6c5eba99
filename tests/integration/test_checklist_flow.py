# =============================================================================
# tests/integration/test_checklist_flow.py
# A full service day across a connectivity loss and an app restart
# =============================================================================

from haccp_core.domain import HaccpCategory
from haccp_core.offline import LocalMirror, SQLiteSnapshotStore, SynchronizingRepository
from haccp_core.reports import build_daily_log_report, build_history_report, daily_log_layout
from haccp_core.services import ChecklistService, MovementRequest, StockService


def _open(db_path, remote, clock):
    repository = SynchronizingRepository(LocalMirror(SQLiteSnapshotStore(db_path)), remote)
    return repository, ChecklistService(repository, clock), StockService(repository, clock)


class TestServiceDay:

    def test_day_survives_outage_and_restart(self, tmp_path, clock, remote_factory):
        db_path = tmp_path / "haccp.db"
        remote = remote_factory()
        repository, checklist, stock = _open(db_path, remote, clock)

        # Morning: online
        log = checklist.get_log().first
        temperature_ids = [item.id for item in log.items_in(HaccpCategory.TEMPERATURE)]
        for item_id in temperature_ids[:3]:
            checklist.record_temperature(log.date, item_id, "3,2")
        stock.record_movement(MovementRequest("Tomate", "IN", 20, temperature=4.0))

        # Lunch: the connection drops
        remote.failing = True
        for item_id in temperature_ids[3:]:
            result = checklist.record_temperature(log.date, item_id, 3.8)
            assert result.is_degraded
        outcome = stock.record_movement(MovementRequest("Tomate", "OUT", 5))
        assert outcome.item.current_quantity == 15

        # The app restarts with no remote at all
        repository, checklist, stock = _open(db_path, remote_factory(configured=False), clock)
        log = checklist.get_log().first

        assert checklist.temperature_checks_done(log)
        assert [item.value for item in log.items_in(HaccpCategory.TEMPERATURE)] == [3.2] * 3 + [3.8] * 3
        tomato = stock.list_inventory().data[0]
        assert tomato.current_quantity == 15
        assert tomato.last_delivery_temp == 4.0

        # Evening: sign and export
        signed = checklist.sign(log, "Chef de cuisine").first
        sections = daily_log_layout(signed)
        assert len(sections.temperature_rows) == 6
        assert all(row.status == "VALIDE" for row in sections.temperature_rows)
        assert build_daily_log_report(signed, generated_at=clock()).content.startswith(b"%PDF")

        history = checklist.list_logs().data
        assert len(history) == 1
        assert history[0].is_locked
        assert build_history_report(history, generated_at=clock()).content.startswith(b"%PDF")

    def test_remote_recovers_after_outage(self, tmp_path, clock, remote_factory):
        remote = remote_factory()
        remote.failing = True
        repository, checklist, _ = _open(tmp_path / "haccp.db", remote, clock)

        checklist.set_completed("2024-06-01", "g-hygiene", True)
        assert remote.logs == {}

        remote.failing = False
        checklist.set_completed("2024-06-01", "g-knives", True)

        stored = remote.logs["2024-06-01"]
        assert stored.find_item("g-knives").completed
        # The remote copy wins: the tick saved only on the device during the outage is lost
        assert not stored.find_item("g-hygiene").completed
        assert not checklist.get_log("2024-06-01").first.find_item("g-hygiene").completed
