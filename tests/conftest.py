# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import io
from datetime import datetime
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import pytest
from PIL import Image

from haccp_core.config import Settings
from haccp_core.domain import (
    CheckItem,
    DailyLog,
    HaccpCategory,
    InventoryItem,
    StockMovement,
    TraceabilityRecord,
)
from haccp_core.domain.constants import template_items
from haccp_core.errors import RemoteUnavailableError
from haccp_core.offline import LocalMirror, MemorySnapshotStore, SynchronizingRepository
from haccp_core.utils import check_cancelled

FIXED_NOW = datetime(2024, 6, 1, 8, 30, 0)


# =============================================================================
# FAKE REMOTE STORE
# =============================================================================

class FakeRemoteStore:
    """
    In-memory stand-in for HaccpRemoteStore.

    Set `failing` to make every call raise RemoteUnavailableError, or
    `error` to raise a specific exception.
    """

    def __init__(self, configured: bool = True):
        self.configured = configured
        self.failing = False
        self.error: Optional[Exception] = None
        self.logs: Dict[str, DailyLog] = {}
        self.traceability: List[TraceabilityRecord] = []
        self.inventory: Dict[str, InventoryItem] = {}
        self.movements: List[StockMovement] = []
        self.photos: Dict[str, bytes] = {}
        self.calls: List[str] = []

    def _call(self, operation: str, cancel=None) -> None:
        check_cancelled(cancel, operation)
        self.calls.append(operation)
        if self.error is not None:
            raise self.error
        if self.failing:
            raise RemoteUnavailableError("network down", operation=operation)

    def fetch_daily_logs(self, cancel=None):
        self._call("fetch_daily_logs", cancel)
        return [self.logs[day].copy() for day in sorted(self.logs, reverse=True)]

    def upsert_daily_log(self, log, cancel=None):
        self._call("upsert_daily_log", cancel)
        self.logs[log.date] = log.copy()

    def fetch_traceability(self, cancel=None):
        self._call("fetch_traceability", cancel)
        return list(self.traceability)

    def insert_traceability(self, record, cancel=None):
        self._call("insert_traceability", cancel)
        self.traceability.insert(0, record)

    def delete_traceability(self, record_id, cancel=None):
        self._call("delete_traceability", cancel)
        self.traceability = [r for r in self.traceability if r.id != record_id]

    def fetch_inventory(self, cancel=None):
        self._call("fetch_inventory", cancel)
        return list(self.inventory.values())

    def upsert_inventory_item(self, item, cancel=None):
        self._call("upsert_inventory_item", cancel)
        self.inventory[item.id] = item

    def delete_inventory_item(self, item_id, cancel=None):
        self._call("delete_inventory_item", cancel)
        self.inventory.pop(item_id, None)

    def fetch_movements(self, limit=30, cancel=None):
        self._call("fetch_movements", cancel)
        return self.movements[:limit]

    def insert_movement(self, movement, cancel=None):
        self._call("insert_movement", cancel)
        self.movements.insert(0, movement)

    def upload_photo(self, content, filename, content_type="image/jpeg", cancel=None):
        self._call("upload_photo", cancel)
        self.photos[filename] = content
        return f"https://storage.example.com/traceability-photos/{filename}"


# =============================================================================
# CONFIGURATION FIXTURES
# =============================================================================

@pytest.fixture
def settings(tmp_path):
    """Settings with no remote store configured"""
    return Settings(restaurant_name="La Oncé", local_db_path=tmp_path / "haccp.db")


@pytest.fixture
def remote_settings(tmp_path):
    """Settings with Supabase credentials"""
    return Settings(
        supabase_url="https://demo.supabase.co",
        supabase_key="anon-key",
        local_db_path=tmp_path / "haccp.db",
        request_timeout=2.0,
    )


@pytest.fixture
def clock():
    """Fixed clock for services"""
    return lambda: FIXED_NOW


# =============================================================================
# REPOSITORY FIXTURES
# =============================================================================

@pytest.fixture
def mirror():
    """Local mirror kept in memory"""
    return LocalMirror(MemorySnapshotStore())


@pytest.fixture
def fake_remote():
    return FakeRemoteStore()


@pytest.fixture
def connection():
    """Mock ConnectionManager recording success/failure reports"""
    return MagicMock()


@pytest.fixture
def repository(mirror, fake_remote, connection):
    return SynchronizingRepository(mirror, fake_remote, connection)


@pytest.fixture
def offline_repository(mirror):
    """Repository with no remote store at all"""
    return SynchronizingRepository(mirror, FakeRemoteStore(configured=False))


@pytest.fixture
def mock_supabase():
    """Mock Supabase client"""
    mock_client = MagicMock()
    mock_client.table.return_value.select.return_value.execute.return_value.data = []
    mock_client.table.return_value.insert.return_value.execute.return_value = MagicMock()
    return mock_client


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================

@pytest.fixture
def template_log():
    """Untouched daily log built from the checklist template"""
    return DailyLog(id="log-2024-06-01", date="2024-06-01", items=template_items())


@pytest.fixture
def scenario_log():
    """
    6 temperature items and 12 other items; all temperatures plus the first
    4 other items are completed (10 in total).
    """
    items = template_items()
    temperatures = [item for item in items if item.category == HaccpCategory.TEMPERATURE]
    others = [item for item in items if item.category != HaccpCategory.TEMPERATURE][:12]

    for index, item in enumerate(temperatures):
        item.completed = True
        item.value = 3.0 + index * 0.5
        item.timestamp = f"2024-06-01T0{8 + index % 2}:15:00"
    for item in others[:4]:
        item.completed = True
        item.timestamp = "2024-06-01T10:00:00"

    return DailyLog(id="log-scenario", date="2024-06-01", items=temperatures + others)


@pytest.fixture
def sample_inventory():
    return [
        InventoryItem(id="inv-tomate", name="Tomate", current_quantity=20, unit="kg",
                      min_threshold=5, category="Légumes"),
        InventoryItem(id="inv-os", name="Os de veau", current_quantity=10, unit="kg",
                      min_threshold=2, category="Boucherie"),
        InventoryItem(id="inv-beurre", name="Beurre", current_quantity=1, unit="kg",
                      min_threshold=2, category="Crèmerie"),
    ]


@pytest.fixture
def sample_records():
    return [
        TraceabilityRecord(id="tr-3", date="2024-06-15T09:00:00", item_name="Saumon",
                           expiry_date="2024-06-20", lot_number="L-778"),
        TraceabilityRecord(id="tr-2", date="2024-06-02T07:45:00", item_name="Farine",
                           expiry_date="2025-01-31"),
        TraceabilityRecord(id="tr-1", date="2024-05-30T11:10:00", item_name="Beurre",
                           expiry_date="2024-06-10", lot_number="B-12"),
    ]


def completed_item(item_id: str, label: str, category: HaccpCategory, value=None) -> CheckItem:
    return CheckItem(id=item_id, label=label, category=category, completed=True,
                     value=value, timestamp="2024-06-01T09:00:00")


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def make_image_bytes(size=(40, 30), mode="RGB", fmt="PNG") -> bytes:
    """Small generated image encoded with Pillow"""
    buffer = io.BytesIO()
    color = (200, 40, 40, 255) if mode == "RGBA" else (200, 40, 40)
    Image.new(mode, size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    return make_image_bytes()


@pytest.fixture
def image_factory():
    """make_image_bytes as a fixture"""
    return make_image_bytes


@pytest.fixture
def remote_factory():
    """FakeRemoteStore class, for tests that need several remotes"""
    return FakeRemoteStore
