# =============================================================================
# tests/unit/test_models.py
# Unit Tests for domain records
# =============================================================================

import pytest

from haccp_core.domain import (
    CheckItem,
    DailyLog,
    HaccpCategory,
    InventoryItem,
    LOT_UNSPECIFIED,
    MovementType,
    StockMovement,
    TraceabilityRecord,
)
from haccp_core.domain.constants import CATEGORY_LABELS, find_recipes, template_items


class TestDailyLog:

    def test_progress(self, scenario_log):
        assert scenario_log.completed_count == 10
        assert scenario_log.total_count == 18
        assert scenario_log.progress == 56
        assert not scenario_log.is_conforming

    def test_empty_log(self):
        log = DailyLog("l", "2024-06-01")
        assert log.progress == 0
        assert log.is_conforming

    def test_item_changes_leave_original_untouched(self, template_log):
        updated = template_log.with_item_changes("g-hygiene", completed=True)

        assert updated.find_item("g-hygiene").completed
        assert not template_log.find_item("g-hygiene").completed

    def test_camel_case_rows_are_accepted(self):
        log = DailyLog.from_dict({
            "id": "x",
            "date": "2024-06-01T00:00:00.000Z",
            "isLocked": True,
            "items": [{"id": "t1", "label": "Frigo", "category": "temperature", "completed": True, "value": 3}],
        })

        assert log.date == "2024-06-01"
        assert log.is_locked
        assert log.items[0].category == HaccpCategory.TEMPERATURE

    def test_to_dict_is_snake_case(self, template_log):
        template_log.signature = "Chef"
        data = template_log.to_dict()

        assert data["is_locked"] is False
        assert data["signature"] == "Chef"
        assert "value" not in data["items"][0]
        assert DailyLog.from_dict(data) == template_log


class TestOtherRecords:

    def test_traceability_from_camel_case(self):
        record = TraceabilityRecord.from_dict({
            "id": "t", "date": "2024-06-01T08:00:00", "itemName": "Saumon",
            "expiryDate": "2024-06-05", "photoUrl": "https://x/y.jpg",
        })

        assert record.item_name == "Saumon"
        assert record.lot_number == LOT_UNSPECIFIED
        assert record.has_photo
        assert record.day == "2024-06-01"

    @pytest.mark.parametrize("today,expired", [
        ("2024-06-04", False),
        ("2024-06-05", False),
        ("2024-06-06", True),
    ])
    def test_expiry(self, today, expired):
        record = TraceabilityRecord("t", "2024-06-01", "Saumon", "2024-06-05")
        assert record.is_expired(today) is expired

    def test_inventory_from_camel_case(self):
        item = InventoryItem.from_dict({
            "id": "i", "name": "Tomate", "currentQuantity": "20", "minThreshold": 5,
            "lastDeliveryTemp": "",
        })

        assert item.current_quantity == 20.0
        assert item.min_threshold == 5
        assert item.last_delivery_temp is None
        assert item.matches("  TOMATE ")

    def test_movement_signed_quantity(self):
        out = StockMovement("m", "i", "Tomate", MovementType.OUT, 3, "2024-06-01", "Sortie")
        assert out.signed_quantity == -3
        assert StockMovement.from_dict(out.to_dict()) == out

    def test_unknown_movement_type(self):
        with pytest.raises(ValueError):
            StockMovement.from_dict({"id": "m", "type": "LOST", "quantity": 1, "date": "2024-06-01"})


class TestReferenceData:

    def test_template_ids_are_unique(self):
        ids = [item.id for item in template_items()]
        assert len(ids) == len(set(ids))

    def test_template_is_fresh_each_time(self):
        first = template_items()
        first[0].completed = True
        assert not template_items()[0].completed

    def test_every_template_category_is_displayed(self):
        assert {item.category for item in template_items()} <= set(CATEGORY_LABELS)

    def test_find_recipes(self):
        assert [recipe.name for recipe in find_recipes("burger")] == ["Burger Signature"]
        assert len(find_recipes("")) == 2
        assert find_recipes("pizza") == []

    def test_check_item_roundtrip_keeps_value(self):
        item = CheckItem("t", "Frigo", HaccpCategory.TEMPERATURE, True, 3.5, "2024-06-01T08:00:00")
        assert CheckItem.from_dict(item.to_dict()) == item
