# =============================================================================
# haccp_core/domain/models.py
# Records kept in the HACCP register
# =============================================================================
"""
Plain dataclasses for every collection the register stores.

Records serialise to snake_case dicts. `from_dict` also accepts the camelCase
keys written by the first web client, so old Supabase rows and local
snapshots keep loading.
"""

from __future__ import annotations
import copy
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union


class HaccpCategory(Enum):
    """Control point families of the daily checklist."""
    TEMPERATURE = "temperature"
    CLEANING = "cleaning"
    DELIVERY = "delivery"
    OIL = "oil"
    GENERAL = "general"
    OPS_OPENING = "ops_opening"
    OPS_CLOSING = "ops_closing"
    OPS_SERVICE = "ops_service"
    TRACEABILITY = "traceability"


class MovementType(Enum):
    """Direction of a stock movement."""
    IN = "IN"
    OUT = "OUT"


def new_id() -> str:
    """Random identifier for new records."""
    return str(uuid.uuid4())


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """First present key among snake_case / camelCase spellings."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _optional_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    return float(value)


# =============================================================================
# DAILY CHECKLIST
# =============================================================================

@dataclass
class CheckItem:
    """One control point within a daily log."""
    id: str
    label: str
    category: HaccpCategory
    completed: bool = False
    value: Optional[Union[str, float]] = None
    timestamp: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "label": self.label,
            "category": self.category.value,
            "completed": self.completed,
        }
        if self.value not in (None, ""):
            data["value"] = self.value
        if self.timestamp:
            data["timestamp"] = self.timestamp
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> CheckItem:
        return cls(
            id=str(data["id"]),
            label=str(data.get("label", "")),
            category=HaccpCategory(data.get("category", HaccpCategory.GENERAL.value)),
            completed=bool(data.get("completed", False)),
            value=data.get("value"),
            timestamp=data.get("timestamp"),
        )


@dataclass
class DailyLog:
    """A full checklist instance for one calendar date."""
    id: str
    date: str
    items: List[CheckItem] = field(default_factory=list)
    is_locked: bool = False
    signature: Optional[str] = None

    @property
    def completed_count(self) -> int:
        return sum(1 for item in self.items if item.completed)

    @property
    def total_count(self) -> int:
        return len(self.items)

    @property
    def progress(self) -> int:
        """Completion percentage, rounded."""
        if not self.items:
            return 0
        return round(self.completed_count * 100 / self.total_count)

    @property
    def is_conforming(self) -> bool:
        return all(item.completed for item in self.items)

    def items_in(self, category: HaccpCategory) -> List[CheckItem]:
        return [item for item in self.items if item.category == category]

    def find_item(self, item_id: str) -> Optional[CheckItem]:
        return next((item for item in self.items if item.id == item_id), None)

    def with_item_changes(self, item_id: str, **changes: Any) -> DailyLog:
        """Copy of this log with `changes` applied to one item."""
        items = [
            replace(item, **changes) if item.id == item_id else replace(item)
            for item in self.items
        ]
        return replace(self, items=items)

    def copy(self) -> DailyLog:
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "date": self.date,
            "is_locked": self.is_locked,
            "items": [item.to_dict() for item in self.items],
        }
        if self.signature:
            data["signature"] = self.signature
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> DailyLog:
        return cls(
            id=str(data["id"]),
            date=str(data["date"])[:10],
            items=[CheckItem.from_dict(item) for item in data.get("items") or []],
            is_locked=bool(_pick(data, "is_locked", "isLocked", default=False)),
            signature=data.get("signature"),
        )


# =============================================================================
# TRACEABILITY
# =============================================================================

LOT_UNSPECIFIED = "Non spécifié"


@dataclass
class TraceabilityRecord:
    """One goods-receipt entry with expiry and optional photo proof."""
    id: str
    date: str
    item_name: str
    expiry_date: str
    lot_number: str = LOT_UNSPECIFIED
    photo_url: Optional[str] = None

    @property
    def day(self) -> str:
        """Calendar day of capture (YYYY-MM-DD)."""
        return self.date[:10]

    @property
    def has_photo(self) -> bool:
        return bool(self.photo_url)

    def is_expired(self, today: Optional[str] = None) -> bool:
        today = today or datetime.now().date().isoformat()
        return self.expiry_date[:10] < today

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "item_name": self.item_name,
            "lot_number": self.lot_number,
            "expiry_date": self.expiry_date,
            "photo_url": self.photo_url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> TraceabilityRecord:
        return cls(
            id=str(data["id"]),
            date=str(data["date"]),
            item_name=str(_pick(data, "item_name", "itemName", default="")),
            expiry_date=str(_pick(data, "expiry_date", "expiryDate", default="")),
            lot_number=str(_pick(data, "lot_number", "lotNumber", default=LOT_UNSPECIFIED)),
            photo_url=_pick(data, "photo_url", "photoUrl"),
        )


# =============================================================================
# INVENTORY
# =============================================================================

@dataclass
class InventoryItem:
    """A stocked product; `name` is the case-insensitive natural key."""
    id: str
    name: str
    current_quantity: float
    unit: str = "u"
    min_threshold: float = 1
    category: str = "Epicerie"
    last_delivery_temp: Optional[float] = None

    @property
    def is_low_stock(self) -> bool:
        return self.current_quantity <= self.min_threshold

    def matches(self, name: str) -> bool:
        return self.name.strip().lower() == name.strip().lower()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "current_quantity": self.current_quantity,
            "unit": self.unit,
            "min_threshold": self.min_threshold,
            "category": self.category,
            "last_delivery_temp": self.last_delivery_temp,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> InventoryItem:
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            current_quantity=float(_pick(data, "current_quantity", "currentQuantity", default=0)),
            unit=str(data.get("unit") or "u"),
            min_threshold=float(_pick(data, "min_threshold", "minThreshold", default=1)),
            category=str(data.get("category") or "Epicerie"),
            last_delivery_temp=_optional_float(_pick(data, "last_delivery_temp", "lastDeliveryTemp")),
        )


@dataclass
class StockMovement:
    """A single receipt or consumption event."""
    id: str
    item_id: str
    item_name: str
    type: MovementType
    quantity: float
    date: str
    reason: str
    temperature: Optional[float] = None

    @property
    def signed_quantity(self) -> float:
        return self.quantity if self.type == MovementType.IN else -self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "item_id": self.item_id,
            "item_name": self.item_name,
            "type": self.type.value,
            "quantity": self.quantity,
            "date": self.date,
            "reason": self.reason,
            "temperature": self.temperature,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> StockMovement:
        return cls(
            id=str(data["id"]),
            item_id=str(_pick(data, "item_id", "itemId", default="")),
            item_name=str(_pick(data, "item_name", "itemName", default="")),
            type=MovementType(data["type"]),
            quantity=float(data["quantity"]),
            date=str(data["date"]),
            reason=str(data.get("reason") or ""),
            temperature=_optional_float(data.get("temperature")),
        )


# =============================================================================
# RECIPES (static reference data)
# =============================================================================

@dataclass(frozen=True)
class Ingredient:
    name: str
    amount: float
    unit: str


@dataclass(frozen=True)
class Recipe:
    """Technical sheet for a house preparation."""
    id: str
    name: str
    prep_time: str
    category: str
    shelf_life_days: int
    ingredients: tuple = ()
    steps: tuple = ()
    allergens: tuple = ()
