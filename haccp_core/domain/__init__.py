# =============================================================================
# haccp_core/domain/__init__.py
# =============================================================================

from .models import (
    HaccpCategory,
    MovementType,
    CheckItem,
    DailyLog,
    TraceabilityRecord,
    InventoryItem,
    StockMovement,
    Ingredient,
    Recipe,
    LOT_UNSPECIFIED,
    new_id,
)

__all__ = [
    "HaccpCategory",
    "MovementType",
    "CheckItem",
    "DailyLog",
    "TraceabilityRecord",
    "InventoryItem",
    "StockMovement",
    "Ingredient",
    "Recipe",
    "LOT_UNSPECIFIED",
    "new_id",
]
