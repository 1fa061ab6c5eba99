# =============================================================================
# haccp_core/services/stock_service.py
# Stock Service - applies deliveries and consumptions to the inventory
# =============================================================================
"""
StockService turns a movement request into an inventory update plus an
appended movement, both persisted through the repository.

Usage:
------
from haccp_core.services import get_stock_service, MovementRequest

service = get_stock_service()
outcome = service.record_movement(MovementRequest("Tomate", "IN", 5))
st.success(f"{outcome.item.name}: {outcome.item.current_quantity} {outcome.item.unit}")
"""

from __future__ import annotations
import math
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Callable, List, Optional, Union

from haccp_core.domain import (
    InventoryItem,
    MovementType,
    Recipe,
    StockMovement,
    new_id,
)
from haccp_core.errors import ErrorKind, InvalidMovementError, UnknownItemError
from haccp_core.offline import (
    DataSource,
    RepositoryResult,
    SynchronizingRepository,
    get_repository,
)
from haccp_core.utils import CancellationToken

from .base_service import BaseService

DEFAULT_IN_REASON = "Livraison"
DEFAULT_OUT_REASON = "Sortie manuelle"

# Defaults for a product first seen on a delivery
NEW_ITEM_UNIT = "u"
NEW_ITEM_MIN_THRESHOLD = 1
NEW_ITEM_CATEGORY = "Epicerie"

_SOURCE_RANK = {DataSource.LIVE: 0, DataSource.DEGRADED: 1, DataSource.FAILED: 2}


@dataclass
class MovementRequest:
    """A stock entry or exit as typed in the stock form."""
    name: str
    type: Union[MovementType, str]
    quantity: Union[float, str]
    reason: str = ""
    temperature: Optional[float] = None


@dataclass
class MovementOutcome:
    """Result of one applied movement."""
    item: InventoryItem
    movement: StockMovement
    created_item: bool
    inventory: List[InventoryItem]
    source: DataSource = DataSource.LIVE
    error_kind: Optional[ErrorKind] = None

    @property
    def went_negative(self) -> bool:
        return self.item.current_quantity < 0


@dataclass
class ProductionOutcome:
    """Movements emitted for one recipe production."""
    recipe: Recipe
    movements: List[StockMovement] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    inventory: List[InventoryItem] = field(default_factory=list)


def _validate(request: MovementRequest) -> tuple:
    """Normalised (name, type, quantity) or InvalidMovementError."""
    name = (request.name or "").strip()
    if not name:
        raise InvalidMovementError("Le nom du produit est obligatoire.", field="name")

    try:
        movement_type = MovementType(request.type) if not isinstance(request.type, MovementType) else request.type
    except ValueError:
        raise InvalidMovementError("Type de mouvement inconnu.", field="type", value=request.type)

    try:
        quantity = float(request.quantity)
    except (TypeError, ValueError):
        raise InvalidMovementError("La quantité doit être un nombre.", field="quantity", value=request.quantity)
    if math.isnan(quantity) or quantity <= 0:
        raise InvalidMovementError("La quantité doit être positive.", field="quantity", value=quantity)

    return name, movement_type, quantity


def apply_movement(
    request: MovementRequest,
    inventory: List[InventoryItem],
    date: str,
) -> tuple:
    """
    Pure part of a movement: returns (updated_item, movement, created_item).

    Raises:
        InvalidMovementError: empty name or non-positive quantity
        UnknownItemError: OUT on a product that is not in the inventory
    """
    name, movement_type, quantity = _validate(request)
    existing = next((item for item in inventory if item.matches(name)), None)

    if existing is None:
        if movement_type == MovementType.OUT:
            raise UnknownItemError(name)
        item = InventoryItem(
            id=new_id(),
            name=name,
            current_quantity=quantity,
            unit=NEW_ITEM_UNIT,
            min_threshold=NEW_ITEM_MIN_THRESHOLD,
            category=NEW_ITEM_CATEGORY,
            last_delivery_temp=request.temperature,
        )
        created = True
    else:
        if movement_type == MovementType.IN:
            item = replace(existing, current_quantity=existing.current_quantity + quantity)
            if request.temperature is not None:
                item = replace(item, last_delivery_temp=request.temperature)
        else:
            item = replace(existing, current_quantity=existing.current_quantity - quantity)
        created = False

    reason = (request.reason or "").strip()
    if not reason:
        reason = DEFAULT_IN_REASON if movement_type == MovementType.IN else DEFAULT_OUT_REASON

    movement = StockMovement(
        id=new_id(),
        item_id=item.id,
        item_name=item.name,
        type=movement_type,
        quantity=quantity,
        date=date,
        reason=reason,
        temperature=request.temperature,
    )
    return item, movement, created


class StockService(BaseService):
    """
    Inventory ledger operations.

    The item is written before its movement; if the movement write fails the
    item change stays (no rollback).
    """

    def __init__(
        self,
        repository: Optional[SynchronizingRepository] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        super().__init__(clock)
        self._repository = repository

    @property
    def repository(self) -> SynchronizingRepository:
        if self._repository is None:
            self._repository = get_repository()
        return self._repository

    def list_inventory(self, cancel: Optional[CancellationToken] = None) -> RepositoryResult[InventoryItem]:
        return self.repository.list_inventory(cancel)

    def list_movements(self, cancel: Optional[CancellationToken] = None) -> RepositoryResult[StockMovement]:
        return self.repository.list_movements(cancel)

    def delete_item(self, item_id: str, cancel: Optional[CancellationToken] = None) -> RepositoryResult[InventoryItem]:
        """Remove a product from the inventory; its past movements stay in the ledger."""
        with self.log_operation(f"Deleting inventory item {item_id}"):
            return self.repository.delete_inventory_item(item_id, cancel)

    @staticmethod
    def low_stock_items(inventory: List[InventoryItem]) -> List[InventoryItem]:
        return [item for item in inventory if item.is_low_stock]

    def record_movement(
        self,
        request: MovementRequest,
        inventory: Optional[List[InventoryItem]] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> MovementOutcome:
        """
        Apply a movement and persist item then movement.

        Args:
            request: What the user typed
            inventory: Current view of the inventory (default: loaded now)
            cancel: Optional cancellation token for the remote calls

        Raises:
            InvalidMovementError, UnknownItemError: nothing is persisted
        """
        if inventory is None:
            inventory = self.list_inventory(cancel).data

        item, movement, created = apply_movement(
            request, inventory, self.timestamp()
        )

        with self.log_operation(f"{movement.type.value} {movement.quantity:g} x {item.name}"):
            if created:
                self.logger.info(f"New inventory item created from delivery: {item.name}")
            if item.current_quantity < 0:
                self.logger.warning(f"Stock for {item.name} is negative: {item.current_quantity:g}")

            item_result = self.repository.upsert_inventory_item(item, cancel)
            movement_result = self.repository.add_movement(movement, cancel)

        refreshed = self.list_inventory(cancel)
        # Worst of the two writes
        worst = max((item_result, movement_result), key=lambda r: _SOURCE_RANK[r.source])

        return MovementOutcome(
            item=item,
            movement=movement,
            created_item=created,
            inventory=refreshed.data or item_result.data,
            source=worst.source,
            error_kind=worst.error_kind,
        )

    def produce_recipe(
        self,
        recipe: Recipe,
        inventory: Optional[List[InventoryItem]] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> ProductionOutcome:
        """Consume every stocked ingredient of `recipe` once."""
        if inventory is None:
            inventory = self.list_inventory(cancel).data

        outcome = ProductionOutcome(recipe=recipe, inventory=list(inventory))
        with self.log_operation(f"Production of {recipe.name}"):
            for ingredient in recipe.ingredients:
                if not any(item.matches(ingredient.name) for item in outcome.inventory):
                    outcome.skipped.append(ingredient.name)
                    continue
                applied = self.record_movement(
                    MovementRequest(
                        name=ingredient.name,
                        type=MovementType.OUT,
                        quantity=ingredient.amount,
                        reason=f"Production: {recipe.name}",
                    ),
                    inventory=outcome.inventory,
                    cancel=cancel,
                )
                outcome.movements.append(applied.movement)
                outcome.inventory = applied.inventory

        if outcome.skipped:
            self.logger.info(f"Ingredients not stocked for {recipe.name}: {', '.join(outcome.skipped)}")
        return outcome


# Singleton accessor
_stock_service: Optional[StockService] = None
_lock = threading.Lock()


def get_stock_service() -> StockService:
    """Get the global StockService instance."""
    global _stock_service
    if _stock_service is None:
        with _lock:
            if _stock_service is None:
                _stock_service = StockService()
    return _stock_service
