"""
Inventory Valuation Engine
Weighted-average valuation of salon stock:
- every movement keeps the cost it was recorded at; nothing is re-derived
- a running balance per product/location is updated with each movement
- the full-history fold stays available for as-of queries and repairs
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from salonbooks.constants import MovementType, ReferenceType, enum_value
from salonbooks.exceptions import ReferentialError, ValidationError
from salonbooks.models import InventoryBalance, StockMovement
from salonbooks.unit_of_work import UnitOfWork
from salonbooks.utils.money import ZERO, to_decimal
from salonbooks.utils.security import ActingUser

logger = logging.getLogger(__name__)


@dataclass
class StockPosition:
    quantity: Decimal = ZERO
    value: Decimal = ZERO

    def apply(self, movement_type: str, quantity, cost_per_unit):
        delta = signed_quantity(movement_type, quantity)
        self.quantity += delta
        self.value += delta * to_decimal(cost_per_unit)


def signed_quantity(movement_type: str, quantity) -> Decimal:
    """OUT removes stock; IN adds it; ADJUSTMENT carries its own sign"""
    quantity = to_decimal(quantity)
    if movement_type == MovementType.OUT.value:
        return -quantity
    return quantity


def fold_movements(movements: Iterable) -> Dict[int, StockPosition]:
    """
    Fold movements into a position per product.
    Movements must already be ordered by (date, id).
    """
    positions: Dict[int, StockPosition] = {}
    for m in movements:
        position = positions.setdefault(m.product_id, StockPosition())
        position.apply(m.movement_type, m.quantity, m.cost_per_unit)
    return positions


def average_cost(quantity: Decimal, value: Decimal, fallback_cost) -> Decimal:
    if quantity != 0:
        return value / quantity
    return to_decimal(fallback_cost)


def validate_movement(movement_type: str, quantity, cost_per_unit):
    quantity = to_decimal(quantity)
    if movement_type in (MovementType.IN.value, MovementType.OUT.value) and quantity <= 0:
        raise ValidationError(f"{movement_type} movements need a positive quantity")
    if movement_type == MovementType.ADJUSTMENT.value and quantity == 0:
        raise ValidationError("Adjustment quantity cannot be zero")
    if to_decimal(cost_per_unit) < 0:
        raise ValidationError("Cost per unit cannot be negative")


class InventoryValuationEngine:

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def record_movement(
        self,
        product_id: int,
        location_id: int,
        movement_type: str,
        quantity,
        cost_per_unit,
        movement_date: date,
        reference_type: str = ReferenceType.MANUAL.value,
        reference_id: Optional[int] = None,
        journal_entry_id: Optional[int] = None,
        created_by: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> StockMovement:
        """Insert a movement and roll it into the running balance, in the caller's transaction"""
        movement = self.uow.inventory.add_movement(StockMovement(
            product_id=product_id,
            location_id=location_id,
            movement_type=movement_type,
            quantity=to_decimal(quantity),
            cost_per_unit=to_decimal(cost_per_unit),
            reference_type=reference_type,
            reference_id=reference_id,
            journal_entry_id=journal_entry_id,
            movement_date=movement_date,
            notes=notes,
            created_by=created_by,
        ))
        self._apply_to_balance(movement)
        return movement

    def _apply_to_balance(self, movement: StockMovement):
        balance = self.uow.inventory.get_balance(movement.product_id, movement.location_id)
        if not balance:
            balance = self.uow.inventory.add_balance(InventoryBalance(
                product_id=movement.product_id,
                location_id=movement.location_id,
                quantity_on_hand=ZERO,
                inventory_value=ZERO,
            ))

        position = StockPosition(to_decimal(balance.quantity_on_hand), to_decimal(balance.inventory_value))
        position.apply(movement.movement_type, movement.quantity, movement.cost_per_unit)

        balance.quantity_on_hand = position.quantity
        balance.inventory_value = position.value
        balance.last_movement_id = movement.id
        self.uow.session.flush()

    def valuation(self, as_of: Optional[date] = None) -> List[dict]:
        """
        Quantity, weighted-average cost and value per product.
        Current figures come from the running balances; an as-of date
        replays movement history up to that date.
        """
        if as_of:
            positions = fold_movements(self.uow.inventory.movements(as_of=as_of))
        else:
            positions = {
                row.product_id: StockPosition(to_decimal(row.quantity), to_decimal(row.value))
                for row in self.uow.inventory.product_balances()
            }

        rows = []
        for product in self.uow.catalog.all_products():
            position = positions.get(product.id, StockPosition())
            avg_cost = average_cost(position.quantity, position.value, product.cost)
            rows.append({
                "product_id": product.id,
                "sku": product.sku,
                "name": product.name,
                "quantity_on_hand": position.quantity,
                "avg_cost": avg_cost,
                "inventory_value": position.quantity * avg_cost,
            })
        return rows

    def movement_history(self, product_id: Optional[int] = None, location_id: Optional[int] = None) -> List[StockMovement]:
        return self.uow.inventory.movements(product_id=product_id, location_id=location_id)

    def rebuild_balances(self) -> int:
        """
        Recompute every running balance from movement history.

        Returns:
            Number of balance rows written
        """
        self.uow.inventory.clear_balances()
        positions: Dict[tuple, StockPosition] = {}
        last_ids: Dict[tuple, int] = {}

        for m in self.uow.inventory.movements():
            key = (m.product_id, m.location_id)
            positions.setdefault(key, StockPosition()).apply(m.movement_type, m.quantity, m.cost_per_unit)
            last_ids[key] = m.id

        for (product_id, location_id), position in positions.items():
            self.uow.inventory.add_balance(InventoryBalance(
                product_id=product_id,
                location_id=location_id,
                quantity_on_hand=position.quantity,
                inventory_value=position.value,
                last_movement_id=last_ids[(product_id, location_id)],
            ))

        logger.info(f"Rebuilt {len(positions)} inventory balances from movement history")
        return len(positions)


def record_manual_movement(
    uow: UnitOfWork,
    user: ActingUser,
    product_id: int,
    location_id: int,
    movement_type: str,
    quantity,
    cost_per_unit,
    movement_date: date,
    reference_type: str = ReferenceType.MANUAL.value,
    reference_id: Optional[int] = None,
    notes: Optional[str] = None,
) -> StockMovement:
    """Record a stock movement that has no journal entry (counts, transfers, opening stock)"""
    try:
        movement_type = enum_value(MovementType, movement_type, "Movement type")
        reference_type = enum_value(ReferenceType, reference_type, "Reference type")
    except ValueError as e:
        raise ValidationError(str(e))
    validate_movement(movement_type, quantity, cost_per_unit)

    with uow:
        if not uow.catalog.get_product(product_id):
            raise ReferentialError(f"Product {product_id} does not exist")
        if not uow.catalog.get_location(location_id):
            raise ReferentialError(f"Location {location_id} does not exist")

        movement = InventoryValuationEngine(uow).record_movement(
            product_id=product_id,
            location_id=location_id,
            movement_type=movement_type,
            quantity=quantity,
            cost_per_unit=cost_per_unit,
            movement_date=movement_date,
            reference_type=reference_type,
            reference_id=reference_id,
            created_by=user.id,
            notes=notes,
        )

    logger.info(f"Recorded {movement_type} movement {movement.id} for product {product_id} at location {location_id}")
    return movement
