"""
Inventory API Routes
Valuation, movement history and manual stock movements.
"""

from fastapi import APIRouter, Depends, Request, status
from typing import List, Optional
from datetime import date
import logging

from salonbooks.api.deps import get_current_user, get_uow, require_role
from salonbooks.constants import Role
from salonbooks.schemas import (
    InventoryValuation, StockMovement as StockMovementSchema, StockMovementCreate, RebuildResult
)
from salonbooks.services.inventory import InventoryValuationEngine, record_manual_movement
from salonbooks.unit_of_work import UnitOfWork
from salonbooks.utils.rate_limiter import limiter, RateLimits
from salonbooks.utils.security import ActingUser

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/inventory/valuation", response_model=InventoryValuation)
def inventory_valuation(
    as_of: Optional[date] = None,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    """Quantity on hand, weighted-average cost and value per product"""
    rows = InventoryValuationEngine(uow).valuation(as_of)
    return {
        "as_of": as_of,
        "rows": rows,
        "total_value": sum(row["inventory_value"] for row in rows),
    }


@router.get("/inventory/movement-history", response_model=List[StockMovementSchema])
def movement_history(
    product_id: Optional[int] = None,
    location_id: Optional[int] = None,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    return InventoryValuationEngine(uow).movement_history(product_id, location_id)


@router.post("/inventory/movements", response_model=StockMovementSchema, status_code=status.HTTP_201_CREATED)
@limiter.limit(RateLimits.POSTING)
def create_movement(
    request: Request,
    movement: StockMovementCreate,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(get_current_user)
):
    """Record a stock movement with no journal entry"""
    return record_manual_movement(
        uow,
        current_user,
        product_id=movement.product_id,
        location_id=movement.location_id,
        movement_type=movement.movement_type,
        quantity=movement.quantity,
        cost_per_unit=movement.cost_per_unit,
        movement_date=movement.movement_date,
        reference_type=movement.reference_type,
        reference_id=movement.reference_id,
        notes=movement.notes,
    )


@router.post("/inventory/rebuild-balances", response_model=RebuildResult)
@limiter.limit(RateLimits.REPAIR)
def rebuild_balances(
    request: Request,
    uow: UnitOfWork = Depends(get_uow),
    current_user: ActingUser = Depends(require_role(Role.ADMIN.value))
):
    """Recompute running balances from the full movement history"""
    with uow:
        count = InventoryValuationEngine(uow).rebuild_balances()
    return {"balances": count}
