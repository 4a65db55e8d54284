from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from retailops.api.deps import get_engine
from retailops.api.utils import isoformat_z, parse_period
from retailops.core.errors import InputValidationError
from retailops.core.security import Actor, get_actor, require_stock_manager
from retailops.domain.inventory.commands import AdjustInventoryCommand
from retailops.domain.inventory.status import MovementType
from retailops.domain.inventory.views import MovementResult
from retailops.engine import TransactionEngine, coerce_command

router = APIRouter(tags=["inventory"])


class InventoryAdjustmentRequest(BaseModel):
    quantity: int = Field(ge=0)
    movement_type: MovementType
    reason: str | None = Field(default=None, max_length=500)
    notes: str | None = Field(default=None, max_length=500)
    cost_price: int | None = Field(default=None, ge=0, description="int cents, restock only")


def _period_bounds(period: str | None) -> tuple[datetime | None, datetime | None]:
    if not period:
        return None, None
    try:
        return parse_period(period)
    except ValueError as exc:
        raise InputValidationError(str(exc), period=period) from exc


@router.get("/inventory/alerts")
def get_inventory_alerts(
    actor: Actor = Depends(get_actor),
    engine: TransactionEngine = Depends(get_engine),
):
    alerts = engine.inventory_alerts(actor)
    return {"counts": {bucket: len(rows) for bucket, rows in alerts.items()}, "alerts": alerts}


@router.get("/inventory/summary")
def get_inventory_summary(
    actor: Actor = Depends(get_actor),
    engine: TransactionEngine = Depends(get_engine),
):
    return engine.inventory_summary(actor)


@router.get("/inventory/movements")
def list_inventory_movements(
    product_id: str | None = Query(default=None),
    sku: str | None = Query(default=None),
    movement_type: list[MovementType] | None = Query(default=None),
    period: str | None = Query(default=None, description="ISO period: start/end"),
    limit: int = Query(default=100, ge=1, le=1000),
    actor: Actor = Depends(get_actor),
    engine: TransactionEngine = Depends(get_engine),
):
    start, end = _period_bounds(period)
    rows = engine.list_movements(
        product_id=product_id,
        sku=sku,
        start=start,
        end=end,
        movement_types=movement_type,
        limit=limit,
        actor=actor,
    )
    return {
        "count": len(rows),
        "movements": [
            {**row.model_dump(mode="json"), "occurred_at": isoformat_z(row.occurred_at)} for row in rows
        ],
    }


@router.get("/inventory/{sku}/reconciliation")
def reconcile_inventory(
    sku: str,
    actor: Actor = Depends(get_actor),
    engine: TransactionEngine = Depends(get_engine),
):
    return engine.reconcile_variant(sku, actor).to_dict()


@router.put("/inventory/{sku}", response_model=MovementResult)
def adjust_inventory(
    sku: str,
    payload: InventoryAdjustmentRequest,
    actor: Actor = Depends(get_actor),
    engine: TransactionEngine = Depends(get_engine),
):
    require_stock_manager(actor, "inventory adjustment")
    command = coerce_command(AdjustInventoryCommand, {"variant_sku": sku, **payload.model_dump()})
    return engine.adjust_inventory(command, actor)
