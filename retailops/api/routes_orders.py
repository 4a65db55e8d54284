from __future__ import annotations

from fastapi import APIRouter, Depends

from retailops.api.deps import get_engine
from retailops.core.security import Actor, get_actor
from retailops.domain.orders.commands import CreateOrderCommand, ProcessRefundCommand, UpdateOrderStatusCommand
from retailops.domain.orders.views import OrderView, RefundResult
from retailops.engine import TransactionEngine

router = APIRouter(tags=["orders"])


@router.post("/orders", status_code=201, response_model=OrderView)
def create_order(
    payload: CreateOrderCommand,
    actor: Actor = Depends(get_actor),
    engine: TransactionEngine = Depends(get_engine),
):
    return engine.create_order(payload, actor)


@router.get("/orders/{order_id}", response_model=OrderView)
def get_order(
    order_id: str,
    actor: Actor = Depends(get_actor),
    engine: TransactionEngine = Depends(get_engine),
):
    return engine.get_order(order_id, actor)


@router.post("/orders/{order_id}/refunds", status_code=201, response_model=RefundResult)
def process_refund(
    order_id: str,
    payload: ProcessRefundCommand,
    actor: Actor = Depends(get_actor),
    engine: TransactionEngine = Depends(get_engine),
):
    return engine.process_refund(order_id, payload, actor)


@router.put("/orders/{order_id}/status", response_model=OrderView)
def update_order_status(
    order_id: str,
    payload: UpdateOrderStatusCommand,
    actor: Actor = Depends(get_actor),
    engine: TransactionEngine = Depends(get_engine),
):
    return engine.update_order_status(order_id, payload, actor)
