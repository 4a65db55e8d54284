from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import select

from retailops.core.errors import NoRefundableItemsError, NotFoundError
from retailops.domain.inventory.status import MovementReference
from retailops.domain.orders.aggregates import OrderAggregate
from retailops.domain.orders.commands import ProcessRefundCommand, RefundLineRequest
from retailops.domain.orders.views import RefundLineView, RefundResult
from retailops.persistence.models import OrderItemModel, OrderModel, ProductModel, VariantModel

if TYPE_CHECKING:
    from retailops.transactions.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


def load_order_for_update(uow: UnitOfWork, order_id: str) -> OrderModel:
    stmt = (
        select(OrderModel)
        .where(OrderModel.id == order_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    order = uow.session.scalar(stmt)
    if order is None:
        raise NotFoundError(f"Order not found: {order_id}", order_id=order_id)
    return order


@dataclass
class _RefundTarget:
    request: RefundLineRequest
    item: OrderItemModel
    product: ProductModel | None
    variant: VariantModel | None


class RefundProcessor:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.session = uow.session

    def process(self, order_id: str, command: ProcessRefundCommand) -> RefundResult:
        uow = self.uow
        uow.validating()
        order = load_order_for_update(uow, order_id)
        aggregate = OrderAggregate(order)
        targets = [self._resolve(aggregate, line) for line in command.items]
        uow.stock.lock([t.variant for t in targets if t.variant is not None])

        uow.mutating()
        total_refund = 0
        lines: list[dict] = []
        for target in targets:
            quantity, amount = aggregate.book_refund(target.item, target.request.quantity)
            if quantity <= 0:
                logger.debug("refund line skipped, nothing left: order=%s item=%s", order.id, target.item.id)
                continue
            total_refund += amount
            self._restock(order, target, quantity, command.reason)
            lines.append({"order_item_id": target.item.id, "quantity": quantity, "amount": amount})

        if total_refund == 0:
            raise NoRefundableItemsError(
                "No items to refund: every requested line is already fully refunded",
                order_id=order.id,
            )

        refund = aggregate.append_refund(
            amount=total_refund,
            reason=command.reason,
            processed_by=uow.actor.id,
            lines=lines,
            at=uow.started_at,
        )
        self.session.flush()
        logger.info(
            "refund processed: order=%s amount=%s lines=%s payment_status=%s by %s",
            order.order_number,
            total_refund,
            len(lines),
            order.payment_status,
            uow.actor.id,
        )
        return RefundResult(
            order_id=order.id,
            order_number=order.order_number,
            refund_id=refund.id,
            refund_amount=total_refund,
            refund_reason=command.reason,
            refund_items=[RefundLineView(**line) for line in lines],
            payment_status=order.payment_status,
            total_refunded=order.refunded_cents,
        )

    def _resolve(self, aggregate: OrderAggregate, line: RefundLineRequest) -> _RefundTarget:
        item = aggregate.item(line.order_item_id)
        product = self.session.get(ProductModel, item.product_id)
        variant = None
        if product is not None and product.track_inventory:
            variant = next((v for v in product.variants if v.sku == item.variant_sku), None)
        if product is None or (product.track_inventory and variant is None):
            logger.warning(
                "refund for item=%s cannot restock: product=%s sku=%s no longer in catalog",
                item.id,
                item.product_id,
                item.variant_sku,
            )
        return _RefundTarget(request=line, item=item, product=product, variant=variant)

    def _restock(self, order: OrderModel, target: _RefundTarget, quantity: int, reason: str) -> None:
        if target.variant is None:
            return
        change = self.uow.stock.credit(target.variant, quantity)
        self.uow.ledger.record(
            change,
            reference=MovementReference.REFUND,
            reference_id=order.id,
            reason=f"Refund: {reason}",
            unit_cost=target.variant.cost_price_cents,
        )
