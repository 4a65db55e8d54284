from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING

from retailops.core.errors import InsufficientStockError
from retailops.domain.inventory.status import MovementReference
from retailops.domain.inventory.stock import variant_label
from retailops.domain.orders.aggregates import OrderAggregate
from retailops.domain.orders.commands import CreateOrderCommand, OrderItemRequest
from retailops.persistence.models import CustomerModel, OrderModel, ProductModel, VariantModel

if TYPE_CHECKING:
    from retailops.transactions.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


@dataclass
class _ResolvedLine:
    request: OrderItemRequest
    product: ProductModel
    variant: VariantModel


class OrderAssembler:
    """Turns a cart into a persisted order plus the stock debits it requires.

    Resolution happens first (customer, then every product and variant, then
    variant row locks in SKU order); mutation follows in request order. Any
    failure leaves the whole unit of work to be rolled back by the caller.
    """

    def __init__(self, uow: UnitOfWork, tax_rate: Decimal | None = None):
        self.uow = uow
        self.session = uow.session
        self.tax_rate = uow.settings.tax_rate if tax_rate is None else tax_rate

    def assemble(self, command: CreateOrderCommand) -> OrderModel:
        uow = self.uow
        uow.validating()

        customer: CustomerModel | None = None
        if command.customer.id is not None:
            customer = uow.customers.lock_existing(command.customer.id)

        lines = [self._resolve(item) for item in command.items]
        uow.stock.lock([line.variant for line in lines])

        uow.mutating()
        if customer is None:
            customer = uow.customers.create(command.customer)

        aggregate = OrderAggregate.open(
            customer_id=customer.id,
            payment_method=command.payment_method,
            payment_status=command.payment_status or uow.settings.default_payment_status,
            order_type=command.order_type,
            staff_id=uow.actor.id,
            opened_at=uow.started_at,
            discount=command.discount,
            notes=command.notes,
            shipping_address=self._address(command, "shipping_address"),
            billing_address=self._address(command, "billing_address"),
        )

        for line in lines:
            self._check_availability(line)
            aggregate.add_line(line.product, line.variant, line.request.quantity, line.request.serial_number)
            if line.product.track_inventory:
                change = uow.stock.debit(line.variant, line.request.quantity)
                uow.ledger.record(
                    change,
                    reference=MovementReference.ORDER,
                    reference_id=aggregate.id,
                    reason="Sale",
                    unit_cost=line.variant.cost_price_cents,
                )

        aggregate.recompute_totals(self.tax_rate)
        aggregate.assign_number(uow.sequences.next_order_number())
        order = aggregate.model
        self.session.add(order)
        self.session.flush()

        uow.customers.record_purchase(customer, order.total_cents)
        logger.info(
            "order created: number=%s items=%s total=%s customer=%s staff=%s",
            order.order_number,
            len(order.items),
            order.total_cents,
            customer.id,
            uow.actor.id,
        )
        return order

    def _resolve(self, item: OrderItemRequest) -> _ResolvedLine:
        product = self.uow.catalog.get_product(item.product_id)
        variant = self.uow.catalog.variant_of(product, item.variant_sku)
        return _ResolvedLine(request=item, product=product, variant=variant)

    def _check_availability(self, line: _ResolvedLine) -> None:
        # Checked for untracked products too; the debit repeats it under the row version.
        requested = line.request.quantity
        available = line.variant.quantity
        if requested > available and not line.product.allow_backorders:
            raise InsufficientStockError(
                f"Insufficient stock for {variant_label(line.product, line.variant)}. Available: {available}",
                product_id=line.product.id,
                sku=line.variant.sku,
                available=available,
                requested=requested,
            )

    @staticmethod
    def _address(command: CreateOrderCommand, field: str) -> dict:
        address = getattr(command, field) or getattr(command.customer, field)
        return address.model_dump(exclude_none=True) if address is not None else {}
