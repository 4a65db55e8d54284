from __future__ import annotations

import uuid
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from retailops.core.errors import InputValidationError, NotFoundError
from retailops.persistence.models import (
    OrderItemModel,
    OrderModel,
    ProductModel,
    RefundModel,
    VariantModel,
)


def compute_tax(subtotal_cents: int, tax_rate: Decimal) -> int:
    return int((Decimal(subtotal_cents) * Decimal(tax_rate)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class OrderAggregate:
    """Owns an order and its items; all order mutations go through here.

    Line items are fixed once the order is opened. Afterwards only the
    refund bookkeeping fields, the refund list, the status fields and the
    notes change.
    """

    def __init__(self, model: OrderModel):
        self.model = model

    @classmethod
    def open(
        cls,
        customer_id: str,
        payment_method: str,
        payment_status: str,
        order_type: str,
        staff_id: str,
        opened_at: datetime,
        discount: int = 0,
        notes: str | None = None,
        shipping_address: dict | None = None,
        billing_address: dict | None = None,
    ) -> "OrderAggregate":
        model = OrderModel(
            id=str(uuid.uuid4()),
            customer_id=customer_id,
            subtotal_cents=0,
            tax_cents=0,
            discount_cents=discount,
            shipping_cents=0,
            total_cents=0,
            refunded_cents=0,
            payment_method=payment_method,
            payment_status=payment_status,
            order_status="pending" if order_type == "online" else "completed",
            order_type=order_type,
            staff_id=staff_id,
            notes=notes,
            shipping_address=shipping_address or {},
            billing_address=billing_address or {},
            created_at=opened_at,
            updated_at=opened_at,
        )
        return cls(model)

    @property
    def id(self) -> str:
        return self.model.id

    def assign_number(self, order_number: str) -> None:
        if self.model.order_number:
            raise RuntimeError(f"order {self.model.id} already numbered {self.model.order_number}")
        self.model.order_number = order_number

    def add_line(
        self,
        product: ProductModel,
        variant: VariantModel,
        quantity: int,
        serial_number: str | None = None,
    ) -> OrderItemModel:
        unit_price = variant.selling_price_cents
        item = OrderItemModel(
            id=str(uuid.uuid4()),
            order_id=self.model.id,
            position=len(self.model.items),
            product_id=product.id,
            product_name=product.name,
            variant_sku=variant.sku,
            variant_color=variant.color,
            variant_size=variant.size,
            quantity=quantity,
            unit_price_cents=unit_price,
            total_price_cents=unit_price * quantity,
            serial_number=serial_number,
            refunded_quantity=0,
            refunded_amount_cents=0,
        )
        self.model.items.append(item)
        return item

    def recompute_totals(self, tax_rate: Decimal) -> None:
        model = self.model
        model.subtotal_cents = sum(item.total_price_cents for item in model.items)
        model.tax_cents = compute_tax(model.subtotal_cents, tax_rate)
        total = model.subtotal_cents + model.tax_cents + model.shipping_cents - model.discount_cents
        if total < 0:
            raise InputValidationError(
                f"discount {model.discount_cents} exceeds order value {total + model.discount_cents}",
                discount=model.discount_cents,
            )
        model.total_cents = total

    def item(self, order_item_id: str) -> OrderItemModel:
        for item in self.model.items:
            if item.id == order_item_id:
                return item
        raise NotFoundError(
            f"Order item not found: {order_item_id}",
            order_id=self.model.id,
            order_item_id=order_item_id,
        )

    @staticmethod
    def refundable_quantity(item: OrderItemModel) -> int:
        return item.quantity - item.refunded_quantity

    def book_refund(self, item: OrderItemModel, requested: int) -> tuple[int, int]:
        """Clamp a refund request to what is left on the line and book it.

        Returns ``(quantity, amount)``; ``(0, 0)`` means nothing was left.
        """

        quantity = min(requested, self.refundable_quantity(item))
        if quantity <= 0:
            return 0, 0
        amount = item.unit_price_cents * quantity
        item.refunded_quantity += quantity
        item.refunded_amount_cents += amount
        return quantity, amount

    def append_refund(self, amount: int, reason: str, processed_by: str, lines: list[dict], at: datetime) -> RefundModel:
        refund = RefundModel(
            id=str(uuid.uuid4()),
            order_id=self.model.id,
            amount_cents=amount,
            reason=reason,
            processed_by=processed_by,
            items=lines,
            created_at=at,
        )
        self.model.refunds.append(refund)
        self.model.refunded_cents += amount
        self.model.updated_at = at
        self._settle_payment_status()
        return refund

    @property
    def fully_refunded(self) -> bool:
        model = self.model
        if model.refunded_cents >= model.total_cents:
            return True
        return all(item.refunded_quantity >= item.quantity for item in model.items)

    def _settle_payment_status(self) -> None:
        if self.fully_refunded:
            self.model.payment_status = "refunded"
        elif self.model.refunded_cents > 0:
            self.model.payment_status = "partially-refunded"

    def change_status(self, order_status: str, notes: str | None, at: datetime) -> None:
        self.model.order_status = order_status
        if notes:
            self.model.notes = notes
        self.model.updated_at = at
