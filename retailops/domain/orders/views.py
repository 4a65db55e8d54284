from __future__ import annotations

from datetime import datetime

from retailops.domain.views import FrozenView
from retailops.persistence.models import OrderItemModel, OrderModel, RefundModel


class OrderItemView(FrozenView):
    id: str
    product_id: str
    product_name: str
    sku: str
    color: str
    size: str | None
    quantity: int
    unit_price: int
    total_price: int
    serial_number: str | None
    refunded_quantity: int
    refunded_amount: int
    refundable_quantity: int
    refundable_amount: int

    @classmethod
    def from_model(cls, item: OrderItemModel) -> "OrderItemView":
        return cls(
            id=item.id,
            product_id=item.product_id,
            product_name=item.product_name,
            sku=item.variant_sku,
            color=item.variant_color,
            size=item.variant_size,
            quantity=item.quantity,
            unit_price=item.unit_price_cents,
            total_price=item.total_price_cents,
            serial_number=item.serial_number,
            refunded_quantity=item.refunded_quantity,
            refunded_amount=item.refunded_amount_cents,
            refundable_quantity=item.quantity - item.refunded_quantity,
            refundable_amount=(item.quantity - item.refunded_quantity) * item.unit_price_cents,
        )


class RefundLineView(FrozenView):
    order_item_id: str
    quantity: int
    amount: int


class RefundView(FrozenView):
    id: str
    amount: int
    reason: str
    processed_by: str
    created_at: datetime
    items: list[RefundLineView]

    @classmethod
    def from_model(cls, refund: RefundModel) -> "RefundView":
        return cls(
            id=refund.id,
            amount=refund.amount_cents,
            reason=refund.reason,
            processed_by=refund.processed_by,
            created_at=refund.created_at,
            items=[RefundLineView(**line) for line in refund.items],
        )


class OrderView(FrozenView):
    id: str
    order_number: str
    customer_id: str
    items: list[OrderItemView]
    subtotal: int
    tax: int
    discount: int
    shipping: int
    total: int
    total_refunded: int
    net_amount: int
    payment_method: str
    payment_status: str
    order_status: str
    order_type: str
    staff_id: str | None
    notes: str | None
    shipping_address: dict
    billing_address: dict
    refunds: list[RefundView]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, order: OrderModel) -> "OrderView":
        return cls(
            id=order.id,
            order_number=order.order_number,
            customer_id=order.customer_id,
            items=[OrderItemView.from_model(item) for item in order.items],
            subtotal=order.subtotal_cents,
            tax=order.tax_cents,
            discount=order.discount_cents,
            shipping=order.shipping_cents,
            total=order.total_cents,
            total_refunded=order.refunded_cents,
            net_amount=order.total_cents - order.refunded_cents,
            payment_method=order.payment_method,
            payment_status=order.payment_status,
            order_status=order.order_status,
            order_type=order.order_type,
            staff_id=order.staff_id,
            notes=order.notes,
            shipping_address=dict(order.shipping_address or {}),
            billing_address=dict(order.billing_address or {}),
            refunds=[RefundView.from_model(refund) for refund in order.refunds],
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class RefundResult(FrozenView):
    order_id: str
    order_number: str
    refund_id: str
    refund_amount: int
    refund_reason: str
    refund_items: list[RefundLineView]
    payment_status: str
    total_refunded: int
