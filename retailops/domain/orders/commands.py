from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from retailops.domain.customers.commands import Address, CustomerRef

PaymentMethod = Literal["cash", "card", "upi", "bank-transfer", "credit", "wallet"]
PaymentStatus = Literal["pending", "paid", "failed", "refunded", "partially-refunded"]
OrderStatus = Literal["pending", "confirmed", "processing", "ready", "completed", "cancelled"]
OrderType = Literal["online", "instore"]


class OrderItemRequest(BaseModel):
    product_id: str
    variant_sku: str
    quantity: int = Field(ge=1)
    serial_number: str | None = Field(default=None, max_length=128)


class CreateOrderCommand(BaseModel):
    customer: CustomerRef
    items: list[OrderItemRequest] = Field(min_length=1)
    payment_method: PaymentMethod
    discount: int = Field(default=0, ge=0, description="int cents")
    order_type: OrderType = "instore"
    notes: str | None = Field(default=None, max_length=500)
    # Settlement happens outside the engine; callers report the outcome.
    payment_status: PaymentStatus | None = None
    shipping_address: Address | None = None
    billing_address: Address | None = None


class RefundLineRequest(BaseModel):
    order_item_id: str
    quantity: int = Field(ge=1)


class ProcessRefundCommand(BaseModel):
    items: list[RefundLineRequest] = Field(min_length=1)
    reason: str = Field(min_length=1, max_length=500)


class UpdateOrderStatusCommand(BaseModel):
    order_status: OrderStatus
    notes: str | None = Field(default=None, max_length=500)
