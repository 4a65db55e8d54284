from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.types import JSON


def _json_type():
    return JSON().with_variant(JSONB(astext_type=Text()), "postgresql")


def _uuid() -> str:
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    pass


class CustomerModel(Base):
    __tablename__ = "customers"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    address: Mapped[dict] = mapped_column(_json_type(), nullable=False, default=dict)
    customer_type: Mapped[str] = mapped_column(String(16), nullable=False, default="walk-in")
    total_orders: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_spent_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    last_purchase_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class ProductModel(Base):
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    brand: Mapped[str] = mapped_column(String(120), nullable=False)
    model: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    track_inventory: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    allow_backorders: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    low_stock_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    total_sold: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    variants: Mapped[list["VariantModel"]] = relationship(
        back_populates="product",
        order_by="VariantModel.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class VariantModel(Base):
    __tablename__ = "product_variants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sku: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    color: Mapped[str] = mapped_column(String(64), nullable=False)
    size: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    cost_price_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    selling_price_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    market_price_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    quantity: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    reserved: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    min_stock_level: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    reorder_point: Mapped[int] = mapped_column(Integer, nullable=False, default=10)
    total_sold: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    inventory_status: Mapped[str] = mapped_column(String(16), nullable=False, default="out_of_stock")
    last_restocked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    product: Mapped[ProductModel] = relationship(back_populates="variants")

    __mapper_args__ = {"version_id_col": version}


class OrderModel(Base):
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    order_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    customer_id: Mapped[str] = mapped_column(String(36), ForeignKey("customers.id"), nullable=False)
    subtotal_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    tax_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    discount_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    shipping_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    refunded_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    payment_method: Mapped[str] = mapped_column(String(32), nullable=False)
    payment_status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")
    order_status: Mapped[str] = mapped_column(String(32), nullable=False, default="pending")
    order_type: Mapped[str] = mapped_column(String(16), nullable=False, default="instore")
    staff_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    shipping_address: Mapped[dict] = mapped_column(_json_type(), nullable=False, default=dict)
    billing_address: Mapped[dict] = mapped_column(_json_type(), nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    items: Mapped[list["OrderItemModel"]] = relationship(
        order_by="OrderItemModel.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    refunds: Mapped[list["RefundModel"]] = relationship(
        order_by="RefundModel.created_at",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": version}


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    order_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[str] = mapped_column(String(36), nullable=False)
    product_name: Mapped[str] = mapped_column(String(200), nullable=False)
    variant_sku: Mapped[str] = mapped_column(String(64), nullable=False)
    variant_color: Mapped[str] = mapped_column(String(64), nullable=False)
    variant_size: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    total_price_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    serial_number: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    refunded_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    refunded_amount_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


class RefundModel(Base):
    __tablename__ = "order_refunds"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    order_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    amount_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    reason: Mapped[str] = mapped_column(String(500), nullable=False)
    processed_by: Mapped[str] = mapped_column(String(128), nullable=False)
    items: Mapped[list] = mapped_column(_json_type(), nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class StockMovementModel(Base):
    __tablename__ = "stock_movements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[str] = mapped_column(String(36), nullable=False)
    variant_sku: Mapped[str] = mapped_column(String(64), nullable=False)
    movement_type: Mapped[str] = mapped_column(String(16), nullable=False)
    quantity: Mapped[int] = mapped_column(BigInteger, nullable=False)
    previous_stock: Mapped[int] = mapped_column(BigInteger, nullable=False)
    new_stock: Mapped[int] = mapped_column(BigInteger, nullable=False)
    backordered: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    reference: Mapped[str] = mapped_column(String(16), nullable=False)
    reference_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    reason: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    unit_cost_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    processed_by: Mapped[str] = mapped_column(String(128), nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class OrderSequenceModel(Base):
    __tablename__ = "order_sequences"

    period: Mapped[str] = mapped_column(String(6), primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


Index("ix_stock_movements_product_occurred_at", StockMovementModel.product_id, StockMovementModel.occurred_at)
Index("ix_stock_movements_variant_sku", StockMovementModel.variant_sku)
Index("ix_stock_movements_movement_type", StockMovementModel.movement_type)
Index("ix_orders_customer_created_at", OrderModel.customer_id, OrderModel.created_at)
Index("ix_orders_created_at", OrderModel.created_at)
Index("ix_order_items_order_id", OrderItemModel.order_id)
Index("ix_product_variants_product_id", VariantModel.product_id)
