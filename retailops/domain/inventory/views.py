from __future__ import annotations

from datetime import datetime

from retailops.domain.views import FrozenView
from retailops.persistence.models import ProductModel, StockMovementModel, VariantModel


class VariantView(FrozenView):
    sku: str
    color: str
    size: str | None
    cost_price: int
    selling_price: int
    market_price: int
    quantity: int
    reserved: int
    available: int
    min_stock_level: int
    reorder_point: int
    total_sold: int
    inventory_status: str
    last_restocked_at: datetime | None

    @classmethod
    def from_model(cls, variant: VariantModel) -> "VariantView":
        return cls(
            sku=variant.sku,
            color=variant.color,
            size=variant.size,
            cost_price=variant.cost_price_cents,
            selling_price=variant.selling_price_cents,
            market_price=variant.market_price_cents,
            quantity=variant.quantity,
            reserved=variant.reserved,
            available=max(variant.quantity - variant.reserved, 0),
            min_stock_level=variant.min_stock_level,
            reorder_point=variant.reorder_point,
            total_sold=variant.total_sold,
            inventory_status=variant.inventory_status,
            last_restocked_at=variant.last_restocked_at,
        )


class ProductView(FrozenView):
    id: str
    name: str
    brand: str
    model: str | None
    track_inventory: bool
    allow_backorders: bool
    low_stock_threshold: int
    total_sold: int
    total_quantity: int
    variants: list[VariantView]

    @classmethod
    def from_model(cls, product: ProductModel) -> "ProductView":
        variants = [VariantView.from_model(v) for v in product.variants]
        return cls(
            id=product.id,
            name=product.name,
            brand=product.brand,
            model=product.model,
            track_inventory=product.track_inventory,
            allow_backorders=product.allow_backorders,
            low_stock_threshold=product.low_stock_threshold,
            total_sold=product.total_sold,
            total_quantity=sum(v.quantity for v in variants),
            variants=variants,
        )


class MovementView(FrozenView):
    id: int
    product_id: str
    variant_sku: str
    movement_type: str
    quantity: int
    previous_stock: int
    new_stock: int
    backordered: int
    reference: str
    reference_id: str | None
    reason: str | None
    notes: str | None
    unit_cost: int
    processed_by: str
    occurred_at: datetime

    @classmethod
    def from_model(cls, row: StockMovementModel) -> "MovementView":
        return cls(
            id=row.id,
            product_id=row.product_id,
            variant_sku=row.variant_sku,
            movement_type=row.movement_type,
            quantity=row.quantity,
            previous_stock=row.previous_stock,
            new_stock=row.new_stock,
            backordered=row.backordered,
            reference=row.reference,
            reference_id=row.reference_id,
            reason=row.reason,
            notes=row.notes,
            unit_cost=row.unit_cost_cents,
            processed_by=row.processed_by,
            occurred_at=row.occurred_at,
        )


class MovementResult(FrozenView):
    movement_id: int
    product_id: str
    product: str
    variant: str
    movement_type: str
    quantity: int
    previous_stock: int
    new_stock: int
    backordered: int
    inventory_status: str
    cost_price: int
    profit_per_unit: int
