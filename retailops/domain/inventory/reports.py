from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from retailops.domain.inventory.status import InventoryStatus, derive_inventory_status
from retailops.domain.inventory.stock import variant_label
from retailops.persistence.models import ProductModel, VariantModel


def _active_variants(session: Session) -> list[tuple[ProductModel, VariantModel]]:
    products = list(session.scalars(select(ProductModel).order_by(ProductModel.name.asc())).all())
    return [(product, variant) for product in products for variant in product.variants if variant.is_active]


def inventory_alerts(session: Session, min_suggested_reorder: int = 20) -> dict[str, list[dict]]:
    """Bucket every active variant into red/yellow/green plus reorder suggestions."""

    alerts: dict[str, list[dict]] = {"red": [], "yellow": [], "green": [], "reorder": []}
    for product, variant in _active_variants(session):
        label = variant_label(product, variant)
        info = {
            "product_id": product.id,
            "product_name": product.name,
            "variant_sku": variant.sku,
            "color": variant.color,
            "size": variant.size,
            "current_stock": variant.quantity,
            "min_stock_level": variant.min_stock_level,
            "reorder_point": variant.reorder_point,
            "cost_price": variant.cost_price_cents,
            "selling_price": variant.selling_price_cents,
            "profit_per_unit": variant.selling_price_cents - variant.cost_price_cents,
        }
        status = derive_inventory_status(variant.quantity, variant.min_stock_level)
        if status == InventoryStatus.OUT_OF_STOCK:
            alerts["red"].append({**info, "alert": "OUT_OF_STOCK", "message": f"{label} is out of stock"})
        elif status == InventoryStatus.LOW_STOCK:
            alerts["yellow"].append(
                {**info, "alert": "LOW_STOCK", "message": f"{label} is low on stock ({variant.quantity} left)"}
            )
            if variant.quantity <= variant.reorder_point:
                alerts["reorder"].append(
                    {
                        **info,
                        "alert": "REORDER_NEEDED",
                        "suggested_order": max(variant.reorder_point * 2, min_suggested_reorder),
                        "message": f"Consider reordering {label}",
                    }
                )
        else:
            alerts["green"].append({**info, "alert": "IN_STOCK", "message": f"{label} has good stock level"})
    return alerts


def inventory_summary(session: Session) -> dict[str, int]:
    summary = {
        "total_products": 0,
        "total_variants": 0,
        "total_quantity": 0,
        "total_cost_value": 0,
        "total_selling_value": 0,
        "total_market_value": 0,
        "out_of_stock_count": 0,
        "low_stock_count": 0,
    }
    product_ids: set[str] = set()
    for product, variant in _active_variants(session):
        product_ids.add(product.id)
        summary["total_variants"] += 1
        summary["total_quantity"] += variant.quantity
        summary["total_cost_value"] += variant.quantity * variant.cost_price_cents
        summary["total_selling_value"] += variant.quantity * variant.selling_price_cents
        summary["total_market_value"] += variant.quantity * variant.market_price_cents
        status = derive_inventory_status(variant.quantity, variant.min_stock_level)
        if status == InventoryStatus.OUT_OF_STOCK:
            summary["out_of_stock_count"] += 1
        elif status == InventoryStatus.LOW_STOCK:
            summary["low_stock_count"] += 1
    summary["total_products"] = len(product_ids)
    return summary
