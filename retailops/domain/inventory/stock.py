from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable

from sqlalchemy import select
from sqlalchemy.orm.exc import StaleDataError

from retailops.core.errors import ConcurrentModificationError, InputValidationError, InsufficientStockError
from retailops.domain.inventory.status import (
    InventoryStatus,
    MovementType,
    derive_inventory_status,
)
from retailops.persistence.models import ProductModel, VariantModel

if TYPE_CHECKING:
    from retailops.transactions.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StockChange:
    product_id: str
    sku: str
    movement_type: MovementType
    quantity: int
    previous_stock: int
    new_stock: int
    backordered: int = 0


def variant_label(product: ProductModel, variant: VariantModel) -> str:
    size = f" ({variant.size})" if variant.size else ""
    return f"{product.name} - {variant.color}{size}"


class VariantStockStore:
    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.session = uow.session

    def lock(self, variants: Iterable[VariantModel]) -> list[VariantModel]:
        """Lock variant rows in SKU order, then their products in id order.

        Every caller locks in the same order, so two transactions touching an
        overlapping set of SKUs or products queue up instead of deadlocking.
        Debits later write ``products.total_sold`` in request order; the
        product rows are already held by then.
        """

        skus = sorted({variant.sku for variant in variants})
        if not skus:
            return []
        stmt = (
            select(VariantModel)
            .where(VariantModel.sku.in_(skus))
            .order_by(VariantModel.sku.asc())
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        locked = list(self.session.scalars(stmt).all())
        self.lock_products({variant.product_id for variant in locked})
        return locked

    def lock_products(self, product_ids: Iterable[str]) -> list[str]:
        ids = sorted(set(product_ids))
        if not ids:
            return []
        stmt = (
            select(ProductModel.id)
            .where(ProductModel.id.in_(ids))
            .order_by(ProductModel.id.asc())
            .with_for_update()
        )
        return list(self.session.scalars(stmt).all())

    def debit(self, variant: VariantModel, qty: int, movement_type: MovementType = MovementType.OUT) -> StockChange:
        self._require_positive(variant, qty)
        product = variant.product
        previous = variant.quantity
        # Damaged goods can only leave stock that physically exists.
        backorder_ok = product.allow_backorders and movement_type == MovementType.OUT
        if qty > previous and not backorder_ok:
            raise InsufficientStockError(
                f"Insufficient stock for {variant_label(product, variant)}. Available: {previous}",
                product_id=product.id,
                sku=variant.sku,
                available=previous,
                requested=qty,
            )

        new_stock = previous - qty
        backordered = 0
        if new_stock < 0:
            backordered = -new_stock
            new_stock = 0

        variant.quantity = new_stock
        if movement_type == MovementType.OUT:
            variant.total_sold = variant.total_sold + qty
            product.total_sold = ProductModel.total_sold + qty
        if backordered:
            logger.info("sku=%s backordered %s units beyond recorded stock", variant.sku, backordered)
        return self._apply(variant, movement_type, qty, previous, new_stock, backordered)

    def credit(self, variant: VariantModel, qty: int, movement_type: MovementType = MovementType.IN) -> StockChange:
        self._require_positive(variant, qty)
        previous = variant.quantity
        new_stock = previous + qty
        variant.quantity = new_stock
        if movement_type == MovementType.IN:
            variant.last_restocked_at = self.uow.started_at
        return self._apply(variant, movement_type, qty, previous, new_stock)

    def set_level(self, variant: VariantModel, qty: int) -> StockChange:
        if qty < 0:
            raise InputValidationError(f"stock level cannot be negative for sku={variant.sku}", sku=variant.sku)
        previous = variant.quantity
        variant.quantity = qty
        return self._apply(variant, MovementType.ADJUSTMENT, qty, previous, qty)

    def _require_positive(self, variant: VariantModel, qty: int) -> None:
        if qty <= 0:
            raise InputValidationError(f"movement quantity must be positive for sku={variant.sku}", sku=variant.sku)

    def _apply(
        self,
        variant: VariantModel,
        movement_type: MovementType,
        qty: int,
        previous: int,
        new_stock: int,
        backordered: int = 0,
    ) -> StockChange:
        # Read before flushing: a failed flush leaves the instance unreadable.
        sku = variant.sku
        product_id = variant.product_id
        previous_status = variant.inventory_status
        status = derive_inventory_status(variant.quantity, variant.min_stock_level)
        variant.inventory_status = status.value
        try:
            # Versioned UPDATE: fails if another transaction moved this row first.
            self.session.flush()
        except StaleDataError as exc:
            raise ConcurrentModificationError(
                f"stock for sku={sku} changed concurrently; retry the request",
                sku=sku,
            ) from exc

        if status != InventoryStatus.IN_STOCK and previous_status != status.value:
            logger.info("sku=%s is now %s (quantity=%s)", sku, status.value, new_stock)

        change = StockChange(
            product_id=product_id,
            sku=sku,
            movement_type=MovementType(movement_type),
            quantity=qty,
            previous_stock=previous,
            new_stock=new_stock,
            backordered=backordered,
        )
        self.uow.stage_stock_change(change)
        return change
