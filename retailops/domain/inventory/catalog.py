from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import select

from retailops.core.errors import InputValidationError, NotFoundError
from retailops.domain.inventory.commands import ProductCreate, VariantPriceUpdate
from retailops.domain.inventory.status import MovementReference, derive_inventory_status, validate_price_ladder
from retailops.persistence.models import ProductModel, VariantModel

if TYPE_CHECKING:
    from retailops.transactions.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class Catalog:
    """Product and variant lookups plus the catalog writes the engine owns."""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.session = uow.session

    def get_product(self, product_id: str) -> ProductModel:
        product = self.session.get(ProductModel, product_id)
        if product is None:
            raise NotFoundError(f"Product not found: {product_id}", product_id=product_id)
        return product

    def variant_of(self, product: ProductModel, sku: str) -> VariantModel:
        for variant in product.variants:
            if variant.sku == sku:
                return variant
        raise NotFoundError(f"Variant not found: {sku}", product_id=product.id, sku=sku)

    def find_variant(self, sku: str) -> VariantModel:
        variant = self.session.scalar(select(VariantModel).where(VariantModel.sku == sku))
        if variant is None:
            raise NotFoundError(f"Product variant not found: {sku}", sku=sku)
        return variant

    def create_product(self, command: ProductCreate) -> ProductModel:
        self.uow.validating()
        for draft in command.variants:
            validate_price_ladder(draft.cost_price, draft.selling_price, draft.market_price, sku=draft.sku)
        skus = [draft.sku for draft in command.variants]
        taken = list(self.session.scalars(select(VariantModel.sku).where(VariantModel.sku.in_(skus))).all())
        if taken:
            raise InputValidationError(f"sku already exists: {', '.join(sorted(taken))}", skus=sorted(taken))

        self.uow.mutating()
        now = self.uow.started_at
        threshold = (
            command.low_stock_threshold
            if command.low_stock_threshold is not None
            else self.uow.settings.default_min_stock_level
        )
        product = ProductModel(
            name=command.name,
            brand=command.brand,
            model=command.model,
            track_inventory=command.track_inventory,
            allow_backorders=command.allow_backorders,
            low_stock_threshold=threshold,
            total_sold=0,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        for position, draft in enumerate(command.variants):
            min_stock = draft.min_stock_level if draft.min_stock_level is not None else threshold
            product.variants.append(
                VariantModel(
                    position=position,
                    sku=draft.sku,
                    color=draft.color,
                    size=draft.size,
                    cost_price_cents=draft.cost_price,
                    selling_price_cents=draft.selling_price,
                    market_price_cents=draft.market_price,
                    quantity=0,
                    reserved=draft.reserved,
                    min_stock_level=min_stock,
                    reorder_point=(
                        draft.reorder_point
                        if draft.reorder_point is not None
                        else self.uow.settings.default_reorder_point
                    ),
                    total_sold=0,
                    inventory_status=derive_inventory_status(0, min_stock).value,
                )
            )
        self.session.add(product)
        self.session.flush()

        # Opening stock goes through the store so the ledger history starts at zero.
        for draft, variant in zip(command.variants, product.variants):
            if draft.quantity:
                change = self.uow.stock.set_level(variant, draft.quantity)
                self.uow.ledger.record(
                    change,
                    reference=MovementReference.MANUAL,
                    reason="Opening stock",
                    unit_cost=variant.cost_price_cents,
                )
        logger.info("product created: id=%s variants=%s", product.id, len(product.variants))
        return product

    def update_variant_prices(self, sku: str, update: VariantPriceUpdate) -> VariantModel:
        self.uow.validating()
        variant = self.find_variant(sku)
        cost = variant.cost_price_cents if update.cost_price is None else update.cost_price
        selling = variant.selling_price_cents if update.selling_price is None else update.selling_price
        market = variant.market_price_cents if update.market_price is None else update.market_price
        validate_price_ladder(cost, selling, market, sku=sku)

        self.uow.mutating()
        variant.cost_price_cents = cost
        variant.selling_price_cents = selling
        variant.market_price_cents = market
        variant.product.updated_at = self.uow.started_at
        self.session.flush()
        return variant
