from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from retailops.domain.inventory.commands import AdjustInventoryCommand
from retailops.domain.inventory.status import MovementReference, MovementType, validate_price_ladder
from retailops.domain.inventory.views import MovementResult

if TYPE_CHECKING:
    from retailops.transactions.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


def adjust_inventory(uow: UnitOfWork, command: AdjustInventoryCommand) -> MovementResult:
    uow.validating()
    variant = uow.catalog.find_variant(command.variant_sku)
    uow.stock.lock([variant])
    if command.cost_price is not None:
        validate_price_ladder(
            command.cost_price,
            variant.selling_price_cents,
            variant.market_price_cents,
            sku=variant.sku,
        )

    uow.mutating()
    movement_type = MovementType(command.movement_type)
    if movement_type in {MovementType.IN, MovementType.RETURN}:
        change = uow.stock.credit(variant, command.quantity, movement_type)
        if command.cost_price is not None:
            variant.cost_price_cents = command.cost_price
    elif movement_type in {MovementType.OUT, MovementType.DAMAGE}:
        change = uow.stock.debit(variant, command.quantity, movement_type)
    else:
        change = uow.stock.set_level(variant, command.quantity)

    entry = uow.ledger.record(
        change,
        reference=MovementReference.MANUAL,
        reason=command.reason or "Inventory adjustment",
        notes=command.notes,
        unit_cost=variant.cost_price_cents,
    )
    product = variant.product
    logger.info(
        "inventory adjusted: sku=%s type=%s qty=%s stock %s->%s by %s",
        variant.sku,
        movement_type.value,
        command.quantity,
        change.previous_stock,
        change.new_stock,
        uow.actor.id,
    )
    return MovementResult(
        movement_id=entry.id,
        product_id=product.id,
        product=product.name,
        variant=variant.sku,
        movement_type=movement_type.value,
        quantity=command.quantity,
        previous_stock=change.previous_stock,
        new_stock=change.new_stock,
        backordered=change.backordered,
        inventory_status=variant.inventory_status,
        cost_price=variant.cost_price_cents,
        profit_per_unit=variant.selling_price_cents - variant.cost_price_cents,
    )
