from __future__ import annotations

from enum import Enum

from retailops.core.errors import InvalidPriceError


class InventoryStatus(str, Enum):
    OUT_OF_STOCK = "out_of_stock"
    LOW_STOCK = "low_stock"
    IN_STOCK = "in_stock"


class MovementType(str, Enum):
    IN = "in"
    OUT = "out"
    ADJUSTMENT = "adjustment"
    RETURN = "return"
    DAMAGE = "damage"


class MovementReference(str, Enum):
    ORDER = "order"
    REFUND = "refund"
    MANUAL = "manual"


INBOUND_MOVEMENTS = frozenset({MovementType.IN, MovementType.RETURN})
OUTBOUND_MOVEMENTS = frozenset({MovementType.OUT, MovementType.DAMAGE})


def derive_inventory_status(quantity: int, min_stock_level: int) -> InventoryStatus:
    # Backordered variants sit at 0, which still reads as out of stock.
    if quantity <= 0:
        return InventoryStatus.OUT_OF_STOCK
    if quantity <= min_stock_level:
        return InventoryStatus.LOW_STOCK
    return InventoryStatus.IN_STOCK


def validate_price_ladder(cost_price: int, selling_price: int, market_price: int, sku: str | None = None) -> None:
    """Reject price triples that break ``cost <= selling <= market``."""

    label = f" for sku={sku}" if sku else ""
    if min(cost_price, selling_price, market_price) < 0:
        raise InvalidPriceError(f"prices cannot be negative{label}", sku=sku)
    if cost_price > selling_price:
        raise InvalidPriceError(
            f"cost price {cost_price} exceeds selling price {selling_price}{label}",
            sku=sku,
        )
    if selling_price > market_price:
        raise InvalidPriceError(
            f"selling price {selling_price} exceeds market price {market_price}{label}",
            sku=sku,
        )


def expected_new_stock(movement_type: MovementType, quantity: int, previous_stock: int, backordered: int = 0) -> int:
    movement_type = MovementType(movement_type)
    if movement_type in INBOUND_MOVEMENTS:
        return previous_stock + quantity
    if movement_type in OUTBOUND_MOVEMENTS:
        return previous_stock - quantity + backordered
    return quantity
