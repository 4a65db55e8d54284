from retailops.domain.inventory.status import (
    InventoryStatus,
    MovementReference,
    MovementType,
    derive_inventory_status,
    validate_price_ladder,
)
from retailops.domain.inventory.stock import StockChange, VariantStockStore

__all__ = [
    "InventoryStatus",
    "MovementReference",
    "MovementType",
    "StockChange",
    "VariantStockStore",
    "derive_inventory_status",
    "validate_price_ladder",
]
