from __future__ import annotations

import pytest

from retailops.core.errors import InvalidPriceError
from retailops.domain.inventory.status import (
    InventoryStatus,
    MovementType,
    derive_inventory_status,
    expected_new_stock,
    validate_price_ladder,
)


@pytest.mark.parametrize(
    ("quantity", "min_stock_level", "expected"),
    [
        (0, 5, InventoryStatus.OUT_OF_STOCK),
        (-3, 5, InventoryStatus.OUT_OF_STOCK),
        (5, 5, InventoryStatus.LOW_STOCK),
        (1, 5, InventoryStatus.LOW_STOCK),
        (6, 5, InventoryStatus.IN_STOCK),
        (1, 0, InventoryStatus.IN_STOCK),
    ],
)
def test_derive_inventory_status(quantity, min_stock_level, expected):
    assert derive_inventory_status(quantity, min_stock_level) == expected


def test_price_ladder_accepts_equal_prices():
    validate_price_ladder(100, 100, 100)


def test_price_ladder_rejects_cost_above_selling():
    with pytest.raises(InvalidPriceError) as exc_info:
        validate_price_ladder(200, 100, 300, sku="SKU-X")
    assert exc_info.value.kind == "InvalidPrice"
    assert "SKU-X" in exc_info.value.message


def test_price_ladder_rejects_selling_above_market():
    with pytest.raises(InvalidPriceError):
        validate_price_ladder(50, 300, 200)


def test_price_ladder_rejects_negative_prices():
    with pytest.raises(InvalidPriceError):
        validate_price_ladder(-1, 100, 200)


def test_expected_new_stock_by_direction():
    assert expected_new_stock(MovementType.IN, 4, 10) == 14
    assert expected_new_stock(MovementType.RETURN, 1, 0) == 1
    assert expected_new_stock(MovementType.OUT, 3, 10) == 7
    assert expected_new_stock(MovementType.DAMAGE, 2, 2) == 0
    # Backordered units never push the counter below zero.
    assert expected_new_stock(MovementType.OUT, 5, 2, backordered=3) == 0
    assert expected_new_stock("adjustment", 42, 7) == 42
