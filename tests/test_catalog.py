from __future__ import annotations

import pytest
from pydantic import ValidationError

from retailops.core.errors import InputValidationError, InvalidPriceError, NotFoundError


def test_create_product_records_opening_stock(tx_engine, make_product):
    product = make_product(quantity=12, min_stock_level=3)
    variant = product.variants[0]
    assert variant.quantity == 12
    assert variant.inventory_status == "in_stock"
    assert product.total_quantity == 12

    movements = tx_engine.list_movements(sku=variant.sku)
    assert len(movements) == 1
    assert movements[0].movement_type == "adjustment"
    assert movements[0].previous_stock == 0
    assert movements[0].new_stock == 12
    assert movements[0].reason == "Opening stock"
    assert tx_engine.reconcile_variant(variant.sku).consistent


def test_product_without_stock_has_no_ledger_history(tx_engine, make_product):
    product = make_product(quantity=0)
    sku = product.variants[0].sku
    assert product.variants[0].inventory_status == "out_of_stock"
    assert tx_engine.list_movements(sku=sku) == []
    report = tx_engine.reconcile_variant(sku)
    assert report.consistent
    assert report.ledger_stock is None


def test_min_stock_level_falls_back_to_product_threshold(make_product):
    product = make_product(quantity=5)
    assert product.variants[0].min_stock_level == product.low_stock_threshold == 5
    assert product.variants[0].inventory_status == "low_stock"


def test_create_product_rejects_broken_price_ladder(tx_engine, make_product):
    with pytest.raises(InvalidPriceError):
        make_product(cost_price=15000, selling_price=10000, market_price=20000)
    with pytest.raises(InvalidPriceError):
        make_product(selling_price=30000, market_price=20000)


def test_create_product_rejects_existing_sku(tx_engine, manager, make_product):
    existing = make_product()
    payload = {
        "name": "Clone",
        "brand": "Acme",
        "variants": [
            {
                "sku": existing.variants[0].sku,
                "color": "Red",
                "cost_price": 1,
                "selling_price": 2,
                "market_price": 3,
            }
        ],
    }
    with pytest.raises(InputValidationError) as exc_info:
        tx_engine.create_product(payload, manager)
    assert exc_info.value.kind == "ValidationError"


def test_create_product_rejects_malformed_input(tx_engine, manager):
    with pytest.raises(InputValidationError) as exc_info:
        tx_engine.create_product({"name": "Empty", "brand": "Acme", "variants": []}, manager)
    assert "variants" in exc_info.value.context["fields"]


def test_update_variant_prices(tx_engine, manager, make_product):
    product = make_product()
    sku = product.variants[0].sku

    updated = tx_engine.update_variant_prices(sku, {"selling_price": 11000}, manager)
    assert updated.selling_price == 11000
    assert updated.cost_price == 6000

    with pytest.raises(InvalidPriceError):
        tx_engine.update_variant_prices(sku, {"selling_price": 13000}, manager)
    assert tx_engine.get_product(product.id).variants[0].selling_price == 11000


def test_get_unknown_product(tx_engine):
    with pytest.raises(NotFoundError):
        tx_engine.get_product("missing")


def test_returned_views_are_read_only(tx_engine, staff, make_product, walk_in):
    product = make_product(quantity=4)
    order = tx_engine.create_order(
        {
            "customer": walk_in,
            "items": [{"product_id": product.id, "variant_sku": product.variants[0].sku, "quantity": 1}],
            "payment_method": "cash",
        },
        staff,
    )

    with pytest.raises(ValidationError):
        product.total_quantity = 99
    with pytest.raises(ValidationError):
        product.variants[0].quantity = 99
    with pytest.raises(ValidationError):
        order.total = 0
    assert tx_engine.get_product(product.id).variants[0].quantity == 3
