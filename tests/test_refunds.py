from __future__ import annotations

import pytest

from retailops.core.errors import InputValidationError, NoRefundableItemsError, NotFoundError


@pytest.fixture()
def sold_order(tx_engine, staff, make_product, walk_in):
    product = make_product(quantity=10, selling_price=10000)
    order = tx_engine.create_order(
        {
            "customer": walk_in,
            "items": [{"product_id": product.id, "variant_sku": product.variants[0].sku, "quantity": 3}],
            "payment_method": "card",
        },
        staff,
    )
    return product, order


def _refund(order, quantity, reason="Defective"):
    return {"items": [{"order_item_id": order.items[0].id, "quantity": quantity}], "reason": reason}


def test_partial_refund(tx_engine, staff, sold_order):
    product, order = sold_order
    sku = product.variants[0].sku

    result = tx_engine.process_refund(order.id, _refund(order, 1), staff)

    assert result.refund_amount == 10000
    assert result.total_refunded == 10000
    assert result.payment_status == "partially-refunded"
    assert [(line.order_item_id, line.quantity, line.amount) for line in result.refund_items] == [
        (order.items[0].id, 1, 10000)
    ]
    assert tx_engine.get_product(product.id).variants[0].quantity == 8

    restock = tx_engine.list_movements(sku=sku, movement_types=["in"])
    assert len(restock) == 1
    assert (restock[0].previous_stock, restock[0].new_stock) == (7, 8)
    assert restock[0].reference == "refund"
    assert restock[0].reason == "Refund: Defective"

    refreshed = tx_engine.get_order(order.id)
    assert refreshed.items[0].refunded_quantity == 1
    assert refreshed.items[0].refundable_quantity == 2
    assert refreshed.items[0].refundable_amount == 20000
    assert refreshed.net_amount == 33000 - 10000
    assert len(refreshed.refunds) == 1


def test_refund_of_remaining_quantity_marks_order_refunded(tx_engine, staff, sold_order):
    product, order = sold_order
    tx_engine.process_refund(order.id, _refund(order, 1), staff)

    result = tx_engine.process_refund(order.id, _refund(order, 2), staff)

    assert result.refund_amount == 20000
    assert result.total_refunded == 30000
    assert result.payment_status == "refunded"
    assert tx_engine.get_product(product.id).variants[0].quantity == 10
    assert tx_engine.reconcile_variant(product.variants[0].sku).consistent


def test_repeat_refund_is_rejected_without_side_effects(tx_engine, staff, sold_order):
    product, order = sold_order
    tx_engine.process_refund(order.id, _refund(order, 3), staff)
    movements_before = len(tx_engine.list_movements(sku=product.variants[0].sku))

    with pytest.raises(NoRefundableItemsError):
        tx_engine.process_refund(order.id, _refund(order, 1), staff)

    refreshed = tx_engine.get_order(order.id)
    assert refreshed.total_refunded == 30000
    assert len(refreshed.refunds) == 1
    assert tx_engine.get_product(product.id).variants[0].quantity == 10
    assert len(tx_engine.list_movements(sku=product.variants[0].sku)) == movements_before


def test_over_request_is_clamped_to_remaining_quantity(tx_engine, staff, sold_order):
    _, order = sold_order
    result = tx_engine.process_refund(order.id, _refund(order, 99), staff)
    assert result.refund_items[0].quantity == 3
    assert result.refund_amount == 30000


def test_unknown_order_or_item(tx_engine, staff, sold_order):
    _, order = sold_order
    with pytest.raises(NotFoundError):
        tx_engine.process_refund("missing", _refund(order, 1), staff)
    with pytest.raises(NotFoundError):
        tx_engine.process_refund(
            order.id,
            {"items": [{"order_item_id": "nope", "quantity": 1}], "reason": "Defective"},
            staff,
        )
    assert tx_engine.get_order(order.id).total_refunded == 0


def test_refund_requires_reason_and_lines(tx_engine, staff, sold_order):
    _, order = sold_order
    with pytest.raises(InputValidationError):
        tx_engine.process_refund(order.id, {"items": [], "reason": "x"}, staff)
    with pytest.raises(InputValidationError):
        tx_engine.process_refund(order.id, _refund(order, 1, reason=""), staff)


def test_refund_does_not_reverse_customer_aggregates(tx_engine, staff, sold_order):
    _, order = sold_order
    tx_engine.process_refund(order.id, _refund(order, 3), staff)
    customer = tx_engine.get_customer(order.customer_id)
    assert customer["total_orders"] == 1
    assert customer["total_spent"] == 33000


def test_refund_of_untracked_product_skips_restock(tx_engine, staff, make_product, walk_in):
    product = make_product(quantity=4, track_inventory=False)
    order = tx_engine.create_order(
        {
            "customer": walk_in,
            "items": [{"product_id": product.id, "variant_sku": product.variants[0].sku, "quantity": 2}],
            "payment_method": "cash",
        },
        staff,
    )
    result = tx_engine.process_refund(order.id, _refund(order, 2), staff)
    assert result.payment_status == "refunded"
    assert tx_engine.get_product(product.id).variants[0].quantity == 4
    assert tx_engine.list_movements(sku=product.variants[0].sku, movement_types=["in"]) == []


def test_exhausted_line_is_skipped_while_others_refund(tx_engine, staff, make_product, walk_in):
    phone = make_product(quantity=10, selling_price=10000)
    case = make_product(quantity=10, selling_price=10000)
    order = tx_engine.create_order(
        {
            "customer": walk_in,
            "items": [
                {"product_id": phone.id, "variant_sku": phone.variants[0].sku, "quantity": 2},
                {"product_id": case.id, "variant_sku": case.variants[0].sku, "quantity": 2},
            ],
            "payment_method": "card",
        },
        staff,
    )
    phone_line, case_line = order.items
    tx_engine.process_refund(
        order.id, {"items": [{"order_item_id": phone_line.id, "quantity": 2}], "reason": "Defective"}, staff
    )

    result = tx_engine.process_refund(
        order.id,
        {
            "items": [
                {"order_item_id": phone_line.id, "quantity": 1},
                {"order_item_id": case_line.id, "quantity": 1},
            ],
            "reason": "Changed mind",
        },
        staff,
    )

    assert [(line.order_item_id, line.quantity, line.amount) for line in result.refund_items] == [
        (case_line.id, 1, 10000)
    ]
    assert result.refund_amount == 10000
    assert result.total_refunded == 30000
    assert result.payment_status == "partially-refunded"
    assert tx_engine.get_product(phone.id).variants[0].quantity == 10
    assert tx_engine.get_product(case.id).variants[0].quantity == 9
    assert len(tx_engine.list_movements(sku=phone.variants[0].sku, movement_types=["in"])) == 1
    assert len(tx_engine.list_movements(sku=case.variants[0].sku, movement_types=["in"])) == 1
