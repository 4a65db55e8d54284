from __future__ import annotations

from datetime import datetime, timedelta, timezone


def _product_payload(sku: str = "API-001", quantity: int = 10) -> dict:
    return {
        "name": "Pixel Test",
        "brand": "Acme",
        "variants": [
            {
                "sku": sku,
                "color": "Blue",
                "size": "256GB",
                "cost_price": 6000,
                "selling_price": 10000,
                "market_price": 12000,
                "quantity": quantity,
            }
        ],
    }


def _create_product(client, auth_headers, **kwargs) -> dict:
    resp = client.post("/products", json=_product_payload(**kwargs), headers=auth_headers["manager"])
    assert resp.status_code == 201, resp.text
    return resp.json()


def test_healthz(client):
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_requests_need_a_valid_api_key(client, auth_headers):
    assert client.get("/inventory/summary").status_code == 401
    assert client.get("/inventory/summary", headers={"X-API-Key": "wrong"}).status_code == 401
    assert client.get("/inventory/summary", headers={"Authorization": "Basic abc"}).status_code == 401
    assert client.get("/inventory/summary", headers=auth_headers["system"]).status_code == 200


def test_staff_cannot_change_catalog_or_stock(client, auth_headers):
    product = _create_product(client, auth_headers)

    denied = client.put(
        "/inventory/API-001",
        json={"quantity": 5, "movement_type": "in"},
        headers=auth_headers["staff"],
    )
    assert denied.status_code == 403

    denied_prices = client.put(
        f"/products/{product['id']}/variants/API-001/prices",
        json={"selling_price": 11000},
        headers=auth_headers["staff"],
    )
    assert denied_prices.status_code == 403
    assert client.post("/products", json=_product_payload("API-002"), headers=auth_headers["staff"]).status_code == 403


def test_order_refund_and_status_flow(client, auth_headers):
    product = _create_product(client, auth_headers)
    created = client.post(
        "/orders",
        json={
            "customer": {"name": "Ravi K", "phone": "+919812345678"},
            "items": [{"product_id": product["id"], "variant_sku": "API-001", "quantity": 3}],
            "payment_method": "upi",
        },
        headers=auth_headers["staff"],
    )
    assert created.status_code == 201, created.text
    order = created.json()
    assert order["total"] == 33000
    assert order["order_number"].startswith("ORD-")

    fetched = client.get(f"/orders/{order['id']}", headers=auth_headers["staff"])
    assert fetched.status_code == 200
    assert fetched.json()["items"][0]["quantity"] == 3

    refund = client.post(
        f"/orders/{order['id']}/refunds",
        json={"items": [{"order_item_id": order["items"][0]["id"], "quantity": 1}], "reason": "Defective"},
        headers=auth_headers["staff"],
    )
    assert refund.status_code == 201, refund.text
    assert refund.json()["refund_amount"] == 10000
    assert refund.json()["payment_status"] == "partially-refunded"

    status = client.put(
        f"/orders/{order['id']}/status",
        json={"order_status": "cancelled", "notes": "customer left"},
        headers=auth_headers["staff"],
    )
    assert status.status_code == 200
    assert status.json()["order_status"] == "cancelled"

    product_now = client.get(f"/products/{product['id']}", headers=auth_headers["staff"]).json()
    assert product_now["variants"][0]["quantity"] == 8


def test_domain_errors_map_to_stable_kinds(client, auth_headers):
    product = _create_product(client, auth_headers, quantity=2)

    short = client.post(
        "/orders",
        json={
            "customer": {"name": "Ravi K", "phone": "+919812345678"},
            "items": [{"product_id": product["id"], "variant_sku": "API-001", "quantity": 3}],
            "payment_method": "cash",
        },
        headers=auth_headers["staff"],
    )
    assert short.status_code == 409
    assert short.json()["error"] == "InsufficientStock"
    assert "Available: 2" in short.json()["detail"]

    missing = client.get("/orders/nope", headers=auth_headers["staff"])
    assert missing.status_code == 404
    assert missing.json()["error"] == "NotFound"

    bad_price = client.put(
        f"/products/{product['id']}/variants/API-001/prices",
        json={"cost_price": 20000},
        headers=auth_headers["manager"],
    )
    assert bad_price.status_code == 422
    assert bad_price.json()["error"] == "InvalidPrice"

    malformed = client.post("/orders", json={"items": []}, headers=auth_headers["staff"])
    assert malformed.status_code == 422
    assert malformed.json()["error"] == "ValidationError"

    bad_adjust = client.put(
        "/inventory/API-001",
        json={"quantity": 0, "movement_type": "out"},
        headers=auth_headers["manager"],
    )
    assert bad_adjust.status_code == 422
    assert bad_adjust.json()["error"] == "ValidationError"


def test_inventory_endpoints(client, auth_headers):
    product = _create_product(client, auth_headers, quantity=3)

    adjusted = client.put(
        "/inventory/API-001",
        json={"quantity": 20, "movement_type": "in", "cost_price": 6200, "reason": "Restock"},
        headers=auth_headers["manager"],
    )
    assert adjusted.status_code == 200, adjusted.text
    assert adjusted.json()["new_stock"] == 23

    movements = client.get(
        "/inventory/movements",
        params={"sku": "API-001", "movement_type": ["in"]},
        headers=auth_headers["staff"],
    )
    assert movements.status_code == 200
    body = movements.json()
    assert body["count"] == 1
    assert body["movements"][0]["occurred_at"].endswith("Z")
    assert body["movements"][0]["product_id"] == product["id"]

    reconciliation = client.get("/inventory/API-001/reconciliation", headers=auth_headers["staff"])
    assert reconciliation.status_code == 200
    assert reconciliation.json()["consistent"] is True
    assert reconciliation.json()["entries"] == 2

    alerts = client.get("/inventory/alerts", headers=auth_headers["staff"])
    assert alerts.status_code == 200
    assert alerts.json()["counts"]["green"] == 1

    summary = client.get("/inventory/summary", headers=auth_headers["staff"])
    assert summary.json()["total_quantity"] == 23

    bad_period = client.get("/inventory/movements", params={"period": "yesterday"}, headers=auth_headers["staff"])
    assert bad_period.status_code == 422


def test_sales_report(client, auth_headers):
    product = _create_product(client, auth_headers)
    client.post(
        "/orders",
        json={
            "customer": {"name": "Ravi K", "phone": "+919812345678"},
            "items": [{"product_id": product["id"], "variant_sku": "API-001", "quantity": 1}],
            "payment_method": "card",
        },
        headers=auth_headers["staff"],
    )
    now = datetime.now(timezone.utc)
    period = f"{(now - timedelta(hours=1)).isoformat()}/{(now + timedelta(hours=1)).isoformat()}"

    resp = client.get("/reports/sales", params={"period": period}, headers=auth_headers["staff"])
    assert resp.status_code == 200
    assert resp.json()["summary"]["total_orders"] == 1
    assert resp.json()["summary"]["total_revenue"] == 11000

    bad = client.get("/reports/sales", params={"period": "not-a-period"}, headers=auth_headers["staff"])
    assert bad.status_code == 422
    assert bad.json()["error"] == "ValidationError"
