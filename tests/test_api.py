# tests/test_api.py
import pytest

def _order(client, items, **extra):
    payload = {"items": items, "guest_email": "maria@example.com", "shipping_address": "Caracas"}
    payload.update(extra)
    return client.post("/api/orders", json=payload)


def test_get_product_envelope(client):
    r = client.get("/api/products/1")
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["data"]["name"] == "Ramo de 12 Rosas Rojas"
    assert body["data"]["price_usd"] == "25.00"


def test_missing_and_inactive_products_are_404(client):
    for pid in (999, 7):
        r = client.get(f"/api/products/{pid}")
        assert r.status_code == 404
        assert r.json() == {"success": False, "message": "product not found"}


def test_list_and_search_products(client):
    ids = [p["id"] for p in client.get("/api/products").json()["data"]]
    assert 7 not in ids and 1 in ids
    featured = client.get("/api/products", params={"featured": "true"}).json()["data"]
    assert all(p["featured"] for p in featured)
    birthday = client.get("/api/products", params={"occasion": "cumpleanos"}).json()["data"]
    assert {p["id"] for p in birthday} == {2, 4}
    found = client.get("/api/products/search", params={"name": "ROSAS"}).json()["data"]
    assert [p["id"] for p in found] == [1]


def test_exchange_rate_setting(client):
    r = client.get("/api/settings/exchange_rate_bcv")
    assert r.json()["data"]["setting_value"] == "36.5"
    r = client.put("/api/settings/exchange_rate_bcv", json={"value": "40.10"})
    assert r.json()["data"]["setting_value"] == "40.10"
    assert client.get("/api/settings/exchange_rate_bcv").json()["data"]["setting_value"] == "40.10"


def test_missing_setting_is_404(client):
    r = client.get("/api/settings/nope")
    assert r.status_code == 404
    assert r.json()["success"] is False


def test_create_order_totals_and_stock(client):
    r = _order(client, [{"product_id": 1, "quantity": 2}, {"product_id": 5, "quantity": 1}])
    assert r.status_code == 201
    order = r.json()["data"]
    assert order["subtotal_usd"] == "68.00"
    assert order["shipping_usd"] == "7.00"
    assert order["total_amount_usd"] == "75.00"
    assert order["status"] == "pending"
    assert order["order_number"].startswith("FL-")
    assert order["order_number"].endswith("-001")
    assert order["items"][0]["product_snapshot"]["name"] == "Ramo de 12 Rosas Rojas"
    assert client.get("/api/products/1").json()["data"]["stock_quantity"] == 38


def test_duplicate_lines_are_merged(client):
    order = _order(client, [{"product_id": 5, "quantity": 1}, {"product_id": 5, "quantity": 2}]).json()["data"]
    assert len(order["items"]) == 1
    assert order["items"][0]["quantity"] == 3


def test_shipping_follows_setting(client):
    client.put("/api/settings/shipping_cost_usd", json={"value": "5.50"})
    order = _order(client, [{"product_id": 5, "quantity": 1}]).json()["data"]
    assert order["total_amount_usd"] == "23.50"


def test_order_errors(client):
    assert _order(client, [{"product_id": 999, "quantity": 1}]).status_code == 404
    assert _order(client, [{"product_id": 6, "quantity": 6}]).status_code == 409
    assert client.get("/api/products/6").json()["data"]["stock_quantity"] == 5
    assert _order(client, []).status_code == 422
    assert _order(client, [{"product_id": 1, "quantity": 0}]).status_code == 422
    r = client.post("/api/orders", json={"items": [{"product_id": 1, "quantity": 1}], "shipping_address": "Caracas"})
    assert r.status_code == 400
    assert r.json()["success"] is False


def test_order_requires_shipping_address(client):
    items = [{"product_id": 1, "quantity": 1}]
    r = client.post("/api/orders", json={"items": items, "user_email": "ana@example.com"})
    assert r.status_code == 422
    assert r.json()["success"] is False
    assert _order(client, items, shipping_address="   ").status_code == 422
    order = _order(client, items, shipping_address="  Av. Libertador, Caracas ").json()["data"]
    assert order["shipping_address"] == "Av. Libertador, Caracas"
    assert client.get("/api/products/1").json()["data"]["stock_quantity"] == 39


def test_order_lookup_and_status(client):
    order = _order(client, [{"product_id": 2, "quantity": 1}]).json()["data"]
    assert client.get(f"/api/orders/{order['id']}").json()["data"]["id"] == order["id"]
    assert client.get("/api/orders/999").status_code == 404

    r = client.patch(f"/api/orders/{order['id']}/status", json={"status": "verified", "notes": "pago ok"})
    assert r.json()["data"]["status"] == "verified"
    history = r.json()["data"]["status_history"]
    assert [h["new_status"] for h in history] == ["pending", "verified"]
    assert client.patch(f"/api/orders/{order['id']}/status", json={"status": "lost"}).status_code == 400

    mine = client.get("/api/orders", params={"email": "maria@example.com"}).json()["data"]
    assert [o["id"] for o in mine] == [order["id"]]
    assert client.get("/api/orders", params={"status": "pending"}).json()["data"] == []


def test_payment_flow(client):
    methods = client.get("/api/payment-methods").json()["data"]
    assert 4 not in [m["id"] for m in methods]

    order = _order(client, [{"product_id": 1, "quantity": 2}, {"product_id": 5, "quantity": 1}]).json()["data"]
    r = client.post("/api/payments", json={"order_id": order["id"], "payment_method_id": 1,
                                           "amount_usd": "75.00", "reference_number": "123456"})
    assert r.status_code == 201
    payment = r.json()["data"]
    assert payment["status"] == "pending"
    assert payment["amount_ves"] == "2737.50"


def test_payment_errors(client):
    order = _order(client, [{"product_id": 5, "quantity": 1}]).json()["data"]
    base = {"order_id": order["id"], "payment_method_id": 1, "amount_usd": "25.00"}
    assert client.post("/api/payments", json={**base, "amount_usd": "0"}).status_code == 400
    assert client.post("/api/payments", json={**base, "order_id": 999}).status_code == 404
    assert client.post("/api/payments", json={**base, "payment_method_id": 4}).status_code == 404
    client.patch(f"/api/orders/{order['id']}/status", json={"status": "cancelled"})
    assert client.post("/api/payments", json=base).status_code == 409


def test_payment_must_match_order_total(client):
    order = _order(client, [{"product_id": 1, "quantity": 2}, {"product_id": 5, "quantity": 1}]).json()["data"]
    base = {"order_id": order["id"], "payment_method_id": 1}
    for amount in ("0.01", "74.99", "75.01"):
        r = client.post("/api/payments", json={**base, "amount_usd": amount})
        assert r.status_code == 400
        assert "does not match" in r.json()["message"]
    assert client.post("/api/payments", json={**base, "amount_usd": "75"}).status_code == 201


def test_payment_only_on_pending_orders(client):
    order = _order(client, [{"product_id": 5, "quantity": 1}]).json()["data"]
    client.patch(f"/api/orders/{order['id']}/status", json={"status": "delivered"})
    r = client.post("/api/payments", json={"order_id": order["id"], "payment_method_id": 1, "amount_usd": "25.00"})
    assert r.status_code == 400
    assert "pending" in r.json()["message"]


@pytest.mark.parametrize("rate", ["0", "-1", "abc"])
def test_unusable_rate_setting_falls_back_for_payments(client, rate):
    client.put("/api/settings/exchange_rate_bcv", json={"value": rate})
    order = _order(client, [{"product_id": 5, "quantity": 1}]).json()["data"]
    r = client.post("/api/payments", json={"order_id": order["id"], "payment_method_id": 1, "amount_usd": "25.00"})
    assert r.status_code == 201
    assert r.json()["data"]["amount_ves"] == "912.50"


def test_free_shipping_setting_is_honored(client):
    client.put("/api/settings/shipping_cost_usd", json={"value": "0"})
    order = _order(client, [{"product_id": 5, "quantity": 1}]).json()["data"]
    assert order["shipping_usd"] == "0"
    assert order["total_amount_usd"] == "18.00"


def test_reset_restores_seed(client):
    _order(client, [{"product_id": 1, "quantity": 2}])
    client.post("/api/reset")
    assert client.get("/api/products/1").json()["data"]["stock_quantity"] == 40
    assert client.get("/api/orders").json()["data"] == []
