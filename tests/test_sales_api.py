# tests/test_sales_api.py
from fastapi.testclient import TestClient
from posstore.main import app
from posstore.database import STORE

client = TestClient(app)


def reset():
    client.post("/reset")


def register(barcode, name="Item", price=1000, stock=5, min_stock=2, cost=500):
    r = client.post("/products", json={
        "barcode": barcode, "name": name, "category": "x",
        "cost_price_cents": cost, "sale_price_cents": price,
        "stock": stock, "min_stock": min_stock,
    })
    assert r.status_code == 201
    return r.json()["id"]


def sell(lines, method="cash", cash=None, seller="worker-1", headers=None):
    payload = {
        "seller_id": seller,
        "products": [{"product_id": pid, "quantity": qty} for pid, qty in lines],
        "payment_method": method,
    }
    if cash is not None:
        payload["cash_received_cents"] = cash
    return client.post("/sales", json=payload, headers=headers or {})


def stock_of(pid):
    return client.get(f"/products/{pid}").json()["stock"]


def test_cash_sale_updates_stock_and_gives_change():
    reset()
    a = register("A-1", "A", price=1000, stock=5, min_stock=2)
    r = sell([(a, 3)], cash=5000)
    assert r.status_code == 201
    sale = r.json()
    assert sale["total_cents"] == 3000
    assert sale["cash_received_cents"] == 5000
    assert sale["change_cents"] == 2000
    assert sale["seller_id"] == "worker-1"
    assert sale["products"] == [
        {"product_id": a, "quantity": 3, "price_at_sale_cents": 1000, "subtotal_cents": 3000}
    ]
    assert stock_of(a) == 2


def test_insufficient_stock_leaves_nothing_behind():
    reset()
    b = register("B-1", "B", stock=1)
    r = sell([(b, 2)], cash=10000)
    assert r.status_code == 409
    detail = r.json()["detail"]
    assert detail["error"] == "insufficient_stock"
    assert detail["name"] == "B"
    assert detail["available"] == 1
    assert stock_of(b) == 1
    assert client.get("/sales").json() == []


def test_insufficient_payment_mutates_no_stock():
    reset()
    a = register("A-1", price=1500, stock=10)
    b = register("B-1", price=1500, stock=10)
    r = sell([(a, 2), (b, 1)], cash=4000)
    assert r.status_code == 402
    detail = r.json()["detail"]
    assert detail["total_cents"] == 4500
    assert detail["cash_received_cents"] == 4000
    assert stock_of(a) == 10
    assert stock_of(b) == 10
    assert client.get("/sales").json() == []


def test_transfer_sale_has_no_cash_fields():
    reset()
    a = register("A-1", price=1000, stock=5)
    r = sell([(a, 3)], method="transfer", cash=9999)
    assert r.status_code == 201
    sale = r.json()
    assert sale["total_cents"] == 3000
    assert "cash_received_cents" not in sale
    assert "change_cents" not in sale
    assert stock_of(a) == 2


def test_failing_line_discards_earlier_lines():
    reset()
    a = register("A-1", stock=5)
    b = register("B-1", stock=1)
    r = sell([(a, 2), (b, 3)], method="transfer")
    assert r.status_code == 409
    assert stock_of(a) == 5
    assert stock_of(b) == 1


def test_unknown_product_is_404():
    reset()
    a = register("A-1", stock=5)
    r = sell([(a, 1), ("missing", 1)], method="transfer")
    assert r.status_code == 404
    assert r.json()["detail"]["error"] == "product_not_found"
    assert stock_of(a) == 5


def test_empty_cart_and_bad_quantity_are_rejected():
    reset()
    a = register("A-1", stock=5)
    assert sell([], method="transfer").status_code == 400
    r = sell([(a, 0)], method="transfer")
    assert r.status_code == 400
    assert r.json()["detail"]["error"] == "invalid_quantity"
    assert stock_of(a) == 5


def test_unknown_payment_method_fails_validation():
    reset()
    a = register("A-1", stock=5)
    assert sell([(a, 1)], method="card").status_code == 422


def test_repeated_over_quantity_request_is_rejected_each_time():
    reset()
    b = register("B-1", stock=1)
    for _ in range(2):
        assert sell([(b, 2)], method="transfer").status_code == 409
        assert stock_of(b) == 1


def test_idempotency_key_replays_the_same_sale():
    reset()
    a = register("A-1", price=200, stock=5)
    r1 = sell([(a, 2)], cash=500, headers={"Idempotency-Key": "k1"})
    r2 = sell([(a, 2)], cash=500, headers={"Idempotency-Key": "k1"})
    assert r1.status_code == 201
    assert r2.json()["id"] == r1.json()["id"]
    assert stock_of(a) == 3
    assert len(STORE.sales) == 1


def test_price_change_does_not_alter_past_sales():
    reset()
    a = register("A-1", price=1000, stock=5)
    sale_id = sell([(a, 1)], method="transfer").json()["id"]
    client.put(f"/products/{a}", json={"sale_price_cents": 5000})
    client.delete(f"/products/{a}")
    sale = client.get(f"/sales/{sale_id}").json()
    assert sale["products"][0]["price_at_sale_cents"] == 1000
    assert sale["total_cents"] == 1000


def test_list_sales_newest_first_and_by_seller():
    reset()
    a = register("A-1", price=100, stock=10)
    first = sell([(a, 1)], method="transfer", seller="ana").json()["id"]
    second = sell([(a, 1)], method="transfer", seller="luis").json()["id"]
    third = sell([(a, 1)], method="transfer", seller="ana").json()["id"]

    all_ids = [s["id"] for s in client.get("/sales").json()]
    assert all_ids == [third, second, first]

    ana = client.get("/sales", params={"seller_id": "ana"}).json()
    assert [s["id"] for s in ana] == [third, first]
    assert len(client.get("/sales", params={"limit": 1}).json()) == 1


def test_get_unknown_sale_is_404():
    reset()
    assert client.get("/sales/nope").status_code == 404
