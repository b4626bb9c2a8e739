import io

import pandas as pd

from shelflife.db.models import ProductStatus


def test_service_banner(client):
    assert client.get("/api").json() == {"ok": True, "service": "shelflife", "module": "inventory"}


def test_dashboard_on_empty_database(client):
    body = client.get("/api/dashboard").json()
    assert body["ok"] is True
    assert body["warehouses"] == []
    assert body["products"] == []
    assert body["stats"]["total_products"] == 0
    assert body["stats"]["total_quantity"] == 0


def test_dashboard_stats(client, make_warehouse, make_product):
    wid = make_warehouse(total_capacity=1000, used_capacity=333)
    make_product(wid, name="Fresh Milk", expires_in=5, current_stock=200)
    make_product(wid, name="Canned Beans", expires_in=300, current_stock=100)
    make_product(wid, name="Old Yogurt", expires_in=-3, current_stock=50, status=ProductStatus.DEAD_STOCK)
    make_product(wid, name="Bread", expires_in=20, current_stock=10, status=ProductStatus.AT_RISK)

    body = client.get("/api/dashboard").json()
    stats = body["stats"]
    assert stats["total_products"] == 4
    assert stats["total_quantity"] == 360
    assert stats["low_shelf_life_count"] == 1
    assert stats["dead_stock_count"] == 1
    assert stats["healthy_count"] == 2
    assert stats["at_risk_count"] == 1

    assert body["warehouse_utilization"] == [
        {"id": wid, "name": "Main Distribution Center", "location": "New York", "utilization_percentage": 33},
    ]
    milk = next(p for p in body["products"] if p["name"] == "Fresh Milk")
    assert milk["days_until_expiry"] == 5
    assert milk["warehouse"]["id"] == wid


def test_warehouses_with_capacity(client, make_warehouse, make_product):
    wid = make_warehouse(total_capacity=3000, used_capacity=1000)
    make_product(wid, expires_in=2)

    [row] = client.get("/api/warehouses").json()
    assert row["available_capacity"] == 2000
    assert row["utilization_percentage"] == 33.33
    assert row["stats"]["low_shelf_life_count"] == 1


def test_create_warehouse(client):
    res = client.post("/api/warehouses", json={"name": "Overflow", "location": "Newark", "total_capacity": 500})
    assert res.status_code == 201
    assert res.json()["used_capacity"] == 0
    assert [w["name"] for w in client.get("/api/warehouses").json()] == ["Overflow"]


def test_create_warehouse_rejects_overfull(client):
    res = client.post("/api/warehouses", json={
        "name": "Overflow", "location": "Newark", "total_capacity": 10, "used_capacity": 11,
    })
    assert res.status_code == 400


def test_product_lookup_across_warehouses(client, make_warehouse, make_product):
    first = make_warehouse(name="A", location="New York")
    second = make_warehouse(name="B", location="Los Angeles")
    make_product(first, name="Fresh Milk", sku="MILK-A", expires_in=12, current_stock=40)
    make_product(second, name="Fresh Milk 2L", sku="MILK-B", expires_in=4, current_stock=60)

    body = client.get("/api/products/MILK").json()
    assert body["found"] is True
    product = body["product"]
    assert product["sku"] == "MILK-B"
    assert product["current_quantity"] == 100
    assert product["days_until_expiry"] == 4
    assert product["is_expired"] is False
    assert {w["location"] for w in product["warehouses"]} == {"New York", "Los Angeles"}


def test_product_lookup_miss(client):
    body = client.get("/api/products/unobtainium").json()
    assert body["ok"] is True
    assert body["found"] is False


def test_product_lookup_treats_wildcards_literally(client, make_warehouse, make_product):
    wid = make_warehouse()
    make_product(wid, name="Fresh Milk")
    assert client.get("/api/products/%25").json()["found"] is False


def test_inventory_filters(client, make_warehouse, make_product):
    first = make_warehouse(name="A")
    second = make_warehouse(name="B")
    make_product(first, name="Fresh Milk", expires_in=10)
    make_product(first, name="Old Yogurt", expires_in=-1, status=ProductStatus.DEAD_STOCK)
    make_product(second, name="Bread", expires_in=3)

    rows = client.get("/api/inventory").json()
    assert [r["name"] for r in rows] == ["Old Yogurt", "Bread", "Fresh Milk"]
    assert rows[1]["warehouse"] == "B"

    rows = client.get("/api/inventory", params={"warehouse_id": first}).json()
    assert {r["name"] for r in rows} == {"Fresh Milk", "Old Yogurt"}

    rows = client.get("/api/inventory", params={"status": "DEAD_STOCK"}).json()
    assert [r["name"] for r in rows] == ["Old Yogurt"]


def test_inventory_export(client, make_warehouse, make_product):
    wid = make_warehouse()
    make_product(wid, name="Fresh Milk", current_stock=42)

    res = client.get("/api/inventory/export")
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/csv")
    assert "attachment" in res.headers["content-disposition"]

    df = pd.read_csv(io.StringIO(res.text))
    assert df.loc[0, "name"] == "Fresh Milk"
    assert df.loc[0, "current_stock"] == 42
    assert df.loc[0, "warehouse"] == "Main Distribution Center"


def test_inventory_export_empty_has_header(client):
    res = client.get("/api/inventory/export")
    assert res.text.strip().split(",")[0] == "sku"


def test_health(client, make_warehouse):
    make_warehouse()
    body = client.get("/api/health").json()
    assert body["ok"] is True
    assert body["database"] == {"reachable": True, "dialect": "sqlite"}
    assert body["warehouse_count"] == 1
    assert body["gemini_configured"] is False
    assert "gemini_api_key" not in body
