from sqlalchemy import select

from shelflife.db.models import Alert, AlertType, Priority, Product
from shelflife.db.session import settings
from shelflife.services import nl_query
from shelflife.services.alerts import raise_alert


def add_alert(db, title="Space is tight", **kwargs):
    alert = raise_alert(db, title=title, message="Clear dead stock", type=AlertType.SPACE_CONSTRAINT,
                        priority=Priority.HIGH, **kwargs)
    db.commit()
    return alert.id


def test_home_on_empty_database(client):
    res = client.get("/")
    assert res.status_code == 200
    assert "text/html" in res.headers["content-type"]
    assert "No warehouses yet" in res.text
    assert "Nothing needs attention" in res.text


def test_home_shows_capacity_and_open_alerts(client, db, make_warehouse):
    wid = make_warehouse(total_capacity=1000, used_capacity=250)
    add_alert(db, warehouse_id=wid)
    res = client.get("/")
    assert "25% used" in res.text
    assert "Space is tight" in res.text


def test_dashboard_and_inventory_pages(client, make_warehouse, make_product):
    wid = make_warehouse(name="Main Distribution Center")
    make_product(wid, name="Fresh Milk", sku="DAIRY-001")

    dashboard = client.get("/dashboard")
    assert dashboard.status_code == 200
    assert "DAIRY-001" in dashboard.text

    inventory = client.get("/inventory")
    assert inventory.status_code == 200
    assert "Main Distribution Center" in inventory.text


def test_alert_actions_redirect(client, db, make_warehouse):
    alert_id = add_alert(db, warehouse_id=make_warehouse())

    res = client.post(f"/alerts/{alert_id}/read", follow_redirects=False)
    assert res.status_code == 303
    assert res.headers["location"] == "/alerts"

    res = client.post(f"/alerts/{alert_id}/resolve", data={"resolved_by": "night shift"}, follow_redirects=False)
    assert res.status_code == 303

    alert = db.get(Alert, alert_id)
    db.refresh(alert)
    assert alert.is_resolved is True
    assert alert.resolved_by == "night shift"

    assert "Space is tight" not in client.get("/alerts").text
    everything = client.get("/alerts", params={"show": "all"}).text
    assert "Space is tight" in everything
    assert "resolved by night shift" in everything


def test_order_page_lookup(client, make_warehouse, make_product):
    wid = make_warehouse()
    make_product(wid, name="Artisan Bread", sku="BAKERY-001", expires_in=3, current_stock=80)

    res = client.get("/items-order", params={"product_name": "bread"})
    assert res.status_code == 200
    assert "BAKERY-001" in res.text
    assert "expires in 3 days" in res.text

    miss = client.get("/items-order", params={"product_name": "caviar"})
    assert "No existing product found" in miss.text


def test_order_page_places_order(client, db, make_warehouse):
    wid = make_warehouse()
    res = client.post("/items-order", data={
        "product_name": "Greek Yogurt",
        "quantity": "40",
        "shelf_life_days": "21",
        "warehouse_id": str(wid),
        "unit_cost": "",
        "selling_price": "5.49",
    })
    assert res.status_code == 200
    assert "new product created" in res.text

    product = db.execute(select(Product)).scalar_one()
    assert product.name == "Greek Yogurt"
    assert product.selling_price == 5.49
    assert product.cost_price == 0.0


def test_order_page_shows_rejection(client, make_warehouse):
    wid = make_warehouse(total_capacity=10, used_capacity=10)
    res = client.post("/items-order", data={
        "product_name": "Greek Yogurt", "quantity": "5", "shelf_life_days": "21", "warehouse_id": str(wid),
    })
    assert res.status_code == 200
    assert "Insufficient warehouse space" in res.text
    assert "Available: 0 units, required: 5 units." in res.text


def test_order_page_invalid_quantity(client, make_warehouse):
    wid = make_warehouse()
    res = client.post("/items-order", data={
        "product_name": "Greek Yogurt", "quantity": "0", "shelf_life_days": "21", "warehouse_id": str(wid),
    })
    assert res.status_code == 422
    assert "quantity" in res.text


def test_order_page_unknown_warehouse(client):
    res = client.post("/items-order", data={
        "product_name": "Greek Yogurt", "quantity": "5", "shelf_life_days": "21", "warehouse_id": "77",
    })
    assert res.status_code == 404
    assert "Warehouse not found" in res.text


def test_query_page_without_key(client):
    res = client.post("/query", data={"question": "how many products?"})
    assert res.status_code == 200
    assert "Gemini API key not configured" in res.text


def test_query_page_renders_results(client, monkeypatch, make_warehouse):
    make_warehouse(name="Overflow Depot")
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "test-key")
    monkeypatch.setattr(nl_query, "translate_to_sql", lambda *a, **kw: "SELECT name FROM warehouses")

    res = client.post("/query", data={"question": "list warehouses"})
    assert res.status_code == 200
    assert "SELECT name FROM warehouses" in res.text
    assert "Overflow Depot" in res.text
    assert "1 row(s)" in res.text
