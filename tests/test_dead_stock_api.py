from sqlalchemy import select

from shelflife.db.models import (
    Alert, AlertType, Priority, Product, ProductStatus, Recommendation, RecommendationType, Sale,
)
from shelflife.services.shelf_life import utcnow


def add_sale(db, product_id, quantity=1):
    db.add(Sale(product_id=product_id, quantity_sold=quantity, unit_price=4.0,
                total_revenue=4.0 * quantity, profit=1.5 * quantity, sale_date=utcnow()))
    db.commit()


def add_recommendation(db, product_id, title, urgency=Priority.MEDIUM, implemented=False):
    rec = Recommendation(
        product_id=product_id,
        type=RecommendationType.DISCOUNT,
        title=title,
        description="Move it",
        suggested_action="Discount 30%",
        expected_impact=100.0,
        confidence=0.8,
        urgency=urgency,
        is_implemented=implemented,
    )
    db.add(rec)
    db.commit()
    return rec.id


class TestAnalyze:

    def test_scores_and_persists(self, client, db, make_warehouse, make_product):
        wid = make_warehouse()
        fresh = make_product(wid, name="Canned Beans", expires_in=100)
        add_sale(db, fresh)
        expired = make_product(wid, name="Old Yogurt", expires_in=-2)
        expiring = make_product(wid, name="Fresh Milk", expires_in=5)

        res = client.post("/api/dead-stock/analyze", json={"warehouse_id": wid})
        assert res.status_code == 200
        body = res.json()
        assert body["analyzed_products"] == 3
        assert body["high_risk_products"] == 2
        by_id = {r["product_id"]: r for r in body["results"]}
        assert by_id[fresh]["dead_stock_risk"] == 0.0
        assert by_id[fresh]["status"] == "HEALTHY"
        assert by_id[expired]["dead_stock_risk"] == 1.0
        assert by_id[expired]["status"] == "DEAD_STOCK"
        assert by_id[expiring]["dead_stock_risk"] == 0.7
        assert by_id[expiring]["status"] == "AT_RISK"
        assert by_id[expiring]["days_until_expiry"] == 5

        db.expire_all()
        product = db.get(Product, expired)
        assert product.status == ProductStatus.DEAD_STOCK
        assert product.last_prediction is not None
        assert product.days_until_expiry == -2

        alerts = {a.product_id: a for a in db.execute(select(Alert)).scalars()}
        assert set(alerts) == {expired, expiring}
        assert alerts[expired].type == AlertType.DEAD_STOCK_ALERT
        assert alerts[expired].priority == Priority.CRITICAL
        assert alerts[expiring].priority == Priority.HIGH

    def test_all_warehouses(self, client, make_warehouse, make_product):
        make_product(make_warehouse(name="A"), name="Milk")
        make_product(make_warehouse(name="B"), name="Bread")
        body = client.post("/api/dead-stock/analyze", json={}).json()
        assert body["analyzed_products"] == 2

    def test_unknown_warehouse(self, client):
        assert client.post("/api/dead-stock/analyze", json={"warehouse_id": 99}).status_code == 404


class TestDeadStockList:

    def test_lists_risky_and_expired_products(self, client, db, make_warehouse, make_product):
        wid = make_warehouse()
        make_product(wid, name="Canned Beans", expires_in=100)
        expired = make_product(wid, name="Old Yogurt", expires_in=-1, current_stock=50,
                               cost_price=2.0, selling_price=3.5)
        risky = make_product(wid, name="Fresh Milk", expires_in=20, dead_stock_risk=0.75,
                             status=ProductStatus.AT_RISK)

        add_recommendation(db, expired, "later", urgency=Priority.MEDIUM)
        add_recommendation(db, expired, "first", urgency=Priority.CRITICAL)
        add_recommendation(db, expired, "done", implemented=True)

        rows = client.get("/api/dead-stock").json()
        assert [r["id"] for r in rows] == [risky, expired]

        old = rows[1]
        assert old["is_expired"] is True
        assert old["total_value"] == 175.0
        assert old["total_cost"] == 100.0
        assert old["potential_loss"] == 75.0
        assert [r["title"] for r in old["recommendations"]] == ["first", "later"]
        assert old["warehouse"]["id"] == wid

    def test_filter_by_warehouse(self, client, make_warehouse, make_product):
        first = make_warehouse(name="A")
        second = make_warehouse(name="B")
        make_product(first, name="Old Yogurt", expires_in=-1)
        make_product(second, name="Old Bread", expires_in=-1)
        rows = client.get("/api/dead-stock", params={"warehouse_id": second}).json()
        assert [r["name"] for r in rows] == ["Old Bread"]


class TestRecommendations:

    def test_list_and_implement(self, client, db, make_warehouse, make_product):
        pid = make_product(make_warehouse())
        low = add_recommendation(db, pid, "bundle", urgency=Priority.LOW)
        high = add_recommendation(db, pid, "discount", urgency=Priority.HIGH)

        rows = client.get("/api/recommendations").json()
        assert [r["id"] for r in rows] == [high, low]

        res = client.post(f"/api/recommendations/{high}/implement")
        assert res.status_code == 200
        assert res.json()["is_implemented"] is True
        assert res.json()["implemented_at"] is not None

        assert [r["id"] for r in client.get("/api/recommendations").json()] == [low]
        everything = client.get("/api/recommendations", params={"include_implemented": True}).json()
        assert len(everything) == 2

    def test_implement_unknown(self, client):
        assert client.post("/api/recommendations/5/implement").status_code == 404
