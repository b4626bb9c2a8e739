from sqlalchemy import select, func

from shelflife import seed as seed_module
from shelflife.db.models import Alert, Order, Product, Recommendation, Sale, Warehouse


def count(db, model):
    return db.execute(select(func.count()).select_from(model)).scalar_one()


def test_seed_loads_sample_data(db):
    summary = seed_module.seed(db)
    assert summary == {
        "warehouses": 2, "products": 6, "orders": 2, "alerts": 3, "recommendations": 3, "sales": 2,
    }
    assert count(db, Warehouse) == 2
    assert count(db, Product) == 6
    assert count(db, Order) == 2
    assert count(db, Alert) == 3
    assert count(db, Recommendation) == 3
    assert count(db, Sale) == 2

    used = dict(db.execute(select(Warehouse.name, Warehouse.used_capacity)).all())
    assert used == {"Main Distribution Center": 1150, "Secondary Warehouse": 150}


def test_seeded_data_drives_the_api(client, db):
    seed_module.seed(db)

    dead = client.get("/api/dead-stock").json()
    skus = [row["sku"] for row in dead]
    assert "EXPIRED-001" in skus
    assert "CANNED-001" not in skus

    lookup = client.get("/api/products/yogurt").json()
    assert lookup["product"]["is_expired"] is True


def test_main_skips_populated_database(db):
    assert seed_module.main([]) == 0
    assert count(db, Warehouse) == 2
    assert seed_module.main([]) == 0
    assert count(db, Warehouse) == 2


def test_main_reset_reloads(db):
    assert seed_module.main([]) == 0
    assert seed_module.main(["--reset"]) == 0
    assert count(db, Product) == 6
