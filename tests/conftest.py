import os
import tempfile
from datetime import timedelta

_tmp = tempfile.mkdtemp(prefix="shelflife-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp, 'test.db')}"
os.environ["ERROR_REPORT_DIR"] = os.path.join(_tmp, "error_reports")
os.environ["GEMINI_API_KEY"] = ""

import pytest
from fastapi.testclient import TestClient

from shelflife.db.session import SessionLocal, engine
from shelflife.db.models import Base, Warehouse, Product, ProductStatus
from shelflife.main import app
from shelflife.services.shelf_life import utcnow


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def make_warehouse(db):
    def _make(name="Main Distribution Center", total_capacity=1000, used_capacity=0, **kwargs):
        w = Warehouse(
            name=name,
            location=kwargs.pop("location", "New York"),
            total_capacity=total_capacity,
            used_capacity=used_capacity,
            **kwargs,
        )
        db.add(w)
        db.commit()
        return w.id
    return _make


@pytest.fixture
def make_product(db):
    def _make(warehouse_id, name="Fresh Milk", expires_in=30, **kwargs):
        now = utcnow()
        fields = {
            "sku": name.upper().replace(" ", "-"),
            "cost_price": 2.5,
            "selling_price": 4.0,
            "current_stock": 100,
            "shelf_life_days": 30,
            "status": ProductStatus.HEALTHY,
            "dead_stock_risk": 0.0,
        }
        fields.update(kwargs)
        p = Product(
            name=name,
            warehouse_id=warehouse_id,
            received_date=now,
            expiry_date=None if expires_in is None else now + timedelta(days=expires_in),
            **fields,
        )
        db.add(p)
        db.commit()
        return p.id
    return _make
