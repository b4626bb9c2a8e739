import logging
from typing import Optional

import pandas as pd
from sqlalchemy import select, func
from sqlalchemy.orm import Session, selectinload

from shelflife.db.models import Warehouse, Product, ProductStatus
from shelflife.schemas import WarehouseCreate
from shelflife.services.serializers import warehouse_to_dict, product_to_dict
from shelflife.services.shelf_life import days_until_expiry, is_low_shelf_life, utcnow

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "sku", "name", "category", "brand", "warehouse", "current_stock",
    "cost_price", "selling_price", "shelf_life_days", "expiry_date",
    "days_until_expiry", "dead_stock_risk", "status",
]

def utilization_pct(warehouse: Warehouse) -> float:
    if not warehouse.total_capacity:
        return 0.0
    return warehouse.used_capacity / warehouse.total_capacity * 100.0

def product_stats(products: list[Product], now) -> dict:
    days = [days_until_expiry(p.expiry_date, now) for p in products]
    return {
        "total_products": len(products),
        "total_quantity": sum(p.current_stock for p in products),
        "low_shelf_life_count": sum(1 for d in days if is_low_shelf_life(d)),
        "dead_stock_count": sum(1 for p in products if p.status == ProductStatus.DEAD_STOCK),
    }

def _warehouses(db: Session) -> list[Warehouse]:
    return db.execute(
        select(Warehouse).options(selectinload(Warehouse.products)).order_by(Warehouse.id)
    ).scalars().all()

def dashboard_summary(db: Session) -> dict:
    now = utcnow()
    warehouses = _warehouses(db)
    by_id = {w.id: w for w in warehouses}
    products = [p for w in warehouses for p in w.products]

    stats = product_stats(products, now)
    stats["healthy_count"] = sum(1 for p in products if p.status == ProductStatus.HEALTHY)
    stats["at_risk_count"] = sum(1 for p in products if p.status == ProductStatus.AT_RISK)

    rows = []
    for p in products:
        row = product_to_dict(p, now)
        w = by_id[p.warehouse_id]
        row["warehouse"] = {"id": w.id, "name": w.name, "location": w.location}
        rows.append(row)

    return {
        "ok": True,
        "warehouses": [warehouse_to_dict(w) for w in warehouses],
        "products": rows,
        "stats": stats,
        "warehouse_utilization": [
            {
                "id": w.id,
                "name": w.name,
                "location": w.location,
                "utilization_percentage": round(utilization_pct(w)),
            }
            for w in warehouses
        ],
    }

def list_warehouses_with_stats(db: Session) -> list[dict]:
    now = utcnow()
    out = []
    for w in _warehouses(db):
        row = warehouse_to_dict(w)
        row["available_capacity"] = w.total_capacity - w.used_capacity
        row["utilization_percentage"] = round(utilization_pct(w), 2)
        row["stats"] = product_stats(list(w.products), now)
        out.append(row)
    return out

def create_warehouse(db: Session, req: WarehouseCreate) -> dict:
    warehouse = Warehouse(**req.model_dump())
    db.add(warehouse)
    db.commit()
    db.refresh(warehouse)
    logger.info("Warehouse %s created: %s (%s units)", warehouse.id, warehouse.name, warehouse.total_capacity)
    return warehouse_to_dict(warehouse)

def lookup_product_by_name(db: Session, name: str) -> dict:
    """Find stock of a product across warehouses by (partial, case-insensitive) name.

    The match that expires first is reported as the primary product, since it is the
    stock that has to move before a new batch is ordered.
    """
    needle = name.strip().lower()
    products = db.execute(
        select(Product)
        .options(selectinload(Product.warehouse))
        .where(Product.name.icontains(needle, autoescape=True))
        .order_by(Product.id)
    ).scalars().all()

    if not products:
        return {"ok": True, "found": False, "message": "No existing product found with this name"}

    now = utcnow()
    # unknown expiry sorts last
    oldest = min(products, key=lambda p: (p.expiry_date is None, p.expiry_date or now))
    days = days_until_expiry(oldest.expiry_date, now)

    return {
        "ok": True,
        "found": True,
        "product": {
            "id": oldest.id,
            "name": oldest.name,
            "sku": oldest.sku,
            "current_quantity": sum(p.current_stock for p in products),
            "oldest_shelf_life": oldest.expiry_date,
            "days_until_expiry": days,
            "status": oldest.status.value,
            "is_expired": days is not None and days <= 0,
            "cost_price": oldest.cost_price,
            "selling_price": oldest.selling_price,
            "category": oldest.category,
            "brand": oldest.brand,
            "warehouses": [
                {
                    "id": p.warehouse.id,
                    "location": p.warehouse.location,
                    "quantity": p.current_stock,
                    "shelf_life": p.expiry_date,
                }
                for p in products
            ],
        },
    }

def list_inventory(
    db: Session,
    *,
    warehouse_id: Optional[int] = None,
    status: Optional[ProductStatus] = None,
) -> list[dict]:
    now = utcnow()
    stmt = select(Product).options(selectinload(Product.warehouse))
    if warehouse_id is not None:
        stmt = stmt.where(Product.warehouse_id == warehouse_id)
    if status is not None:
        stmt = stmt.where(Product.status == status)
    stmt = stmt.order_by(Product.expiry_date.asc(), Product.id)

    out = []
    for p in db.execute(stmt).scalars():
        row = product_to_dict(p, now)
        row["warehouse"] = p.warehouse.name
        row["location"] = p.warehouse.location
        out.append(row)
    return out

def recompute_used_capacity(db: Session, warehouse_id: int) -> int:
    """Set a warehouse's used capacity to the stock it actually holds. The caller commits."""
    total = db.execute(
        select(func.coalesce(func.sum(Product.current_stock), 0))
        .where(Product.warehouse_id == warehouse_id)
    ).scalar_one()
    warehouse = db.get(Warehouse, warehouse_id)
    warehouse.used_capacity = int(total)
    return warehouse.used_capacity

def inventory_frame(db: Session, warehouse_id: Optional[int] = None) -> pd.DataFrame:
    rows = list_inventory(db, warehouse_id=warehouse_id)
    if not rows:
        return pd.DataFrame(columns=EXPORT_COLUMNS)
    return pd.DataFrame(rows)[EXPORT_COLUMNS]
