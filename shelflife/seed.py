"""Create the schema and load a small sample data set.

Usage: python -m shelflife.seed [--reset]
"""

import argparse
import logging
from datetime import timedelta

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from shelflife.db.session import SessionLocal, engine
from shelflife.db.models import (
    Base, Warehouse, Product, ProductStatus, Order, OrderStatus, AlertType, Priority,
    Recommendation, RecommendationType, Sale,
)
from shelflife.services.alerts import raise_alert
from shelflife.services.inventory import recompute_used_capacity
from shelflife.services.shelf_life import utcnow

logger = logging.getLogger(__name__)

WAREHOUSES = [
    {
        "name": "Main Distribution Center",
        "location": "New York",
        "address": "123 Industrial Blvd",
        "city": "New York",
        "country": "USA",
        "total_capacity": 10000,
        "manager_name": "John Smith",
        "manager_email": "john.smith@company.com",
        "manager_phone": "+1-555-0123",
    },
    {
        "name": "Secondary Warehouse",
        "location": "Los Angeles",
        "address": "456 Commerce St",
        "city": "Los Angeles",
        "country": "USA",
        "total_capacity": 5000,
        "manager_name": "Sarah Johnson",
        "manager_email": "sarah.johnson@company.com",
        "manager_phone": "+1-555-0456",
    },
]

# (sku, name, description, category, brand, cost, price, stock, min, max, shelf life,
#  received days ago, expires in days, risk, status, warehouse index)
PRODUCTS = [
    ("DAIRY-001", "Fresh Milk", "Organic whole milk", "Dairy", "Organic Farms",
     2.50, 4.00, 200, 50, 500, 7, 2, 5, 0.3, ProductStatus.AT_RISK, 0),
    ("BAKERY-001", "Artisan Bread", "Fresh baked sourdough bread", "Bakery", "Local Bakery",
     1.50, 3.50, 100, 25, 200, 3, 1, 2, 0.7, ProductStatus.AT_RISK, 0),
    ("PRODUCE-001", "Organic Bananas", "Fresh organic bananas", "Produce", "Tropical Farms",
     0.80, 2.00, 300, 100, 500, 5, 3, 2, 0.8, ProductStatus.AT_RISK, 0),
    ("CANNED-001", "Canned Tomatoes", "Premium canned tomatoes", "Canned Goods", "Premium Brand",
     1.20, 2.50, 500, 100, 1000, 365, 30, 335, 0.1, ProductStatus.HEALTHY, 0),
    ("FROZEN-001", "Frozen Vegetables", "Mixed frozen vegetables", "Frozen", "Frozen Fresh",
     2.00, 4.50, 150, 50, 300, 180, 10, 170, 0.2, ProductStatus.HEALTHY, 1),
    ("EXPIRED-001", "Expired Yogurt", "Greek yogurt (expired)", "Dairy", "Dairy Delight",
     1.80, 3.50, 50, 20, 100, 14, 20, -6, 1.0, ProductStatus.DEAD_STOCK, 0),
]

def seed(db: Session) -> dict:
    now = utcnow()

    def days(n):
        return timedelta(days=n)

    warehouses = [Warehouse(used_capacity=0, **w) for w in WAREHOUSES]
    db.add_all(warehouses)
    db.flush()
    logger.info("Created warehouses: %s", ", ".join(w.name for w in warehouses))

    products = {}
    for (sku, name, description, category, brand, cost, price, stock, lo, hi, shelf,
         received_ago, expires_in, risk, status, wh) in PRODUCTS:
        products[sku] = Product(
            sku=sku,
            name=name,
            description=description,
            category=category,
            brand=brand,
            cost_price=cost,
            selling_price=price,
            current_stock=stock,
            min_stock_level=lo,
            max_stock_level=hi,
            shelf_life_days=shelf,
            received_date=now - days(received_ago),
            expiry_date=now + days(expires_in),
            days_until_expiry=expires_in,
            dead_stock_risk=risk,
            status=status,
            warehouse_id=warehouses[wh].id,
        )
    db.add_all(products.values())
    db.flush()
    logger.info("Created %s products", len(products))

    primary = warehouses[0]
    db.add_all([
        Order(order_number="ORD-2024-001", product_id=products["DAIRY-001"].id, warehouse_id=primary.id,
              quantity=200, unit_cost=2.50, total_cost=500.00, shelf_life_days=7,
              expected_expiry=now + days(7), status=OrderStatus.DELIVERED, requested_date=now - days(2),
              ml_recommended_date=now - days(1), ml_confidence=0.85),
        Order(order_number="ORD-2024-002", product_id=products["BAKERY-001"].id, warehouse_id=primary.id,
              quantity=150, unit_cost=1.50, total_cost=225.00, shelf_life_days=3,
              expected_expiry=now + days(3), status=OrderStatus.PENDING, requested_date=now - days(1),
              ml_recommended_date=now + days(1), ml_confidence=0.72),
    ])

    raise_alert(db, title="Product Expiring Soon",
                message="Artisan Bread expires in 2 days. Consider applying discount.",
                type=AlertType.SHELF_LIFE_WARNING, priority=Priority.HIGH,
                product_id=products["BAKERY-001"].id, warehouse_id=primary.id)
    raise_alert(db, title="Dead Stock Detected",
                message="Expired Yogurt needs immediate liquidation or disposal.",
                type=AlertType.DEAD_STOCK_ALERT, priority=Priority.CRITICAL,
                product_id=products["EXPIRED-001"].id, warehouse_id=primary.id)
    raise_alert(db, title="High Dead Stock Risk",
                message="Organic Bananas have 80% risk of becoming dead stock.",
                type=AlertType.ML_PREDICTION, priority=Priority.HIGH,
                product_id=products["PRODUCE-001"].id, warehouse_id=primary.id)

    db.add_all([
        Recommendation(product_id=products["BAKERY-001"].id, type=RecommendationType.DISCOUNT,
                       title="Apply 30% Discount",
                       description="Apply 30% discount to move Artisan Bread before expiry",
                       suggested_action="Reduce price from $3.50 to $2.45 for quick sale",
                       expected_impact=75.00, confidence=0.85, urgency=Priority.HIGH),
        Recommendation(product_id=products["EXPIRED-001"].id, type=RecommendationType.LIQUIDATE,
                       title="Immediate Liquidation",
                       description="Liquidate expired yogurt at cost or below",
                       suggested_action="Sell at $1.80 (cost price) or dispose of",
                       expected_impact=-90.00, confidence=1.0, urgency=Priority.CRITICAL),
        Recommendation(product_id=products["PRODUCE-001"].id, type=RecommendationType.BUNDLE,
                       title="Create Bundle Offer",
                       description="Bundle bananas with other produce for better sales",
                       suggested_action='Create "Fresh Fruit Bundle" with bananas and apples',
                       expected_impact=120.00, confidence=0.70, urgency=Priority.MEDIUM),
    ])

    db.add_all([
        Sale(product_id=products["DAIRY-001"].id, quantity_sold=50, unit_price=4.00,
             total_revenue=200.00, profit=75.00, customer_name="Grocery Store A",
             customer_email="orders@grocerystorea.com", sale_date=now - days(1)),
        Sale(product_id=products["CANNED-001"].id, quantity_sold=100, unit_price=2.50,
             total_revenue=250.00, profit=130.00, customer_name="Restaurant B",
             customer_email="supplies@restaurantb.com", sale_date=now - days(3)),
    ])

    for w in warehouses:
        used = recompute_used_capacity(db, w.id)
        logger.info("%s: %s/%s units used", w.name, used, w.total_capacity)

    db.commit()
    return {
        "warehouses": len(warehouses),
        "products": len(products),
        "orders": 2,
        "alerts": 3,
        "recommendations": 3,
        "sales": 2,
    }

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create tables and load sample data.")
    parser.add_argument("--reset", action="store_true", help="drop all tables first")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    if args.reset:
        logger.warning("Dropping all tables")
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        if db.execute(select(func.count()).select_from(Warehouse)).scalar_one() > 0:
            logger.info("Database already has data; use --reset to reload")
            return 0
        summary = seed(db)
    except Exception:
        db.rollback()
        logger.exception("Error seeding database")
        return 1
    finally:
        db.close()

    logger.info("Seeded: %s", ", ".join(f"{k}={v}" for k, v in summary.items()))
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
