"""Order and sale workflows.

Each workflow is a short linear sequence (warehouse lookup, capacity check, product
upsert, order insert, capacity update) written to a single session and committed once.
"""

import logging
import re
import uuid
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import select, func
from sqlalchemy.orm import Session, selectinload

from shelflife.db.models import (
    Warehouse, Product, ProductStatus, Order, OrderStatus, Sale, AlertType, Priority,
)
from shelflife.schemas import NamedOrderRequest, ProductOrderRequest, SaleCreate
from shelflife.services.alerts import raise_alert, PRIORITY_RANK
from shelflife.services.serializers import (
    order_to_dict, product_to_dict, product_brief, warehouse_brief, alert_to_dict, sale_to_dict,
)
from shelflife.services.shelf_life import (
    days_until_expiry, expiry_from_shelf_life, is_low_shelf_life, utcnow,
)

logger = logging.getLogger(__name__)


class OrderRejected(Exception):
    """A business rule refused the order; `payload` is returned to the client as-is."""

    def __init__(self, error: str, message: str, **extra):
        super().__init__(message)
        self.payload = {"ok": False, "error": error, "message": message, **extra}


def new_order_number() -> str:
    return f"ORD-{utcnow():%Y%m%d%H%M%S}-{uuid.uuid4().hex[:6].upper()}"

def new_sku(name: str) -> str:
    stem = re.sub(r"[^A-Z0-9]+", "-", name.upper()).strip("-")[:16] or "ITEM"
    return f"{stem}-{uuid.uuid4().hex[:6].upper()}"

def get_warehouse(db: Session, warehouse_id: int) -> Warehouse:
    warehouse = db.get(Warehouse, warehouse_id)
    if warehouse is None:
        raise HTTPException(status_code=404, detail="Warehouse not found")
    return warehouse

def available_space(warehouse: Warehouse) -> int:
    return warehouse.total_capacity - warehouse.used_capacity

def check_space(db: Session, warehouse: Warehouse, quantity: int) -> None:
    """Reject the order when the warehouse cannot hold `quantity` more units.

    The rejection is recorded as a SPACE_CONSTRAINT alert so it shows up on the alerts page.
    """
    space = available_space(warehouse)
    if space >= quantity:
        return

    raise_alert(
        db,
        title="Warehouse Space Constraint",
        message=(f"Insufficient space for new order. Required: {quantity} units, "
                 f"Available: {space} units. Please clear dead stock first."),
        type=AlertType.SPACE_CONSTRAINT,
        priority=Priority.HIGH,
        warehouse_id=warehouse.id,
    )
    db.commit()
    logger.warning("Order rejected for warehouse %s: need %s, have %s", warehouse.id, quantity, space)
    raise OrderRejected(
        "Insufficient warehouse space",
        "Not enough space in warehouse. Please clear dead stock first.",
        available_space=space,
        required_space=quantity,
    )

def find_product_by_name(db: Session, name: str, warehouse_id: int) -> Optional[Product]:
    return db.execute(
        select(Product)
        # fold both sides in the database so they use the same case rules
        .where(func.lower(Product.name) == func.lower(name.strip()))
        .where(Product.warehouse_id == warehouse_id)
        .order_by(Product.id)
        .limit(1)
    ).scalar_one_or_none()

def _existing_summary(product: Product, days: Optional[int]) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "current_quantity": product.current_stock,
        "days_until_expiry": days,
        "status": product.status.value,
    }

def place_order_by_name(db: Session, req: NamedOrderRequest) -> dict:
    warehouse = get_warehouse(db, req.warehouse_id)
    check_space(db, warehouse, req.quantity)

    now = utcnow()
    product = find_product_by_name(db, req.product_name, warehouse.id)

    if product is not None:
        days = days_until_expiry(product.expiry_date, now)
        if is_low_shelf_life(days):
            raise OrderRejected(
                "Existing stock expires soon",
                f"Warning: Existing stock of {req.product_name} expires in {days} days. "
                "Consider selling old stock first.",
                existing_product=_existing_summary(product, days),
                recommendation="Apply discount to existing stock before placing new order.",
            )
        if days is not None and days <= 0:
            raise OrderRejected(
                "Dead stock detected",
                f"Dead stock detected: {req.product_name} has expired. "
                "Please liquidate existing stock first.",
                existing_product=_existing_summary(product, days),
                recommendation="Liquidate or dispose of expired stock before placing new order.",
            )

        product.current_stock += req.quantity
        product.received_date = now
        product.expiry_date = expiry_from_shelf_life(req.shelf_life_days, now)
        product.shelf_life_days = req.shelf_life_days
        product.days_until_expiry = req.shelf_life_days
        product.status = ProductStatus.HEALTHY
        if req.unit_cost:
            product.cost_price = req.unit_cost
        if req.selling_price is not None:
            product.selling_price = req.selling_price
        if req.category:
            product.category = req.category
        if req.brand:
            product.brand = req.brand
        action = "updated_existing"
        message = "Order processed successfully - existing product updated"
    else:
        product = Product(
            sku=new_sku(req.product_name),
            name=req.product_name.strip(),
            category=req.category,
            brand=req.brand,
            cost_price=req.unit_cost,
            selling_price=req.selling_price or 0.0,
            current_stock=req.quantity,
            shelf_life_days=req.shelf_life_days,
            received_date=now,
            expiry_date=expiry_from_shelf_life(req.shelf_life_days, now),
            days_until_expiry=req.shelf_life_days,
            status=ProductStatus.HEALTHY,
            warehouse_id=warehouse.id,
        )
        db.add(product)
        db.flush()
        action = "created_new"
        message = "Order processed successfully - new product created"

    order = Order(
        order_number=new_order_number(),
        product_id=product.id,
        warehouse_id=warehouse.id,
        quantity=req.quantity,
        unit_cost=req.unit_cost,
        total_cost=round(req.quantity * req.unit_cost, 2),
        shelf_life_days=req.shelf_life_days,
        expected_expiry=product.expiry_date,
        requested_date=now,
    )
    db.add(order)
    warehouse.used_capacity += req.quantity
    db.commit()
    db.refresh(product)

    logger.info("Order %s placed for %s x%s (%s)", order.order_number, product.name, req.quantity, action)
    return {
        "ok": True,
        "message": message,
        "order_id": order.id,
        "order_number": order.order_number,
        "product": product_to_dict(product, now),
        "action": action,
    }

def place_order_for_product(db: Session, req: ProductOrderRequest) -> dict:
    warehouse = get_warehouse(db, req.warehouse_id)
    product = db.get(Product, req.product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    if product.warehouse_id != warehouse.id:
        raise HTTPException(
            status_code=400,
            detail=f"Product {product.id} is stocked in warehouse {product.warehouse_id}, not {warehouse.id}",
        )
    check_space(db, warehouse, req.quantity)

    now = utcnow()
    expiry = expiry_from_shelf_life(req.shelf_life_days, now)
    order = Order(
        order_number=new_order_number(),
        product_id=product.id,
        warehouse_id=warehouse.id,
        quantity=req.quantity,
        unit_cost=req.unit_cost,
        total_cost=round(req.quantity * req.unit_cost, 2),
        shelf_life_days=req.shelf_life_days,
        expected_expiry=expiry,
        status=OrderStatus.PENDING,
        requested_date=now,
    )
    db.add(order)
    warehouse.used_capacity += req.quantity
    product.current_stock += req.quantity
    product.received_date = now
    product.expiry_date = expiry
    product.days_until_expiry = req.shelf_life_days
    db.commit()
    db.refresh(order)

    logger.info("Order %s placed for product %s x%s", order.order_number, product.id, req.quantity)
    return {"ok": True, "order": order_to_dict(order), "message": "Order created successfully"}

def list_orders(
    db: Session,
    *,
    warehouse_id: Optional[int] = None,
    status: Optional[OrderStatus] = None,
    product_id: Optional[int] = None,
) -> list[dict]:
    stmt = select(Order).options(
        selectinload(Order.product),
        selectinload(Order.warehouse),
        selectinload(Order.alerts),
    )
    if warehouse_id is not None:
        stmt = stmt.where(Order.warehouse_id == warehouse_id)
    if status is not None:
        stmt = stmt.where(Order.status == status)
    if product_id is not None:
        stmt = stmt.where(Order.product_id == product_id)
    stmt = stmt.order_by(Order.requested_date.desc(), Order.id.desc())

    out = []
    for o in db.execute(stmt).scalars():
        row = order_to_dict(o)
        row["product"] = product_brief(o.product)
        row["warehouse"] = warehouse_brief(o.warehouse)
        row["alerts"] = [
            alert_to_dict(a)
            for a in sorted(
                (a for a in o.alerts if not a.is_resolved),
                key=lambda a: PRIORITY_RANK[a.priority], reverse=True,
            )
        ]
        out.append(row)
    return out

def update_order_status(db: Session, order_id: int, status: OrderStatus) -> dict:
    order = db.get(Order, order_id)
    if order is None:
        raise HTTPException(status_code=404, detail="Order not found")
    previous = order.status
    order.status = status
    db.commit()
    db.refresh(order)
    logger.info("Order %s status %s -> %s", order.order_number, previous.value, status.value)
    return order_to_dict(order)

def record_sale(db: Session, req: SaleCreate) -> dict:
    product = db.get(Product, req.product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    if req.quantity_sold > product.current_stock:
        raise OrderRejected(
            "Insufficient stock",
            f"Only {product.current_stock} units of {product.name} in stock.",
            available_stock=product.current_stock,
            requested=req.quantity_sold,
        )

    unit_price = req.unit_price if req.unit_price is not None else product.selling_price
    sale = Sale(
        product_id=product.id,
        quantity_sold=req.quantity_sold,
        unit_price=unit_price,
        total_revenue=round(req.quantity_sold * unit_price, 2),
        profit=round(req.quantity_sold * (unit_price - product.cost_price), 2),
        customer_name=req.customer_name,
        customer_email=req.customer_email,
        sale_date=utcnow(),
    )
    db.add(sale)
    product.current_stock -= req.quantity_sold
    warehouse = product.warehouse
    warehouse.used_capacity = max(warehouse.used_capacity - req.quantity_sold, 0)
    db.commit()
    db.refresh(sale)
    return {"ok": True, "sale": sale_to_dict(sale), "remaining_stock": product.current_stock}
