"""Dead-stock risk scoring.

A product's risk is the sum of a few weighted signals, capped at 1.0:

* how close it is to expiry,
* whether it sold anything in the last week,
* how much stock sits against a short shelf life,
* whether its margin is too thin to discount.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select, func, or_
from sqlalchemy.orm import Session, selectinload

from shelflife.db.models import (
    Product, ProductStatus, Sale, AlertType, Priority,
)
from shelflife.services.alerts import raise_alert, PRIORITY_RANK
from shelflife.services.serializers import (
    product_to_dict, warehouse_brief, alert_to_dict, recommendation_to_dict,
)
from shelflife.services.shelf_life import days_until_expiry, is_expired, utcnow

logger = logging.getLogger(__name__)

HIGH_RISK_THRESHOLD = 0.7
SALES_WINDOW_DAYS = 7

def score_dead_stock_risk(product: Product, recent_sales: int, now: Optional[datetime] = None) -> float:
    risk = 0.0

    days = days_until_expiry(product.expiry_date, now)
    if days is not None:
        if days <= 0:
            risk += 0.8
        elif days <= 3:
            risk += 0.6
        elif days <= 7:
            risk += 0.4
        elif days <= 14:
            risk += 0.2

    if recent_sales == 0 and product.current_stock > 0:
        risk += 0.3

    if product.shelf_life_days and product.shelf_life_days > 0:
        if product.current_stock / product.shelf_life_days > 10:
            risk += 0.2

    if product.selling_price and product.selling_price > 0:
        margin = (product.selling_price - product.cost_price) / product.selling_price
        if margin < 0.2:
            risk += 0.1

    return round(min(risk, 1.0), 4)

def status_for_risk(risk: float) -> ProductStatus:
    if risk >= 0.8:
        return ProductStatus.DEAD_STOCK
    if risk >= 0.5:
        return ProductStatus.AT_RISK
    return ProductStatus.HEALTHY

def alert_priority_for_risk(risk: float) -> Priority:
    return Priority.CRITICAL if risk >= 0.9 else Priority.HIGH

def recent_sales_count(db: Session, product_id: int, now: datetime) -> int:
    cutoff = now - timedelta(days=SALES_WINDOW_DAYS)
    return db.execute(
        select(func.count()).select_from(Sale)
        .where(Sale.product_id == product_id)
        .where(Sale.sale_date > cutoff)
    ).scalar_one()

def analyze_warehouse(db: Session, warehouse_id: Optional[int] = None) -> dict:
    """Rescore every product (of one warehouse, or all of them) and persist the result."""
    now = utcnow()
    stmt = select(Product).order_by(Product.id)
    if warehouse_id is not None:
        stmt = stmt.where(Product.warehouse_id == warehouse_id)
    products = db.execute(stmt).scalars().all()

    results = []
    for product in products:
        risk = score_dead_stock_risk(product, recent_sales_count(db, product.id, now), now)
        status = status_for_risk(risk)
        days = days_until_expiry(product.expiry_date, now)

        product.dead_stock_risk = risk
        product.status = status
        product.days_until_expiry = days
        product.last_prediction = now

        if risk >= HIGH_RISK_THRESHOLD:
            raise_alert(
                db,
                title="High Dead Stock Risk Detected",
                message=f"{product.name} has a {risk * 100:.1f}% risk of becoming dead stock",
                type=AlertType.DEAD_STOCK_ALERT,
                priority=alert_priority_for_risk(risk),
                product_id=product.id,
                warehouse_id=product.warehouse_id,
            )

        results.append({
            "product_id": product.id,
            "product_name": product.name,
            "dead_stock_risk": risk,
            "status": status.value,
            "current_stock": product.current_stock,
            "days_until_expiry": days,
        })

    db.commit()
    high_risk = sum(1 for r in results if r["dead_stock_risk"] >= HIGH_RISK_THRESHOLD)
    logger.info("Dead stock analysis: %s products, %s high risk (warehouse=%s)",
                len(results), high_risk, warehouse_id)
    return {
        "ok": True,
        "analyzed_products": len(results),
        "high_risk_products": high_risk,
        "results": results,
    }

def list_dead_stock(db: Session, warehouse_id: Optional[int] = None) -> list[dict]:
    now = utcnow()
    stmt = (
        select(Product)
        .options(
            selectinload(Product.warehouse),
            selectinload(Product.recommendations),
            selectinload(Product.alerts),
        )
        .where(or_(
            Product.status == ProductStatus.DEAD_STOCK,
            Product.dead_stock_risk >= HIGH_RISK_THRESHOLD,
            Product.expiry_date < now,
        ))
        .order_by(Product.dead_stock_risk.desc(), Product.expiry_date.asc())
    )
    if warehouse_id is not None:
        stmt = stmt.where(Product.warehouse_id == warehouse_id)

    out = []
    for p in db.execute(stmt).scalars():
        row = product_to_dict(p, now)
        total_value = p.current_stock * p.selling_price
        total_cost = p.current_stock * p.cost_price
        row.update({
            "warehouse": warehouse_brief(p.warehouse),
            "total_value": round(total_value, 2),
            "total_cost": round(total_cost, 2),
            "potential_loss": round(total_value - total_cost, 2),
            "is_expired": is_expired(p.expiry_date, now),
            "recommendations": [
                recommendation_to_dict(r)
                for r in sorted(
                    (r for r in p.recommendations if not r.is_implemented),
                    key=lambda r: PRIORITY_RANK[r.urgency], reverse=True,
                )
            ],
            "alerts": [
                alert_to_dict(a)
                for a in sorted(
                    (a for a in p.alerts if not a.is_resolved),
                    key=lambda a: a.created_at, reverse=True,
                )
            ],
        })
        out.append(row)
    return out
