"""Row -> JSON-ready dict conversions used by the API routers and the page views."""

from datetime import datetime
from typing import Optional

from shelflife.db.models import Warehouse, Product, Order, Alert, Recommendation, Sale
from shelflife.services.shelf_life import days_until_expiry, is_expired


def warehouse_brief(w: Optional[Warehouse]):
    if w is None:
        return None
    return {"id": w.id, "name": w.name, "location": w.location}

def warehouse_to_dict(w: Warehouse) -> dict:
    return {
        "id": w.id,
        "name": w.name,
        "location": w.location,
        "address": w.address,
        "city": w.city,
        "country": w.country,
        "total_capacity": w.total_capacity,
        "used_capacity": w.used_capacity,
        "manager_name": w.manager_name,
        "manager_email": w.manager_email,
        "manager_phone": w.manager_phone,
        "created_at": w.created_at,
        "updated_at": w.updated_at,
    }

def product_brief(p: Optional[Product]):
    if p is None:
        return None
    return {
        "id": p.id,
        "name": p.name,
        "sku": p.sku,
        "current_stock": p.current_stock,
        "status": p.status.value,
    }

def product_to_dict(p: Product, now: Optional[datetime] = None) -> dict:
    return {
        "id": p.id,
        "sku": p.sku,
        "name": p.name,
        "description": p.description,
        "category": p.category,
        "brand": p.brand,
        "cost_price": p.cost_price,
        "selling_price": p.selling_price,
        "current_stock": p.current_stock,
        "min_stock_level": p.min_stock_level,
        "max_stock_level": p.max_stock_level,
        "shelf_life_days": p.shelf_life_days,
        "received_date": p.received_date,
        "expiry_date": p.expiry_date,
        "days_until_expiry": days_until_expiry(p.expiry_date, now),
        "is_expired": is_expired(p.expiry_date, now),
        "dead_stock_risk": p.dead_stock_risk,
        "status": p.status.value,
        "last_prediction": p.last_prediction,
        "warehouse_id": p.warehouse_id,
    }

def order_brief(o: Optional[Order]):
    if o is None:
        return None
    return {"id": o.id, "order_number": o.order_number, "quantity": o.quantity, "status": o.status.value}

def order_to_dict(o: Order) -> dict:
    return {
        "id": o.id,
        "order_number": o.order_number,
        "product_id": o.product_id,
        "warehouse_id": o.warehouse_id,
        "quantity": o.quantity,
        "unit_cost": o.unit_cost,
        "total_cost": o.total_cost,
        "shelf_life_days": o.shelf_life_days,
        "expected_expiry": o.expected_expiry,
        "status": o.status.value,
        "requested_date": o.requested_date,
        "ml_recommended_date": o.ml_recommended_date,
        "ml_confidence": o.ml_confidence,
    }

def alert_to_dict(a: Alert) -> dict:
    return {
        "id": a.id,
        "title": a.title,
        "message": a.message,
        "type": a.type.value,
        "priority": a.priority.value,
        "is_read": a.is_read,
        "is_resolved": a.is_resolved,
        "resolved_at": a.resolved_at,
        "resolved_by": a.resolved_by,
        "product_id": a.product_id,
        "warehouse_id": a.warehouse_id,
        "order_id": a.order_id,
        "created_at": a.created_at,
    }

def recommendation_to_dict(r: Recommendation) -> dict:
    return {
        "id": r.id,
        "product_id": r.product_id,
        "type": r.type.value,
        "title": r.title,
        "description": r.description,
        "suggested_action": r.suggested_action,
        "expected_impact": r.expected_impact,
        "confidence": r.confidence,
        "urgency": r.urgency.value,
        "is_implemented": r.is_implemented,
        "implemented_at": r.implemented_at,
        "created_at": r.created_at,
    }

def sale_to_dict(s: Sale) -> dict:
    return {
        "id": s.id,
        "product_id": s.product_id,
        "quantity_sold": s.quantity_sold,
        "unit_price": s.unit_price,
        "total_revenue": s.total_revenue,
        "profit": s.profit,
        "customer_name": s.customer_name,
        "customer_email": s.customer_email,
        "sale_date": s.sale_date,
    }
