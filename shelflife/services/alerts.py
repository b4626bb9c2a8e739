import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy import select, case
from sqlalchemy.orm import Session, selectinload

from shelflife.db.models import Alert, AlertType, Priority
from shelflife.services.serializers import alert_to_dict, warehouse_brief, product_brief, order_brief
from shelflife.services.shelf_life import utcnow

logger = logging.getLogger(__name__)

PRIORITY_RANK = {
    Priority.LOW: 0,
    Priority.MEDIUM: 1,
    Priority.HIGH: 2,
    Priority.CRITICAL: 3,
}

def priority_rank(column):
    # enums are stored by name, so rank them explicitly instead of sorting strings
    return case(PRIORITY_RANK, value=column, else_=-1)

def raise_alert(
    db: Session,
    *,
    title: str,
    message: str,
    type: AlertType,
    priority: Priority = Priority.MEDIUM,
    warehouse_id: Optional[int] = None,
    product_id: Optional[int] = None,
    order_id: Optional[int] = None,
) -> Alert:
    """Add an alert to the session. The caller commits."""
    alert = Alert(
        title=title,
        message=message,
        type=type,
        priority=priority,
        warehouse_id=warehouse_id,
        product_id=product_id,
        order_id=order_id,
    )
    db.add(alert)
    logger.info("Alert raised [%s/%s]: %s", type.value, priority.value, title)
    return alert

def list_alerts(
    db: Session,
    *,
    warehouse_id: Optional[int] = None,
    product_id: Optional[int] = None,
    type: Optional[AlertType] = None,
    priority: Optional[Priority] = None,
    is_resolved: Optional[bool] = None,
) -> list[dict]:
    stmt = select(Alert).options(
        selectinload(Alert.warehouse),
        selectinload(Alert.product),
        selectinload(Alert.order),
    )
    if warehouse_id is not None:
        stmt = stmt.where(Alert.warehouse_id == warehouse_id)
    if product_id is not None:
        stmt = stmt.where(Alert.product_id == product_id)
    if type is not None:
        stmt = stmt.where(Alert.type == type)
    if priority is not None:
        stmt = stmt.where(Alert.priority == priority)
    if is_resolved is not None:
        stmt = stmt.where(Alert.is_resolved == is_resolved)
    stmt = stmt.order_by(priority_rank(Alert.priority).desc(), Alert.created_at.desc(), Alert.id.desc())

    out = []
    for a in db.execute(stmt).scalars():
        row = alert_to_dict(a)
        row["warehouse"] = warehouse_brief(a.warehouse)
        row["product"] = product_brief(a.product)
        row["order"] = order_brief(a.order)
        out.append(row)
    return out

def update_alert(
    db: Session,
    alert_id: int,
    *,
    is_read: Optional[bool] = None,
    is_resolved: Optional[bool] = None,
    resolved_by: Optional[str] = None,
) -> Alert:
    alert = db.get(Alert, alert_id)
    if alert is None:
        raise HTTPException(status_code=404, detail="Alert not found")

    if is_read is not None:
        alert.is_read = is_read
    if is_resolved is not None:
        alert.is_resolved = is_resolved
        if is_resolved:
            alert.resolved_at = utcnow()
            alert.resolved_by = resolved_by
        else:
            alert.resolved_at = None
            alert.resolved_by = None
    db.commit()
    db.refresh(alert)
    return alert
