from typing import Optional

from fastapi import APIRouter, Query

from shelflife.db.session import SessionLocal
from shelflife.db.models import AlertType, Priority
from shelflife.schemas import AlertCreate, AlertUpdate
from shelflife.services.alerts import list_alerts, raise_alert, update_alert
from shelflife.services.serializers import alert_to_dict

router = APIRouter()

@router.get("/alerts")
def get_alerts(
    warehouse_id: Optional[int] = Query(default=None),
    product_id: Optional[int] = Query(default=None),
    type: Optional[AlertType] = Query(default=None),
    priority: Optional[Priority] = Query(default=None),
    is_resolved: Optional[bool] = Query(default=None),
):
    db = SessionLocal()
    try:
        return list_alerts(
            db,
            warehouse_id=warehouse_id,
            product_id=product_id,
            type=type,
            priority=priority,
            is_resolved=is_resolved,
        )
    finally:
        db.close()


@router.post("/alerts", status_code=201)
def post_alert(body: AlertCreate):
    db = SessionLocal()
    try:
        alert = raise_alert(db, **body.model_dump())
        db.commit()
        db.refresh(alert)
        return alert_to_dict(alert)
    finally:
        db.close()


@router.patch("/alerts/{alert_id}")
def patch_alert(alert_id: int, body: AlertUpdate):
    db = SessionLocal()
    try:
        alert = update_alert(
            db,
            alert_id,
            is_read=body.is_read,
            is_resolved=body.is_resolved,
            resolved_by=body.resolved_by,
        )
        return alert_to_dict(alert)
    finally:
        db.close()
