from typing import Optional

from fastapi import APIRouter, Query
from pydantic import BaseModel

from shelflife.db.session import SessionLocal
from shelflife.services.orders import get_warehouse
from shelflife.services.risk import list_dead_stock, analyze_warehouse

router = APIRouter()

class AnalyzeRequest(BaseModel):
    warehouse_id: Optional[int] = None

@router.get("")
def get_dead_stock(warehouse_id: Optional[int] = Query(default=None)):
    db = SessionLocal()
    try:
        return list_dead_stock(db, warehouse_id)
    finally:
        db.close()


@router.post("/analyze")
def post_analyze(body: AnalyzeRequest):
    db = SessionLocal()
    try:
        if body.warehouse_id is not None:
            get_warehouse(db, body.warehouse_id)
        return analyze_warehouse(db, body.warehouse_id)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
