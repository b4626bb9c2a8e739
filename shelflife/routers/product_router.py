from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import Response

from shelflife.db.session import SessionLocal
from shelflife.db.models import ProductStatus
from shelflife.services.inventory import lookup_product_by_name, list_inventory, inventory_frame

router = APIRouter()

@router.get("/products/{name}")
def get_product_by_name(name: str):
    db = SessionLocal()
    try:
        return lookup_product_by_name(db, name)
    finally:
        db.close()


@router.get("/inventory")
def get_inventory(
    warehouse_id: Optional[int] = Query(default=None),
    status: Optional[ProductStatus] = Query(default=None),
):
    db = SessionLocal()
    try:
        return list_inventory(db, warehouse_id=warehouse_id, status=status)
    finally:
        db.close()


@router.get("/inventory/export")
def export_inventory(warehouse_id: Optional[int] = Query(default=None)):
    db = SessionLocal()
    try:
        df = inventory_frame(db, warehouse_id)
    finally:
        db.close()
    return Response(
        content=df.to_csv(index=False),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=inventory_export.csv"},
    )
