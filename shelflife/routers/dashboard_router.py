import logging

from fastapi import APIRouter, HTTPException
from sqlalchemy import select, func
from sqlalchemy.exc import SQLAlchemyError

from shelflife.db.session import SessionLocal, engine, settings
from shelflife.db.models import Warehouse
from shelflife.schemas import WarehouseCreate
from shelflife.services.inventory import dashboard_summary, list_warehouses_with_stats, create_warehouse

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/dashboard")
def get_dashboard():
    db = SessionLocal()
    try:
        return dashboard_summary(db)
    finally:
        db.close()


@router.get("/warehouses")
def get_warehouses():
    db = SessionLocal()
    try:
        return list_warehouses_with_stats(db)
    finally:
        db.close()


@router.post("/warehouses", status_code=201)
def post_warehouse(body: WarehouseCreate):
    if body.used_capacity > body.total_capacity:
        raise HTTPException(status_code=400, detail="used_capacity cannot exceed total_capacity")
    db = SessionLocal()
    try:
        return create_warehouse(db, body)
    finally:
        db.close()


@router.get("/health")
def get_health():
    """Connectivity check. Reports whether secrets are configured, never their values."""
    db = SessionLocal()
    try:
        warehouse_count = db.execute(select(func.count()).select_from(Warehouse)).scalar_one()
        database_ok = True
    except SQLAlchemyError as e:
        logger.error("Health check could not reach the database: %s", e)
        warehouse_count = None
        database_ok = False
    finally:
        db.close()

    return {
        "ok": database_ok,
        "database": {"reachable": database_ok, "dialect": engine.dialect.name},
        "warehouse_count": warehouse_count,
        "gemini_configured": bool(settings.GEMINI_API_KEY),
        "gemini_model": settings.GEMINI_MODEL,
    }
