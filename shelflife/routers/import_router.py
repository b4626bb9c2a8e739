import logging
import uuid
from pathlib import Path

import pandas as pd
from fastapi import APIRouter, UploadFile, File, HTTPException
from fastapi.responses import FileResponse
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite

from shelflife.db.session import SessionLocal, settings
from shelflife.db.models import Product, ProductStatus, Warehouse
from shelflife.services.inventory import recompute_used_capacity
from shelflife.services.shelf_life import expiry_from_shelf_life, utcnow

logger = logging.getLogger(__name__)

router = APIRouter()

REQUIRED_PRODUCTS = {
    "sku", "name", "category", "brand", "cost_price", "selling_price",
    "current_stock", "shelf_life_days", "warehouse_id",
}

ERROR_DIR = Path(settings.ERROR_REPORT_DIR)
ERROR_DIR.mkdir(parents=True, exist_ok=True)

def read_csv(upload: UploadFile) -> pd.DataFrame:
    if not upload.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail=f"{upload.filename} must be a CSV")
    try:
        # keep leading zeros in skus like 0001
        return pd.read_csv(upload.file, dtype={"sku": str})
    except Exception as e:
        raise HTTPException(status_code=400, detail=f"{upload.filename}: could not read CSV: {e}")

def missing_cols(df: pd.DataFrame, required: set[str]) -> list[str]:
    return sorted(list(required - set(df.columns)))

def add_error(
    errors: list,
    *,
    file: str,
    row: int | None,
    field: str,
    code: str,
    message: str,
    value: str = "",
    suggestion: str = "",
):
    errors.append({
        "file": file,
        "row": row,
        "field": field,
        "code": code,
        "message": message,
        "value": value,
        "suggestion": suggestion,
    })

def _blank(value) -> bool:
    return value is None or (not isinstance(value, str) and pd.isna(value)) or str(value).strip() == ""

def validate_products(df: pd.DataFrame, filename: str, warehouse_ids: set[int]) -> list[dict]:
    errors: list[dict] = []

    missing = missing_cols(df, REQUIRED_PRODUCTS)
    if missing:
        add_error(errors, file=filename, row=None, field="*", code="MISSING_COLUMNS",
                  message="Missing required columns", value=",".join(missing),
                  suggestion="Add these columns to header.")
        return errors

    seen: dict[str, int] = {}
    for idx, row in df.iterrows():
        csv_row = int(idx) + 2

        sku = "" if _blank(row.get("sku")) else str(row["sku"]).strip()
        if not sku:
            add_error(errors, file=filename, row=csv_row, field="sku", code="REQUIRED",
                      message="sku is required", suggestion="Provide a non-empty sku.")
        elif sku in seen:
            add_error(errors, file=filename, row=csv_row, field="sku", code="DUPLICATE_SKU",
                      message=f"sku already used on row {seen[sku]}", value=sku,
                      suggestion="Keep one row per sku.")
        else:
            seen[sku] = csv_row

        if _blank(row.get("name")):
            add_error(errors, file=filename, row=csv_row, field="name", code="REQUIRED",
                      message="name is required")

        try:
            cost = float(row["cost_price"])
            if pd.isna(cost) or cost < 0:
                raise ValueError()
        except Exception:
            add_error(errors, file=filename, row=csv_row, field="cost_price", code="BAD_NUMBER",
                      message="cost_price must be a number >= 0", value=str(row.get("cost_price", "")))
            cost = None

        try:
            price = float(row["selling_price"])
            if pd.isna(price) or price < 0:
                raise ValueError()
        except Exception:
            add_error(errors, file=filename, row=csv_row, field="selling_price", code="BAD_NUMBER",
                      message="selling_price must be a number >= 0", value=str(row.get("selling_price", "")))
            price = None

        if cost is not None and price is not None and price < cost:
            add_error(errors, file=filename, row=csv_row, field="selling_price", code="PRICE_LT_COST",
                      message="selling_price must be >= cost_price", value=f"{price} < {cost}",
                      suggestion="Raise price or correct cost.")

        try:
            stock = int(row["current_stock"])
            if stock < 0 or stock != float(row["current_stock"]):
                raise ValueError()
        except Exception:
            add_error(errors, file=filename, row=csv_row, field="current_stock", code="BAD_INT",
                      message="current_stock must be an integer >= 0", value=str(row.get("current_stock", "")))

        try:
            shelf = int(row["shelf_life_days"])
            if shelf != float(row["shelf_life_days"]) or shelf < 1 or shelf > 3650:
                raise ValueError()
        except Exception:
            add_error(errors, file=filename, row=csv_row, field="shelf_life_days", code="OUT_OF_RANGE",
                      message="shelf_life_days must be a whole number between 1 and 3650",
                      value=str(row.get("shelf_life_days", "")), suggestion="Use a value 1-3650.")

        try:
            wid = int(row["warehouse_id"])
        except Exception:
            wid = None
        if wid is None or wid not in warehouse_ids:
            add_error(errors, file=filename, row=csv_row, field="warehouse_id", code="UNKNOWN_WAREHOUSE",
                      message="warehouse_id does not match an existing warehouse",
                      value=str(row.get("warehouse_id", "")), suggestion="Create the warehouse first.")

    return errors

def write_error_report(errors: list[dict]) -> str:
    report_id = uuid.uuid4().hex
    pd.DataFrame(errors).to_csv(ERROR_DIR / f"{report_id}.csv", index=False)
    return report_id

def _known_warehouses() -> set[int]:
    db = SessionLocal()
    try:
        return set(db.execute(select(Warehouse.id)).scalars())
    finally:
        db.close()

def _upsert_insert(dialect_name: str):
    if dialect_name == "postgresql":
        return postgresql.insert
    if dialect_name == "sqlite":
        return sqlite.insert
    raise HTTPException(status_code=501, detail=f"CSV import is not supported on {dialect_name}")

def _optional_int(row, field: str) -> int:
    value = row.get(field)
    return 0 if _blank(value) else int(value)

def _product_rows(df: pd.DataFrame) -> list[dict]:
    now = utcnow()
    rows = []
    for _, row in df.iterrows():
        shelf = int(row["shelf_life_days"])
        description = row.get("description")
        rows.append({
            "sku": str(row["sku"]).strip(),
            "name": str(row["name"]).strip(),
            "description": None if _blank(description) else str(description),
            "category": None if _blank(row["category"]) else str(row["category"]),
            "brand": None if _blank(row["brand"]) else str(row["brand"]),
            "cost_price": float(row["cost_price"]),
            "selling_price": float(row["selling_price"]),
            "current_stock": int(row["current_stock"]),
            "min_stock_level": _optional_int(row, "min_stock_level"),
            "max_stock_level": _optional_int(row, "max_stock_level"),
            "shelf_life_days": shelf,
            "received_date": now,
            "expiry_date": expiry_from_shelf_life(shelf, now),
            "days_until_expiry": shelf,
            "dead_stock_risk": 0.0,
            "status": ProductStatus.HEALTHY,
            "warehouse_id": int(row["warehouse_id"]),
            "created_at": now,
            "updated_at": now,
        })
    return rows

@router.get("/error-report/{report_id}")
def download_error_report(report_id: str):
    path = ERROR_DIR / f"{report_id}.csv"
    if not report_id.isalnum() or not path.exists():
        raise HTTPException(status_code=404, detail="Error report not found")
    return FileResponse(path, media_type="text/csv", filename="import_error_report.csv")

@router.post("/validate")
async def validate_products_csv(products: UploadFile = File(...)):
    df = read_csv(products)
    errors = validate_products(df, products.filename, _known_warehouses())

    if errors:
        report_id = write_error_report(errors)
        return {
            "ok": False,
            "summary": {"products_rows": int(len(df))},
            "errors_count": len(errors),
            "error_report_id": report_id,
            "error_report_url": f"/api/import/error-report/{report_id}",
            "errors_preview": errors[:25],
        }

    return {
        "ok": True,
        "summary": {"products_rows": int(len(df))},
        "errors_count": 0,
        "errors_preview": [],
    }

@router.post("/commit")
async def commit_products_csv(products: UploadFile = File(...)):
    df = read_csv(products)
    errors = validate_products(df, products.filename, _known_warehouses())
    if errors:
        raise HTTPException(status_code=400, detail="CSV has validation errors. Run /api/import/validate first.")

    prod_rows = _product_rows(df)
    if not prod_rows:
        return {"ok": True, "saved": {"products_upserted": 0, "warehouses_recounted": 0}}

    db = SessionLocal()
    try:
        insert = _upsert_insert(db.get_bind().dialect.name)
        stmt = insert(Product).values(prod_rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Product.sku],
            set_={
                "name": stmt.excluded.name,
                "description": stmt.excluded.description,
                "category": stmt.excluded.category,
                "brand": stmt.excluded.brand,
                "cost_price": stmt.excluded.cost_price,
                "selling_price": stmt.excluded.selling_price,
                "current_stock": stmt.excluded.current_stock,
                "min_stock_level": stmt.excluded.min_stock_level,
                "max_stock_level": stmt.excluded.max_stock_level,
                "shelf_life_days": stmt.excluded.shelf_life_days,
                "received_date": stmt.excluded.received_date,
                "expiry_date": stmt.excluded.expiry_date,
                "days_until_expiry": stmt.excluded.days_until_expiry,
                "warehouse_id": stmt.excluded.warehouse_id,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        db.execute(stmt)

        # a re-imported sku may have moved, so recount every warehouse
        warehouse_ids = list(db.execute(select(Warehouse.id)).scalars())
        for wid in warehouse_ids:
            used = recompute_used_capacity(db, wid)
            warehouse = db.get(Warehouse, wid)
            if used > warehouse.total_capacity:
                logger.warning("Warehouse %s over capacity after import: %s/%s",
                               wid, used, warehouse.total_capacity)
        db.commit()
        logger.info("Imported %s products from %s", len(prod_rows), products.filename)
        return {
            "ok": True,
            "saved": {
                "products_upserted": len(prod_rows),
                "warehouses_recounted": len(warehouse_ids),
            },
            "note": "Existing skus are updated in place; risk and status are kept.",
        }
    except Exception:
        db.rollback()
        logger.exception("Product import failed for %s", products.filename)
        raise
    finally:
        db.close()
