"""Server-rendered pages. They call the same service functions as the JSON API."""

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Form, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError

from shelflife.db.session import SessionLocal
from shelflife.schemas import NamedOrderRequest
from shelflife.services.alerts import list_alerts, update_alert
from shelflife.services.inventory import dashboard_summary, list_warehouses_with_stats, lookup_product_by_name
from shelflife.services.orders import OrderRejected, place_order_by_name
from shelflife.routers.query_router import answer_question

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

router = APIRouter(default_response_class=HTMLResponse)

@router.get("/")
def home(request: Request):
    db = SessionLocal()
    try:
        summary = dashboard_summary(db)
        alerts = list_alerts(db, is_resolved=False)[:5]
    finally:
        db.close()
    return templates.TemplateResponse(request, "home.html", {"summary": summary, "alerts": alerts})


@router.get("/dashboard")
def dashboard(request: Request):
    db = SessionLocal()
    try:
        summary = dashboard_summary(db)
    finally:
        db.close()
    return templates.TemplateResponse(request, "dashboard.html", {"summary": summary})


@router.get("/inventory")
def inventory(request: Request):
    db = SessionLocal()
    try:
        warehouses = list_warehouses_with_stats(db)
    finally:
        db.close()
    return templates.TemplateResponse(request, "inventory.html", {"warehouses": warehouses})


@router.get("/alerts")
def alerts(request: Request, show: str = "open"):
    db = SessionLocal()
    try:
        rows = list_alerts(db, is_resolved=None if show == "all" else False)
    finally:
        db.close()
    return templates.TemplateResponse(request, "alerts.html", {"alerts": rows, "show": show})


@router.post("/alerts/{alert_id}/read")
def mark_alert_read(alert_id: int):
    db = SessionLocal()
    try:
        update_alert(db, alert_id, is_read=True)
    finally:
        db.close()
    return RedirectResponse("/alerts", status_code=303)


@router.post("/alerts/{alert_id}/resolve")
def resolve_alert(alert_id: int, resolved_by: str = Form(default="dashboard")):
    db = SessionLocal()
    try:
        update_alert(db, alert_id, is_read=True, is_resolved=True, resolved_by=resolved_by)
    finally:
        db.close()
    return RedirectResponse("/alerts", status_code=303)


def _order_page(request: Request, *, form: dict, lookup: Optional[dict] = None,
                result: Optional[dict] = None, error: Optional[str] = None, status_code: int = 200):
    db = SessionLocal()
    try:
        warehouses = list_warehouses_with_stats(db)
    finally:
        db.close()
    return templates.TemplateResponse(
        request,
        "items_order.html",
        {"warehouses": warehouses, "form": form, "lookup": lookup, "result": result, "error": error},
        status_code=status_code,
    )


@router.get("/items-order")
def items_order(request: Request, product_name: str = ""):
    lookup = None
    if product_name.strip():
        db = SessionLocal()
        try:
            lookup = lookup_product_by_name(db, product_name)
        finally:
            db.close()
    return _order_page(request, form={"product_name": product_name, "shelf_life_days": 24}, lookup=lookup)


@router.post("/items-order")
def submit_order(
    request: Request,
    product_name: str = Form(...),
    quantity: int = Form(...),
    shelf_life_days: int = Form(...),
    warehouse_id: int = Form(...),
    unit_cost: str = Form(default=""),
    selling_price: str = Form(default=""),
    category: str = Form(default=""),
    brand: str = Form(default=""),
):
    form = {
        "product_name": product_name,
        "quantity": quantity,
        "shelf_life_days": shelf_life_days,
        "warehouse_id": warehouse_id,
        "unit_cost": unit_cost,
        "selling_price": selling_price,
        "category": category,
        "brand": brand,
    }
    try:
        req = NamedOrderRequest(**{
            **form,
            "unit_cost": unit_cost.strip() or 0.0,
            "selling_price": selling_price.strip() or None,
            "category": category or None,
            "brand": brand or None,
        })
    except ValidationError as e:
        message = "; ".join(f"{'.'.join(map(str, err['loc']))}: {err['msg']}" for err in e.errors())
        return _order_page(request, form=form, error=message, status_code=422)

    db = SessionLocal()
    try:
        result = place_order_by_name(db, req)
    except OrderRejected as e:
        db.rollback()
        result = e.payload
    except HTTPException as e:
        db.rollback()
        return _order_page(request, form=form, error=e.detail, status_code=e.status_code)
    finally:
        db.close()
    return _order_page(request, form=form, result=result)


@router.get("/query")
def query_page(request: Request):
    return templates.TemplateResponse(request, "query.html", {"question": "", "answer": None, "error": None})


@router.post("/query")
def run_query(request: Request, question: str = Form(default="")):
    answer, error = None, None
    try:
        answer = answer_question(question)
    except HTTPException as e:
        error = e.detail
    return templates.TemplateResponse(
        request, "query.html", {"question": question, "answer": answer, "error": error}
    )
