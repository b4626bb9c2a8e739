import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import JSONResponse

from shelflife.db.session import SessionLocal
from shelflife.db.models import OrderStatus
from shelflife.schemas import NamedOrderRequest, ProductOrderRequest, OrderStatusUpdate, SaleCreate
from shelflife.services.orders import (
    OrderRejected, place_order_by_name, place_order_for_product, list_orders,
    update_order_status, record_sale,
)

logger = logging.getLogger(__name__)

router = APIRouter()

def rejected(e: OrderRejected) -> JSONResponse:
    return JSONResponse(status_code=409, content=e.payload)

@router.post("/order")
def post_named_order(body: NamedOrderRequest):
    db = SessionLocal()
    try:
        return place_order_by_name(db, body)
    except OrderRejected as e:
        db.rollback()
        return rejected(e)
    except HTTPException:
        raise
    except Exception:
        db.rollback()
        logger.exception("Error processing order for %s", body.product_name)
        raise
    finally:
        db.close()


@router.get("/orders")
def get_orders(
    warehouse_id: Optional[int] = Query(default=None),
    status: Optional[OrderStatus] = Query(default=None),
    product_id: Optional[int] = Query(default=None),
):
    db = SessionLocal()
    try:
        return list_orders(db, warehouse_id=warehouse_id, status=status, product_id=product_id)
    finally:
        db.close()


@router.post("/orders")
def post_product_order(body: ProductOrderRequest):
    db = SessionLocal()
    try:
        return place_order_for_product(db, body)
    except OrderRejected as e:
        db.rollback()
        return rejected(e)
    except HTTPException:
        raise
    except Exception:
        db.rollback()
        logger.exception("Error creating order for product %s", body.product_id)
        raise
    finally:
        db.close()


@router.patch("/orders/{order_id}")
def patch_order(order_id: int, body: OrderStatusUpdate):
    db = SessionLocal()
    try:
        return update_order_status(db, order_id, body.status)
    finally:
        db.close()


@router.post("/sales", status_code=201)
def post_sale(body: SaleCreate):
    db = SessionLocal()
    try:
        return record_sale(db, body)
    except OrderRejected as e:
        db.rollback()
        return rejected(e)
    finally:
        db.close()
