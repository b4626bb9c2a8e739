import logging

from fastapi import FastAPI

from shelflife.db.session import settings
from shelflife.routers.dashboard_router import router as dashboard_router
from shelflife.routers.product_router import router as product_router
from shelflife.routers.import_router import router as import_router
from shelflife.routers.order_router import router as order_router
from shelflife.routers.alert_router import router as alert_router
from shelflife.routers.dead_stock_router import router as dead_stock_router
from shelflife.routers.recommendation_router import router as recommendation_router
from shelflife.routers.query_router import router as query_router
from shelflife.routers.page_router import router as page_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Shelflife API v0")

@app.get("/api")
def root():
    return {"ok": True, "service": "shelflife", "module": "inventory"}

app.include_router(dashboard_router, prefix="/api", tags=["dashboard"])
app.include_router(product_router, prefix="/api", tags=["products"])
app.include_router(import_router, prefix="/api/import", tags=["import"])
app.include_router(order_router, prefix="/api", tags=["orders"])
app.include_router(alert_router, prefix="/api", tags=["alerts"])
app.include_router(dead_stock_router, prefix="/api/dead-stock", tags=["dead-stock"])
app.include_router(recommendation_router, prefix="/api", tags=["recommendations"])
app.include_router(query_router, prefix="/api", tags=["query"])
app.include_router(page_router, include_in_schema=False)
