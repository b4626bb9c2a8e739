from typing import Optional

from pydantic import BaseModel, Field

from shelflife.db.models import AlertType, Priority, OrderStatus


class WarehouseCreate(BaseModel):
    name: str = Field(min_length=1)
    location: str = Field(min_length=1)
    total_capacity: int = Field(gt=0)
    used_capacity: int = Field(default=0, ge=0)
    address: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    manager_name: Optional[str] = None
    manager_email: Optional[str] = None
    manager_phone: Optional[str] = None


class NamedOrderRequest(BaseModel):
    """Order form payload: the product is identified by name within a warehouse."""
    product_name: str = Field(min_length=1)
    quantity: int = Field(gt=0)
    shelf_life_days: int = Field(gt=0)
    warehouse_id: int
    unit_cost: float = Field(default=0.0, ge=0)
    selling_price: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = None
    brand: Optional[str] = None


class ProductOrderRequest(BaseModel):
    product_id: int
    warehouse_id: int
    quantity: int = Field(gt=0)
    shelf_life_days: int = Field(gt=0)
    unit_cost: float = Field(default=0.0, ge=0)


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class SaleCreate(BaseModel):
    product_id: int
    quantity_sold: int = Field(gt=0)
    unit_price: Optional[float] = Field(default=None, ge=0)
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None


class AlertCreate(BaseModel):
    title: str = Field(min_length=1)
    message: str = Field(min_length=1)
    type: AlertType
    priority: Priority = Priority.MEDIUM
    warehouse_id: Optional[int] = None
    product_id: Optional[int] = None
    order_id: Optional[int] = None


class AlertUpdate(BaseModel):
    is_read: Optional[bool] = None
    is_resolved: Optional[bool] = None
    resolved_by: Optional[str] = None


class QueryRequest(BaseModel):
    query: str = ""
