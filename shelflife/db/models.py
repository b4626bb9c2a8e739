import enum
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy import String, Integer, Float, Boolean, DateTime, Text, Enum, ForeignKey

from shelflife.services.shelf_life import utcnow


class ProductStatus(str, enum.Enum):
    HEALTHY = "HEALTHY"
    AT_RISK = "AT_RISK"
    DEAD_STOCK = "DEAD_STOCK"
    EXPIRED = "EXPIRED"


class OrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    ORDERED = "ORDERED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class AlertType(str, enum.Enum):
    SHELF_LIFE_WARNING = "SHELF_LIFE_WARNING"
    DEAD_STOCK_ALERT = "DEAD_STOCK_ALERT"
    ML_PREDICTION = "ML_PREDICTION"
    SPACE_CONSTRAINT = "SPACE_CONSTRAINT"
    LOW_STOCK = "LOW_STOCK"
    ORDER_UPDATE = "ORDER_UPDATE"


class Priority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class RecommendationType(str, enum.Enum):
    DISCOUNT = "DISCOUNT"
    LIQUIDATE = "LIQUIDATE"
    BUNDLE = "BUNDLE"
    TRANSFER = "TRANSFER"
    DONATE = "DONATE"
    REORDER = "REORDER"


def _enum(cls):
    return Enum(cls, native_enum=False, length=32)


class Base(DeclarativeBase):
    pass

class Warehouse(Base):
    __tablename__ = "warehouses"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    location: Mapped[str] = mapped_column(String(200))
    address: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    total_capacity: Mapped[int] = mapped_column(Integer)
    used_capacity: Mapped[int] = mapped_column(Integer, default=0)
    manager_name: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    manager_email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    manager_phone: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    products: Mapped[list["Product"]] = relationship(back_populates="warehouse")
    orders: Mapped[list["Order"]] = relationship(back_populates="warehouse")

class Product(Base):
    __tablename__ = "products"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sku: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(200), index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    brand: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    cost_price: Mapped[float] = mapped_column(Float, default=0.0)
    selling_price: Mapped[float] = mapped_column(Float, default=0.0)
    current_stock: Mapped[int] = mapped_column(Integer, default=0)
    min_stock_level: Mapped[int] = mapped_column(Integer, default=0)
    max_stock_level: Mapped[int] = mapped_column(Integer, default=0)
    shelf_life_days: Mapped[int] = mapped_column(Integer, default=0)
    received_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    expiry_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, index=True)
    days_until_expiry: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    dead_stock_risk: Mapped[float] = mapped_column(Float, default=0.0)
    status: Mapped[ProductStatus] = mapped_column(_enum(ProductStatus), default=ProductStatus.HEALTHY)
    last_prediction: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    warehouse_id: Mapped[int] = mapped_column(ForeignKey("warehouses.id"), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    warehouse: Mapped[Warehouse] = relationship(back_populates="products")
    orders: Mapped[list["Order"]] = relationship(back_populates="product")
    alerts: Mapped[list["Alert"]] = relationship(back_populates="product")
    recommendations: Mapped[list["Recommendation"]] = relationship(back_populates="product")
    sales: Mapped[list["Sale"]] = relationship(back_populates="product")

class Order(Base):
    __tablename__ = "orders"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    order_number: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), index=True)
    warehouse_id: Mapped[int] = mapped_column(ForeignKey("warehouses.id"), index=True)
    quantity: Mapped[int] = mapped_column(Integer)
    unit_cost: Mapped[float] = mapped_column(Float, default=0.0)
    total_cost: Mapped[float] = mapped_column(Float, default=0.0)
    shelf_life_days: Mapped[int] = mapped_column(Integer, default=0)
    expected_expiry: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    status: Mapped[OrderStatus] = mapped_column(_enum(OrderStatus), default=OrderStatus.PENDING)
    requested_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    ml_recommended_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    ml_confidence: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    product: Mapped[Product] = relationship(back_populates="orders")
    warehouse: Mapped[Warehouse] = relationship(back_populates="orders")
    alerts: Mapped[list["Alert"]] = relationship(back_populates="order")

class Alert(Base):
    __tablename__ = "alerts"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    message: Mapped[str] = mapped_column(Text)
    type: Mapped[AlertType] = mapped_column(_enum(AlertType), index=True)
    priority: Mapped[Priority] = mapped_column(_enum(Priority), default=Priority.MEDIUM)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False)
    is_resolved: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    resolved_by: Mapped[Optional[str]] = mapped_column(String(120), nullable=True)
    product_id: Mapped[Optional[int]] = mapped_column(ForeignKey("products.id"), nullable=True)
    warehouse_id: Mapped[Optional[int]] = mapped_column(ForeignKey("warehouses.id"), nullable=True)
    order_id: Mapped[Optional[int]] = mapped_column(ForeignKey("orders.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    product: Mapped[Optional[Product]] = relationship(back_populates="alerts")
    warehouse: Mapped[Optional[Warehouse]] = relationship()
    order: Mapped[Optional[Order]] = relationship(back_populates="alerts")

class Recommendation(Base):
    __tablename__ = "recommendations"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), index=True)
    type: Mapped[RecommendationType] = mapped_column(_enum(RecommendationType))
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text)
    suggested_action: Mapped[str] = mapped_column(Text)
    expected_impact: Mapped[float] = mapped_column(Float, default=0.0)
    confidence: Mapped[float] = mapped_column(Float, default=0.0)
    urgency: Mapped[Priority] = mapped_column(_enum(Priority), default=Priority.MEDIUM)
    is_implemented: Mapped[bool] = mapped_column(Boolean, default=False)
    implemented_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    product: Mapped[Product] = relationship(back_populates="recommendations")

class Sale(Base):
    __tablename__ = "sales"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), index=True)
    quantity_sold: Mapped[int] = mapped_column(Integer)
    unit_price: Mapped[float] = mapped_column(Float)
    total_revenue: Mapped[float] = mapped_column(Float)
    profit: Mapped[float] = mapped_column(Float)
    customer_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    customer_email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    sale_date: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)

    product: Mapped[Product] = relationship(back_populates="sales")
