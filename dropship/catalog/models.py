"""Catalog and order tables.

All money columns are whole NOK. images and tags hold JSON-encoded lists.
"""

import enum
import json
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from dropship.catalog.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SupplierOrderStatus(str, enum.Enum):
    PENDING = "PENDING"
    SENT_TO_SUPPLIER = "SENT_TO_SUPPLIER"
    ACCEPTED_BY_SUPPLIER = "ACCEPTED_BY_SUPPLIER"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    store_id = Column(String, nullable=False, default="default")

    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    description = Column(Text, nullable=False, default="")
    short_description = Column(String)
    category = Column(String)
    tags = Column(Text, nullable=False, default="[]")
    images = Column(Text, nullable=False, default="[]")

    price = Column(Integer, nullable=False)
    compare_at_price = Column(Integer)
    supplier_price = Column(Integer)
    profit_margin = Column(String)

    sku = Column(String)
    stock = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    supplier_url = Column(String, unique=True)
    supplier_name = Column(String)
    supplier_product_id = Column(String)
    supplier_sku = Column(String)
    auto_import = Column(Boolean, nullable=False, default=False)
    last_synced = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow
    )

    variants = relationship(
        "ProductVariant",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductVariant.sort_order",
    )

    __table_args__ = (
        Index("idx_products_supplier_product_id", "supplier_product_id"),
        Index("idx_products_store_supplier_sku", "store_id", "supplier_sku"),
    )

    @property
    def image_list(self) -> list[str]:
        return json.loads(self.images or "[]")

    def __repr__(self) -> str:
        return f"<Product id={self.id} slug={self.slug!r}>"


class ProductVariant(Base):
    __tablename__ = "product_variants"

    id = Column(Integer, primary_key=True)
    product_id = Column(
        Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False
    )

    name = Column(String, nullable=False)
    sku = Column(String)
    price = Column(Integer, nullable=False)
    compare_at_price = Column(Integer)
    supplier_price = Column(Integer)
    image = Column(String)
    attributes = Column(JSON, nullable=False, default=dict)
    stock = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    sort_order = Column(Integer, nullable=False, default=0)

    product = relationship("Product", back_populates="variants")


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    store_id = Column(String, nullable=False, default="default")

    customer_name = Column(String)
    customer_email = Column(String)
    customer_phone = Column(String)
    shipping_address = Column(Text)  # JSON object as entered at checkout
    total = Column(Integer, nullable=False, default=0)

    supplier_order_id = Column(String)
    supplier_order_status = Column(
        Enum(SupplierOrderStatus, native_enum=False),
        nullable=False,
        default=SupplierOrderStatus.PENDING,
    )
    tracking_number = Column(String)
    tracking_url = Column(String)
    auto_order_error = Column(Text)
    auto_order_attempts = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    items = relationship(
        "OrderItem", back_populates="order", cascade="all, delete-orphan"
    )
    events = relationship(
        "SupplierOrderEvent",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="SupplierOrderEvent.id",
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"))
    variant_id = Column(Integer, ForeignKey("product_variants.id"))
    variant_name = Column(String)
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Integer, nullable=False, default=0)

    order = relationship("Order", back_populates="items")
    product = relationship("Product")
    variant = relationship("ProductVariant")


class SupplierOrderEvent(Base):
    __tablename__ = "supplier_order_events"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    old_status = Column(Enum(SupplierOrderStatus, native_enum=False))
    new_status = Column(Enum(SupplierOrderStatus, native_enum=False), nullable=False)
    event_metadata = Column(JSON)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    order = relationship("Order", back_populates="events")

    __table_args__ = (Index("idx_supplier_events_order", "order_id"),)


__all__ = [
    "Order",
    "OrderItem",
    "Product",
    "ProductVariant",
    "SupplierOrderEvent",
    "SupplierOrderStatus",
]
