from sqlalchemy import (
    Table, Column, String, Integer, Numeric, Boolean, Text, Enum, DateTime, MetaData,
    ForeignKey, CheckConstraint, PrimaryKeyConstraint,
)
from sqlalchemy.sql import func

from storefront.domain.models import OrderStatus

metadata = MetaData()


categories_tbl = Table(
    "categories",
    metadata,
    Column("id", String, primary_key=True),
    Column("name", String, nullable=False),
    Column("is_exclusive", Boolean, nullable=False, default=False),
    Column("created_at", DateTime(timezone=True), server_default=func.now())
)


products_tbl = Table(
    "products",
    metadata,
    Column("id", String, primary_key=True),
    Column("name", String, nullable=False),
    Column("price", Numeric(12, 2), nullable=False),
    Column("old_price", Numeric(12, 2), nullable=True),
    Column("stock", Integer, nullable=False, default=0),
    Column("category_id", String, ForeignKey("categories.id"), nullable=False, index=True),
    Column("weight", Numeric(10, 3), nullable=True),
    Column("is_exclusive", Boolean, nullable=False, default=False),
    Column("image_url", String, nullable=True),
    Column("description", Text, nullable=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now(), onupdate=func.now()),
    CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
    CheckConstraint("price >= 0", name="ck_products_price_non_negative")
)


carts_tbl = Table(
    "carts",
    metadata,
    Column("id", String, primary_key=True),
    Column("user_id", String, unique=True, nullable=True),
    Column("session_id", String, unique=True, nullable=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now(), onupdate=func.now()),
    # Ровно один владелец: пользователь или гостевая сессия
    CheckConstraint("(user_id IS NULL) <> (session_id IS NULL)", name="ck_carts_single_owner")
)


cart_items_tbl = Table(
    "cart_items",
    metadata,
    Column("cart_id", String, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False),
    Column("product_id", String, nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("added_at", DateTime(timezone=True), server_default=func.now()),
    PrimaryKeyConstraint("cart_id", "product_id"),
    CheckConstraint("quantity >= 1", name="ck_cart_items_quantity_positive")
)


orders_tbl = Table(
    "orders",
    metadata,
    Column("id", String, primary_key=True),
    Column("user_id", String, nullable=False, index=True),
    Column("total_amount", Numeric(12, 2), nullable=False),
    Column(
        "status",
        Enum(OrderStatus, name="order_status", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=OrderStatus.PENDING
    ),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
)


order_items_tbl = Table(
    "order_items",
    metadata,
    Column("order_id", String, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
    Column("position", Integer, nullable=False),
    Column("product_id", String, nullable=False),
    Column("product_name", String, nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("price", Numeric(12, 2), nullable=False),
    PrimaryKeyConstraint("order_id", "position")
)
