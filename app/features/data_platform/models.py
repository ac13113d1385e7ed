"""Marketplace ORM models backing the forecast series.

- Product: catalogue entry with an optional category used for filtering.
- Order: one purchase of a product at a unit price; the forecast loader
  groups these by calendar day.
"""

from decimal import Decimal

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base
from app.shared.models import TimestampMixin


class Product(TimestampMixin, Base):
    """Product catalogue table.

    Attributes:
        id: Primary key.
        sku: Unique product identifier.
        name: Display name.
        category: Product category (e.g. "grains", "vegetables").
        unit: Selling unit (e.g. "kg", "crate").
    """

    __tablename__ = "product"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    sku: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    name: Mapped[str] = mapped_column(String(200))
    category: Mapped[str | None] = mapped_column(String(100), index=True, nullable=True)
    unit: Mapped[str] = mapped_column(String(20), default="kg")

    orders: Mapped[list["Order"]] = relationship(back_populates="product")


class Order(TimestampMixin, Base):
    """Order fact table.

    ``created_at`` (from TimestampMixin) is the order time and drives the
    daily bucketing.

    Attributes:
        id: Primary key.
        product_id: Ordered product (FK).
        quantity: Units ordered.
        unit_price: Price per unit at order time.
    """

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("product.id"), index=True)
    quantity: Mapped[int] = mapped_column(Integer)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))

    product: Mapped["Product"] = relationship(back_populates="orders")

    __table_args__ = (
        Index("ix_orders_created_at", "created_at"),
        CheckConstraint("quantity >= 1", name="ck_orders_quantity_positive"),
        CheckConstraint("unit_price >= 0", name="ck_orders_unit_price_non_negative"),
    )
