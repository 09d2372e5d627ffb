"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Alembic auto-generates migrations by comparing these
models to the actual DB.

Key concepts:
- Integer autoincrement ids (the shop tables predate this service)
- Two independent principal tables: staff users and customers
- Money is Numeric(10, 2), never float
- server_default for DB-level defaults (work even for raw SQL inserts)
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ══════════════════════════════════════════════════════════════
# Principals
# ══════════════════════════════════════════════════════════════


class User(Base):
    """A staff user.

    Learn: `password` holds the stored credential representation. Rows
    created by the old shop backend may still hold plaintext; the first
    successful login replaces it with a bcrypt hash.
    """

    __tablename__ = "tbl_users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    firstname: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    fullname: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    lastname: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    username: Mapped[str] = mapped_column(String(100), unique=True, nullable=False)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    sex: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    birthday: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active", server_default="active"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=utcnow
    )


class Customer(Base):
    """A customer account. Separate identity space from staff users."""

    __tablename__ = "tbl_customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    fullname: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="active", server_default="active"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=utcnow
    )

    orders: Mapped[list["Order"]] = relationship(back_populates="customer")


# ══════════════════════════════════════════════════════════════
# Catalogue
# ══════════════════════════════════════════════════════════════


class Restaurant(Base):
    __tablename__ = "tbl_restaurants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    menus: Mapped[list["MenuItem"]] = relationship(back_populates="restaurant")


class MenuItem(Base):
    """A priced menu entry. `price` may change after orders reference it."""

    __tablename__ = "tbl_menus"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    restaurant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tbl_restaurants.id"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    restaurant: Mapped["Restaurant"] = relationship(back_populates="menus")


# ══════════════════════════════════════════════════════════════
# Orders
# ══════════════════════════════════════════════════════════════


class Order(Base):
    """Order header. Created together with its line items, never mutated.

    Learn: total_price always equals the sum of the items' subtotals at
    commit time — both are written in the same transaction by
    services/order_service.py.
    """

    __tablename__ = "tbl_orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tbl_customers.id"), nullable=False, index=True
    )
    restaurant_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tbl_restaurants.id"), nullable=False
    )
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    customer: Mapped["Customer"] = relationship(back_populates="orders")
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order", order_by="OrderItem.id"
    )


class OrderItem(Base):
    """Order line item. unit_price is a copy of the menu price at order time."""

    __tablename__ = "tbl_order_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tbl_orders.id"), nullable=False, index=True
    )
    menu_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tbl_menus.id"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    order: Mapped["Order"] = relationship(back_populates="items")


PRINCIPAL_MODELS: dict[str, type[User] | type[Customer]] = {
    "user": User,
    "customer": Customer,
}
