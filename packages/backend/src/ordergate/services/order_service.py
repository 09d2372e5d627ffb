"""Order service — atomic order placement.

Learn: Placing an order writes two rows, the order header and its line
item. They are committed in one transaction or not at all; a reader never
sees a header without its item.

Flow:
1. Validate the quantity (whole number, 1..MAX_QUANTITY)
2. Read the menu price + restaurant in a short read-only session
3. total = unit_price × quantity, rejected if it overflows the money column
4. OrderUnitOfWork: insert header → flush for its id → insert line item → commit

The price read in step 2 is not locked. If the menu price changes before
the commit, the order keeps the price that was read: last price read wins.

Consistency rests on the database transaction alone. There is no
application-level lock, and the unit of work returns its connection to the
pool on every exit path.
"""

import math
from dataclasses import dataclass
from decimal import Decimal
from numbers import Real
from typing import Any, Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from ordergate.db.models import MenuItem, Order, OrderItem
from ordergate.errors import NotFoundError, PersistenceError, ValidationError

logger = structlog.get_logger()

CENTS = Decimal("0.01")

MAX_QUANTITY = 1000
# Largest value a Numeric(10, 2) money column holds.
MAX_TOTAL = Decimal("99999999.99")


@dataclass(frozen=True)
class MenuPrice:
    menu_id: int
    restaurant_id: int
    unit_price: Decimal


@dataclass(frozen=True)
class PlacedOrder:
    order_id: int
    restaurant_id: int
    menu_id: int
    quantity: int
    unit_price: Decimal
    total_price: Decimal


def validate_quantity(quantity: Any) -> int:
    """Return `quantity` as an int, or raise ValidationError.

    Accepts ints and finite integral floats/Decimals from 1 to MAX_QUANTITY.
    bools are rejected even though they are ints.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, (Real, Decimal)):
        raise ValidationError("quantity must be a number", details={"fields": {"quantity": "Must be a number"}})
    if isinstance(quantity, int):
        value = quantity
    else:
        if not math.isfinite(quantity) or quantity != int(quantity):
            raise ValidationError(
                "quantity must be a whole number",
                details={"fields": {"quantity": "Must be a whole number"}},
            )
        value = int(quantity)
    if value <= 0:
        raise ValidationError(
            "quantity must be greater than zero",
            details={"fields": {"quantity": "Must be greater than zero"}},
        )
    if value > MAX_QUANTITY:
        raise ValidationError(
            f"quantity must be at most {MAX_QUANTITY}",
            details={"fields": {"quantity": f"Must be at most {MAX_QUANTITY}"}},
        )
    return value


class PricingStore:
    """Read access to menu prices."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_menu_item(self, menu_id: int) -> Optional[MenuPrice]:
        result = await self.db.execute(
            select(MenuItem.id, MenuItem.restaurant_id, MenuItem.price).where(
                MenuItem.id == menu_id
            )
        )
        row = result.first()
        if row is None or row.price is None:
            return None
        return MenuPrice(
            menu_id=row.id,
            restaurant_id=row.restaurant_id,
            unit_price=Decimal(row.price),
        )


class OrderUnitOfWork:
    """One transaction for writing an order header and its line items.

    Use as `async with OrderUnitOfWork(factory) as uow:`. Anything not
    explicitly committed is rolled back on exit, including when the block
    raises or the task is cancelled, and the session is always closed.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self.session: Optional[AsyncSession] = None
        self._committed = False

    async def __aenter__(self) -> "OrderUnitOfWork":
        self.session = self._session_factory()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            if not self._committed:
                await self.rollback()
        finally:
            await self.session.close()

    async def insert_order_header(
        self, customer_id: int, restaurant_id: int, total_price: Decimal
    ) -> Order:
        order = Order(
            customer_id=customer_id,
            restaurant_id=restaurant_id,
            total_price=total_price,
        )
        self.session.add(order)
        await self.session.flush()  # get the auto-generated id
        return order

    async def insert_order_line_item(
        self,
        order: Order,
        menu_id: int,
        quantity: int,
        unit_price: Decimal,
        subtotal: Decimal,
    ) -> OrderItem:
        item = OrderItem(
            order_id=order.id,
            menu_id=menu_id,
            quantity=quantity,
            unit_price=unit_price,
            subtotal=subtotal,
        )
        self.session.add(item)
        await self.session.flush()
        return item

    async def commit(self) -> None:
        await self.session.commit()
        self._committed = True

    async def rollback(self) -> None:
        await self.session.rollback()


class OrderTransactionManager:
    """Places orders for authenticated customers."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def place_order(self, customer_id: int, menu_id: int, quantity: Any) -> PlacedOrder:
        """Create an order header + line item atomically.

        customer_id must come from the verified session, never from the
        request body. Raises ValidationError, NotFoundError or
        PersistenceError; on any of them no row has been written.
        """
        quantity = validate_quantity(quantity)

        async with self._session_factory() as session:
            menu = await PricingStore(session).find_menu_item(menu_id)
        if menu is None:
            raise NotFoundError("Menu item not found")

        subtotal = (menu.unit_price * quantity).quantize(CENTS)
        if subtotal > MAX_TOTAL:
            raise ValidationError(
                "Order total is too large",
                details={"fields": {"quantity": "Order total is too large"}},
            )

        try:
            async with OrderUnitOfWork(self._session_factory) as uow:
                order = await uow.insert_order_header(
                    customer_id=customer_id,
                    restaurant_id=menu.restaurant_id,
                    total_price=subtotal,
                )
                await uow.insert_order_line_item(
                    order,
                    menu_id=menu.menu_id,
                    quantity=quantity,
                    unit_price=menu.unit_price,
                    subtotal=subtotal,
                )
                await uow.commit()
        except SQLAlchemyError as e:
            logger.error(
                "ordergate.order_failed",
                customer_id=customer_id,
                menu_id=menu_id,
                error=str(e),
            )
            raise PersistenceError("Order creation failed") from e

        logger.info(
            "ordergate.order_placed",
            order_id=order.id,
            customer_id=customer_id,
            menu_id=menu_id,
            quantity=quantity,
            total_price=str(subtotal),
        )
        return PlacedOrder(
            order_id=order.id,
            restaurant_id=menu.restaurant_id,
            menu_id=menu.menu_id,
            quantity=quantity,
            unit_price=menu.unit_price,
            total_price=subtotal,
        )

    async def get_order(self, order_id: int, customer_id: int) -> Order:
        """Load a committed order with its items, for its owner only."""
        async with self._session_factory() as session:
            result = await session.execute(
                select(Order)
                .where(Order.id == order_id, Order.customer_id == customer_id)
                .options(selectinload(Order.items))
            )
            order = result.scalars().first()
        if order is None:
            raise NotFoundError("Order not found")
        return order
