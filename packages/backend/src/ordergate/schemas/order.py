"""Pydantic schemas for orders.

Learn: The request body carries only what the customer chooses: which menu
item and how many. The customer comes from the session, so a
`customer_id` in the body is ignored. Money is Decimal end to end and
serializes as a string ("37.50") to keep cents exact.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from ordergate.services.order_service import MAX_QUANTITY


class OrderCreate(BaseModel):
    menu_id: int = Field(gt=0)
    quantity: int = Field(gt=0, le=MAX_QUANTITY)


class OrderPlacedRead(BaseModel):
    order_id: int
    restaurant_id: int
    menu_id: int
    quantity: int
    unit_price: Decimal
    total_price: Decimal

    model_config = {"from_attributes": True}


class OrderItemRead(BaseModel):
    id: int
    menu_id: int
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    model_config = {"from_attributes": True}


class OrderRead(BaseModel):
    id: int
    customer_id: int
    restaurant_id: int
    total_price: Decimal
    created_at: Optional[datetime] = None
    items: list[OrderItemRead]

    model_config = {"from_attributes": True}
