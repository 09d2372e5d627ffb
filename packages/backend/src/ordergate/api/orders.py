"""Order API — place and read orders as the logged-in customer.

Learn: The customer id always comes from the verified session
(CurrentIdentity), never from the request body.
"""

from fastapi import APIRouter, Depends, Request

from ordergate.auth.dependencies import CurrentIdentity, require_customer
from ordergate.schemas.order import OrderCreate, OrderPlacedRead, OrderRead
from ordergate.services.order_service import OrderTransactionManager

router = APIRouter()


def _manager(request: Request) -> OrderTransactionManager:
    return OrderTransactionManager(request.app.state.session_factory)


@router.post("/orders", response_model=OrderPlacedRead, status_code=201)
async def place_order(
    body: OrderCreate,
    identity: CurrentIdentity = Depends(require_customer),
    manager: OrderTransactionManager = Depends(_manager),
):
    """Place an order: header + line item, committed atomically."""
    return await manager.place_order(
        customer_id=identity.principal_id,
        menu_id=body.menu_id,
        quantity=body.quantity,
    )


@router.get("/orders/{order_id}", response_model=OrderRead)
async def get_order(
    order_id: int,
    identity: CurrentIdentity = Depends(require_customer),
    manager: OrderTransactionManager = Depends(_manager),
):
    return await manager.get_order(order_id, customer_id=identity.principal_id)
