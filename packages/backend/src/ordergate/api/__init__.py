"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects all routes in each router
without modifying individual handlers. Health and the login/register
routers are open; their /me routes ask for a session themselves.
"""

from fastapi import APIRouter, Depends

from ordergate.api.auth import router as auth_router
from ordergate.api.customers import router as customers_router
from ordergate.api.health import router as health_router
from ordergate.api.orders import router as orders_router
from ordergate.api.users import router as users_router
from ordergate.auth.dependencies import require_session

# All protected routers require a valid session
_auth = [Depends(require_session)]

api_router = APIRouter(prefix="/api/v1")

# Open routes — no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])
api_router.include_router(customers_router, tags=["customers"])

# Protected routes
api_router.include_router(users_router, tags=["users"], dependencies=_auth)
api_router.include_router(orders_router, tags=["orders"], dependencies=_auth)
