"""Customer auth API — same protocol as staff auth, customer table.

- POST /customers/auth/register → create a customer account
- POST /customers/auth/login → session token (7 days by default)
- POST /customers/auth/logout
- GET /customers/auth/me → current customer
"""

from fastapi import APIRouter, Depends, Request, Response

from ordergate.api.auth import end_session, get_auth_service, session_response
from ordergate.auth.dependencies import CurrentIdentity, require_customer
from ordergate.auth.jwt import CUSTOMER
from ordergate.schemas.auth import CustomerRead, CustomerRegister, LoginRequest
from ordergate.services.auth_service import AuthService

router = APIRouter(prefix="/customers/auth")


@router.post("/register", response_model=CustomerRead, status_code=201)
async def register(body: CustomerRegister, svc: AuthService = Depends(get_auth_service)):
    """Create a new customer account."""
    fields = body.model_dump(exclude={"password"})
    return await svc.register(CUSTOMER, password=body.password, **fields)


@router.post("/login")
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    svc: AuthService = Depends(get_auth_service),
):
    result = await svc.login(CUSTOMER, body.username, body.password)
    return session_response(
        request, response, result, "customer", CustomerRead.model_validate(result.principal)
    )


@router.post("/logout")
async def logout(request: Request, response: Response):
    end_session(request, response)
    return {"message": "Logged out"}


@router.get("/me", response_model=CustomerRead)
async def get_me(
    identity: CurrentIdentity = Depends(require_customer),
    svc: AuthService = Depends(get_auth_service),
):
    return await svc.get_principal(CUSTOMER, identity.principal_id)
