"""Auth API — staff user registration, login, logout, current user.

Learn: Routes for staff authentication:
- POST /auth/register → create a staff user (password always hashed)
- POST /auth/login → username/password → session token
- POST /auth/logout → stateless and open; clears the cookie in cookie deployments
- GET /auth/me → current staff user

The session helpers at the bottom are shared with api/customers.py: the
two principal kinds differ only in table, claims and TTL.
"""

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from ordergate.auth.carriers import clear_session_cookie, set_session_cookie
from ordergate.auth.dependencies import CurrentIdentity, require_user
from ordergate.auth.jwt import USER
from ordergate.db.engine import get_db
from ordergate.schemas.auth import LoginRequest, UserRead, UserRegister
from ordergate.services.auth_service import AuthService, LoginResult

router = APIRouter(prefix="/auth")


def get_auth_service(
    request: Request, db: AsyncSession = Depends(get_db)
) -> AuthService:
    state = request.app.state
    return AuthService(
        db,
        issuer=state.token_issuer,
        ttls=state.token_ttls,
        bcrypt_rounds=state.settings.bcrypt_rounds,
    )


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=UserRead, status_code=201)
async def register(body: UserRegister, svc: AuthService = Depends(get_auth_service)):
    """Create a new staff user."""
    fields = body.model_dump(exclude={"password"})
    return await svc.register(USER, password=body.password, **fields)


# ─── Login ───────────────────────────────────────────────


@router.post("/login")
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    svc: AuthService = Depends(get_auth_service),
):
    """Login with username and password → session token."""
    result = await svc.login(USER, body.username, body.password)
    return session_response(
        request, response, result, "user", UserRead.model_validate(result.principal)
    )


# ─── Logout ──────────────────────────────────────────────


@router.post("/logout")
async def logout(request: Request, response: Response):
    """Tokens are stateless: logging out only drops the cookie, if any.

    No session is required, so an expired or garbled cookie still gets
    cleared.
    """
    end_session(request, response)
    return {"message": "Logged out"}


# ─── Current user ───────────────────────────────────────


@router.get("/me", response_model=UserRead)
async def get_me(
    identity: CurrentIdentity = Depends(require_user),
    svc: AuthService = Depends(get_auth_service),
):
    """Get the current authenticated staff user."""
    return await svc.get_principal(USER, identity.principal_id)


# ─── Session helpers ────────────────────────────────────


def session_response(
    request: Request,
    response: Response,
    result: LoginResult,
    key: str,
    principal_read,
) -> dict:
    """Build the login body and hand the token to the configured carrier.

    Header deployments return the token in the body; cookie deployments
    set it as an httponly cookie and leave it out of the body.
    """
    settings = request.app.state.settings
    body = {"message": "Login successful", key: principal_read.model_dump(mode="json")}
    if settings.session_carrier == "cookie":
        set_session_cookie(
            response,
            settings.cookie_name,
            result.token,
            max_age=int(result.ttl.total_seconds()),
            secure=settings.is_production,
            samesite=settings.cookie_samesite,
        )
    else:
        body["token"] = result.token
        body["token_type"] = "bearer"
        body["expires_in"] = int(result.ttl.total_seconds())
    return body


def end_session(request: Request, response: Response) -> None:
    settings = request.app.state.settings
    if settings.session_carrier == "cookie":
        clear_session_cookie(
            response,
            settings.cookie_name,
            secure=settings.is_production,
            samesite=settings.cookie_samesite,
        )
