"""Staff user administration API.

Learn: Mounted with require_session at include_router level (api/__init__.py)
and every handler additionally requires a staff identity — a customer
token gets the same 401 as no token at all.
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ordergate.auth.dependencies import CurrentIdentity, require_user
from ordergate.db.engine import get_db
from ordergate.schemas.auth import UserRead, UserUpdate
from ordergate.services.user_service import UserService

router = APIRouter()


def _svc(request: Request, db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db, bcrypt_rounds=request.app.state.settings.bcrypt_rounds)


@router.get("/users", response_model=list[UserRead])
async def list_users(
    identity: CurrentIdentity = Depends(require_user),
    svc: UserService = Depends(_svc),
):
    return await svc.list_users()


@router.get("/users/{user_id}", response_model=UserRead)
async def get_user(
    user_id: int,
    identity: CurrentIdentity = Depends(require_user),
    svc: UserService = Depends(_svc),
):
    return await svc.get_user(user_id)


@router.put("/users/{user_id}", response_model=UserRead)
async def update_user(
    user_id: int,
    body: UserUpdate,
    identity: CurrentIdentity = Depends(require_user),
    svc: UserService = Depends(_svc),
):
    """Partial update. A new password is hashed before it is stored."""
    return await svc.update_user(user_id, body.model_dump(exclude_unset=True))


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: int,
    identity: CurrentIdentity = Depends(require_user),
    svc: UserService = Depends(_svc),
):
    await svc.delete_user(user_id)
    return {"message": "User deleted successfully"}
