"""User service — staff account administration.

Learn: Plain reads plus the two writes that touch credentials or unique
keys. A password change goes through hash_password like registration does,
so no code path writes plaintext into tbl_users.
"""

import asyncio
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ordergate.auth.password import DEFAULT_ROUNDS, hash_password
from ordergate.db.models import User
from ordergate.errors import ConflictError, NotFoundError, PersistenceError, ValidationError
from ordergate.services.credential_service import normalize_username


# Columns that can be changed but never cleared.
REQUIRED_FIELDS = ("username", "password", "status")


class UserService:
    """Business logic for staff user management."""

    def __init__(self, db: AsyncSession, bcrypt_rounds: int = DEFAULT_ROUNDS):
        self.db = db
        self.rounds = bcrypt_rounds

    async def list_users(self) -> list[User]:
        result = await self.db.execute(select(User).order_by(User.id.desc()))
        return list(result.scalars().all())

    async def get_user(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def update_user(self, user_id: int, changes: dict[str, Any]) -> User:
        """Apply a partial update. Only keys present in `changes` are written."""
        if not changes:
            raise ValidationError("No fields to update")
        cleared = [f for f in REQUIRED_FIELDS if f in changes and changes[f] is None]
        if cleared:
            raise ValidationError(
                "Required fields cannot be null",
                details={"fields": {f: "Must not be null" for f in cleared}},
            )

        user = await self.get_user(user_id)

        if "password" in changes:
            password = changes.pop("password")
            user.password = await asyncio.to_thread(hash_password, password, self.rounds)
        if "username" in changes:
            changes["username"] = normalize_username(changes["username"])
        for field, value in changes.items():
            setattr(user, field, value)

        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if "username" in changes:
                raise ConflictError(
                    "Username already exists",
                    details={"fields": {"username": "Username already exists"}},
                ) from e
            raise PersistenceError("User update failed") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("User update failed") from e
        await self.db.refresh(user)
        return user

    async def delete_user(self, user_id: int) -> None:
        user = await self.get_user(user_id)
        await self.db.delete(user)
        await self.db.commit()
