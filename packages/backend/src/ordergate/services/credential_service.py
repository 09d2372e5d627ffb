"""Credential store and password verifier.

Learn: Stored passwords come in two shapes:
- Hashed: bcrypt output, recognised by its "$2" marker
- Legacy: the plaintext the old shop backend wrote

Hashed values are checked with bcrypt and never rewritten. A legacy value
that matches the presented password is replaced with a fresh bcrypt hash
on the spot, so the table converges to hashes one login at a time. The
migration is one-way: nothing here ever writes a non-hash back.

Two concurrent logins for the same legacy account may both migrate. Both
writes hash the same password, the last one wins, and either hash
verifies afterwards, so no lock is taken.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Optional

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ordergate.auth.password import (
    DEFAULT_ROUNDS,
    hash_password,
    is_hashed,
    verify_hashed,
    verify_legacy,
)
from ordergate.db.models import Customer, User
from ordergate.errors import ConflictError, PersistenceError

logger = structlog.get_logger()

Principal = User | Customer


def normalize_username(username: str) -> str:
    """Usernames are unique case-insensitively: store and look up lowercase."""
    return username.strip().lower()


class CredentialStore:
    """Reads and writes principals of one kind (staff users or customers).

    All statements are built with SQLAlchemy, so values are always bound
    parameters.
    """

    def __init__(self, db: AsyncSession, model: type[User] | type[Customer]):
        self.db = db
        self.model = model

    async def find_by_username(self, username: str) -> Optional[Principal]:
        """Case-insensitive: rows from the old backend kept usernames as typed."""
        result = await self.db.execute(
            select(self.model).where(
                func.lower(self.model.username) == normalize_username(username)
            )
        )
        return result.scalars().first()

    async def find_by_id(self, principal_id: int) -> Optional[Principal]:
        return await self.db.get(self.model, principal_id)

    async def update_credential(self, principal_id: int, representation: str) -> bool:
        """Replace the stored credential. Commits immediately."""
        try:
            result = await self.db.execute(
                update(self.model)
                .where(self.model.id == principal_id)
                .values(password=representation)
            )
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "ordergate.credential_update_failed",
                table=self.model.__tablename__,
                principal_id=principal_id,
                error=str(e),
            )
            raise PersistenceError("Credential update failed") from e
        return result.rowcount > 0

    async def add(self, principal: Principal) -> Principal:
        """Insert a new principal. A duplicate username raises ConflictError."""
        self.db.add(principal)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise ConflictError(
                "Username already exists",
                details={"fields": {"username": "Username already exists"}},
            ) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(
                "ordergate.principal_insert_failed",
                table=self.model.__tablename__,
                error=str(e),
            )
            raise PersistenceError("Insert failed") from e
        await self.db.refresh(principal)
        return principal


@dataclass
class VerificationResult:
    ok: bool
    principal: Any


class PasswordVerifier:
    """Checks a presented password and migrates legacy plaintext on success."""

    def __init__(self, store: CredentialStore, rounds: int = DEFAULT_ROUNDS):
        self.store = store
        self.rounds = rounds

    async def verify(self, principal: Any, presented: str) -> VerificationResult:
        """Verify `presented` against the principal's stored credential.

        On a legacy match the store is updated with a new hash and
        principal.password is set to it, so serializing the principal
        afterwards can never leak the plaintext. The result reports the
        plaintext comparison, not a re-check of the new hash.

        bcrypt runs in a worker thread; the event loop keeps serving other
        requests meanwhile.
        """
        stored = principal.password or ""
        if not stored:
            # Fail closed: an empty credential must never match anything.
            return VerificationResult(ok=False, principal=principal)

        if is_hashed(stored):
            ok = await asyncio.to_thread(verify_hashed, presented, stored)
            return VerificationResult(ok=ok, principal=principal)

        if not verify_legacy(presented, stored):
            return VerificationResult(ok=False, principal=principal)

        new_hash = await asyncio.to_thread(hash_password, presented, self.rounds)
        await self.store.update_credential(principal.id, new_hash)
        principal.password = new_hash
        logger.info(
            "ordergate.credential_migrated",
            table=self.store.model.__tablename__,
            principal_id=principal.id,
        )
        return VerificationResult(ok=True, principal=principal)
