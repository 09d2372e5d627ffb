"""Auth service — registration and login for both principal kinds.

Learn: Staff users and customers live in separate tables but follow the
same protocol; the `kind` argument ("user" or "customer") picks the table,
the claim allowlist and the token lifetime.

Login steps:
1. Look the principal up by (lowercased) username
2. PasswordVerifier checks the password, migrating legacy plaintext
3. TokenIssuer signs the kind's allowlisted claims for the kind's TTL

Every failure in steps 1-2 is the same "Invalid credentials" 401. For an
unknown username we still run one bcrypt check against a dummy hash so
response time does not reveal which usernames exist.
"""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from ordergate.auth.jwt import TokenIssuer, claims_for
from ordergate.auth.password import DEFAULT_ROUNDS, dummy_hash, hash_password, verify_hashed
from ordergate.db.models import PRINCIPAL_MODELS
from ordergate.errors import AuthenticationError, ConflictError
from ordergate.services.credential_service import (
    CredentialStore,
    PasswordVerifier,
    normalize_username,
)

logger = structlog.get_logger()


@dataclass
class LoginResult:
    kind: str
    principal: Any
    token: str
    ttl: timedelta


def _equalize_timing(password: str, rounds: int) -> None:
    verify_hashed(password, dummy_hash(rounds))


class AuthService:
    """Registration, login and identity lookup."""

    def __init__(
        self,
        db: AsyncSession,
        issuer: TokenIssuer,
        ttls: Mapping[str, timedelta],
        bcrypt_rounds: int = DEFAULT_ROUNDS,
    ):
        self.db = db
        self.issuer = issuer
        self.ttls = ttls
        self.rounds = bcrypt_rounds

    def store(self, kind: str) -> CredentialStore:
        return CredentialStore(self.db, PRINCIPAL_MODELS[kind])

    # ─── Register ────────────────────────────────────────

    async def register(self, kind: str, password: str, **fields: Any) -> Any:
        """Create a principal. The password is always stored hashed."""
        store = self.store(kind)
        fields["username"] = normalize_username(fields["username"])

        if await store.find_by_username(fields["username"]):
            raise ConflictError(
                "Username already exists",
                details={"fields": {"username": "Username already exists"}},
            )

        password_hash = await asyncio.to_thread(hash_password, password, self.rounds)
        principal = await store.add(store.model(password=password_hash, **fields))
        logger.info("ordergate.registered", kind=kind, principal_id=principal.id)
        return principal

    # ─── Login ───────────────────────────────────────────

    async def login(self, kind: str, username: str, password: str) -> LoginResult:
        """Verify credentials and issue a session token."""
        store = self.store(kind)
        principal = await store.find_by_username(username)

        if principal is None:
            await asyncio.to_thread(_equalize_timing, password, self.rounds)
            logger.info("ordergate.login_failed", kind=kind, reason="unknown_username")
            raise AuthenticationError("Invalid credentials")

        result = await PasswordVerifier(store, self.rounds).verify(principal, password)
        if not result.ok:
            logger.info(
                "ordergate.login_failed",
                kind=kind,
                principal_id=principal.id,
                reason="bad_password",
            )
            raise AuthenticationError("Invalid credentials")

        ttl = self.ttls[kind]
        token = self.issuer.issue(claims_for(kind, result.principal), ttl)
        logger.info("ordergate.login", kind=kind, principal_id=principal.id)
        return LoginResult(kind=kind, principal=result.principal, token=token, ttl=ttl)

    # ─── Current principal ───────────────────────────────

    async def get_principal(self, kind: str, principal_id: int) -> Any:
        """Load the principal behind a verified token.

        A token whose principal has since been deleted is treated like any
        other invalid session.
        """
        principal = await self.store(kind).find_by_id(principal_id)
        if principal is None:
            raise AuthenticationError()
        return principal
