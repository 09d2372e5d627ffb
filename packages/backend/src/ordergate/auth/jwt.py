"""JWT session token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication. Nothing is
stored server-side: a token is valid until its `exp`, and there is no
refresh token or revocation list.

The issuer and verifier receive the signing secret and a clock when they
are constructed, so tests can freeze time and apps can be built with
different secrets side by side.

Claims are an explicit allowlist per principal kind (CLAIM_ALLOWLIST).
The stored credential and the full DB row never end up in a token.
"""

import math
from collections.abc import Callable, Mapping
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
import structlog

from ordergate.errors import AuthenticationError, ConfigurationError

logger = structlog.get_logger()

USER = "user"
CUSTOMER = "customer"

CLAIM_ALLOWLIST: dict[str, tuple[str, ...]] = {
    USER: ("id", "fullname", "lastname", "status"),
    CUSTOMER: ("id", "username", "status"),
}

_REGISTERED = frozenset({"iat", "exp"})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenError(AuthenticationError):
    """Raised for any token that fails verification.

    Malformed, forged and expired tokens all raise the same error with the
    same message.
    """


def claims_for(kind: str, principal: Any) -> dict[str, Any]:
    """Build the claim set for a principal from its kind's allowlist."""
    try:
        fields = CLAIM_ALLOWLIST[kind]
    except KeyError:
        raise ValueError(f"Unknown principal kind: {kind!r}")
    claims = {"role": kind}
    for field in fields:
        claims[field] = getattr(principal, field)
    return claims


class _SignedTokens:
    def __init__(
        self,
        secret: Optional[str],
        algorithm: str = "HS256",
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._secret = secret
        self.algorithm = algorithm
        self._clock = clock

    @property
    def configured(self) -> bool:
        return bool(self._secret)

    def _require_secret(self) -> str:
        if not self._secret:
            raise ConfigurationError("Server misconfigured: signing secret is not set")
        return self._secret


class TokenIssuer(_SignedTokens):
    """Mints signed, time-bounded session tokens."""

    def issue(self, claims: Mapping[str, Any], ttl: timedelta) -> str:
        """Sign `claims` into a token that expires no earlier than `ttl` from now.

        `exp` is whole seconds, so it is rounded up from the sub-second
        issue time; `iat` is rounded down.

        The caller chooses the ttl (per principal kind); there is no
        fallback duration here.
        """
        secret = self._require_secret()
        if ttl <= timedelta(0):
            raise ValueError("ttl must be positive")
        clashing = _REGISTERED.intersection(claims)
        if clashing:
            raise ValueError(f"Reserved claims cannot be set by callers: {sorted(clashing)}")

        now = self._clock().timestamp()
        payload = dict(claims)
        payload["iat"] = int(now)
        payload["exp"] = math.ceil(now + ttl.total_seconds())
        return jwt.encode(payload, secret, algorithm=self.algorithm)


class TokenVerifier(_SignedTokens):
    """Validates signature and expiry. Pure: no store access."""

    def verify(self, token: str) -> dict[str, Any]:
        """Return the token's claims without `iat`/`exp`.

        A token is accepted up to and including its expiry second and
        rejected strictly after it. Raises TokenError on any failure.
        """
        secret = self._require_secret()
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": ["exp", "iat"],
                },
            )
        except jwt.InvalidTokenError as e:
            logger.debug("ordergate.token_rejected", reason=type(e).__name__)
            raise TokenError() from None

        expires_at = payload.get("exp")
        if not isinstance(expires_at, int) or isinstance(expires_at, bool):
            logger.debug("ordergate.token_rejected", reason="MalformedExpiry")
            raise TokenError()
        if self._clock().timestamp() > expires_at:
            logger.debug("ordergate.token_rejected", reason="Expired")
            raise TokenError()

        return {k: v for k, v in payload.items() if k not in _REGISTERED}
