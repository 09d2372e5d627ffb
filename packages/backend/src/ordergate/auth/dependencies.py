"""FastAPI auth dependencies — the session gate.

Learn: These are used as Depends() in route handlers and at include_router
level to authenticate every request to a protected route:

1. The configured carrier pulls the token off the request
   (Authorization header OR cookie, one per deployment)
2. TokenVerifier checks signature + expiry
3. The claims become a read-only CurrentIdentity on request.state

No secret configured → 500 "Server misconfigured" (operator problem).
No token / bad token / expired token → 401 "Unauthorized" (always the same).
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from fastapi import Depends, Request

from ordergate.auth.carriers import TokenCarrier
from ordergate.auth.jwt import CLAIM_ALLOWLIST, CUSTOMER, USER, TokenVerifier
from ordergate.errors import AuthenticationError, ConfigurationError


@dataclass(frozen=True)
class CurrentIdentity:
    """The authenticated principal making the request.

    Learn: Built only from verified token claims. Frozen, and `claims` is
    a read-only mapping, so downstream handlers cannot alter who the
    request is acting as.
    """

    principal_id: int
    kind: str
    claims: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "CurrentIdentity":
        kind = claims.get("role")
        principal_id = claims.get("id")
        if kind not in CLAIM_ALLOWLIST:
            raise AuthenticationError()
        if not isinstance(principal_id, int) or isinstance(principal_id, bool):
            raise AuthenticationError()
        return cls(
            principal_id=principal_id,
            kind=kind,
            claims=MappingProxyType(dict(claims)),
        )


class SessionGate:
    """Extracts and verifies the session token for a request."""

    def __init__(self, verifier: TokenVerifier, carrier: TokenCarrier):
        self.verifier = verifier
        self.carrier = carrier

    def authenticate(self, request: Request) -> CurrentIdentity:
        """Attach and return the request's identity, or raise.

        The secret is checked first so a misconfigured server answers 500
        even to requests that carry no token.
        """
        if not self.verifier.configured:
            raise ConfigurationError()

        token = self.carrier.extract(request.headers)
        if not token:
            raise AuthenticationError()

        identity = CurrentIdentity.from_claims(self.verifier.verify(token))
        request.state.identity = identity
        return identity


def get_session_gate(request: Request) -> SessionGate:
    return request.app.state.session_gate


async def require_session(
    request: Request,
    gate: SessionGate = Depends(get_session_gate),
) -> CurrentIdentity:
    """Identity of any kind (required — 401 if no valid session)."""
    identity = getattr(request.state, "identity", None)
    if identity is None:
        identity = gate.authenticate(request)
    return identity


async def require_user(
    identity: CurrentIdentity = Depends(require_session),
) -> CurrentIdentity:
    """Staff user identity only."""
    if identity.kind != USER:
        raise AuthenticationError()
    return identity


async def require_customer(
    identity: CurrentIdentity = Depends(require_session),
) -> CurrentIdentity:
    """Customer identity only."""
    if identity.kind != CUSTOMER:
        raise AuthenticationError()
    return identity
