"""Token issuer + verifier.

Learn: Both take a clock, so expiry is tested exactly at the boundary
instead of with sleeps:
- accepted at iat + ttl (inclusive)
- rejected one millisecond later
- a sub-second issue time rounds `exp` up, never down
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import jwt
import pytest

from ordergate.auth.jwt import (
    CUSTOMER,
    USER,
    TokenError,
    TokenIssuer,
    TokenVerifier,
    claims_for,
)
from ordergate.errors import AuthenticationError, ConfigurationError

SECRET = "unit-test-secret-0123456789abcdef"
T0 = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def at(moment):
    return lambda: moment


def test_round_trip_returns_claims_without_timestamps():
    token = TokenIssuer(SECRET, clock=at(T0)).issue({"id": 7, "role": CUSTOMER}, timedelta(hours=1))
    claims = TokenVerifier(SECRET, clock=at(T0)).verify(token)
    assert claims == {"id": 7, "role": CUSTOMER}


def test_exp_is_iat_plus_ttl():
    token = TokenIssuer(SECRET, clock=at(T0)).issue({"id": 1}, timedelta(seconds=3600))
    payload = jwt.decode(token, SECRET, algorithms=["HS256"], options={"verify_exp": False})
    assert payload["iat"] == int(T0.timestamp())
    assert payload["exp"] - payload["iat"] == 3600


def test_token_accepted_up_to_and_including_expiry():
    ttl = timedelta(seconds=60)
    token = TokenIssuer(SECRET, clock=at(T0)).issue({"id": 1}, ttl)

    assert TokenVerifier(SECRET, clock=at(T0 + ttl)).verify(token)["id"] == 1
    with pytest.raises(TokenError):
        TokenVerifier(SECRET, clock=at(T0 + ttl + timedelta(milliseconds=1))).verify(token)


def test_sub_second_issue_time_never_shortens_ttl():
    issued = T0 + timedelta(milliseconds=700)
    ttl = timedelta(seconds=10)
    token = TokenIssuer(SECRET, clock=at(issued)).issue({"id": 1}, ttl)

    payload = jwt.decode(token, SECRET, algorithms=["HS256"], options={"verify_exp": False})
    assert payload["iat"] == int(T0.timestamp())
    assert payload["exp"] == int(T0.timestamp()) + 11

    for elapsed in (timedelta(seconds=9.5), ttl):
        assert TokenVerifier(SECRET, clock=at(issued + elapsed)).verify(token)["id"] == 1
    with pytest.raises(TokenError):
        TokenVerifier(SECRET, clock=at(issued + ttl + timedelta(seconds=1))).verify(token)


def test_tampered_signature_rejected():
    token = TokenIssuer(SECRET, clock=at(T0)).issue({"id": 1}, timedelta(minutes=5))
    head, payload, sig = token.split(".")
    flipped = ("A" if sig[0] != "A" else "B") + sig[1:]
    with pytest.raises(TokenError):
        TokenVerifier(SECRET, clock=at(T0)).verify(f"{head}.{payload}.{flipped}")


def test_tampered_payload_rejected():
    token = TokenIssuer(SECRET, clock=at(T0)).issue({"id": 1}, timedelta(minutes=5))
    forged = jwt.encode(
        {"id": 999, "iat": int(T0.timestamp()), "exp": int(T0.timestamp()) + 300},
        "some-other-secret-0123456789abcdef",
        algorithm="HS256",
    )
    head, _, sig = token.split(".")
    _, forged_payload, _ = forged.split(".")
    with pytest.raises(TokenError):
        TokenVerifier(SECRET, clock=at(T0)).verify(f"{head}.{forged_payload}.{sig}")


def test_other_secret_rejected():
    token = TokenIssuer("another-secret-0123456789abcdef0", clock=at(T0)).issue(
        {"id": 1}, timedelta(minutes=5)
    )
    with pytest.raises(TokenError):
        TokenVerifier(SECRET, clock=at(T0)).verify(token)


@pytest.mark.parametrize("garbage", ["", "not-a-token", "a.b.c"])
def test_garbage_rejected(garbage):
    with pytest.raises(TokenError):
        TokenVerifier(SECRET).verify(garbage)


def test_missing_timestamps_rejected():
    token = jwt.encode({"id": 1}, SECRET, algorithm="HS256")
    with pytest.raises(TokenError):
        TokenVerifier(SECRET).verify(token)


def test_token_errors_are_uniform_authentication_errors():
    with pytest.raises(AuthenticationError) as exc_info:
        TokenVerifier(SECRET).verify("not-a-token")
    assert exc_info.value.status_code == 401
    assert exc_info.value.message == "Unauthorized"


def test_missing_secret_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        TokenIssuer(None).issue({"id": 1}, timedelta(minutes=5))
    with pytest.raises(ConfigurationError):
        TokenVerifier("").verify("anything")
    assert not TokenVerifier(None).configured


@pytest.mark.parametrize("ttl", [timedelta(0), timedelta(seconds=-5)])
def test_non_positive_ttl_rejected(ttl):
    with pytest.raises(ValueError):
        TokenIssuer(SECRET).issue({"id": 1}, ttl)


@pytest.mark.parametrize("reserved", ["iat", "exp"])
def test_reserved_claims_rejected(reserved):
    with pytest.raises(ValueError):
        TokenIssuer(SECRET).issue({"id": 1, reserved: 0}, timedelta(minutes=5))


def test_claims_follow_the_allowlist():
    user = SimpleNamespace(
        id=3,
        fullname="Ana Admin",
        lastname="Admin",
        status="active",
        username="ana",
        password="$2b$04$secret",
        address="Jl. Merdeka 1",
    )
    assert claims_for(USER, user) == {
        "role": USER,
        "id": 3,
        "fullname": "Ana Admin",
        "lastname": "Admin",
        "status": "active",
    }

    customer = SimpleNamespace(id=9, username="c@shop.test", status="active", password="x")
    assert claims_for(CUSTOMER, customer) == {
        "role": CUSTOMER,
        "id": 9,
        "username": "c@shop.test",
        "status": "active",
    }


def test_unknown_kind_has_no_claims():
    with pytest.raises(ValueError):
        claims_for("admin", SimpleNamespace(id=1))
