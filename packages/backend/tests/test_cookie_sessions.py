"""Cookie carrier deployments.

Learn: With session_carrier="cookie" the login response sets an httponly
cookie whose Max-Age matches the token TTL, the body carries no token,
and the Authorization header is ignored entirely.
"""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient

from ordergate.auth.jwt import CUSTOMER, TokenIssuer


async def _register_customer(cookie_client):
    r = await cookie_client.post(
        "/api/v1/customers/auth/register",
        json={"username": "c@shop.test", "password": "s3cret-pass"},
    )
    assert r.status_code == 201


@pytest.mark.asyncio
async def test_login_sets_httponly_cookie(cookie_client):
    await _register_customer(cookie_client)

    r = await cookie_client.post(
        "/api/v1/customers/auth/login",
        json={"username": "c@shop.test", "password": "s3cret-pass"},
    )
    assert r.status_code == 200
    assert "token" not in r.json()
    assert r.json()["customer"]["username"] == "c@shop.test"

    set_cookie = r.headers["set-cookie"].lower()
    assert set_cookie.startswith("auth_token=")
    assert "httponly" in set_cookie
    assert "max-age=604800" in set_cookie
    assert "path=/" in set_cookie
    assert "samesite=lax" in set_cookie
    # Development deployment: not restricted to HTTPS
    assert "; secure" not in set_cookie


@pytest.mark.asyncio
async def test_cookie_authenticates_follow_up_requests(cookie_client):
    await _register_customer(cookie_client)
    await cookie_client.post(
        "/api/v1/customers/auth/login",
        json={"username": "c@shop.test", "password": "s3cret-pass"},
    )

    # The client's cookie jar now replays auth_token
    r = await cookie_client.get("/api/v1/customers/auth/me")
    assert r.status_code == 200
    assert r.json()["username"] == "c@shop.test"


@pytest.mark.asyncio
async def test_bearer_header_ignored_in_cookie_mode(cookie_client):
    await _register_customer(cookie_client)
    r = await cookie_client.post(
        "/api/v1/customers/auth/login",
        json={"username": "c@shop.test", "password": "s3cret-pass"},
    )
    token = r.cookies["auth_token"]
    cookie_client.cookies.clear()

    r = await cookie_client.get(
        "/api/v1/customers/auth/me", headers={"Authorization": f"Bearer {token}"}
    )
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_garbage_cookie_rejected(cookie_client):
    r = await cookie_client.get(
        "/api/v1/customers/auth/me", headers={"Cookie": "theme=dark; auth_token=%E0%A4%A"}
    )
    assert r.status_code == 401
    assert r.json()["error"] == "Unauthorized"


@pytest.mark.asyncio
async def test_logout_clears_cookie(cookie_client):
    await _register_customer(cookie_client)
    await cookie_client.post(
        "/api/v1/customers/auth/login",
        json={"username": "c@shop.test", "password": "s3cret-pass"},
    )

    r = await cookie_client.post("/api/v1/customers/auth/logout")
    assert r.status_code == 200
    set_cookie = r.headers["set-cookie"].lower()
    assert set_cookie.startswith("auth_token=")
    assert "max-age=0" in set_cookie

    assert (await cookie_client.get("/api/v1/customers/auth/me")).status_code == 401


@pytest.mark.asyncio
async def test_logout_clears_expired_or_garbled_cookie(app_factory):
    app = await app_factory(session_carrier="cookie")
    long_ago = datetime(2020, 1, 1, tzinfo=timezone.utc)
    expired = TokenIssuer(app.state.settings.jwt_secret, clock=lambda: long_ago).issue(
        {"role": CUSTOMER, "id": 1}, timedelta(minutes=5)
    )

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        for token in (expired, "%E0%A4%A"):
            r = await ac.post(
                "/api/v1/customers/auth/logout", headers={"Cookie": f"auth_token={token}"}
            )
            assert r.status_code == 200
            set_cookie = r.headers["set-cookie"].lower()
            assert set_cookie.startswith("auth_token=")
            assert "max-age=0" in set_cookie
