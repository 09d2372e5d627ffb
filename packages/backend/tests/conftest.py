"""Test fixtures — one throwaway app + SQLite database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test builds its own app with create_app(Settings(...)), pointed at
   a SQLite file under pytest's tmp_path (aiosqlite driver).
2. create_schema() creates the tables; the file vanishes with tmp_path.
3. The client talks to the app in-process through httpx's ASGITransport.

A file database (not :memory:) lets the order tests run real concurrent
transactions against separate pooled connections.

No dependency overrides: the real session gate, real tokens and real
bcrypt (at 4 rounds) run in every test.
"""

from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from ordergate.config import Settings
from ordergate.db.engine import create_schema
from ordergate.db.models import Customer, MenuItem, Restaurant, User
from ordergate.main import create_app

TEST_SECRET = "test-secret-5f1d0c9a7e3b4c2d8e6f0a1b2c3d4e5f"


def make_settings(tmp_path, **overrides) -> Settings:
    values = {
        "database_url": f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        "jwt_secret": TEST_SECRET,
        "bcrypt_rounds": 4,
        "environment": "development",
    }
    values.update(overrides)
    return Settings(**values)


@pytest_asyncio.fixture()
async def app_factory(tmp_path):
    """Build apps sharing one database file; engines are disposed afterwards."""
    apps = []

    async def _make(**overrides):
        app = create_app(make_settings(tmp_path, **overrides))
        await create_schema(app.state.engine)
        apps.append(app)
        return app

    yield _make

    for app in apps:
        await app.state.engine.dispose()


@pytest_asyncio.fixture()
async def app(app_factory):
    return await app_factory()


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client for the header-carrier app (the default deployment)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def cookie_client(app_factory):
    """HTTP client for an app configured with the cookie carrier."""
    app = await app_factory(session_carrier="cookie")
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def misconfigured_client(app_factory):
    """HTTP client for an app started without a signing secret."""
    app = await app_factory(jwt_secret=None)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def db_session(app):
    """Direct session on the test database, for seeding and inspection."""
    async with app.state.session_factory() as session:
        yield session


# ─── Seed data ───────────────────────────────────────────


@pytest_asyncio.fixture()
async def menu_item(db_session):
    """A restaurant with one menu item priced 12.50."""
    restaurant = Restaurant(name="Warung Sederhana")
    db_session.add(restaurant)
    await db_session.flush()
    item = MenuItem(restaurant_id=restaurant.id, name="Nasi Goreng", price=Decimal("12.50"))
    db_session.add(item)
    await db_session.commit()
    return item


@pytest_asyncio.fixture()
async def legacy_user(db_session):
    """A staff user still holding a plaintext password from the old tables."""
    user = User(username="legacy", fullname="Legacy Admin", lastname="Admin", password="plain-secret")
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture()
async def legacy_customer(db_session):
    customer = Customer(username="old@shop.test", fullname="Old Customer", password="hunter2")
    db_session.add(customer)
    await db_session.commit()
    return customer


# ─── Helpers ─────────────────────────────────────────────


@pytest.fixture
def register_and_login():
    """Register a principal through the API and return its bearer headers."""
    return _register_and_login


async def _register_and_login(client, kind="customer", username=None, password="s3cret-pass"):
    prefix = "/api/v1/auth" if kind == "user" else "/api/v1/customers/auth"
    username = username or f"{kind}-one@shop.test"
    r = await client.post(f"{prefix}/register", json={"username": username, "password": password})
    assert r.status_code == 201, r.text
    r = await client.post(f"{prefix}/login", json={"username": username, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['token']}"}
