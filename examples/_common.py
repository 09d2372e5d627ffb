"""
Shared helpers for OrderGate examples.

Handles the health check and authentication (register + login) so each
example can focus on its specific workflow.
"""

import sys
import uuid

import httpx

BASE = "http://localhost:8000/api/v1"

AUTH_PREFIX = {"user": "/auth", "customer": "/customers/auth"}


def check_backend() -> None:
    """Verify the backend is reachable and its database answers."""
    try:
        resp = httpx.get(f"{BASE}/health", timeout=5)
    except httpx.ConnectError:
        print(f"ERROR: Backend not reachable at {BASE}")
        print("Start it with:  ordergate serve --reload")
        sys.exit(1)

    if resp.status_code != 200:
        print(f"ERROR: Health check returned {resp.status_code}")
        sys.exit(1)

    health = resp.json()
    print("Backend health:")
    print(f"  Status:   {health['status']}")
    print(f"  Database: {health['database']}")

    if health["database"] != "ok":
        print("\nERROR: Database is not reachable. Check ORDERGATE_DATABASE_URL.")
        sys.exit(1)


def authenticate(kind: str = "customer") -> str:
    """Register a fresh principal and log in, returning a bearer token.

    Uses a unique username per run so examples are idempotent. Needs a
    header-carrier deployment (the default); cookie deployments return no
    token in the body.
    """
    run_id = uuid.uuid4().hex[:8]
    username = f"demo-{run_id}@example.com"
    password = "demo-password-123"
    prefix = AUTH_PREFIX[kind]

    # Register
    resp = httpx.post(
        f"{BASE}{prefix}/register",
        json={"username": username, "fullname": f"Demo {run_id}", "password": password},
        timeout=10,
    )
    if resp.status_code not in (201, 409):  # 409 = already exists
        print(f"ERROR: Registration failed: {resp.status_code} {resp.text}")
        sys.exit(1)

    # Login
    resp = httpx.post(
        f"{BASE}{prefix}/login",
        json={"username": username, "password": password},
        timeout=10,
    )
    if resp.status_code != 200:
        print(f"ERROR: Login failed: {resp.status_code} {resp.text}")
        sys.exit(1)

    body = resp.json()
    if "token" not in body:
        print("ERROR: Server uses cookie sessions; these examples need the header carrier.")
        sys.exit(1)
    return body["token"]


def create_client(kind: str = "customer") -> httpx.Client:
    """Check backend, authenticate, and return an httpx Client with auth headers."""
    check_backend()
    token = authenticate(kind)
    print(f"  Auth:     ✓ ({kind} token)")
    return httpx.Client(
        base_url=BASE,
        timeout=10,
        headers={"Authorization": f"Bearer {token}"},
    )
