"""OrderGate CLI — log in, inspect the session, place orders.

Usage:
    ordergate health                              # Backend + database status
    ordergate login -u alice -k customer          # Prints a session token
    ordergate me                                  # Who does ORDERGATE_TOKEN belong to?
    ordergate order 12 3                          # Order 3 × menu item 12
    ordergate hash-password                       # bcrypt a password (prompted)
    ordergate init-db                             # Create tables (local/dev only)
    ordergate serve                               # Run the API with uvicorn

Everything except init-db, hash-password and serve goes through the HTTP
API; the token is read from --token or ORDERGATE_TOKEN.
"""

from __future__ import annotations

import asyncio
import json
import os
import sys
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("ORDERGATE_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the OrderGate backend."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    return asyncio.run(coro)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


def _auth_headers(token: Optional[str]) -> dict[str, str]:
    tok = token or os.environ.get("ORDERGATE_TOKEN")
    if not tok:
        click.secho(
            "Error: --token required (or set ORDERGATE_TOKEN env var)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return {"Authorization": f"Bearer {tok}"}


def _fail(r: httpx.Response) -> None:
    """Print the API's error message and exit non-zero."""
    try:
        message = r.json().get("error", r.text)
    except ValueError:
        message = r.text
    click.secho(f"Error {r.status_code}: {message}", fg="red", err=True)
    sys.exit(1)


def _auth_prefix(kind: str) -> str:
    return "/api/v1/auth" if kind == "user" else "/api/v1/customers/auth"


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="ordergate")
def main():
    """OrderGate — sessions and orders for the shop backend."""


@main.command()
def health():
    """Check backend and database health."""
    _run(_health_impl())


async def _health_impl():
    async with _client() as c:
        r = await c.get("/api/v1/health")
    if r.status_code != 200:
        _fail(r)
    data = r.json()
    color = "green" if data.get("status") == "healthy" else "yellow"
    click.secho(f"Status:   {data.get('status')}", fg=color)
    click.echo(f"Version:  {data.get('version')}")
    click.echo(f"Database: {data.get('database')}")


@main.command()
@click.option("--username", "-u", required=True)
@click.option("--password", "-p", prompt=True, hide_input=True)
@click.option(
    "--kind", "-k", type=click.Choice(["user", "customer"]), default="user", show_default=True
)
def login(username: str, password: str, kind: str):
    """Log in and print the session token (header-carrier deployments)."""
    _run(_login_impl(username, password, kind))


async def _login_impl(username: str, password: str, kind: str):
    async with _client() as c:
        r = await c.post(
            f"{_auth_prefix(kind)}/login",
            json={"username": username, "password": password},
        )
    if r.status_code != 200:
        _fail(r)
    token = r.json().get("token")
    if not token:
        click.secho(
            "Logged in, but the server uses cookie sessions; no token to print.",
            fg="yellow",
        )
        return
    click.echo(token)


@main.command()
@click.option("--token", help="Session token (or set ORDERGATE_TOKEN)")
@click.option(
    "--kind", "-k", type=click.Choice(["user", "customer"]), default="user", show_default=True
)
def me(token: Optional[str], kind: str):
    """Show the principal behind the session token."""
    _run(_me_impl(token, kind))


async def _me_impl(token: Optional[str], kind: str):
    headers = _auth_headers(token)
    async with _client() as c:
        r = await c.get(f"{_auth_prefix(kind)}/me", headers=headers)
    if r.status_code != 200:
        _fail(r)
    click.echo(_pretty_json(r.json()))


@main.command()
@click.argument("menu_id", type=int)
@click.argument("quantity", type=int)
@click.option("--token", help="Customer session token (or set ORDERGATE_TOKEN)")
def order(menu_id: int, quantity: int, token: Optional[str]):
    """Place an order for QUANTITY × MENU_ID as the logged-in customer."""
    _run(_order_impl(menu_id, quantity, token))


async def _order_impl(menu_id: int, quantity: int, token: Optional[str]):
    headers = _auth_headers(token)
    async with _client() as c:
        r = await c.post(
            "/api/v1/orders",
            json={"menu_id": menu_id, "quantity": quantity},
            headers=headers,
        )
    if r.status_code != 201:
        _fail(r)
    placed = r.json()
    click.secho(
        f"Order #{placed['order_id']} placed: {placed['quantity']} × menu "
        f"{placed['menu_id']} @ {placed['unit_price']} = {placed['total_price']}",
        fg="green",
    )


@main.command("hash-password")
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--rounds", default=12, show_default=True, type=click.IntRange(4, 31))
def hash_password_cmd(password: str, rounds: int):
    """Print a bcrypt hash, e.g. to seed an account by hand."""
    from ordergate.auth.password import hash_password

    click.echo(hash_password(password, rounds=rounds))


@main.command("init-db")
def init_db():
    """Create missing tables directly (use Alembic for real deployments)."""
    from ordergate.config import settings
    from ordergate.db.engine import build_engine, create_schema

    async def _init():
        engine = build_engine(settings.database_url)
        try:
            await create_schema(engine)
        finally:
            await engine.dispose()

    _run(_init())
    click.secho("Schema ready", fg="green")


@main.command()
@click.option("--reload", is_flag=True, help="Reload on code changes (dev)")
def serve(reload: bool):
    """Run the API server with uvicorn."""
    import uvicorn

    from ordergate.config import settings

    uvicorn.run("ordergate.main:app", host=settings.host, port=settings.port, reload=reload)


if __name__ == "__main__":
    main()
