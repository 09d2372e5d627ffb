"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. Everything stateful (engine, session factory, token issuer and
verifier, session gate) is built here from one Settings object and hung
on app.state; handlers and services receive it from there instead of
reading globals. Lifespan disposes the engine on shutdown.
"""

from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ordergate import __version__
from ordergate.api import api_router
from ordergate.auth.carriers import build_carrier
from ordergate.auth.dependencies import SessionGate
from ordergate.auth.jwt import CUSTOMER, USER, TokenIssuer, TokenVerifier
from ordergate.config import Settings, settings as default_settings
from ordergate.db.engine import build_engine, build_session_factory
from ordergate.errors import (
    AuthenticationError,
    ConfigurationError,
    OrderGateError,
    PersistenceError,
)
from ordergate.middleware.request_id import RequestIdMiddleware
from ordergate.middleware.security import SecurityHeadersMiddleware

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown. The schema itself is managed by Alembic, not created here.
    """
    cfg: Settings = app.state.settings
    logger.info(
        "ordergate.starting",
        version=__version__,
        environment=cfg.environment,
        session_carrier=cfg.session_carrier,
        port=cfg.port,
    )
    if not cfg.jwt_secret:
        logger.error("ordergate.misconfigured", reason="jwt_secret is not set")

    yield

    logger.info("ordergate.shutdown")
    await app.state.engine.dispose()


# ─── Error rendering ─────────────────────────────────────


def _error_body(message: str, details: Optional[dict] = None) -> dict:
    body = {"error": message, "message": message}
    if details:
        body["details"] = details
    return body


async def handle_ordergate_error(request: Request, exc: OrderGateError) -> JSONResponse:
    """Render any OrderGateError. Server-side causes are logged, never sent."""
    if isinstance(exc, ConfigurationError):
        logger.error("ordergate.misconfigured", error=exc.message)
    elif isinstance(exc, PersistenceError):
        logger.error(
            "ordergate.persistence_failed",
            error=exc.message,
            cause=repr(exc.__cause__),
        )

    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message, exc.details),
        headers=headers,
    )


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed or missing request fields are a 400, with one message per field."""
    fields = {}
    for err in exc.errors():
        loc = [str(part) for part in err["loc"] if part != "body"]
        fields[".".join(loc) or "body"] = err["msg"]
    return JSONResponse(
        status_code=400,
        content=_error_body("Validation failed", {"fields": fields}),
    )


# ─── Factory ─────────────────────────────────────────────


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    cfg = settings or default_settings

    app = FastAPI(
        title="OrderGate",
        description="Session layer and order placement for the shop backend",
        version=__version__,
        lifespan=lifespan,
    )

    engine = build_engine(
        cfg.database_url,
        pool_size=cfg.db_pool_size,
        max_overflow=cfg.db_max_overflow,
        echo=cfg.debug,
    )
    app.state.settings = cfg
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.token_issuer = TokenIssuer(cfg.jwt_secret, algorithm=cfg.jwt_algorithm)
    app.state.token_ttls = {
        USER: timedelta(seconds=cfg.user_token_ttl_seconds),
        CUSTOMER: timedelta(seconds=cfg.customer_token_ttl_seconds),
    }
    app.state.session_gate = SessionGate(
        TokenVerifier(cfg.jwt_secret, algorithm=cfg.jwt_algorithm),
        build_carrier(cfg.session_carrier, cfg.cookie_name),
    )

    app.add_exception_handler(OrderGateError, handle_ordergate_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → handler
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: ordergate.main:app)
app = create_app()
