"""Error taxonomy shared by services and the HTTP layer.

Learn: Services raise these instead of HTTPException so they stay usable
outside a request (CLI, tests). main.py registers one exception handler
that turns any OrderGateError into a JSON error body with the matching
status code.
"""

from typing import Any, Optional


class OrderGateError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(OrderGateError):
    """Missing or malformed input."""

    status_code = 400
    default_message = "Validation failed"


class AuthenticationError(OrderGateError):
    """Bad credentials or a missing/invalid/expired token.

    The message is uniform on purpose: callers never learn which check
    failed.
    """

    status_code = 401
    default_message = "Unauthorized"


class NotFoundError(OrderGateError):
    status_code = 404
    default_message = "Not found"


class ConflictError(OrderGateError):
    """Duplicate unique key (e.g. username)."""

    status_code = 409
    default_message = "Already exists"


class ConfigurationError(OrderGateError):
    """Operator error, e.g. no signing secret configured."""

    status_code = 500
    default_message = "Server misconfigured"


class PersistenceError(OrderGateError):
    """A store operation failed; the driver error is chained as __cause__."""

    status_code = 500
    default_message = "Database operation failed"
