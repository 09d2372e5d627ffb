"""Token carriers — where a bearer token travels on a request.

Learn: A deployment picks exactly one carrier:
- BearerHeaderCarrier: `Authorization: Bearer <token>` (API clients)
- CookieCarrier: an httponly cookie set at login (browser frontends)

Both expose extract(headers) so the session gate does not care which one
is configured.
"""

from collections.abc import Mapping
from typing import Optional, Protocol
from urllib.parse import unquote


def parse_cookies(cookie_header: Optional[str]) -> dict[str, str]:
    """Parse a raw Cookie header into a dict.

    Pairs without "=" or with an empty name are skipped. Values are
    percent-decoded; a value that fails to decode is kept raw so one bad
    pair never spoils its siblings. A repeated name keeps the last value.
    """
    cookies: dict[str, str] = {}
    if not cookie_header:
        return cookies

    for pair in cookie_header.split(";"):
        name, sep, raw_value = pair.partition("=")
        if not sep:
            continue
        name = name.strip()
        if not name:
            continue
        raw_value = raw_value.strip()
        try:
            cookies[name] = unquote(raw_value, errors="strict")
        except UnicodeDecodeError:
            cookies[name] = raw_value
    return cookies


class TokenCarrier(Protocol):
    def extract(self, headers: Mapping[str, str]) -> Optional[str]: ...


class BearerHeaderCarrier:
    """Reads `Authorization: Bearer <token>`."""

    scheme = "Bearer"

    def extract(self, headers: Mapping[str, str]) -> Optional[str]:
        auth_header = headers.get("authorization")
        if not auth_header:
            return None
        parts = auth_header.split(" ")
        if len(parts) != 2 or parts[0] != self.scheme or not parts[1]:
            return None
        return parts[1]


class CookieCarrier:
    """Reads the session token from a named cookie."""

    def __init__(self, name: str = "auth_token"):
        self.name = name

    def extract(self, headers: Mapping[str, str]) -> Optional[str]:
        token = parse_cookies(headers.get("cookie")).get(self.name)
        return token or None


def build_carrier(kind: str, cookie_name: str = "auth_token") -> TokenCarrier:
    """Carrier factory for the `session_carrier` setting."""
    if kind == "header":
        return BearerHeaderCarrier()
    if kind == "cookie":
        return CookieCarrier(cookie_name)
    raise ValueError(f"Unknown session carrier: {kind!r}")


def set_session_cookie(
    response,
    name: str,
    token: str,
    max_age: int,
    secure: bool,
    samesite: str = "lax",
) -> None:
    """Write the session token as an httponly cookie.

    max_age matches the token TTL so cookie and token expire together.
    secure is on in production so the cookie only travels over HTTPS.
    """
    response.set_cookie(
        name,
        value=token,
        httponly=True,
        secure=secure,
        samesite=samesite,
        max_age=max_age,
        path="/",
    )


def clear_session_cookie(response, name: str, secure: bool, samesite: str = "lax") -> None:
    response.delete_cookie(name, path="/", httponly=True, secure=secure, samesite=samesite)
