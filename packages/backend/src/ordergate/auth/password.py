"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and its hashes carry an algorithm marker ("$2a$", "$2b$",
"$2y$"), which is how a stored value is recognised as hashed.

Anything that does not carry the marker is a legacy plaintext value from
the old shop tables. Those still verify (by exact comparison) and are
upgraded to bcrypt on the first successful login — see
services/credential_service.py.
"""

import secrets
from functools import lru_cache

import bcrypt

HASH_MARKER = "$2"
DEFAULT_ROUNDS = 12


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    """Hash a password with bcrypt.

    Passwords are truncated to 72 bytes (bcrypt's limit). rounds=12 takes
    ~100ms per hash on modern hardware; tests lower it to 4.
    """
    pw_bytes = password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def is_hashed(stored: str) -> bool:
    """True when the stored representation is a bcrypt hash."""
    return stored.startswith(HASH_MARKER)


def verify_hashed(password: str, password_hash: str) -> bool:
    """Compare a password against a bcrypt hash. Malformed hashes never match."""
    try:
        pw_bytes = password.encode("utf-8")[:72]
        return bcrypt.checkpw(pw_bytes, password_hash.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def verify_legacy(password: str, stored: str) -> bool:
    """Exact comparison against a legacy plaintext value."""
    return secrets.compare_digest(password.encode("utf-8"), stored.encode("utf-8"))


@lru_cache(maxsize=None)
def dummy_hash(rounds: int = DEFAULT_ROUNDS) -> str:
    """A throwaway hash used to equalize timing for unknown usernames."""
    return hash_password(secrets.token_urlsafe(16), rounds=rounds)
