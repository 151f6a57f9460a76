"""
Event password hashing.

Passwords are hashed with passlib's pbkdf2_sha256 scheme, giving modular
crypt strings such as ``$pbkdf2-sha256$<rounds>$<salt>$<checksum>``.

An empty or missing password means the event is open. Values stored before
hashing was introduced (plaintext) still verify, using a constant-time
comparison.
"""

import hmac
import logging
from functools import lru_cache
from typing import Optional

from passlib.context import CryptContext

logger = logging.getLogger(__name__)

SCHEME = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 260_000


@lru_cache(maxsize=8)
def _crypt_context(iterations: int = DEFAULT_ITERATIONS) -> CryptContext:
    return CryptContext(
        schemes=[SCHEME],
        deprecated="auto",
        pbkdf2_sha256__rounds=iterations,
    )


def hash_password(password: str, iterations: int = DEFAULT_ITERATIONS) -> str:
    """
    Hash a password with a fresh random salt.

    Args:
        password: Plaintext password (must be non-empty)
        iterations: PBKDF2 rounds, recorded in the result

    Raises:
        ValueError: If the password is empty
    """
    if not password:
        raise ValueError("Cannot hash an empty password")
    return _crypt_context(iterations).hash(password)


def is_hashed(stored: str) -> bool:
    """True if the stored value is a hash this module can verify."""
    return _crypt_context().identify(stored, required=False) is not None


def verify_password(supplied: Optional[str], stored: Optional[str]) -> bool:
    """
    Check a supplied password against a stored value.

    Args:
        supplied: Password supplied by the caller (None treated as "")
        stored: Stored hash, legacy plaintext, or None/"" for open events

    Returns:
        True for open events or a match, False otherwise
    """
    if not stored:
        return True

    supplied = supplied or ""

    if not is_hashed(stored):
        return hmac.compare_digest(supplied.encode("utf-8"), stored.encode("utf-8"))

    try:
        return _crypt_context().verify(supplied, stored)
    except ValueError as e:
        logger.warning(f"Malformed password hash: {e}")
        return False
