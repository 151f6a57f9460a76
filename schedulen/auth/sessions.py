"""
Per-event session cookies.

A successful password check issues a signed cookie named after the event.
Presenting a valid cookie proves the caller knew the event password at the
time it was issued. Tokens are bound to the stored password hash, so
changing the password invalidates every outstanding session.

Token format: "<expires unix seconds>.<hex HMAC-SHA256>"
"""

import hashlib
import hmac
import logging
import time
from typing import Optional

logger = logging.getLogger(__name__)

COOKIE_PREFIX = "event_auth_"


def session_cookie_name(event_id: str) -> str:
    """Cookie name carrying the session for one event."""
    return f"{COOKIE_PREFIX}{event_id}"


def _signature(event_id: str, expires: int, password_hash: str, secret: str) -> str:
    message = f"{event_id}:{expires}:{password_hash}"
    return hmac.new(
        secret.encode("utf-8"),
        message.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def create_session_token(
    event_id: str,
    password_hash: Optional[str],
    secret: str,
    max_age: int,
    now: Optional[float] = None,
) -> str:
    """
    Issue a session token for an event.

    Args:
        event_id: Event the session grants access to
        password_hash: Event's current stored password hash ("" for open events)
        secret: Server signing secret
        max_age: Token lifetime in seconds
        now: Current unix time (defaults to time.time())

    Returns:
        Signed token string
    """
    issued = time.time() if now is None else now
    expires = int(issued) + max_age
    return f"{expires}.{_signature(event_id, expires, password_hash or '', secret)}"


def verify_session_token(
    token: Optional[str],
    event_id: str,
    password_hash: Optional[str],
    secret: str,
    now: Optional[float] = None,
) -> bool:
    """
    Check a session token.

    Returns:
        True if the token is well-formed, unexpired and signed for this
        event and its current password hash
    """
    if not token:
        return False

    expires_part, _, signature = token.partition(".")
    try:
        expires = int(expires_part)
    except ValueError:
        return False

    current = time.time() if now is None else now
    if expires < current:
        logger.debug(f"Expired session token for event {event_id}")
        return False

    expected = _signature(event_id, expires, password_hash or "", secret)
    return hmac.compare_digest(signature.encode("utf-8"), expected.encode("utf-8"))
