"""
Authentication module for ScheduleN.

Events may be protected by a shared password. Knowing the password earns a
signed per-event session cookie.
"""

from schedulen.auth.passwords import (
    hash_password,
    verify_password,
)
from schedulen.auth.sessions import (
    session_cookie_name,
    create_session_token,
    verify_session_token,
)

__all__ = [
    # Passwords
    "hash_password",
    "verify_password",
    # Sessions
    "session_cookie_name",
    "create_session_token",
    "verify_session_token",
]
