"""
Unit tests for per-event session tokens.
"""

from schedulen.auth.sessions import (
    create_session_token,
    session_cookie_name,
    verify_session_token,
)

SECRET = "unit-test-secret"
NOW = 1_750_000_000.0


def _token(event_id="evt", password_hash="hash-a", max_age=3600):
    return create_session_token(event_id, password_hash, SECRET, max_age, now=NOW)


class TestSessionTokens:

    def test_cookie_name(self):
        assert session_cookie_name("abc") == "event_auth_abc"

    def test_valid_token(self):
        assert verify_session_token(_token(), "evt", "hash-a", SECRET, now=NOW + 10) is True

    def test_expired(self):
        assert verify_session_token(_token(max_age=60), "evt", "hash-a", SECRET, now=NOW + 61) is False

    def test_bound_to_event(self):
        assert verify_session_token(_token(), "other", "hash-a", SECRET, now=NOW) is False

    def test_password_change_invalidates(self):
        assert verify_session_token(_token(), "evt", "hash-b", SECRET, now=NOW) is False

    def test_wrong_secret(self):
        assert verify_session_token(_token(), "evt", "hash-a", "other-secret", now=NOW) is False

    def test_tampered_expiry(self):
        expires, signature = _token().split(".")
        forged = f"{int(expires) + 86400}.{signature}"
        assert verify_session_token(forged, "evt", "hash-a", SECRET, now=NOW) is False

    def test_malformed(self):
        for token in (None, "", "garbage", "123", "abc.def", "1.é"):
            assert verify_session_token(token, "evt", "hash-a", SECRET, now=NOW) is False
