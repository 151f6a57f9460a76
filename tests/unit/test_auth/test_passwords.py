"""
Unit tests for event password hashing.
"""

import pytest

from schedulen.auth.passwords import hash_password, is_hashed, verify_password


class TestHashPassword:

    def test_format(self):
        stored = hash_password("s3cret", iterations=1000)
        _, scheme, rounds, salt, checksum = stored.split("$")

        assert scheme == "pbkdf2-sha256"
        assert rounds == "1000"
        assert salt and checksum
        assert "s3cret" not in stored
        assert is_hashed(stored) is True

    def test_plaintext_is_not_a_hash(self):
        assert is_hashed("s3cret") is False

    def test_salted(self):
        assert hash_password("same", iterations=1000) != hash_password("same", iterations=1000)

    def test_empty_rejected(self):
        with pytest.raises(ValueError):
            hash_password("")


class TestVerifyPassword:

    def test_match(self):
        stored = hash_password("s3cret", iterations=1000)
        assert verify_password("s3cret", stored) is True

    @pytest.mark.parametrize("supplied", ["S3cret", "s3cret ", "", None])
    def test_mismatch(self, supplied):
        stored = hash_password("s3cret", iterations=1000)
        assert verify_password(supplied, stored) is False

    @pytest.mark.parametrize("stored", [None, ""])
    def test_open_event(self, stored):
        assert verify_password("whatever", stored) is True
        assert verify_password(None, stored) is True

    def test_legacy_plaintext(self):
        assert verify_password("パスワード", "パスワード") is True
        assert verify_password("password", "パスワード") is False

    def test_malformed_hash(self):
        assert verify_password("x", "$pbkdf2-sha256$notanumber$zz$zz") is False
        assert verify_password("x", "$pbkdf2-sha256$1000") is False

    def test_rounds_do_not_affect_verification(self):
        stored = hash_password("s3cret", iterations=2000)
        assert verify_password("s3cret", stored) is True
