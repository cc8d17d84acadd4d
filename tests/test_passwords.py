"""Tests for perch.security.passwords (argon2id hashing)."""

import pytest

from perch.security.passwords import hash_password, needs_rehash, verify_password


class TestHashPassword:
    def test_produces_argon2id_phc_string(self) -> None:
        assert hash_password("password123").startswith("$argon2id$")

    def test_different_salt_each_time(self) -> None:
        assert hash_password("same-password") != hash_password("same-password")

    def test_empty_password_rejected(self) -> None:
        with pytest.raises(ValueError, match="must not be empty"):
            hash_password("")


class TestVerifyPassword:
    def test_correct_password(self) -> None:
        assert verify_password("my-secret", hash_password("my-secret")) is True

    def test_wrong_password(self) -> None:
        assert verify_password("wrong", hash_password("my-secret")) is False

    def test_empty_inputs(self) -> None:
        hashed = hash_password("x")
        assert verify_password("", hashed) is False
        assert verify_password("x", "") is False

    def test_malformed_hash(self) -> None:
        assert verify_password("x", "not-a-hash") is False


class TestNeedsRehash:
    def test_fresh_hash_is_current(self) -> None:
        assert needs_rehash(hash_password("x")) is False
