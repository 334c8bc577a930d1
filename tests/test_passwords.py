"""Tests for password hashing and the password policy."""

import pytest

from fanrise.auth.passwords import (
    hash_password,
    password_policy_violations,
    verify_password,
)
from fanrise.core.errors import PasswordHashError


class TestHashing:
    def test_verify_roundtrip(self):
        stored = hash_password("Secret123!")

        assert verify_password("Secret123!", stored)
        assert not verify_password("secret123!", stored)

    def test_salted(self):
        assert hash_password("Secret123!") != hash_password("Secret123!")

    def test_plaintext_not_stored(self):
        assert "Secret123!" not in hash_password("Secret123!")

    def test_malformed_hash_is_not_a_wrong_password(self):
        with pytest.raises(PasswordHashError):
            verify_password("Secret123!", "not-a-hash")


class TestPolicy:
    def test_strong_password_passes(self):
        assert password_policy_violations("Secret123!") == []

    @pytest.mark.parametrize("password, problem", [
        ("Se1!", "at least 8 characters"),
        ("secret123!", "one uppercase letter"),
        ("SECRET123!", "one lowercase letter"),
        ("SecretPass!", "one number"),
        ("Secret1234", "one special character"),
    ])
    def test_each_rule(self, password, problem):
        assert problem in password_policy_violations(password)
