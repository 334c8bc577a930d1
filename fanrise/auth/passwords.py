"""
Password hashing and password policy.

Hashes are PBKDF2-SHA256 with a random per-password salt and a fixed work
factor, stored as "salt:hexdigest".
"""

from __future__ import annotations

import hashlib
import re
import secrets

from fanrise.core.errors import PasswordHashError


PBKDF2_ITERATIONS = 100_000
SALT_BYTES = 32

PASSWORD_MIN_LENGTH = 8

_PASSWORD_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"[A-Z]"), "one uppercase letter"),
    (re.compile(r"[a-z]"), "one lowercase letter"),
    (re.compile(r"\d"), "one number"),
    (re.compile(r"[^a-zA-Z0-9]"), "one special character"),
]


def _derive(password: str, salt: str) -> str:
    hash_bytes = hashlib.pbkdf2_hmac(
        'sha256',
        password.encode('utf-8'),
        salt.encode('utf-8'),
        iterations=PBKDF2_ITERATIONS,
    )
    return hash_bytes.hex()


def hash_password(password: str) -> str:
    """
    Hash a password using PBKDF2-SHA256.
    
    Returns: salt:hash format string
    """
    salt = secrets.token_hex(SALT_BYTES)
    return f"{salt}:{_derive(password, salt)}"


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against its hash.

    A stored hash that cannot be parsed is an infrastructure problem, not
    a wrong password, so it raises PasswordHashError.
    """
    try:
        salt, stored_hash = password_hash.split(':')
    except (ValueError, AttributeError) as e:
        raise PasswordHashError("Stored password hash is malformed") from e
    return secrets.compare_digest(_derive(password, salt), stored_hash)


def password_policy_violations(password: str) -> list[str]:
    """Return the unmet password requirements (empty when the password is fine)."""
    problems = []
    if len(password) < PASSWORD_MIN_LENGTH:
        problems.append(f"at least {PASSWORD_MIN_LENGTH} characters")
    problems.extend(label for pattern, label in _PASSWORD_RULES if not pattern.search(password))
    return problems
