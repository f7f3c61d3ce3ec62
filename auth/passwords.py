"""
auth/passwords.py -- bcrypt password hashing.

bcrypt is used directly rather than through passlib: passlib's wrap-bug check
hashes a password longer than 72 bytes, which bcrypt 4.x rejects outright.

Every hash carries its own random salt (bcrypt.gensalt), so hashing the same
password twice yields two different strings. checkpw re-derives the hash from
the stored salt and compares in constant time.

The cost factor is fixed. Changing it only affects new hashes; existing hashes
keep verifying because the cost is encoded in the hash itself.
"""

from __future__ import annotations

import bcrypt

BCRYPT_ROUNDS = 10

# bcrypt only looks at the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72


class PasswordHashError(Exception):
    """The password could not be hashed (empty, too long, or not encodable)."""


def hash_password(plain: str) -> str:
    """Return a salted bcrypt hash of the plaintext password."""
    try:
        encoded = plain.encode("utf-8")
    except (AttributeError, UnicodeEncodeError) as exc:
        raise PasswordHashError("password is not a valid string") from exc
    if not encoded:
        raise PasswordHashError("password is empty")
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise PasswordHashError(f"password exceeds {MAX_PASSWORD_BYTES} bytes")
    try:
        return bcrypt.hashpw(encoded, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")
    except ValueError as exc:
        raise PasswordHashError(str(exc)) from exc


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed stored hash is treated as a mismatch, never as a server error.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, UnicodeEncodeError):
        return False
