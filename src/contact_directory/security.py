# security.py
# Salted SHA-256 password hashing.
#
# Stored format: base64(salt) + ":" + base64(sha256(salt + password)).
# Unsalted hex digests from older seed data are still accepted by
# verify_legacy_hash() so those accounts can log in and rotate.
#
# Standard library only.

import base64
import binascii
import hashlib
import hmac
import os

SALT_BYTES = 16


def _digest(password: str, salt: bytes) -> bytes:
    sha = hashlib.sha256()
    sha.update(salt)
    sha.update(password.encode("utf-8"))
    return sha.digest()


def hash_password(password: str) -> str:
    salt = os.urandom(SALT_BYTES)
    digest = _digest(password, salt)
    return f"{base64.b64encode(salt).decode()}:{base64.b64encode(digest).decode()}"


def verify_password(password: str, stored: str) -> bool:
    """Constant-time check of `password` against a salt:hash string."""
    parts = stored.split(":")
    if len(parts) != 2:
        return False
    try:
        salt = base64.b64decode(parts[0], validate=True)
        expected = base64.b64decode(parts[1], validate=True)
    except (binascii.Error, ValueError):
        return False
    return hmac.compare_digest(_digest(password, salt), expected)


def legacy_hash(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def verify_legacy_hash(password: str, stored: str) -> bool:
    return hmac.compare_digest(legacy_hash(password).encode(), stored.encode("utf-8"))


def check_password(password: str, stored: str) -> bool:
    return verify_password(password, stored) or verify_legacy_hash(password, stored)
