"""Password hashing for stored accounts.

Hashes are stored as ``salt:hexdigest`` in ``users.hashed_password``.
"""
import hashlib
import secrets

from ridebook.core import config


def _derive(password: str, salt: str) -> str:
    return hashlib.pbkdf2_hmac(
        'sha256',
        password.encode('utf-8'),
        salt.encode('utf-8'),
        iterations=config.PASSWORD_HASH_ITERATIONS,
    ).hex()


def hash_password(password: str) -> str:
    salt = secrets.token_hex(32)
    return f"{salt}:{_derive(password, salt)}"


def verify_password(password: str, password_hash: str | None) -> bool:
    """Check ``password`` against a stored hash. Malformed or missing hashes never match."""
    salt, separator, stored_hash = (password_hash or '').partition(':')
    if not separator or not salt or not stored_hash:
        return False
    return secrets.compare_digest(_derive(password, salt), stored_hash)
