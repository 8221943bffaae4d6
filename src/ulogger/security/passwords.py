"""Password hashing utilities — argon2id via ``argon2-cffi``.

Hashes are PHC-format strings (``$argon2id$...``), safe for storage.

Usage::

    from ulogger.security.passwords import hash_password, verify_password

    hashed = hash_password("my-password")
    ok = verify_password("my-password", hashed)
"""

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash a password with argon2id.

    Raises:
        ValueError: If *password* is empty.
    """
    if not password:
        msg = "Password must not be empty."
        raise ValueError(msg)
    return _hasher.hash(password)


def verify_password(password: str, phc_hash: str | None) -> bool:
    """Verify a password against a stored hash.

    Returns ``False`` for empty input, a mismatch or a hash this module
    cannot read.
    """
    if not password or not phc_hash:
        return False
    try:
        return _hasher.verify(phc_hash, password)
    except (VerificationError, InvalidHashError):
        return False
