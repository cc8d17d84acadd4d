"""argon2id password hashes for the user repository.

``hash_password`` returns an encoded string that carries its own salt and
cost parameters, so it can be stored as-is and checked later with
``verify_password``::

    stored = hash_password("hunter2")
    verify_password("hunter2", stored)  # True
"""

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    """Hash *password*. Raises ``ValueError`` if it is empty."""
    if not password:
        msg = "Password must not be empty."
        raise ValueError(msg)
    return _hasher.hash(password)


def verify_password(password: str, stored: str) -> bool:
    """Check *password* against *stored*.

    A mismatch, an empty argument and an unreadable hash all give ``False``.
    """
    if not password or not stored:
        return False
    try:
        return _hasher.verify(stored, password)
    except (VerificationError, InvalidHashError):
        return False


def needs_rehash(stored: str) -> bool:
    """True when *stored* was hashed with older cost parameters than ours."""
    return _hasher.check_needs_rehash(stored)
