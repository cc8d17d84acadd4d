"""Security helpers: password hashing.

Password hashing::

    from perch.security import hash_password, verify_password

    hashed = hash_password("my-password")
    verify_password("my-password", hashed)  # True
"""

from perch.security.passwords import hash_password, needs_rehash, verify_password

__all__ = ["hash_password", "needs_rehash", "verify_password"]
