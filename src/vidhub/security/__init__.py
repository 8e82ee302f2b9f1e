"""Security utilities for VidHub services."""

from .passwords import PasswordHash, hash_password, verify_password

__all__ = [
    "PasswordHash",
    "hash_password",
    "verify_password",
]
