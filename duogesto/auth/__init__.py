"""Login, password hashing and user administration."""

from duogesto.auth.service import (
    AuthenticationError,
    InvalidPasswordError,
    PermissionDeniedError,
    UserNotFoundError,
    UserService,
    couple_ids,
    hash_password,
    require_admin,
    verify_password,
)

__all__ = [
    "AuthenticationError",
    "InvalidPasswordError",
    "PermissionDeniedError",
    "UserNotFoundError",
    "UserService",
    "couple_ids",
    "hash_password",
    "require_admin",
    "verify_password",
]
