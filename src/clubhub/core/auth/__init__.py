"""Identity provider: credentials, password hashing and access tokens."""

from clubhub.core.auth.backend import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)
from clubhub.core.auth.models import IdentityUser, PlatformRole
from clubhub.core.auth.schemas import TokenData


__all__ = [
    "IdentityUser",
    "PlatformRole",
    "TokenData",
    "create_access_token",
    "decode_token",
    "hash_password",
    "verify_password",
]
