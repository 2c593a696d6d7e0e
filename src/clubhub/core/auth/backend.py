"""Password hashing and access tokens for identity users.

Tokens only say who the caller is and what their platform role is. Which
clubs they may act in is decided per request from their tenant
memberships, so a role change inside a club takes effect without
reissuing tokens.
"""

import secrets
from datetime import UTC, datetime, timedelta
from uuid import UUID

from jose import JWTError, jwt
from passlib.context import CryptContext

from clubhub.config import settings
from clubhub.core.auth.schemas import TokenData
from clubhub.core.constants import ACCESS_TOKEN_JTI_LENGTH


ACCESS_TOKEN_TYPE = "access"

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.bcrypt_rounds,
)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(
    identity_user_id: UUID,
    platform_role: str,
    expires_delta: timedelta | None = None,
) -> str:
    """Sign a token for ``identity_user_id``.

    The lifetime defaults to ``access_token_expire_minutes``; a negative
    ``expires_delta`` yields an already expired token.
    """
    issued_at = datetime.now(UTC)
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    claims = {
        "sub": str(identity_user_id),
        "role": platform_role,
        "type": ACCESS_TOKEN_TYPE,
        "iat": issued_at,
        "exp": issued_at + lifetime,
        "jti": secrets.token_urlsafe(ACCESS_TOKEN_JTI_LENGTH),
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> TokenData | None:
    """Claims of a valid token; ``None`` for a bad signature, expiry or shape."""
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None

    subject, expires = claims.get("sub"), claims.get("exp")
    if not subject or expires is None:
        return None
    try:
        identity_user_id = UUID(subject)
    except ValueError:
        return None

    return TokenData(
        identity_user_id=identity_user_id,
        platform_role=claims.get("role", ""),
        exp=datetime.fromtimestamp(expires, tz=UTC),
        type=claims.get("type", ACCESS_TOKEN_TYPE),
    )
