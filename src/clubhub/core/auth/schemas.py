"""Authentication schemas for login and token handling."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class TokenData(BaseModel):
    """Data extracted from a JWT token.

    Attributes:
        identity_user_id: The credential's UUID
        platform_role: Platform-wide role name
        exp: Token expiration time
        type: Token type
    """

    identity_user_id: UUID
    platform_role: str
    exp: datetime
    type: str = "access"


class LoginRequest(BaseModel):
    """Email and password login."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Access token issued after a successful login."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int


class IdentityResponse(BaseModel):
    """Public view of a credential."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    platform_role: str
    is_active: bool
