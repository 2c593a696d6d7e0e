"""Authentication API routes."""

from fastapi import APIRouter

from clubhub.config import settings
from clubhub.core.auth.backend import create_access_token
from clubhub.core.auth.dependencies import CurrentIdentity
from clubhub.core.auth.schemas import IdentityResponse, LoginRequest, TokenResponse
from clubhub.core.auth.service import IdentitySvc


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Login with email and password",
    description="Authenticate with email and password to receive an access token.",
)
async def login(data: LoginRequest, service: IdentitySvc) -> TokenResponse:
    """Login with email and password."""
    user = await service.authenticate(data.email, data.password)
    token = create_access_token(user.id, user.platform_role)
    return TokenResponse(
        access_token=token,
        expires_in=settings.access_token_expire_minutes * 60,
    )


@router.get(
    "/me",
    response_model=IdentityResponse,
    summary="Current credential",
)
async def me(identity: CurrentIdentity) -> IdentityResponse:
    """Return the authenticated credential."""
    return IdentityResponse.model_validate(identity)
