"""Bearer-token authentication for routes.

Routes that act on behalf of a person declare ``identity: CurrentIdentity``.
Tenant-level checks (is this person an Admin of that club?) happen later,
in ``MembershipService``.
"""

from typing import Annotated

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from clubhub.api.dependencies import DBSession
from clubhub.core.auth.backend import ACCESS_TOKEN_TYPE, decode_token
from clubhub.core.auth.models import IdentityUser
from clubhub.core.auth.repos import IdentityUserRepository
from clubhub.core.auth.schemas import TokenData
from clubhub.core.errors import ForbiddenError, UnauthorizedError


# auto_error is off so a missing header renders as our own problem document
bearer_scheme = HTTPBearer(auto_error=False)

BearerCredentials = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


async def get_token_data(credentials: BearerCredentials) -> TokenData:
    if credentials is None:
        raise UnauthorizedError("Missing authentication token", error_code="missing_token")

    token_data = decode_token(credentials.credentials)
    if token_data is None:
        raise UnauthorizedError("Invalid or expired token", error_code="invalid_token")
    if token_data.type != ACCESS_TOKEN_TYPE:
        raise UnauthorizedError("Invalid token type", error_code="invalid_token_type")
    return token_data


async def get_current_identity(
    request: Request,
    token_data: Annotated[TokenData, Depends(get_token_data)],
    db: DBSession,
) -> IdentityUser:
    """Load the token's identity user, rejecting deleted or deactivated ones."""
    user = await IdentityUserRepository(db).get_by_id(token_data.identity_user_id)
    if user is None:
        raise UnauthorizedError("User not found", error_code="user_not_found")
    if not user.is_active:
        raise ForbiddenError("User account is deactivated", error_code="user_inactive")

    # Picked up by the access log and every later log line of this request
    request.state.identity_user_id = user.id
    structlog.contextvars.bind_contextvars(identity_user_id=str(user.id))
    return user


CurrentIdentity = Annotated[IdentityUser, Depends(get_current_identity)]
