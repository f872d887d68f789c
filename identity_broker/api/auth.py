"""Authentication API endpoints."""

import structlog
from fastapi import APIRouter, Depends, Query, Response

from identity_broker.api.dependencies import (
    get_identity_broker,
    require_bearer_token,
    unwrap_result,
)
from identity_broker.models.auth import (
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    TokenSet,
)
from identity_broker.models.user import UserProfile
from identity_broker.services.identity_broker import IdentityBroker

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/login")
async def login(
    request: LoginRequest,
    broker: IdentityBroker = Depends(get_identity_broker),
) -> TokenSet:
    """Login with username and password.

    Args:
        request: Login credentials

    Returns:
        Token set issued by the identity provider

    Raises:
        HTTPException 400: If the provider rejected the credentials
    """
    return unwrap_result(await broker.login(request))


@router.post("/refresh")
async def refresh(
    request: RefreshRequest,
    broker: IdentityBroker = Depends(get_identity_broker),
) -> TokenSet:
    """Exchange a refresh token for a new token set.

    Raises:
        HTTPException 400: If the refresh token is invalid, expired, or revoked
    """
    return unwrap_result(await broker.refresh_tokens(request))


@router.post("/register")
async def register(
    request: RegisterRequest,
    broker: IdentityBroker = Depends(get_identity_broker),
) -> Response:
    """Register a new account and send its confirmation email.

    Returns:
        Empty 200 response

    Raises:
        HTTPException 400: If any registration step failed
    """
    unwrap_result(await broker.register(request))
    return Response(status_code=200)


@router.post("/confirm")
async def confirm(
    token: str = Query(..., min_length=1),
    broker: IdentityBroker = Depends(get_identity_broker),
) -> UserProfile:
    """Confirm an email address with a single-use confirmation token.

    Raises:
        HTTPException 400: If the token is unknown or confirmation failed
    """
    user = unwrap_result(await broker.confirm_user(token))
    return UserProfile.from_user(user)


@router.get("/check")
async def check(_token: str = Depends(require_bearer_token)) -> str:
    """Probe that a bearer-authenticated call reaches the service."""
    return "Works"
