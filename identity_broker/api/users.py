"""User administration API endpoints (bearer required)."""

from fastapi import APIRouter, Depends

from identity_broker.api.dependencies import (
    get_identity_broker,
    require_bearer_token,
    unwrap_result,
)
from identity_broker.models.auth import RemoteUserSummary, SetEnabledRequest
from identity_broker.models.user import UserProfile
from identity_broker.services.identity_broker import IdentityBroker

router = APIRouter(
    prefix="/api/users",
    tags=["Users"],
    dependencies=[Depends(require_bearer_token)],
)


@router.get("")
async def list_users(
    broker: IdentityBroker = Depends(get_identity_broker),
) -> list[RemoteUserSummary]:
    """List users registered on the identity provider."""
    return unwrap_result(await broker.get_users())


@router.get("/local")
async def list_local_users(
    broker: IdentityBroker = Depends(get_identity_broker),
) -> list[UserProfile]:
    """List local mirror records without their confirmation tokens."""
    users = unwrap_result(await broker.list_local_users())
    return [UserProfile.from_user(user) for user in users]


@router.put("/{provider_id}/enabled")
async def set_user_enabled(
    provider_id: str,
    request: SetEnabledRequest,
    broker: IdentityBroker = Depends(get_identity_broker),
) -> UserProfile:
    """Enable or disable a local mirror record.

    Args:
        provider_id: Identity provider user id
        request: Desired enablement state

    Returns:
        Updated user profile
    """
    user = unwrap_result(await broker.set_user_enabled(provider_id, request.enabled))
    return UserProfile.from_user(user)
