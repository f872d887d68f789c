"""FastAPI dependencies for broker wiring, bearer tokens and result mapping."""

from typing import Any, TypeVar

import httpx
import structlog
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from identity_broker.config import Settings, get_settings
from identity_broker.models.result import Failure, Success
from identity_broker.services.email_service import EmailService
from identity_broker.services.identity_broker import IdentityBroker
from identity_broker.services.identity_provider import IdentityProviderClient
from identity_broker.services.user_store import PostgresUserStore

logger = structlog.get_logger(__name__)

T = TypeVar("T")

bearer_scheme = HTTPBearer()


def get_http_client(request: Request) -> httpx.AsyncClient:
    """Return the shared HTTP transport created in the application lifespan."""
    return request.app.state.http_client


def get_identity_broker(
    http_client: httpx.AsyncClient = Depends(get_http_client),
    settings: Settings = Depends(get_settings),
) -> IdentityBroker:
    """Build a request-scoped broker.

    The HTTP transport is shared; the user store (and its unit of work) is
    new for every request.
    """
    return IdentityBroker(
        provider=IdentityProviderClient(http_client, settings),
        store=PostgresUserStore(),
        email_service=EmailService(),
    )


async def require_bearer_token(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> str:
    """Require a bearer token on the request.

    Signature, issuer and audience checks belong to the upstream verifier;
    the token reaching this service is treated as already validated.

    Raises:
        HTTPException 401: If the bearer token is empty
    """
    token = credentials.credentials.strip()
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token


def unwrap_result(result: Any) -> Any:
    """Map a broker result onto the HTTP boundary.

    Returns:
        The success value

    Raises:
        HTTPException 400: For any Failure, carrying its message
        HTTPException 500: If the value is neither Success nor Failure
    """
    match result:
        case Success(value=value):
            return value
        case Failure(error=error):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=error.message,
            )
        case _:
            logger.error("result_neither_success_nor_failure", result_type=type(result).__name__)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Result was neither success nor failure.",
            )
