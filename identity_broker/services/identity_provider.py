"""HTTP client for the identity provider token endpoint and admin REST API."""

from typing import Any, Optional

import httpx
import structlog
from pydantic import ValidationError

from identity_broker.config import Settings
from identity_broker.models.auth import AdminToken, RemoteUserRef, RemoteUserSummary, TokenSet
from identity_broker.models.errors import (
    DeserializationError,
    MissingLocationError,
    RemoteAuthError,
    RemoteRequestError,
)
from identity_broker.models.result import Failure, Result, Success

logger = structlog.get_logger(__name__)

ADMIN_CLIENT_ID = "admin-cli"
DESERIALIZATION_MESSAGE = "Deserialization error."
TRANSPORT_MESSAGE = "Identity provider request failed."


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def _parse_json(response: httpx.Response) -> Optional[Any]:
    """Decode a JSON body, returning None when it is absent or malformed."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _parse_token_set(response: httpx.Response) -> Result[TokenSet]:
    body = _parse_json(response)
    if not isinstance(body, dict):
        return Failure(DeserializationError(DESERIALIZATION_MESSAGE, detail=response.text))
    try:
        return Success(TokenSet.model_validate(body))
    except ValidationError as e:
        return Failure(DeserializationError(DESERIALIZATION_MESSAGE, detail=str(e)))


def _resource_id_from_location(location: Optional[str]) -> Optional[str]:
    """Return the final path segment of a Location header."""
    if not location:
        return None
    segment = location.rstrip("/").rsplit("/", 1)[-1]
    return segment or None


class IdentityProviderClient:
    """Translates broker intents into identity provider HTTP calls.

    The ``httpx.AsyncClient`` is shared across requests and owned by the
    caller; this class never creates or closes it.
    """

    def __init__(self, http_client: httpx.AsyncClient, settings: Settings):
        self._http = http_client
        self.settings = settings

    async def _send(self, method: str, url: str, **kwargs: Any) -> Result[httpx.Response]:
        try:
            return Success(await self._http.request(method, url, **kwargs))
        except httpx.HTTPError as e:
            logger.warning(
                "identity_provider_transport_error",
                method=method,
                url=url,
                error=str(e),
            )
            return Failure(RemoteRequestError(TRANSPORT_MESSAGE, detail=str(e)))

    async def _token_grant(self, form: dict[str, str], failure_prefix: str) -> Result[TokenSet]:
        sent = await self._send("POST", self.settings.token_endpoint, data=form)
        if isinstance(sent, Failure):
            return sent

        response = sent.value
        if not response.is_success:
            logger.info(
                "token_grant_rejected",
                grant_type=form["grant_type"],
                status_code=response.status_code,
            )
            return Failure(
                RemoteAuthError(
                    f"{failure_prefix} Details: {response.text}",
                    detail=response.text,
                    status_code=response.status_code,
                )
            )

        return _parse_token_set(response)

    async def login(self, username: str, password: str) -> Result[TokenSet]:
        """Exchange end-user credentials for a token set (password grant)."""
        form = {
            "client_id": self.settings.keycloak_client_id,
            "client_secret": self.settings.keycloak_client_secret,
            "grant_type": "password",
            "username": username,
            "password": password,
        }
        return await self._token_grant(form, "Invalid username or password.")

    async def refresh(self, refresh_token: str) -> Result[TokenSet]:
        """Exchange a refresh token for a new token set."""
        form = {
            "client_id": self.settings.keycloak_client_id,
            "client_secret": self.settings.keycloak_client_secret,
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
        }
        return await self._token_grant(form, "Failed to refresh token.")

    async def acquire_admin_token(self) -> Optional[AdminToken]:
        """Obtain an admin token from the master realm.

        Returns:
            AdminToken, or None if the provider rejected the admin credentials
            or returned an unusable body. Failures are logged, not raised.
        """
        form = {
            "client_id": ADMIN_CLIENT_ID,
            "client_secret": self.settings.keycloak_client_secret,
            "grant_type": "password",
            "username": self.settings.keycloak_admin_username,
            "password": self.settings.keycloak_admin_password,
        }
        sent = await self._send("POST", self.settings.admin_token_endpoint, data=form)
        if isinstance(sent, Failure):
            logger.error("admin_token_unavailable", reason="transport_error")
            return None

        response = sent.value
        if not response.is_success:
            logger.error(
                "admin_token_unavailable",
                reason="rejected",
                status_code=response.status_code,
                upstream_detail=response.text,
            )
            return None

        body = _parse_json(response)
        try:
            return AdminToken.model_validate(body)
        except ValidationError:
            logger.error("admin_token_unavailable", reason="malformed_response")
            return None

    async def create_remote_user(
        self,
        admin_token: str,
        email: str,
        first_name: str,
        last_name: str,
        password: str,
    ) -> Result[RemoteUserRef]:
        """Create an enabled user with a permanent password credential.

        The new user's identifier comes from the Location header of the
        201 response.
        """
        payload = {
            "username": email,
            "email": email,
            "firstName": first_name,
            "lastName": last_name,
            "enabled": True,
            "credentials": [
                {"type": "password", "value": password, "temporary": False}
            ],
        }
        url = self.settings.admin_users_url
        sent = await self._send("POST", url, json=payload, headers=_bearer(admin_token))
        if isinstance(sent, Failure):
            return sent

        response = sent.value
        if not response.is_success:
            return Failure(
                RemoteRequestError(
                    f"Failed to register user. Details: {response.text}",
                    detail=response.text,
                    status_code=response.status_code,
                )
            )

        location = response.headers.get("Location")
        remote_id = _resource_id_from_location(location)
        if remote_id is None:
            logger.error("remote_user_location_missing", status_code=response.status_code)
            return Failure(
                MissingLocationError(
                    "Failed to register user. Details: identity provider did not "
                    "return the new user's location."
                )
            )

        logger.info("remote_user_created", provider_id=remote_id)
        return Success(RemoteUserRef(id=remote_id, location=location))

    async def list_remote_users(self, admin_token: str) -> Result[list[RemoteUserSummary]]:
        """List realm users as reported by the admin API."""
        sent = await self._send("GET", self.settings.admin_users_url, headers=_bearer(admin_token))
        if isinstance(sent, Failure):
            return sent

        response = sent.value
        if not response.is_success:
            return Failure(
                RemoteRequestError(
                    f"Failed to retrieve users. Details: {response.text}",
                    detail=response.text,
                    status_code=response.status_code,
                )
            )

        body = _parse_json(response)
        if not isinstance(body, list):
            return Failure(DeserializationError(DESERIALIZATION_MESSAGE, detail=response.text))

        try:
            users = [RemoteUserSummary.from_provider(item) for item in body]
        except (ValidationError, AttributeError) as e:
            return Failure(DeserializationError(DESERIALIZATION_MESSAGE, detail=str(e)))

        return Success(users)

    async def mark_email_verified(self, admin_token: str, remote_user_id: str) -> Result[None]:
        """Set ``emailVerified`` on a remote user."""
        url = f"{self.settings.admin_users_url}/{remote_user_id}"
        sent = await self._send(
            "PUT", url, json={"emailVerified": True}, headers=_bearer(admin_token)
        )
        if isinstance(sent, Failure):
            return sent

        response = sent.value
        if not response.is_success:
            return Failure(
                RemoteRequestError(
                    f"Failed to verify email. Details: {response.text}",
                    detail=response.text,
                    status_code=response.status_code,
                )
            )

        logger.info("remote_email_verified", provider_id=remote_user_id)
        return Success(None)
