"""Auth request, token and remote-user models."""

import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class CamelModel(BaseModel):
    """Base for boundary models exchanged as camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TokenSet(BaseModel):
    """Token response issued by the identity provider.

    Field names match the OpenID-Connect wire format and are passed through
    to callers verbatim. Every field is required; a response missing any of
    them is treated as malformed rather than as an empty success.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(..., min_length=1)
    expires_in: int
    refresh_expires_in: int
    refresh_token: str = Field(..., min_length=1)
    token_type: str = Field(..., min_length=1)
    scope: str = Field(..., min_length=1)


class AdminToken(BaseModel):
    """Master-realm grant used for admin REST calls.

    Only the access token is read; the remaining token-response fields are
    optional here.
    """

    access_token: str = Field(..., min_length=1)
    expires_in: Optional[int] = None
    token_type: Optional[str] = None


class LoginRequest(CamelModel):
    """Login credentials forwarded to the identity provider.

    Attributes:
        username: Provider username (registered users log in with their email)
        password: Plain-text password, never persisted
    """

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RefreshRequest(CamelModel):
    """Request to exchange a refresh token for a new token set.

    Attributes:
        refresh_token: Refresh token from a previous login or refresh
    """

    refresh_token: str = Field(..., min_length=1)


class RegisterRequest(CamelModel):
    """Self-service registration request.

    Attributes:
        email: Email address, also used as the provider username
        password: Initial password, stored only by the identity provider
        first_name: Given name
        last_name: Family name
    """

    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1)
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str) -> str:
        """Ensure email looks like local@domain."""
        if not EMAIL_PATTERN.match(v):
            raise ValueError("Email must be a valid address")
        return v

    @field_validator("password")
    @classmethod
    def password_not_empty(cls, v: str) -> str:
        """Ensure password is not empty or whitespace only."""
        if not v.strip():
            raise ValueError("Password cannot be empty or whitespace only")
        return v


class RemoteUserRef(BaseModel):
    """Reference to a user freshly created on the identity provider."""

    id: str
    location: str


class RemoteUserSummary(CamelModel):
    """Read-only projection of a user as the identity provider reports it."""

    id: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    enabled: bool = False

    @classmethod
    def from_provider(cls, payload: dict[str, Any]) -> "RemoteUserSummary":
        """Build from an admin API user representation, ignoring key case."""
        lowered = {str(key).lower(): value for key, value in payload.items()}
        return cls(
            id=lowered.get("id"),
            username=lowered.get("username"),
            first_name=lowered.get("firstname"),
            last_name=lowered.get("lastname"),
            email=lowered.get("email"),
            enabled=lowered.get("enabled") or False,
        )


class SetEnabledRequest(CamelModel):
    """Administrative enable/disable of a local user record."""

    enabled: bool
