"""Local user mirror model."""

import secrets
from typing import Optional
from uuid import UUID, uuid4

from pydantic import Field

from identity_broker.models.auth import CamelModel

CONFIRMATION_TOKEN_BYTES = 32


def generate_confirmation_token() -> str:
    """Return a fresh URL-safe single-use confirmation token."""
    return secrets.token_urlsafe(CONFIRMATION_TOKEN_BYTES)


class User(CamelModel):
    """Local mirror of a user whose credentials live on the identity provider.

    A confirmed user never carries a confirmation token; ``confirm_email``
    keeps both fields in step.
    """

    id: UUID = Field(default_factory=uuid4)
    provider_id: str
    username: str
    first_name: str
    last_name: str
    email: str
    is_enabled: bool = True
    is_email_confirmed: bool = False
    confirmation_token: Optional[str] = None

    def set_is_enabled(self, value: Optional[bool]) -> "User":
        if value is not None:
            self.is_enabled = value
        return self

    def set_is_email_confirmed(self, value: Optional[bool]) -> "User":
        if value is not None:
            self.is_email_confirmed = value
        return self

    def reset_confirmation_token(self) -> "User":
        self.confirmation_token = None
        return self

    def confirm_email(self) -> "User":
        """Mark the email verified and consume the confirmation token."""
        return self.set_is_email_confirmed(True).reset_confirmation_token()


class UserProfile(CamelModel):
    """Public view of a local user record.

    Never carries the confirmation token; holding the token is what proves
    control of the email address.
    """

    id: UUID
    provider_id: str
    username: str
    first_name: str
    last_name: str
    email: str
    is_enabled: bool
    is_email_confirmed: bool

    @classmethod
    def from_user(cls, user: User) -> "UserProfile":
        return cls.model_validate(user.model_dump(exclude={"confirmation_token"}))
