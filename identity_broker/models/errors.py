"""Failure kinds carried by ``Failure`` results.

These are values, not exceptions. The boundary collapses all of them into a
400 response with ``message``; the distinct kinds exist for logging and
diagnostics.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class BrokerError:
    """Base failure with a user-facing message and optional upstream detail."""

    message: str
    detail: Optional[str] = None
    status_code: Optional[int] = None

    @property
    def kind(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class RemoteAuthError(BrokerError):
    """Bad credentials or an expired/revoked refresh token."""


@dataclass(frozen=True)
class AdminAuthError(BrokerError):
    """Service-to-service admin credentials were rejected or unusable."""


@dataclass(frozen=True)
class RemoteRequestError(BrokerError):
    """Non-2xx or transport failure from an identity provider call."""


@dataclass(frozen=True)
class MissingLocationError(BrokerError):
    """User creation succeeded but no Location header identified the new user."""


@dataclass(frozen=True)
class DeserializationError(BrokerError):
    """Identity provider returned malformed or incomplete JSON."""


@dataclass(frozen=True)
class NotFoundError(BrokerError):
    """Local lookup miss."""


@dataclass(frozen=True)
class PersistenceError(BrokerError):
    """Database read or commit failure."""


@dataclass(frozen=True)
class DeliveryError(BrokerError):
    """Confirmation email could not be dispatched."""
