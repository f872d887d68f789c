"""Models package exports."""

from identity_broker.models.auth import (
    AdminToken,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    RemoteUserRef,
    RemoteUserSummary,
    SetEnabledRequest,
    TokenSet,
)
from identity_broker.models.errors import (
    AdminAuthError,
    BrokerError,
    DeliveryError,
    DeserializationError,
    MissingLocationError,
    NotFoundError,
    PersistenceError,
    RemoteAuthError,
    RemoteRequestError,
)
from identity_broker.models.result import Failure, Result, Success
from identity_broker.models.user import User, UserProfile

__all__ = [
    "AdminAuthError",
    "AdminToken",
    "BrokerError",
    "DeliveryError",
    "DeserializationError",
    "Failure",
    "LoginRequest",
    "MissingLocationError",
    "NotFoundError",
    "PersistenceError",
    "RefreshRequest",
    "RegisterRequest",
    "RemoteAuthError",
    "RemoteRequestError",
    "RemoteUserRef",
    "RemoteUserSummary",
    "Result",
    "SetEnabledRequest",
    "Success",
    "TokenSet",
    "User",
    "UserProfile",
]
