"""Services package exports."""

from identity_broker.services.email_service import EmailService
from identity_broker.services.identity_broker import IdentityBroker
from identity_broker.services.identity_provider import IdentityProviderClient
from identity_broker.services.logging_service import configure_logging, log_failure
from identity_broker.services.user_store import PostgresUserStore, UserStore

__all__ = [
    "EmailService",
    "IdentityBroker",
    "IdentityProviderClient",
    "PostgresUserStore",
    "UserStore",
    "configure_logging",
    "log_failure",
]
