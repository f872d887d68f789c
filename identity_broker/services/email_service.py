"""Confirmation email dispatch.

Delivery itself is not wired to a mail transport yet; dispatch builds the
confirmation link and records it in the log.
"""

from urllib.parse import urlencode

import structlog

from identity_broker.config import get_settings
from identity_broker.models.errors import DeliveryError
from identity_broker.models.result import Failure, Result, Success
from identity_broker.models.user import User

logger = structlog.get_logger(__name__)


class EmailService:
    """Dispatches account confirmation emails."""

    def __init__(self):
        self.settings = get_settings()

    def build_confirmation_link(self, token: str) -> str:
        """Return the link a user follows to confirm their email."""
        return f"{self.settings.confirmation_url_base}?{urlencode({'token': token})}"

    async def send_confirmation_email(self, user: User) -> Result[None]:
        """Dispatch the confirmation email for a freshly registered user.

        Returns Failure when the user has no pending token or no link target
        is configured.
        """
        if not user.confirmation_token:
            return Failure(DeliveryError("User has no pending confirmation token."))
        if not self.settings.confirmation_url_base:
            return Failure(DeliveryError("Confirmation link target is not configured."))

        link = self.build_confirmation_link(user.confirmation_token)
        body = (
            f"Hello {user.first_name},\n\n"
            f"Please confirm your email address by following this link:\n\n"
            f"{link}\n"
        )
        await self._deliver(user.email, "Confirm your email address", body)
        return Success(None)

    async def _deliver(self, to_email: str, subject: str, body: str) -> None:
        # TODO: hand the message to an SMTP transport once one is configured
        logger.info(
            "confirmation_email_dispatched",
            to=to_email,
            subject=subject,
            body_length=len(body),
        )
