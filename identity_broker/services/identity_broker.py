"""Orchestration of the identity provider and the local user mirror.

Every operation is a sequential pipeline of ``Result``-returning steps; the
first failure short-circuits and is returned unchanged.

Two failures leave the provider and the local mirror out of step and are
logged as ``inconsistency_window`` events for reconciliation:

- the remote user was created but the local mirror could not be committed
- the remote email was verified but the local confirmation could not be
  committed
"""

import structlog

from identity_broker.models.auth import (
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    RemoteUserRef,
    RemoteUserSummary,
    TokenSet,
)
from identity_broker.models.errors import AdminAuthError
from identity_broker.models.result import Failure, Result, Success
from identity_broker.models.user import User, generate_confirmation_token
from identity_broker.services.email_service import EmailService
from identity_broker.services.identity_provider import IdentityProviderClient
from identity_broker.services.logging_service import log_failure
from identity_broker.services.user_store import UserStore

logger = structlog.get_logger(__name__)

ADMIN_AUTH_MESSAGE = "Unable to authenticate with the identity provider."


class IdentityBroker:
    """Login, registration, user listing and email confirmation."""

    def __init__(
        self,
        provider: IdentityProviderClient,
        store: UserStore,
        email_service: EmailService,
    ):
        self.provider = provider
        self.store = store
        self.email_service = email_service

    async def login(self, request: LoginRequest) -> Result[TokenSet]:
        result = await self.provider.login(request.username, request.password)
        if isinstance(result, Failure):
            log_failure(logger, "login_failed", result.error)
        return result

    async def refresh_tokens(self, request: RefreshRequest) -> Result[TokenSet]:
        result = await self.provider.refresh(request.refresh_token)
        if isinstance(result, Failure):
            log_failure(logger, "token_refresh_failed", result.error)
        return result

    async def _admin_token(self) -> Result[str]:
        admin_token = await self.provider.acquire_admin_token()
        if admin_token is None:
            return Failure(AdminAuthError(ADMIN_AUTH_MESSAGE))
        return Success(admin_token.access_token)

    async def register(self, request: RegisterRequest) -> Result[None]:
        """Create the remote account, mirror it locally, then send the email.

        Args:
            request: Registration details

        Returns:
            Success(None), or the first failing step's Failure. A failed
            confirmation email does not fail the registration.
        """
        admin = await self._admin_token()
        created = await admin.abind(
            lambda token: self.provider.create_remote_user(
                token,
                email=request.email,
                first_name=request.first_name,
                last_name=request.last_name,
                password=request.password,
            )
        )
        mirrored = await created.abind(lambda ref: self._mirror_new_user(ref, request))
        result = await mirrored.abind(self._dispatch_confirmation)

        if isinstance(result, Failure):
            log_failure(logger, "registration_failed", result.error, email=request.email)
            return result

        logger.info(
            "user_registered",
            user_id=str(result.value.id),
            provider_id=result.value.provider_id,
        )
        return Success(None)

    async def _mirror_new_user(self, ref: RemoteUserRef, request: RegisterRequest) -> Result[User]:
        user = User(
            provider_id=ref.id,
            username=request.email,
            first_name=request.first_name,
            last_name=request.last_name,
            email=request.email,
            is_enabled=True,
            is_email_confirmed=False,
            confirmation_token=generate_confirmation_token(),
        )
        staged = self.store.add(user)
        committed = await staged.abind(lambda _: self.store.commit())

        if isinstance(committed, Failure):
            log_failure(
                logger,
                "inconsistency_window_remote_user_without_local_mirror",
                committed.error,
                level="error",
                provider_id=ref.id,
                email=request.email,
            )
            return committed
        return Success(user)

    async def _dispatch_confirmation(self, user: User) -> Result[User]:
        sent = await self.email_service.send_confirmation_email(user)
        if isinstance(sent, Failure):
            # Registration stands even when the email is not sent
            log_failure(logger, "confirmation_email_failed", sent.error, user_id=str(user.id))
        return Success(user)

    async def get_users(self) -> Result[list[RemoteUserSummary]]:
        """List users as the identity provider knows them."""
        admin = await self._admin_token()
        result = await admin.abind(self.provider.list_remote_users)
        if isinstance(result, Failure):
            log_failure(logger, "remote_user_listing_failed", result.error)
        return result

    async def confirm_user(self, confirmation_token: str) -> Result[User]:
        """Consume a confirmation token.

        Stages, each gated on the previous one:

        1. Resolve the token to a pending local user. An unknown token is
           terminal and the provider is never contacted.
        2. Mark the email verified on the provider. On failure the local
           record and its token are untouched, so the same token may be
           retried.
        3. Confirm locally (token cleared) and commit.

        Args:
            confirmation_token: Token from the confirmation email

        Returns:
            Success with the confirmed user, or the failing stage's Failure
        """
        found = await self.store.get_by_confirmation_token(confirmation_token)
        verified = await found.abind(self._verify_remote_email)
        result = await verified.abind(self._apply_confirmation)

        if isinstance(result, Failure):
            log_failure(logger, "user_confirmation_failed", result.error)
            return result

        logger.info(
            "user_confirmed",
            user_id=str(result.value.id),
            provider_id=result.value.provider_id,
        )
        return result

    async def _verify_remote_email(self, user: User) -> Result[User]:
        admin = await self._admin_token()
        marked = await admin.abind(
            lambda token: self.provider.mark_email_verified(token, user.provider_id)
        )
        return marked.map(lambda _: user)

    async def _apply_confirmation(self, user: User) -> Result[User]:
        staged = self.store.update(user.confirm_email())
        committed = await staged.abind(lambda _: self.store.commit())

        if isinstance(committed, Failure):
            log_failure(
                logger,
                "inconsistency_window_remote_verified_local_pending",
                committed.error,
                level="error",
                user_id=str(user.id),
                provider_id=user.provider_id,
            )
            return committed
        return Success(user)

    async def set_user_enabled(self, provider_id: str, enabled: bool) -> Result[User]:
        """Enable or disable a user's local mirror record."""
        found = await self.store.get_by_provider_id(provider_id)
        staged = found.bind(lambda user: self.store.update(user.set_is_enabled(enabled)))
        result = await staged.abind(self._commit_returning)
        if isinstance(result, Failure):
            log_failure(logger, "user_enablement_failed", result.error, provider_id=provider_id)
        else:
            logger.info("user_enablement_changed", provider_id=provider_id, enabled=enabled)
        return result

    async def _commit_returning(self, user: User) -> Result[User]:
        committed = await self.store.commit()
        return committed.map(lambda _: user)

    async def list_local_users(self) -> Result[list[User]]:
        """List local mirror records."""
        return await self.store.list_all()
