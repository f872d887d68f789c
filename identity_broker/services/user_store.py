"""Local user mirror persistence with stage-then-commit semantics."""

from typing import Any, Optional, Protocol, runtime_checkable
from uuid import UUID

import asyncpg
import structlog

from identity_broker.database import get_pool
from identity_broker.models.errors import NotFoundError, PersistenceError
from identity_broker.models.result import Failure, Result, Success
from identity_broker.models.user import User

logger = structlog.get_logger(__name__)

USER_COLUMNS = (
    "id, provider_id, username, first_name, last_name, email, "
    "is_enabled, is_email_confirmed, confirmation_token"
)

DATABASE_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, RuntimeError)


@runtime_checkable
class UserStore(Protocol):
    """Persistence for local user mirror records.

    ``add``, ``update`` and ``delete`` only stage changes; nothing is durable
    until ``commit`` succeeds.
    """

    async def get_by_id(self, user_id: UUID) -> Result[User]:
        ...

    async def get_by_provider_id(self, provider_id: str) -> Result[User]:
        ...

    async def get_by_confirmation_token(self, token: str) -> Result[User]:
        ...

    def add(self, user: User) -> Result[User]:
        ...

    def update(self, user: User) -> Result[User]:
        ...

    def delete(self, user: User) -> Result[None]:
        ...

    async def list_all(self) -> Result[list[User]]:
        ...

    async def commit(self) -> Result[None]:
        ...


class _StaleUpdate(Exception):
    """An update matched no row; aborts the commit transaction."""


def _row_to_user(row: Any) -> User:
    return User(
        id=row["id"],
        provider_id=row["provider_id"],
        username=row["username"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        email=row["email"],
        is_enabled=row["is_enabled"],
        is_email_confirmed=row["is_email_confirmed"],
        confirmation_token=row["confirmation_token"],
    )


class PostgresUserStore:
    """asyncpg-backed user store acting as a request-scoped unit of work.

    Each instance keeps its own list of staged changes; create one per
    request. The connection pool underneath is shared.
    """

    def __init__(self):
        self._pending: list[tuple[str, User]] = []

    @property
    def pending_changes(self) -> int:
        """Number of staged, uncommitted changes."""
        return len(self._pending)

    async def _fetch_one(
        self, where: str, value: Any, not_found_message: str
    ) -> Result[User]:
        try:
            pool = await get_pool()
            async with pool.acquire() as conn:
                row = await conn.fetchrow(
                    f"SELECT {USER_COLUMNS} FROM users WHERE {where} = $1",
                    value,
                )
        except DATABASE_ERRORS as e:
            logger.error("user_lookup_failed", column=where, error=str(e))
            return Failure(PersistenceError("Failed to read users.", detail=str(e)))

        if row is None:
            return Failure(NotFoundError(not_found_message))
        return Success(_row_to_user(row))

    async def get_by_id(self, user_id: UUID) -> Result[User]:
        return await self._fetch_one("id", user_id, "User not found.")

    async def get_by_provider_id(self, provider_id: str) -> Result[User]:
        return await self._fetch_one("provider_id", provider_id, "User not found.")

    async def get_by_confirmation_token(self, token: str) -> Result[User]:
        return await self._fetch_one(
            "confirmation_token", token, "Invalid confirmation token."
        )

    def add(self, user: User) -> Result[User]:
        self._pending.append(("insert", user.model_copy()))
        return Success(user)

    def update(self, user: User) -> Result[User]:
        self._pending.append(("update", user.model_copy()))
        return Success(user)

    def delete(self, user: User) -> Result[None]:
        self._pending.append(("delete", user.model_copy()))
        return Success(None)

    async def list_all(self) -> Result[list[User]]:
        """Return all local users ordered by creation date."""
        try:
            pool = await get_pool()
            async with pool.acquire() as conn:
                rows = await conn.fetch(
                    f"SELECT {USER_COLUMNS} FROM users ORDER BY created_at ASC"
                )
        except DATABASE_ERRORS as e:
            logger.error("user_list_failed", error=str(e))
            return Failure(PersistenceError("Failed to read users.", detail=str(e)))

        return Success([_row_to_user(row) for row in rows])

    async def commit(self) -> Result[None]:
        """Write every staged change in a single transaction.

        Any error rolls the whole transaction back. Staged changes are
        discarded whether or not the commit succeeds.
        """
        pending, self._pending = self._pending, []
        if not pending:
            return Success(None)

        try:
            pool = await get_pool()
            async with pool.acquire() as conn:
                async with conn.transaction():
                    for operation, user in pending:
                        await self._apply(conn, operation, user)
        except (_StaleUpdate, *DATABASE_ERRORS) as e:
            logger.error("user_commit_failed", changes=len(pending), error=str(e))
            return Failure(PersistenceError("Failed to save changes.", detail=str(e)))

        logger.info("user_changes_committed", changes=len(pending))
        return Success(None)

    async def _apply(self, conn: Any, operation: str, user: User) -> None:
        if operation == "insert":
            await conn.execute(
                """
                INSERT INTO users (id, provider_id, username, first_name, last_name, email,
                                   is_enabled, is_email_confirmed, confirmation_token)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
                """,
                user.id,
                user.provider_id,
                user.username,
                user.first_name,
                user.last_name,
                user.email,
                user.is_enabled,
                user.is_email_confirmed,
                user.confirmation_token,
            )
        elif operation == "update":
            status: Optional[str] = await conn.execute(
                """
                UPDATE users
                SET provider_id = $2, username = $3, first_name = $4, last_name = $5,
                    email = $6, is_enabled = $7, is_email_confirmed = $8,
                    confirmation_token = $9, updated_at = NOW()
                WHERE id = $1
                """,
                user.id,
                user.provider_id,
                user.username,
                user.first_name,
                user.last_name,
                user.email,
                user.is_enabled,
                user.is_email_confirmed,
                user.confirmation_token,
            )
            if status == "UPDATE 0":
                raise _StaleUpdate(f"user {user.id} no longer exists")
        elif operation == "delete":
            await conn.execute("DELETE FROM users WHERE id = $1", user.id)
