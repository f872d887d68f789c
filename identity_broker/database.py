"""Postgres pool for the local user mirror, plus its schema bootstrap.

The pool is process-wide and opened by the application lifespan; user stores
borrow connections from it per request. Schema files ship inside the package
under ``migrations/`` and are applied in file-name order on startup.
"""

from pathlib import Path
from typing import Optional

import asyncpg
import structlog

from identity_broker.config import get_settings

logger = structlog.get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"
POOL_MIN_SIZE = 1
POOL_MAX_SIZE = 10
COMMAND_TIMEOUT_SECONDS = 30

_pool: Optional[asyncpg.Pool] = None


async def get_pool() -> asyncpg.Pool:
    """Return the open pool.

    Raises:
        RuntimeError: If the lifespan has not opened it (or it was closed)
    """
    if _pool is None:
        raise RuntimeError("User mirror database is not connected.")
    return _pool


async def init_database(dsn: Optional[str] = None) -> asyncpg.Pool:
    """Open the pool once; later calls return the same pool."""
    global _pool

    if _pool is None:
        _pool = await asyncpg.create_pool(
            dsn or get_settings().postgres_url,
            min_size=POOL_MIN_SIZE,
            max_size=POOL_MAX_SIZE,
            command_timeout=COMMAND_TIMEOUT_SECONDS,
        )
        logger.info("user_mirror_pool_opened", max_size=POOL_MAX_SIZE)
    return _pool


async def close_database() -> None:
    global _pool

    if _pool is None:
        return
    pool, _pool = _pool, None
    await pool.close()
    logger.info("user_mirror_pool_closed")


def _schema_files(migrations_dir: Path) -> list[Path]:
    if not migrations_dir.is_dir():
        return []
    return sorted(migrations_dir.glob("*.sql"))


async def run_migrations(migrations_dir: Path = MIGRATIONS_DIR) -> None:
    """Apply every ``*.sql`` file in ``migrations_dir``.

    Files are written to be re-runnable (``IF NOT EXISTS``), so this runs on
    every startup. A failing file aborts startup with the asyncpg error.
    """
    pool = await get_pool()
    files = _schema_files(migrations_dir)
    if not files:
        logger.warning("user_mirror_schema_missing", path=str(migrations_dir))
        return

    async with pool.acquire() as conn:
        for path in files:
            try:
                await conn.execute(path.read_text())
            except asyncpg.PostgresError as e:
                logger.error("user_mirror_schema_failed", file=path.name, error=str(e))
                raise
            logger.info("user_mirror_schema_applied", file=path.name)


async def health_check() -> bool:
    """True when a ``SELECT 1`` round-trip succeeds."""
    try:
        pool = await get_pool()
        async with pool.acquire() as conn:
            return await conn.fetchval("SELECT 1") == 1
    except (asyncpg.PostgresError, OSError, RuntimeError) as e:
        logger.error("user_mirror_unreachable", error=str(e))
        return False
