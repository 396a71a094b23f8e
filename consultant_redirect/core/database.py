"""
Async PostgreSQL connection pool module.

This module owns the single asyncpg connection pool shared by every request.
The roster, lead-activity and redirect-log tables all live in the back-office
PostgreSQL database, so this pool is the only shared resource the service holds.

Key Components:
- Global connection pool singleton (_pool)
- init_db(): Initialize the connection pool at application startup
- get_db_pool(): Get the pool instance (initializes if needed)
- close_db(): Gracefully close the pool at application shutdown

Connection Pool Configuration:
- min_size / max_size: from DB_POOL_MIN_SIZE / DB_POOL_MAX_SIZE (2 / 10)
- command_timeout: 30 seconds (query timeout)

Usage:
    # At application startup (in FastAPI lifespan)
    await init_db()

    # In stores
    pool = await get_db_pool()
    async with pool.acquire() as conn:
        rows = await conn.fetch("SELECT * FROM consultores_redirect")

    # At application shutdown
    await close_db()
"""

import logging
from typing import Optional

import asyncpg
from asyncpg import Pool

from consultant_redirect.core.config import get_settings
from consultant_redirect.core.exceptions import StoreUnavailable


logger = logging.getLogger(__name__)

# Requests are short-lived; a query running longer than this is stuck.
COMMAND_TIMEOUT_SECONDS: int = 30


# Global connection pool instance - None until init_db() is called
_pool: Optional[Pool] = None


async def init_db() -> Pool:
    """
    Initialize the database connection pool.

    Idempotent: if the pool already exists it is returned unchanged.

    Returns:
        Pool: The asyncpg connection pool instance.

    Raises:
        StoreUnavailable: If the database cannot be reached or rejects the
            credentials. The original asyncpg/OS error is chained.
    """
    global _pool

    if _pool is None:
        settings = get_settings()
        try:
            _pool = await asyncpg.create_pool(
                dsn=settings.database_url,
                min_size=settings.db_pool_min_size,
                max_size=settings.db_pool_max_size,
                command_timeout=COMMAND_TIMEOUT_SECONDS,
            )
        except (OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as e:
            logger.error(f"Could not create database pool: {e}")
            raise StoreUnavailable() from e

    return _pool


async def get_db_pool() -> Pool:
    """
    Get the database connection pool, initializing if needed.

    Prefer calling init_db() at startup; lazy initialization adds latency
    to the first request.

    Returns:
        Pool: The asyncpg connection pool instance.

    Raises:
        StoreUnavailable: If lazy initialization fails.
    """
    if _pool is None:
        await init_db()

    assert _pool is not None, "Pool should be initialized after init_db()"

    return _pool


async def close_db() -> None:
    """
    Close the database connection pool gracefully.

    Waits for acquired connections to be released. Calling it when the pool
    is not initialized has no effect.
    """
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
