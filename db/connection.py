# db/connection.py
"""
asyncpg connection pool lifecycle for the embedding store.

The pool is created once by the process entry point, handed explicitly to
the components that need it, and closed at shutdown.  Nothing here keeps a
module-level pool: callers own the handle.
"""

import os
import asyncio
import logging
from typing import Any, Dict, Optional

import asyncpg

from config import Config

logger = logging.getLogger(__name__)

DEFAULT_CLOSE_TIMEOUT = 10.0


def get_db_dsn(config: Config) -> str:
    """
    Get the database connection string (DSN).

    Config resolves DB_DSN first, then falls back to DATABASE_URL.

    Raises:
        EnvironmentError: If no DSN is configured
    """
    if not config.DB_DSN:
        logger.critical("Neither DB_DSN nor DATABASE_URL environment variables are set")
        raise EnvironmentError("Database DSN not configured in environment")
    return config.DB_DSN


def _server_settings() -> Dict[str, str]:
    # TCP keepalives stop idle pooled connections from being dropped by
    # firewalls and load balancers
    return {
        'application_name': f'kb_embeddings_{os.getpid()}',
        'jit': 'off',
        'tcp_keepalives_idle': '60',
        'tcp_keepalives_interval': '10',
        'tcp_keepalives_count': '5',
    }


async def create_pool(config: Config, *, max_retries: Optional[int] = None) -> asyncpg.Pool:
    """
    Create the connection pool with exponential backoff and a health check.

    Retries only cover process start-up; statements issued through the pool
    are never retried.

    Args:
        config: Loaded configuration
        max_retries: Overrides DB_POOL_CREATE_RETRIES

    Returns:
        Initialized asyncpg connection pool

    Raises:
        asyncpg.PostgresError / OSError / asyncio.TimeoutError: If pool
            creation still fails after all attempts
    """
    dsn = get_db_dsn(config)
    pool_config = config.pool_config()
    attempts = max(1, max_retries if max_retries is not None else config.DB_POOL_CREATE_RETRIES)

    for attempt in range(attempts):
        try:
            logger.info(
                f"Creating asyncpg pool (attempt {attempt + 1}/{attempts}), "
                f"min={pool_config['min_size']}, max={pool_config['max_size']}"
            )
            pool = await asyncio.wait_for(
                asyncpg.create_pool(
                    dsn=dsn,
                    statement_cache_size=0,  # pgbouncer (transaction mode) compatibility
                    server_settings=_server_settings(),
                    **pool_config,
                ),
                timeout=config.DB_POOL_CREATE_TIMEOUT,
            )

            try:
                async with pool.acquire() as conn:
                    result = await conn.fetchval("SELECT 1")
                if result != 1:
                    raise ConnectionError("Pool health check failed: SELECT 1 did not return 1")
            except BaseException:
                # A pool that failed its health check still holds min_size connections
                await close_pool(pool)
                raise

            logger.info(f"Pool creation successful on attempt {attempt + 1}")
            return pool

        except (asyncio.TimeoutError, asyncpg.PostgresError, OSError, ConnectionError) as e:
            logger.warning(
                f"Pool creation attempt {attempt + 1} failed: {e.__class__.__name__}: {e}"
            )
            if attempt < attempts - 1:
                wait_time = (2 ** attempt) * 2  # 2s, 4s, 8s...
                logger.info(f"Retrying in {wait_time} seconds...")
                await asyncio.sleep(wait_time)
            else:
                logger.error(f"Failed to create pool after {attempts} attempts")
                raise


async def close_pool(pool: Optional[Any], timeout: float = DEFAULT_CLOSE_TIMEOUT) -> None:
    """
    Close the pool gracefully, terminating it if a graceful close fails.

    Safe to call with ``None`` or an already closed pool.
    """
    if pool is None or getattr(pool, "_closed", False):
        return

    try:
        await asyncio.wait_for(pool.close(), timeout=timeout)
        logger.info("Database pool closed")
    except (asyncio.TimeoutError, AttributeError, asyncpg.InterfaceError) as e:
        # asyncpg can raise AttributeError on half-closed connections
        logger.warning(f"Graceful pool close failed ({e.__class__.__name__}: {e}); terminating")
        pool.terminate()
