# db/bootstrap.py
"""
One-time start-up steps for the vector store.

``ensure_vector_capability`` makes sure the pgvector extension exists.  It
never raises: if the extension cannot be created (missing privilege,
unreachable database, unsupported server) the failure is logged and the
process keeps running; vector statements then fail at call time with
``CapabilityMissingError`` until an operator enables the extension.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from embedding import queries
from embedding.errors import translate_store_errors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VectorCapabilityStatus:
    checked: bool = False
    available: bool = False


_status = VectorCapabilityStatus()


def vector_capability_status() -> VectorCapabilityStatus:
    """Outcome of the last ensure_vector_capability() call in this process."""
    return _status


async def ensure_vector_capability(pool: Any) -> bool:
    """
    Create the ``vector`` extension if it is absent.

    Idempotent; safe to run on every process start.

    Returns:
        True when the extension is available, False when it could not be
        ensured (the error is logged, not raised).
    """
    global _status

    try:
        async with pool.acquire() as conn:
            await conn.execute(queries.CREATE_VECTOR_EXTENSION.sql)
    except Exception as exc:
        logger.error(
            "Failed to initialize pgvector extension (%s: %s); "
            "vector queries will fail until it is enabled",
            exc.__class__.__name__,
            exc,
            exc_info=True,
        )
        _status = VectorCapabilityStatus(checked=True, available=False)
        return False

    logger.info("pgvector extension initialized successfully")
    _status = VectorCapabilityStatus(checked=True, available=True)
    return True


async def ensure_embeddings_table(
    pool: Any,
    table: str = queries.DEFAULT_TABLE,
    dimension: Optional[int] = None,
) -> None:
    """
    Create the embeddings table and its indexes if they do not exist.

    Intended for development databases (DB_SYNC_SCHEMA); production schemas
    are managed out of band. Failures propagate.
    """
    statements = queries.create_schema(table, dimension)
    with translate_store_errors("ensure_embeddings_table"):
        async with pool.acquire() as conn:
            async with conn.transaction():
                for statement in statements:
                    await conn.execute(statement.sql, *statement.params)
    logger.info(
        "Embeddings table %s ensured (dimension=%s)",
        table,
        dimension if dimension else "unconstrained",
    )
