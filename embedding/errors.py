"""
Error taxonomy for the embedding store.

Store failures are translated from asyncpg exceptions into the classes below
so callers can decide on retries without depending on the driver. The
original driver exception is always chained as ``__cause__``.
"""

import asyncio
import logging
from contextlib import contextmanager
from typing import Iterator

import asyncpg

logger = logging.getLogger(__name__)


class EmbeddingStoreError(Exception):
    """Base class for all embedding store failures."""


class ConnectivityError(EmbeddingStoreError):
    """The store could not be reached or the request timed out."""


class ConflictError(EmbeddingStoreError):
    """An insert violated the chunk id uniqueness constraint."""


class CapabilityMissingError(EmbeddingStoreError):
    """The pgvector type or operators are not available in the database."""


class ValidationError(EmbeddingStoreError, ValueError):
    """Input was rejected before any statement reached the store."""


class QueryError(EmbeddingStoreError):
    """The store rejected a statement (e.g. mismatched vector dimensions)."""


_CONNECTIVITY_ERRORS = (
    OSError,
    asyncio.TimeoutError,
    asyncpg.exceptions.PostgresConnectionError,
    asyncpg.exceptions.CannotConnectNowError,
    asyncpg.exceptions.TooManyConnectionsError,
    asyncpg.exceptions.InterfaceError,
)

_CAPABILITY_ERRORS = (
    asyncpg.exceptions.UndefinedObjectError,
    asyncpg.exceptions.UndefinedFunctionError,
)


@contextmanager
def translate_store_errors(operation: str) -> Iterator[None]:
    """
    Re-raise asyncpg/transport failures raised inside the block as
    :class:`EmbeddingStoreError` subclasses.

    Args:
        operation: Short operation name used in the error message and logs.
    """
    try:
        yield
    except EmbeddingStoreError:
        raise
    except asyncpg.exceptions.UniqueViolationError as exc:
        logger.warning("%s rejected: duplicate chunk id (%s)", operation, exc)
        raise ConflictError(f"{operation}: chunk id already exists") from exc
    except _CAPABILITY_ERRORS as exc:
        logger.warning("%s failed: vector capability missing (%s)", operation, exc)
        raise CapabilityMissingError(
            f"{operation}: pgvector is not available in this database; "
            "run ensure_vector_capability() or CREATE EXTENSION vector"
        ) from exc
    except _CONNECTIVITY_ERRORS as exc:
        logger.warning("%s failed: store unreachable (%s: %s)", operation, exc.__class__.__name__, exc)
        raise ConnectivityError(f"{operation}: store unreachable: {exc}") from exc
    except asyncpg.exceptions.PostgresError as exc:
        logger.warning("%s rejected by the store: %s", operation, exc)
        raise QueryError(f"{operation}: {exc}") from exc
