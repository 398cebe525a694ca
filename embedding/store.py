"""
Knowledge-base embedding store backed by PostgreSQL + pgvector.

The store is constructed once with an explicit asyncpg pool handle; the pool
is owned by the caller (see ``main.embedding_store_lifespan``).  Every public
method is a single stateless statement: no in-process locking, no retries and
no timeouts beyond the pool's own ``command_timeout``.
"""

from __future__ import annotations

import logging
import numbers
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Union

import asyncpg
import pydantic

from embedding import queries
from embedding.errors import ValidationError, translate_store_errors
from embedding.queries import Statement
from embedding.records import (
    DataStoreType,
    DeleteFilter,
    EmbeddingRecord,
    InsertResult,
    TopChunk,
    to_store_id,
)
from utils.embedding_dimensions import normalize_vector

logger = logging.getLogger(__name__)


def _affected_rows(status: Optional[str]) -> int:
    """Parse the row count out of a command tag such as ``DELETE 3``."""
    if not status:
        return 0
    try:
        return int(status.rsplit(" ", 1)[-1])
    except ValueError:
        return 0


class EmbeddingStore:
    """
    Insert, update, delete and rank chunk embeddings, scoped by knowledge base.

    Args:
        pool: An initialised asyncpg pool (anything exposing ``acquire()``).
        table: Embeddings table, optionally schema-qualified.
        dimension: Expected vector width. When set, vectors are checked before
            any statement is sent; otherwise the store's column type decides.
    """

    def __init__(
        self,
        pool: asyncpg.Pool,
        *,
        table: str = queries.DEFAULT_TABLE,
        dimension: Optional[int] = None,
    ):
        if dimension is not None and dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")
        queries.quote_table(table)
        self._pool = pool
        self.table = table
        self.dimension = dimension

    def __repr__(self) -> str:
        return f"EmbeddingStore(table={self.table!r}, dimension={self.dimension!r})"

    # ------------------------------------------------------------------
    # Statement execution
    # ------------------------------------------------------------------

    async def _execute(self, operation: str, statement: Statement) -> int:
        with translate_store_errors(operation):
            async with self._pool.acquire() as conn:
                status = await conn.execute(statement.sql, *statement.params)
        return _affected_rows(status)

    async def _fetch(self, operation: str, statement: Statement) -> List[Any]:
        with translate_store_errors(operation):
            async with self._pool.acquire() as conn:
                return await conn.fetch(statement.sql, *statement.params)

    def _check_vector(self, vector: Sequence[float], label: str) -> List[float]:
        try:
            return normalize_vector(vector, self.dimension, label=label)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def insert(self, record: Union[EmbeddingRecord, Mapping[str, Any]]) -> InsertResult:
        """
        Insert a new embedding row.

        A mapping is validated into an :class:`EmbeddingRecord` first.

        Raises:
            ConflictError: if the chunk id is already stored.
            ConnectivityError: if the store cannot be reached.
        """
        if not isinstance(record, EmbeddingRecord):
            try:
                record = EmbeddingRecord.model_validate(record)
            except pydantic.ValidationError as exc:
                raise ValidationError(f"invalid embedding record: {exc}") from exc

        if self.dimension is not None and record.dimension != self.dimension:
            raise ValidationError(
                f"embedding has {record.dimension} dimensions, expected {self.dimension}"
            )

        row_count = await self._execute("insert", queries.insert_embedding(self.table, record))
        logger.debug(
            "Inserted embedding for chunk %s (kb=%s, type=%s)",
            record.chunk_id,
            record.knowledgebase_id,
            record.data_store_type.value if record.data_store_type else None,
        )
        return InsertResult(chunk_id=record.chunk_id, row_count=row_count)

    async def top_n(
        self,
        query_vector: Sequence[float],
        knowledgebase_id: Any,
        n: int,
    ) -> List[TopChunk]:
        """
        Return up to ``n`` chunks of one knowledge base, most similar first.

        Similarity is ``1 - cosine_distance`` as computed by pgvector's ``<=>``
        operator, so it lies in [-1, 1]. Ties are ordered by chunk id.
        An unknown or empty knowledge base yields an empty list.
        """
        if isinstance(n, bool) or not isinstance(n, numbers.Integral) or n < 1:
            raise ValidationError(f"n must be a positive integer, got {n!r}")
        n = int(n)
        vector = self._check_vector(query_vector, "query vector")
        kb_id = to_store_id(knowledgebase_id, label="knowledgebase_id")

        rows = await self._fetch("top_n", queries.top_n_by_cosine(self.table, vector, kb_id, n))
        top_chunks = [
            TopChunk(chunk_id=row["chunk_id"], similarity=float(row["similarity"]))
            for row in rows
        ]
        logger.debug("top_n(kb=%s, n=%d) returned %d chunks", kb_id, n, len(top_chunks))
        return top_chunks

    async def update_vector(self, chunk_id: Any, new_vector: Sequence[float]) -> int:
        """
        Replace the embedding of one chunk and refresh ``updated_at``.

        An unknown chunk id affects zero rows and is not an error.

        Returns:
            Number of rows updated (0 or 1)
        """
        store_id = to_store_id(chunk_id, label="chunk_id")
        vector = self._check_vector(new_vector, "embedding")

        updated = await self._execute(
            "update_vector", queries.update_embedding(self.table, store_id, vector)
        )
        if not updated:
            logger.debug("update_vector: no embedding stored for chunk %s", store_id)
        return updated

    async def delete_by_tenant(
        self,
        knowledgebase_id: Any,
        data_store_type: Union[DataStoreType, str, None] = None,
    ) -> int:
        """Delete every embedding of a knowledge base, optionally only one source type."""
        return await self.delete_matching(DeleteFilter(knowledgebase_id, data_store_type))

    async def delete_matching(self, criteria: DeleteFilter) -> int:
        """Delete the embeddings selected by a tenant-scoped filter."""
        deleted = await self._execute("delete_by_tenant", queries.delete_by_filter(self.table, criteria))
        logger.info(
            "Deleted %d embeddings for kb=%s type=%s",
            deleted,
            criteria.knowledgebase_id,
            criteria.data_store_type.value if criteria.data_store_type else "*",
        )
        return deleted

    async def delete_by_chunk_id(self, chunk_id: Any) -> int:
        """Delete the embedding of one chunk; deleting a missing chunk is a no-op."""
        store_id = to_store_id(chunk_id, label="chunk_id")
        return await self._execute("delete_by_chunk_id", queries.delete_by_chunk_id(self.table, store_id))

    async def delete_by_chunk_ids_bulk(self, chunk_ids: Iterable[Any]) -> int:
        """
        Delete the embeddings of many chunks in one statement.

        Ids that are not stored are skipped silently; an empty input does not
        reach the store.
        """
        store_ids = sorted({to_store_id(chunk_id, label="chunk_id") for chunk_id in chunk_ids})
        if not store_ids:
            return 0

        deleted = await self._execute(
            "delete_by_chunk_ids_bulk", queries.delete_by_chunk_ids(self.table, store_ids)
        )
        logger.info("Bulk delete removed %d of %d requested embeddings", deleted, len(store_ids))
        return deleted


__all__ = ["EmbeddingStore"]
