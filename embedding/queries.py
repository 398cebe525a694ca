"""
Parameterized statements for the embeddings table.

Every builder returns a :class:`Statement` (SQL text plus positional
parameters in asyncpg ``$n`` style); nothing here touches a connection.
Vectors are bound as pgvector text literals produced by
:func:`encode_vector` and cast server side with ``$n::text::vector`` so the
statements work whether or not a binary vector codec is registered on the
connection.
"""

from __future__ import annotations

from typing import Any, List, NamedTuple, Optional, Sequence, Tuple

from pgvector import Vector

from embedding.records import DeleteFilter, EmbeddingRecord

DEFAULT_TABLE = "kb_embeddings"


class Statement(NamedTuple):
    sql: str
    params: Tuple[Any, ...] = ()


def encode_vector(values: Sequence[float]) -> str:
    """Encode *values* as a pgvector literal, e.g. ``[1.0,0.0]``."""
    return Vector(list(values)).to_text()


def _quote_ident(identifier: str) -> str:
    """Safely quote a PostgreSQL identifier."""

    return '"' + identifier.replace('"', '""') + '"'


def quote_table(name: str) -> str:
    """Quote a table name, optionally schema-qualified as ``schema.table``."""
    parts = [part.strip() for part in (name or "").split(".")]
    if not 1 <= len(parts) <= 2 or not all(parts):
        raise ValueError(f"invalid table name {name!r}")
    return ".".join(_quote_ident(part) for part in parts)


def _index_name(table: str, suffix: str) -> str:
    base = table.split(".")[-1].strip()
    return _quote_ident(f"{base}_{suffix}")


def insert_embedding(table: str, record: EmbeddingRecord) -> Statement:
    sql = (
        f"INSERT INTO {quote_table(table)} "
        "(chunk_id, knowledgebase_id, embedding, data_store_type, updated_at) "
        "VALUES ($1, $2, $3::text::vector, $4, $5)"
    )
    data_store_type = record.data_store_type.value if record.data_store_type else None
    return Statement(
        sql,
        (
            record.chunk_id,
            record.knowledgebase_id,
            encode_vector(record.embedding),
            data_store_type,
            record.updated_at,
        ),
    )


def top_n_by_cosine(
    table: str,
    query_vector: Sequence[float],
    knowledgebase_id: str,
    n: int,
) -> Statement:
    # Equal similarities are ordered by chunk_id.
    sql = f"""
        SELECT chunk_id, 1 - (embedding <=> $1::text::vector) AS similarity
        FROM {quote_table(table)}
        WHERE knowledgebase_id = $2
        ORDER BY embedding <=> $1::text::vector ASC, chunk_id ASC
        LIMIT $3
    """
    return Statement(sql, (encode_vector(query_vector), knowledgebase_id, n))


def update_embedding(table: str, chunk_id: str, vector: Sequence[float]) -> Statement:
    sql = (
        f"UPDATE {quote_table(table)} "
        "SET embedding = $2::text::vector, updated_at = now() "
        "WHERE chunk_id = $1"
    )
    return Statement(sql, (chunk_id, encode_vector(vector)))


def delete_by_filter(table: str, criteria: DeleteFilter) -> Statement:
    if criteria.data_store_type is None:
        return Statement(
            f"DELETE FROM {quote_table(table)} WHERE knowledgebase_id = $1",
            (criteria.knowledgebase_id,),
        )
    return Statement(
        f"DELETE FROM {quote_table(table)} WHERE knowledgebase_id = $1 AND data_store_type = $2",
        (criteria.knowledgebase_id, criteria.data_store_type.value),
    )


def delete_by_chunk_id(table: str, chunk_id: str) -> Statement:
    return Statement(f"DELETE FROM {quote_table(table)} WHERE chunk_id = $1", (chunk_id,))


def delete_by_chunk_ids(table: str, chunk_ids: Sequence[str]) -> Statement:
    return Statement(
        f"DELETE FROM {quote_table(table)} WHERE chunk_id = ANY($1::text[])",
        (list(chunk_ids),),
    )


CREATE_VECTOR_EXTENSION = Statement("CREATE EXTENSION IF NOT EXISTS vector")


def create_schema(table: str, dimension: Optional[int] = None) -> List[Statement]:
    """DDL for the embeddings table and its tenant indexes.

    No approximate (HNSW/IVFFlat) index is created: combined with the tenant
    filter it can return fewer than ``n`` rows, and top-N must be exact.
    """
    qualified = quote_table(table)
    column_type = f"vector({int(dimension)})" if dimension else "vector"

    return [
        Statement(f"""
            CREATE TABLE IF NOT EXISTS {qualified} (
                chunk_id TEXT PRIMARY KEY,
                knowledgebase_id TEXT NOT NULL,
                embedding {column_type} NOT NULL,
                data_store_type TEXT,
                created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
                updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
            )
        """),
        Statement(
            f"CREATE INDEX IF NOT EXISTS {_index_name(table, 'kb_idx')} "
            f"ON {qualified} (knowledgebase_id)"
        ),
        Statement(
            f"CREATE INDEX IF NOT EXISTS {_index_name(table, 'kb_type_idx')} "
            f"ON {qualified} (knowledgebase_id, data_store_type)"
        ),
    ]
