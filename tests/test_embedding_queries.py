import pytest

from embedding import queries
from embedding.records import DataStoreType, DeleteFilter, EmbeddingRecord

CHUNK = "64b7f0c2a1e4d3b2c1a09f8e"
KB = "64b7f0c2a1e4d3b2c1a00001"


def test_encode_vector_produces_pgvector_literal():
    assert queries.encode_vector([1, 0]) == "[1.0,0.0]"
    assert queries.encode_vector((0.5, -2.0, 0.25)) == "[0.5,-2.0,0.25]"


def test_encode_vector_rejects_nested_input():
    with pytest.raises(ValueError):
        queries.encode_vector([[1.0, 0.0], [0.0, 1.0]])


def test_quote_table_handles_schema_and_quotes():
    assert queries.quote_table("kb_embeddings") == '"kb_embeddings"'
    assert queries.quote_table("search.kb_embeddings") == '"search"."kb_embeddings"'
    assert queries.quote_table('odd"name') == '"odd""name"'

    for bad in ("", "a.b.c", "schema."):
        with pytest.raises(ValueError):
            queries.quote_table(bad)


def test_insert_statement_binds_encoded_vector():
    record = EmbeddingRecord(
        chunk_id=CHUNK,
        knowledgebase_id=KB,
        embedding=[1.0, 0.0],
        data_store_type="faq",
    )

    statement = queries.insert_embedding("kb_embeddings", record)

    assert statement.sql.startswith('INSERT INTO "kb_embeddings"')
    assert "$3::text::vector" in statement.sql
    assert statement.params[:4] == (CHUNK, KB, "[1.0,0.0]", "faq")
    assert statement.params[4] == record.updated_at


def test_top_n_statement_orders_by_distance_then_chunk_id():
    statement = queries.top_n_by_cosine("kb_embeddings", [0.0, 1.0], KB, 5)

    assert "1 - (embedding <=> $1::text::vector) AS similarity" in statement.sql
    assert "WHERE knowledgebase_id = $2" in statement.sql
    assert "ORDER BY embedding <=> $1::text::vector ASC, chunk_id ASC" in statement.sql
    assert "LIMIT $3" in statement.sql
    assert statement.params == ("[0.0,1.0]", KB, 5)


def test_update_statement_refreshes_timestamp():
    statement = queries.update_embedding("kb_embeddings", CHUNK, [0.5, 0.5])

    assert "updated_at = now()" in statement.sql
    assert "WHERE chunk_id = $1" in statement.sql
    assert statement.params == (CHUNK, "[0.5,0.5]")


def test_delete_by_filter_narrows_only_when_type_given():
    tenant_only = queries.delete_by_filter("kb_embeddings", DeleteFilter(KB))
    narrowed = queries.delete_by_filter("kb_embeddings", DeleteFilter(KB, DataStoreType.WEBSITE))

    assert "data_store_type" not in tenant_only.sql
    assert tenant_only.params == (KB,)
    assert "AND data_store_type = $2" in narrowed.sql
    assert narrowed.params == (KB, "website")


def test_bulk_delete_uses_array_parameter():
    statement = queries.delete_by_chunk_ids("kb_embeddings", [CHUNK, KB])

    assert "chunk_id = ANY($1::text[])" in statement.sql
    assert statement.params == ([CHUNK, KB],)


def test_create_schema_uses_fixed_width_when_known():
    unconstrained = queries.create_schema("kb_embeddings")
    fixed = queries.create_schema("search.kb_embeddings", dimension=1536)

    assert "embedding vector NOT NULL" in unconstrained[0].sql
    assert "embedding vector(1536) NOT NULL" in fixed[0].sql
    assert 'CREATE TABLE IF NOT EXISTS "search"."kb_embeddings"' in fixed[0].sql
    assert '"kb_embeddings_kb_idx"' in fixed[1].sql
    assert '"kb_embeddings_kb_type_idx"' in fixed[2].sql
    assert all("hnsw" not in statement.sql for statement in fixed)
