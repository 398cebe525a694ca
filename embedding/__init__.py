"""
Embedding Package

This package stores chunk embeddings per knowledge base in PostgreSQL and
answers cosine-similarity top-N queries through pgvector.
"""

from embedding.errors import (
    CapabilityMissingError,
    ConflictError,
    ConnectivityError,
    EmbeddingStoreError,
    QueryError,
    ValidationError,
)
from embedding.queries import encode_vector
from embedding.records import DataStoreType, DeleteFilter, EmbeddingRecord, InsertResult, TopChunk
from embedding.store import EmbeddingStore

__all__ = [
    'CapabilityMissingError',
    'ConflictError',
    'ConnectivityError',
    'DataStoreType',
    'DeleteFilter',
    'EmbeddingRecord',
    'EmbeddingStore',
    'EmbeddingStoreError',
    'InsertResult',
    'QueryError',
    'TopChunk',
    'ValidationError',
    'encode_vector',
]
