"""
Data model for stored chunk embeddings.

Identifiers cross the boundary as external handles (24 character hex
strings, 12 byte values, or objects such as ``bson.ObjectId`` whose ``str()``
is the hex form) and are stored as lowercase hex text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from embedding.errors import ValidationError
from utils.embedding_dimensions import normalize_vector

_HEX_IDENTIFIER = re.compile(r"^[0-9a-f]{24}$")


class DataStoreType(str, Enum):
    """Category of the source a chunk was produced from."""
    WEBSITE = "website"
    DOCUMENT = "document"
    FAQ = "faq"
    TEXT = "text"
    CUSTOM = "custom"


def to_store_id(handle: Any, *, label: str = "identifier") -> str:
    """Translate an external identifier handle into the stored hex form."""
    if handle is None:
        raise ValidationError(f"{label} is required")

    if isinstance(handle, (bytes, bytearray)):
        if len(handle) != 12:
            raise ValidationError(f"{label} must be 12 bytes, got {len(handle)}")
        return bytes(handle).hex()

    text = str(handle).strip().lower()
    if not _HEX_IDENTIFIER.match(text):
        raise ValidationError(f"{label} must be a 24 character hex identifier, got {handle!r}")
    return text


def coerce_data_store_type(value: Union[DataStoreType, str, None]) -> Optional[DataStoreType]:
    if value is None:
        return None
    if isinstance(value, DataStoreType):
        return value
    if isinstance(value, str):
        try:
            return DataStoreType(value.strip().lower())
        except ValueError:
            pass
    allowed = ", ".join(member.value for member in DataStoreType)
    raise ValidationError(f"unknown data store type {value!r}; expected one of: {allowed}")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EmbeddingRecord(BaseModel):
    """One stored embedding: a chunk of one knowledge base."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    chunk_id: str
    knowledgebase_id: str
    embedding: List[float]
    data_store_type: Optional[DataStoreType] = None
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator("chunk_id", mode="before")
    @classmethod
    def _check_chunk_id(cls, value: Any) -> str:
        return to_store_id(value, label="chunk_id")

    @field_validator("knowledgebase_id", mode="before")
    @classmethod
    def _check_knowledgebase_id(cls, value: Any) -> str:
        return to_store_id(value, label="knowledgebase_id")

    @field_validator("embedding", mode="before")
    @classmethod
    def _check_embedding(cls, value: Any) -> List[float]:
        return normalize_vector(value, label="embedding")

    @field_validator("data_store_type", mode="before")
    @classmethod
    def _check_data_store_type(cls, value: Any) -> Optional[DataStoreType]:
        return coerce_data_store_type(value)

    @field_validator("updated_at")
    @classmethod
    def _ensure_aware(cls, value: datetime) -> datetime:
        # Naive timestamps are taken to be UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def dimension(self) -> int:
        return len(self.embedding)


@dataclass(frozen=True)
class DeleteFilter:
    """Tenant-scoped deletion criteria, optionally narrowed to one source type."""

    knowledgebase_id: str
    data_store_type: Optional[DataStoreType] = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "knowledgebase_id", to_store_id(self.knowledgebase_id, label="knowledgebase_id")
        )
        object.__setattr__(self, "data_store_type", coerce_data_store_type(self.data_store_type))


@dataclass(frozen=True)
class InsertResult:
    chunk_id: str
    row_count: int


@dataclass(frozen=True)
class TopChunk:
    """A ranked chunk: ``similarity`` is ``1 - cosine_distance`` in [-1, 1]."""

    chunk_id: str
    similarity: float

    def as_response(self) -> Dict[str, Any]:
        """Extended-JSON shape returned to API callers."""
        return {"chunkId": {"$oid": self.chunk_id}, "similarity": self.similarity}


__all__ = [
    "DataStoreType",
    "DeleteFilter",
    "EmbeddingRecord",
    "InsertResult",
    "TopChunk",
    "coerce_data_store_type",
    "to_store_id",
]
