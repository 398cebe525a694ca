"""Utility helpers for working with embedding dimensions.

This module centralises the checks applied to vectors before they are
written or queried.  Catching bad widths here avoids mismatches that
otherwise surface as pgvector "different vector dimensions" errors at
statement time.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np


def normalize_vector(
    vector: Sequence[float],
    dimension: Optional[int] = None,
    *,
    label: str = "vector",
) -> List[float]:
    """Check *vector* and return it as a plain list of floats.

    A vector must be one-dimensional, non-empty, finite and have a non-zero
    norm (cosine distance against a zero vector is undefined).  Finiteness
    and norm are also checked after the cast to float32, the precision
    pgvector stores.  When *dimension* is given the length must match
    exactly.

    Raises:
        ValueError: if any of the above does not hold.
    """

    try:
        data = np.asarray(vector, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{label} must be a sequence of numbers") from exc

    if data.ndim != 1:
        raise ValueError(f"{label} must be one-dimensional, got shape {data.shape}")
    if data.size == 0:
        raise ValueError(f"{label} must not be empty")
    if dimension is not None and data.size != dimension:
        raise ValueError(f"{label} has {data.size} dimensions, expected {dimension}")
    if not np.all(np.isfinite(data)):
        raise ValueError(f"{label} contains NaN or infinite values")

    # pgvector stores single precision components
    with np.errstate(over="ignore", under="ignore"):
        stored = data.astype(np.float32)
    if not np.all(np.isfinite(stored)):
        raise ValueError(f"{label} has values outside the single precision range")
    if not np.any(stored):
        raise ValueError(f"{label} has zero norm; cosine similarity is undefined")

    return data.tolist()


__all__ = ["normalize_vector"]
