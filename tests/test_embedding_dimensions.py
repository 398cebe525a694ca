import numpy as np
import pytest

from utils import embedding_dimensions as dims


def test_normalize_vector_returns_plain_floats():
    result = dims.normalize_vector(np.array([1, 2, 3], dtype=np.int32), 3)

    assert result == [1.0, 2.0, 3.0]
    assert all(type(value) is float for value in result)


@pytest.mark.parametrize(
    "vector, dimension, message",
    [
        ([], None, "empty"),
        ([1.0, 2.0], 3, "expected 3"),
        ([0.0, 0.0, 0.0], None, "zero norm"),
        ([1.0, float("nan")], None, "NaN"),
        ([[1.0], [2.0]], None, "one-dimensional"),
        (["a", "b"], None, "sequence of numbers"),
        ([1e39, 1.0], None, "single precision"),
        ([1e-50, 1e-50], None, "zero norm"),
    ],
)
def test_normalize_vector_rejects(vector, dimension, message):
    with pytest.raises(ValueError, match=message):
        dims.normalize_vector(vector, dimension)
