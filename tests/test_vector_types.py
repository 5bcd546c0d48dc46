"""
Vector value tests - casting into and out of the document value model.
"""

import array
import json

import numpy as np
import pytest

from docvec.core.errors import DimensionError, VectorTypeError
from docvec.core.values import UNDEFINED
from docvec.vector.types import NearHit, Vector, as_vector, try_extract


class TestVectorConstruction:
    """Accepted input shapes."""

    def test_from_list(self):
        v = Vector([1.0, 0.5, -2.0])
        assert v.dimension == 3
        assert v.to_list() == [1.0, 0.5, -2.0]

    def test_from_ints(self):
        v = Vector([1, 2, 3])
        assert v.components == (1.0, 2.0, 3.0)

    def test_from_tuple_and_array_module(self):
        assert Vector((0.25, 0.75)) == Vector(array.array("d", [0.25, 0.75]))

    def test_from_numpy(self):
        v = Vector(np.array([1.5, 2.5], dtype=np.float64))
        assert v.to_list() == [1.5, 2.5]
        assert v.to_array().dtype == np.float32

    def test_from_bracketed_string(self):
        assert Vector("[1.0, 0.0]") == Vector([1.0, 0.0])
        assert Vector("  [0.5,0.25] ") == Vector([0.5, 0.25])

    def test_from_value_returns_same_vector(self):
        v = Vector([1.0])
        assert Vector.from_value(v) is v

    def test_round_trip_is_lossless_for_float32_values(self):
        values = [0.5, -1.25, 3.0, 1024.0, 0.125]
        assert Vector(Vector(values).to_list()).to_list() == values


class TestVectorRejection:
    """Invalid inputs fail at construction."""

    def test_empty_raises_dimension_error(self):
        with pytest.raises(DimensionError):
            Vector([])

    def test_empty_string_array_raises_dimension_error(self):
        with pytest.raises(DimensionError):
            Vector("[]")

    @pytest.mark.parametrize("value", [
        [1.0, "x"],
        [1.0, None],
        [True, 0.0],
        [[1.0], [2.0]],
        {"a": 1.0},
        "not a vector",
        "[1, 2",
        42,
        b"\x00\x01",
    ])
    def test_non_numeric_raises_type_error(self, value):
        with pytest.raises(VectorTypeError):
            Vector(value)

    def test_two_dimensional_array_rejected(self):
        with pytest.raises(VectorTypeError):
            Vector(np.ones((2, 2)))

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), 1e300])
    def test_non_finite_rejected(self, bad):
        with pytest.raises(VectorTypeError):
            Vector([1.0, bad])

    def test_integer_too_large_for_float_rejected(self):
        with pytest.raises(VectorTypeError):
            Vector([1, 10 ** 400])

    def test_vector_type_error_is_a_type_error(self):
        with pytest.raises(TypeError):
            Vector(["a"])


class TestVectorValueSemantics:

    def test_immutable_components(self):
        v = Vector([1.0, 2.0])
        copy = v.to_array()
        copy[0] = 99.0
        assert v.to_list() == [1.0, 2.0]

    def test_equality_and_hash(self):
        a = Vector([1.0, 2.0])
        b = Vector(np.array([1.0, 2.0]))
        assert a == b
        assert hash(a) == hash(b)
        assert len({a, b}) == 1
        assert a != Vector([2.0, 1.0])

    def test_len_and_iter(self):
        v = Vector([3.0, 4.0])
        assert len(v) == 2
        assert list(v) == [3.0, 4.0]

    def test_repr_truncates_long_vectors(self):
        assert "dimension=16" in repr(Vector(np.arange(16)))


class TestOptionalConversion:

    def test_as_vector_returns_none_for_non_vectors(self):
        assert as_vector(UNDEFINED) is None
        assert as_vector(None) is None
        assert as_vector("hello") is None
        assert as_vector([]) is None
        assert as_vector(["a", "b"]) is None

    def test_as_vector_converts(self):
        assert as_vector([1, 0]) == Vector([1.0, 0.0])

    def test_try_extract_nested_paths(self):
        doc = {"chunks": [{"embedding": [0.5, 0.5]}], "meta": {"vec": "[1, 2]"}}
        assert try_extract(doc, "chunks.0.embedding") == Vector([0.5, 0.5])
        assert try_extract(doc, "meta.vec") == Vector([1.0, 2.0])
        assert try_extract(doc, "chunks.1.embedding") is None
        assert try_extract(doc, "missing") is None

    def test_oversized_integer_is_not_a_vector(self):
        doc = json.loads('{"embedding": [1, 1' + "0" * 400 + ']}')
        assert try_extract(doc, "embedding") is None

    def test_near_hit_id(self):
        hit = NearHit(document={"_id": "abc", "x": 1}, distance=0.5)
        assert hit.id == "abc"
        assert hit.distance == 0.5
