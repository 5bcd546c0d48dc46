"""
Near-filter and top-k selector tests, cross-checked against brute force.
"""

import numpy as np
import pytest

from docvec.core.errors import DimensionMismatchError, VectorTypeError
from docvec.core.values import UNDEFINED
from docvec.vector.distance import cosine_distance
from docvec.vector.near import (
    DistanceKey,
    TopKSelector,
    near_filter,
    rank_near,
    select_top_k,
    top_k_near,
)
from docvec.vector.types import Vector


def ids(documents):
    return [doc["_id"] for doc in documents]


class TestNearFilter:

    def test_threshold_below_diagonal(self, sample_docs):
        # doc 3 sits at 1 - 1/sqrt(2) ~= 0.2929
        assert ids(near_filter(sample_docs, "embedding", [1.0, 0.0], 0.25)) == ["1"]

    def test_threshold_above_diagonal(self, sample_docs):
        assert ids(near_filter(sample_docs, "embedding", [1.0, 0.0], 0.3)) == ["1", "3"]

    def test_boundary_is_inclusive(self, sample_docs):
        assert ids(near_filter(sample_docs, "embedding", [1.0, 0.0], 1.0)) == ["1", "2", "3"]

    def test_preserves_scan_order(self):
        docs = [{"_id": str(i), "v": [1.0, float(i) / 100]} for i in range(10, 0, -1)]
        assert ids(near_filter(docs, "v", [1.0, 0.0], 0.5)) == [str(i) for i in range(10, 0, -1)]

    def test_absent_and_invalid_fields_skipped(self, sample_docs):
        docs = sample_docs + [
            {"_id": "4"},
            {"_id": "5", "embedding": "no"},
            {"_id": "6", "embedding": []},
        ]
        assert ids(near_filter(docs, "embedding", [1.0, 0.0], 2.0)) == ["1", "2", "3"]

    def test_oversized_component_skipped(self, sample_docs):
        docs = sample_docs + [{"_id": "4", "embedding": [1, 10 ** 400]}]
        assert ids(near_filter(docs, "embedding", [1.0, 0.0], 2.0)) == ["1", "2", "3"]

    def test_dimension_mismatch_aborts(self, sample_docs):
        with pytest.raises(DimensionMismatchError):
            list(near_filter(sample_docs, "embedding", [1.0, 0.0, 0.0], 0.3))

    def test_target_validated_before_scan(self):
        pulled = []

        def source():
            pulled.append(1)
            yield {"embedding": [1.0]}

        with pytest.raises(VectorTypeError):
            near_filter(source(), "embedding", ["x"], 0.3)
        assert pulled == []

    def test_is_lazy(self):
        pulled = []

        def source():
            for i in range(100):
                pulled.append(i)
                yield {"_id": i, "e": [1.0, 0.0]}

        first = next(near_filter(source(), "e", [1.0, 0.0], 0.1))
        assert first["_id"] == 0
        assert pulled == [0]


class TestTopKSelector:

    def test_keeps_smallest(self):
        selector = TopKSelector(3)
        for key in [5, 1, 4, 2, 3, 0]:
            selector.offer(key, f"item{key}")
        assert selector.drain() == [(0, "item0"), (1, "item1"), (2, "item2")]

    def test_bounded_size(self):
        selector = TopKSelector(2)
        for key in range(100):
            selector.offer(100 - key, key)
            assert len(selector) <= 2
        assert selector.peek_max() == 2

    def test_ties_keep_earliest(self):
        selector = TopKSelector(2)
        assert selector.offer(1.0, "a")
        assert selector.offer(1.0, "b")
        assert not selector.offer(1.0, "c")
        assert selector.drain() == [(1.0, "a"), (1.0, "b")]

    def test_ties_order_by_encounter(self):
        selector = TopKSelector(5)
        for item, key in [("x", 2.0), ("y", 1.0), ("z", 2.0), ("w", 1.0)]:
            selector.offer(key, item)
        assert [item for _, item in selector.drain()] == ["y", "w", "x", "z"]

    def test_zero_capacity(self):
        selector = TopKSelector(0)
        assert not selector.offer(1.0, "a")
        assert selector.drain() == []
        assert selector.peek_max() is UNDEFINED


class TestSelectTopK:

    def test_k_zero_does_not_consume(self):
        def source():
            raise AssertionError("source should not be pulled")
            yield

        assert select_top_k(source(), lambda x: x, 0) == []
        assert select_top_k([3, 1], lambda x: x, -1) == []

    def test_skips_undefined_keys(self):
        items = [{"v": 3}, {}, {"v": 1}]
        result = select_top_k(items, lambda d: d.get("v", UNDEFINED), 5)
        assert [item for _, item in result] == [{"v": 1}, {"v": 3}]

    def test_matches_brute_force_with_ties(self):
        rng = np.random.default_rng(3)
        keys = rng.integers(0, 20, size=500).tolist()
        items = list(enumerate(keys))
        for k in (1, 5, 37, 500, 600):
            expected = sorted(items, key=lambda pair: (pair[1], pair[0]))[:k]
            result = select_top_k(items, lambda pair: pair[1], k)
            assert [item for _, item in result] == expected


class TestTopKNear:

    def test_example(self, sample_docs):
        assert ids(top_k_near(sample_docs, "embedding", [1.0, 0.0], 2)) == ["1", "3"]

    def test_k_zero(self, sample_docs):
        assert list(top_k_near(sample_docs, "embedding", [1.0, 0.0], 0)) == []

    def test_k_larger_than_candidates(self, sample_docs):
        docs = sample_docs + [{"_id": "4", "title": "no vector"}]
        assert ids(top_k_near(docs, "embedding", [1.0, 0.0], 10)) == ["1", "3", "2"]

    def test_oversized_component_skipped(self, sample_docs):
        docs = [sample_docs[0], {"_id": "bad", "embedding": [1, 10 ** 400]}]
        assert ids(top_k_near(docs, "embedding", [1.0, 0.0], 5)) == ["1"]

    def test_dimension_mismatch(self, sample_docs):
        with pytest.raises(DimensionMismatchError):
            list(top_k_near(sample_docs, "embedding", [1.0, 0.0, 0.0], 2))

    def test_matches_brute_force(self):
        rng = np.random.default_rng(42)
        vectors = rng.normal(size=(300, 12)).astype(np.float32)
        # duplicated rows create exact distance ties
        vectors[150:] = vectors[:150]
        docs = [{"_id": i, "embedding": row.tolist()} for i, row in enumerate(vectors)]
        target = Vector(rng.normal(size=12))

        distances = [cosine_distance(Vector(row), target) for row in vectors]
        expected = sorted(range(len(docs)), key=lambda i: (distances[i], i))[:25]

        assert ids(top_k_near(docs, "embedding", target, 25)) == expected


class TestRankNear:

    def test_returns_hits_with_distances(self, sample_docs):
        hits = rank_near(sample_docs, "embedding", [1.0, 0.0], 3)
        assert [hit.id for hit in hits] == ["1", "3", "2"]
        assert hits[0].distance == pytest.approx(0.0, abs=1e-7)
        assert hits[1].distance == pytest.approx(0.2928932, abs=1e-6)

    def test_threshold(self, sample_docs):
        hits = rank_near(sample_docs, "embedding", [1.0, 0.0], 3, max_distance=0.5)
        assert [hit.id for hit in hits] == ["1", "3"]

    def test_euclidean_metric(self, sample_docs):
        hits = rank_near(sample_docs, "embedding", [0.0, 0.0], 1, metric="euclidean")
        assert hits[0].id == "1"
        assert hits[0].distance == pytest.approx(1.0)


def test_distance_key(sample_docs):
    key = DistanceKey("embedding", [1.0, 0.0])
    assert key(sample_docs[1]) == pytest.approx(1.0)
    assert key({"other": 1}) is UNDEFINED
