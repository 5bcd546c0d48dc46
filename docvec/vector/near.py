"""
Exact brute-force retrieval over document scans.
Threshold filtering and bounded top-k selection; no index is built or kept.
"""

import heapq
from itertools import count
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from ..core.values import UNDEFINED
from .distance import MetricFn, check_dimensions, resolve_metric
from .types import NearHit, Vector, try_extract


class DistanceKey:
    """
    Per-query distance callable: document -> distance, or UNDEFINED.

    The target vector and metric are resolved once at construction. Documents
    whose field is missing or not vector-shaped yield UNDEFINED; a stored
    vector whose dimension differs from the target raises
    DimensionMismatchError.
    """

    def __init__(self, field: str, target: Any, metric: Union[str, MetricFn, None] = None):
        self.field = field
        self.target = Vector.from_value(target)
        self.metric = resolve_metric(metric)

    def __call__(self, document: Any) -> Any:
        stored = try_extract(document, self.field)
        if stored is None:
            return UNDEFINED
        check_dimensions(stored, self.target)
        return float(self.metric(stored, self.target))


def near_filter(
    documents: Iterable[Dict[str, Any]],
    field: str,
    target: Any,
    max_distance: float,
    metric: Union[str, MetricFn, None] = None,
) -> Iterator[Dict[str, Any]]:
    """
    Stream the documents whose field vector lies within ``max_distance`` of ``target``.

    Scan order is preserved. Documents without a usable vector are skipped;
    a dimension mismatch aborts the iteration. The target is validated
    immediately, before any document is pulled.
    """
    key = DistanceKey(field, target, metric)

    def _filtered():
        for document in documents:
            distance = key(document)
            if distance is UNDEFINED:
                continue
            if distance <= max_distance:
                yield document

    return _filtered()


class _HeapEntry:
    """Heap entry with inverted ordering so heapq's min-heap behaves as a max-heap."""

    __slots__ = ("key", "seq", "item")

    def __init__(self, key: Any, seq: int, item: Any):
        self.key = key
        self.seq = seq
        self.item = item

    def __lt__(self, other: "_HeapEntry") -> bool:
        # Larger key (and, on ties, later encounter) sits at the root
        if self.key == other.key:
            return self.seq > other.seq
        return other.key < self.key


class TopKSelector:
    """
    Fixed-capacity max-heap keeping the ``k`` smallest keys offered.

    ``offer`` inserts while below capacity; once full, a new entry replaces
    the current maximum only when its key is strictly smaller, so among equal
    keys the earliest encountered are kept.
    """

    def __init__(self, k: int):
        self.k = k
        self._heap: List[_HeapEntry] = []
        self._seq = count()

    def __len__(self) -> int:
        return len(self._heap)

    @property
    def capacity(self) -> int:
        return max(self.k, 0)

    def peek_max(self) -> Any:
        """Largest key currently held, or UNDEFINED when empty."""
        return self._heap[0].key if self._heap else UNDEFINED

    def offer(self, key: Any, item: Any) -> bool:
        """Offer a candidate; returns True if it was kept."""
        if self.k <= 0:
            return False

        entry = _HeapEntry(key, next(self._seq), item)
        if len(self._heap) < self.k:
            heapq.heappush(self._heap, entry)
            return True

        if key < self._heap[0].key:
            heapq.heapreplace(self._heap, entry)
            return True
        return False

    def drain(self) -> List[Tuple[Any, Any]]:
        """Empty the selector and return (key, item) pairs ascending by key, then encounter order."""
        entries = sorted(self._heap, key=lambda e: (e.key, e.seq))
        self._heap = []
        return [(entry.key, entry.item) for entry in entries]


def select_top_k(
    items: Iterable[Any],
    key: Callable[[Any], Any],
    k: int,
) -> List[Tuple[Any, Any]]:
    """
    Return the ``k`` items with the smallest keys as (key, item) pairs, ascending.

    Items whose key is UNDEFINED are skipped. ``k <= 0`` returns an empty list
    without touching the source.
    """
    if k <= 0:
        return []

    selector = TopKSelector(k)
    for item in items:
        item_key = key(item)
        if item_key is UNDEFINED:
            continue
        selector.offer(item_key, item)
    return selector.drain()


def rank_near(
    documents: Iterable[Dict[str, Any]],
    field: str,
    target: Any,
    k: int,
    metric: Union[str, MetricFn, None] = None,
    max_distance: Optional[float] = None,
) -> List[NearHit]:
    """
    Rank the ``k`` documents closest to ``target`` and keep their distances.

    Args:
        documents: Upstream document scan
        field: Dotted path of the vector field
        target: Query vector (any accepted vector shape)
        k: Maximum number of hits
        metric: Metric name or callable; None for the configured default
        max_distance: Optional threshold applied before ranking

    Returns:
        NearHit list, ascending by distance
    """
    distance_key = DistanceKey(field, target, metric)

    if max_distance is not None:
        def key(document):
            distance = distance_key(document)
            if distance is UNDEFINED or distance > max_distance:
                return UNDEFINED
            return distance
    else:
        key = distance_key

    return [NearHit(document=document, distance=distance)
            for distance, document in select_top_k(documents, key, k)]


def top_k_near(
    documents: Iterable[Dict[str, Any]],
    field: str,
    target: Any,
    k: int,
    metric: Union[str, MetricFn, None] = None,
) -> Iterator[Dict[str, Any]]:
    """Yield the ``k`` closest documents ascending by distance."""
    key = DistanceKey(field, target, metric)

    def _ranked():
        for _, document in select_top_k(documents, key, k):
            yield document

    return _ranked()
