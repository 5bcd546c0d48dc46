"""
Distance evaluator - pure, stateless metric functions over Vector pairs.
Lower is always closer, so every metric ranks ascending.
"""

import math
from typing import Callable, Dict, List, Tuple, Union

import numpy as np

from ..core.errors import DimensionMismatchError, UnknownMetricError
from .types import Vector

MetricFn = Callable[[Vector, Vector], float]

COSINE = "cosine"
EUCLIDEAN = "euclidean"
DOT = "dot"

# Cosine distance bounds; a zero-norm operand is treated as maximally distant
MIN_COSINE_DISTANCE = 0.0
MAX_COSINE_DISTANCE = 2.0


def _gram(a: Vector, b: Vector) -> Tuple[float, float, float]:
    """
    Return (a.a, a.b, b.b) accumulated in float64.

    Both vectors are stacked and multiplied by their own transpose, so the
    dot product and both squared norms come out of a single product.
    """
    stacked = np.vstack((a.to_array(np.float64), b.to_array(np.float64)))
    gram = stacked @ stacked.T
    return float(gram[0, 0]), float(gram[0, 1]), float(gram[1, 1])


def cosine_distance(a: Vector, b: Vector) -> float:
    """1 - cosine similarity, clamped to [0, 2]."""
    aa, ab, bb = _gram(a, b)
    if aa == 0.0 or bb == 0.0:
        return MAX_COSINE_DISTANCE

    similarity = ab / math.sqrt(aa * bb)
    distance = 1.0 - similarity
    return min(max(distance, MIN_COSINE_DISTANCE), MAX_COSINE_DISTANCE)


def euclidean_distance(a: Vector, b: Vector) -> float:
    """L2 distance."""
    diff = a.to_array(np.float64) - b.to_array(np.float64)
    return math.sqrt(float(diff @ diff))


def dot_distance(a: Vector, b: Vector) -> float:
    """Negative inner product."""
    return -float(a.to_array(np.float64) @ b.to_array(np.float64))


_METRICS: Dict[str, MetricFn] = {
    COSINE: cosine_distance,
    EUCLIDEAN: euclidean_distance,
    DOT: dot_distance,
}


def register_metric(name: str, fn: MetricFn) -> None:
    """Register an alternate metric under ``name`` (case-insensitive)."""
    if not name or not name.strip():
        raise ValueError("metric name cannot be empty")
    if not callable(fn):
        raise TypeError("metric must be callable")
    _METRICS[name.strip().lower()] = fn


def get_metric(name: str) -> MetricFn:
    """Look up a registered metric by name."""
    try:
        return _METRICS[name.strip().lower()]
    except (KeyError, AttributeError):
        raise UnknownMetricError(
            f"Unknown distance metric {name!r}; available: {available_metrics()}"
        ) from None


def available_metrics() -> List[str]:
    """Names of all registered metrics."""
    return sorted(_METRICS)


def resolve_metric(metric: Union[str, MetricFn, None]) -> MetricFn:
    """Accept a metric name, a metric callable, or None for the configured default."""
    if metric is None:
        from ..core.config import get_default_metric
        metric = get_default_metric()
    if callable(metric):
        return metric
    return get_metric(metric)


def check_dimensions(a: Vector, b: Vector) -> None:
    """Raise DimensionMismatchError unless both vectors have the same length."""
    if a.dimension != b.dimension:
        raise DimensionMismatchError(expected=b.dimension, actual=a.dimension)


def evaluate(metric: Union[str, MetricFn, None], a: Vector, b: Vector) -> float:
    """
    Compute the distance between two vectors.

    Args:
        metric: Metric name, metric callable, or None for the configured default
        a: Stored (left) vector
        b: Query (right) vector

    Returns:
        Distance as a Python float

    Raises:
        DimensionMismatchError: If the vectors differ in length
        UnknownMetricError: If the metric name is not registered
    """
    fn = resolve_metric(metric)
    check_dimensions(a, b)
    return float(fn(a, b))
