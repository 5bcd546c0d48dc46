"""
Vector values, distance metrics and exact near retrieval over document scans.
"""

# Package initialization for vector module
from .types import Vector, NearHit, as_vector, try_extract
from .distance import (
    available_metrics, cosine_distance, dot_distance, euclidean_distance,
    evaluate, get_metric, register_metric,
)
from .near import DistanceKey, TopKSelector, near_filter, rank_near, select_top_k, top_k_near

__all__ = [
    'Vector',
    'NearHit',
    'as_vector',
    'try_extract',
    'available_metrics',
    'cosine_distance',
    'dot_distance',
    'euclidean_distance',
    'evaluate',
    'get_metric',
    'register_metric',
    'DistanceKey',
    'TopKSelector',
    'near_filter',
    'rank_near',
    'select_top_k',
    'top_k_near'
]
