"""
docvec - vector-augmented queries over an embedded document store.
"""

from .core.config import VERSION, debug_enabled
from .core.errors import (
    DimensionError,
    DimensionMismatchError,
    DocumentStoreError,
    DocvecError,
    QueryError,
    QuerySyntaxError,
    UnboundParameterError,
    UnknownMetricError,
    UnknownOperatorError,
    VectorError,
    VectorTypeError,
)
from .core.values import UNDEFINED
from .util.logging import logger
from .vector import Vector, NearHit, as_vector, try_extract, near_filter, top_k_near, rank_near
from .query import Query, parse_query, run_query, vector_distance

__version__ = VERSION

logger.set_debug(debug_enabled())

__all__ = [
    'DimensionError',
    'DimensionMismatchError',
    'DocumentStoreError',
    'DocvecError',
    'QueryError',
    'QuerySyntaxError',
    'UnboundParameterError',
    'UnknownMetricError',
    'UnknownOperatorError',
    'VectorError',
    'VectorTypeError',
    'UNDEFINED',
    'Vector',
    'NearHit',
    'as_vector',
    'try_extract',
    'near_filter',
    'top_k_near',
    'rank_near',
    'Query',
    'parse_query',
    'run_query',
    'vector_distance'
]
