"""
Semantic search facade over the document store.
Ranks a collection scan by vector distance and returns result dicts ready for display.
"""

from typing import Any, Dict, Iterable, List, Optional, Union

from .dao import scan_collection
from ..util.logging import logger
from ..vector.distance import MetricFn
from ..vector.near import rank_near


def semantic_search(
    collection: str,
    field: str,
    query_vector: Any,
    top_k: int = 5,
    max_distance: Optional[float] = None,
    metric: Union[str, MetricFn, None] = None,
    source: Optional[Iterable[Dict[str, Any]]] = None,
) -> List[Dict[str, Any]]:
    """
    Perform semantic search using exact vector distance.

    Args:
        collection: Collection to scan
        field: Dotted path of the vector field in each document
        query_vector: Query embedding (list, numpy array, Vector or bracketed string)
        top_k: Maximum number of results to return
        max_distance: Optional distance threshold
        metric: Metric name or callable; None for the configured default
        source: Optional document iterable used instead of the collection scan (for testing)

    Returns:
        List of dicts with '_id', 'distance' and 'document', closest first
    """
    documents = source if source is not None else scan_collection(collection)

    try:
        hits = rank_near(documents, field, query_vector, top_k, metric=metric, max_distance=max_distance)
    finally:
        close = getattr(documents, "close", None)
        if close is not None:
            close()

    results = [
        {
            "_id": hit.id,
            "distance": hit.distance,
            "document": hit.document,
        }
        for hit in hits
    ]

    logger.log_vector_operation("search", collection, {
        "field": field,
        "top_k": top_k,
        "results": len(results)
    })
    return results
