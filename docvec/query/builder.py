"""
Fluent query builder.
Compiles to the same QueryPlan as the textual language.
"""

from typing import Any, Dict, Iterable, List, Optional, Union

from ..core.errors import QueryError
from .expressions import And, Comparison, Expression, Field, Literal, Params
from .operators import OperatorRegistry, default_registry, vector_distance
from .parser import parse_expression
from .plan import Cursor, Projection, QueryPlan, SortKey
from .schemas import validate_near_filter, validate_top_k_near

ExpressionLike = Union[Expression, str]


class Query:
    """
    Fluent builder over one collection (or an explicit document source).

    Example:
        Query("articles").where("lang = 'en'").top_k_near("embedding", target, k=5).execute()

    Every method returns the builder so calls can be chained. ``where`` and
    ``where_near`` conditions are combined with AND.
    """

    def __init__(self, collection: Optional[str] = None, registry: Optional[OperatorRegistry] = None):
        self.collection = collection
        self.registry = registry or default_registry
        self._conditions: List[Expression] = []
        self._order_by: List[SortKey] = []
        self._limit: Optional[int] = None
        self._projection: Optional[List[Projection]] = None
        self._top_k = False

    def _expression(self, value: ExpressionLike) -> Expression:
        if isinstance(value, Expression):
            return value
        if isinstance(value, str):
            return parse_expression(value, self.registry)
        raise QueryError(f"Expected an expression or expression text, got {type(value).__name__}")

    def where(self, condition: ExpressionLike) -> "Query":
        """Add a predicate; text is parsed with the expression grammar."""
        self._conditions.append(self._expression(condition))
        return self

    def where_near(self, field: str, target: Any, max_distance: float, metric: Optional[str] = None) -> "Query":
        """Keep documents whose ``field`` vector is within ``max_distance`` of ``target``."""
        spec = validate_near_filter(field, target, max_distance, metric)
        distance = vector_distance(spec.field, spec.target, spec.metric, self.registry)
        self._conditions.append(Comparison("<=", distance, Literal(spec.max_distance)))
        return self

    def top_k_near(self, field: str, target: Any, k: int, metric: Optional[str] = None) -> "Query":
        """Order by distance to ``target`` and keep the ``k`` closest documents."""
        spec = validate_top_k_near(field, target, k, metric)
        if self._order_by:
            raise QueryError("top_k_near cannot be combined with another ordering")
        if self._limit is not None:
            raise QueryError("top_k_near cannot be combined with an explicit limit")
        distance = vector_distance(spec.field, spec.target, spec.metric, self.registry)
        self._order_by = [SortKey(distance)]
        self._limit = spec.k
        self._top_k = True
        return self

    def order_by(self, key: ExpressionLike, descending: bool = False) -> "Query":
        if self._top_k:
            raise QueryError("top_k_near already defines the ordering")
        self._order_by.append(SortKey(self._expression(key), descending))
        return self

    def limit(self, n: int) -> "Query":
        if self._top_k:
            raise QueryError("top_k_near already defines the limit")
        if isinstance(n, bool) or not isinstance(n, int):
            raise QueryError(f"limit must be an integer, got {type(n).__name__}")
        self._limit = n
        return self

    def select(self, *fields: str, **computed: ExpressionLike) -> "Query":
        """Project plain field paths and named computed expressions."""
        projection = [Projection(Field(path)) for path in fields]
        projection.extend(Projection(self._expression(value), alias) for alias, value in computed.items())
        self._projection = projection
        return self

    def build(self) -> QueryPlan:
        if not self._conditions:
            predicate = None
        elif len(self._conditions) == 1:
            predicate = self._conditions[0]
        else:
            predicate = And(*self._conditions)

        return QueryPlan(
            collection=self.collection,
            predicate=predicate,
            order_by=list(self._order_by),
            limit=self._limit,
            projection=list(self._projection) if self._projection is not None else None,
        )

    def execute(self, source: Optional[Iterable[Dict[str, Any]]] = None, params: Optional[Params] = None) -> Cursor:
        return self.build().execute(source=source, params=params)
