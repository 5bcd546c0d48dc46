"""
Named operators for the expression language.
The registry dispatches function calls by name and arity; VECTOR_DISTANCE lives here.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..core.errors import QueryError, UnknownOperatorError
from ..core.values import UNDEFINED
from ..vector.distance import evaluate, resolve_metric
from ..vector.near import DistanceKey
from ..vector.types import Vector, as_vector
from .expressions import Call, Expression, Field, Literal, is_constant

VECTOR_DISTANCE = "VECTOR_DISTANCE"


class NamedOperator(ABC):
    """A function callable from the expression language."""

    name: str = ""
    arity: int = 0

    @abstractmethod
    def __call__(self, *values: Any) -> Any:
        """Apply the operator to already-evaluated argument values."""

    def bind(self, arguments: Sequence[Expression]) -> Callable[[Any], Any]:
        """
        Prepare the operator for one query.

        The default evaluates every argument per document and applies the
        operator; subclasses override this to resolve constant arguments once.
        """
        def evaluate_per_document(document: Any) -> Any:
            return self(*(argument.evaluate(document) for argument in arguments))
        return evaluate_per_document


class OperatorRegistry:
    """Operators keyed by (upper-cased name, arity)."""

    def __init__(self):
        self._operators: Dict[Tuple[str, int], NamedOperator] = {}

    def register(self, operator: NamedOperator, replace: bool = False) -> NamedOperator:
        key = (operator.name.upper(), operator.arity)
        if key in self._operators and not replace:
            raise ValueError(f"Operator {key[0]}/{key[1]} is already registered")
        self._operators[key] = operator
        return operator

    def resolve(self, name: str, arity: int) -> NamedOperator:
        try:
            return self._operators[(name.upper(), arity)]
        except KeyError:
            arities = sorted(a for (n, a) in self._operators if n == name.upper())
            if arities:
                raise UnknownOperatorError(
                    f"{name.upper()} takes {' or '.join(map(str, arities))} arguments, got {arity}"
                ) from None
            raise UnknownOperatorError(f"Unknown function: {name}") from None

    def names(self) -> List[str]:
        return sorted({name for (name, _) in self._operators})

    def __contains__(self, name: str) -> bool:
        return name.upper() in self.names()


class VectorDistanceOperator(NamedOperator):
    """
    VECTOR_DISTANCE(field, target[, metric])

    ``field`` is resolved per document; ``target`` (and ``metric``) once per
    query. A missing or non-vector field yields UNDEFINED so the document
    drops out of predicates and orderings; a dimension mismatch raises
    DimensionMismatchError and aborts the query.
    """

    name = VECTOR_DISTANCE

    def __init__(self, arity: int = 2):
        if arity not in (2, 3):
            raise ValueError("VECTOR_DISTANCE takes 2 or 3 arguments")
        self.arity = arity

    def _metric_name(self, values: Sequence[Any]) -> Optional[str]:
        if self.arity == 2:
            return None
        metric = values[2]
        if not isinstance(metric, str):
            raise QueryError(f"{VECTOR_DISTANCE} metric must be a string, got {type(metric).__name__}")
        return metric

    def __call__(self, *values: Any) -> Any:
        stored = as_vector(values[0])
        target = Vector.from_value(values[1])
        metric = self._metric_name(values)
        if stored is None:
            return UNDEFINED
        return evaluate(metric, stored, target)

    def bind(self, arguments: Sequence[Expression]) -> Callable[[Any], Any]:
        constant_args = [is_constant(argument) for argument in arguments[1:]]
        if not all(constant_args):
            # Target computed per document; fall back to generic evaluation
            return super().bind(arguments)

        target = Vector.from_value(arguments[1].evaluate(None))
        metric = self._metric_name([None, None] + [a.evaluate(None) for a in arguments[2:]])

        if isinstance(arguments[0], Field):
            return DistanceKey(arguments[0].path, target, metric)

        metric_fn = resolve_metric(metric)
        field_expression = arguments[0]

        def distance_to_target(document: Any) -> Any:
            stored = as_vector(field_expression.evaluate(document))
            if stored is None:
                return UNDEFINED
            return evaluate(metric_fn, stored, target)
        return distance_to_target


def vector_distance(
    field: str,
    target: Any,
    metric: Optional[str] = None,
    registry: Optional["OperatorRegistry"] = None,
) -> Expression:
    """Build a VECTOR_DISTANCE call expression from Python values."""
    registry = registry or default_registry
    arguments: List[Expression] = [Field(field), Literal(Vector.from_value(target))]
    if metric is not None:
        arguments.append(Literal(metric))
    return Call(registry.resolve(VECTOR_DISTANCE, len(arguments)), arguments)


def register_vector_operators(registry: OperatorRegistry) -> OperatorRegistry:
    """Install VECTOR_DISTANCE/2 and VECTOR_DISTANCE/3 into ``registry``."""
    registry.register(VectorDistanceOperator(arity=2), replace=True)
    registry.register(VectorDistanceOperator(arity=3), replace=True)
    return registry


default_registry = register_vector_operators(OperatorRegistry())
