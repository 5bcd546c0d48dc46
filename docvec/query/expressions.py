"""
Expression AST for predicates, sort keys and projections.
Three-valued evaluation: True, False, or UNDEFINED for missing data.
"""

import operator as _op
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from ..core.errors import QueryError, UnboundParameterError
from ..core.values import UNDEFINED, get_path, split_path

Params = Dict[str, Any]

_COMPARATORS: Dict[str, Callable[[Any, Any], bool]] = {
    "=": _op.eq,
    "==": _op.eq,
    "!=": _op.ne,
    "<>": _op.ne,
    "<": _op.lt,
    "<=": _op.le,
    ">": _op.gt,
    ">=": _op.ge,
}

COMPARISON_OPERATORS = tuple(_COMPARATORS)


class Expression(ABC):
    """Base class for all expression nodes."""

    @abstractmethod
    def evaluate(self, document: Any) -> Any:
        """Evaluate against one document; may return UNDEFINED."""

    def bind(self, params: Optional[Params] = None) -> "Expression":
        """Return a tree with parameters substituted and calls prepared."""
        return self

    def label(self) -> str:
        """Column name used when this expression is projected without an alias."""
        return "expr"

    def matches(self, document: Any) -> bool:
        """Predicate form: only an exact True admits the document."""
        return self.evaluate(document) is True


class Field(Expression):
    """Dotted-path reference into the current document."""

    def __init__(self, path: str):
        split_path(path)
        self.path = path

    def evaluate(self, document: Any) -> Any:
        return get_path(document, self.path)

    def label(self) -> str:
        return self.path

    def __eq__(self, other):
        return isinstance(other, Field) and other.path == self.path

    def __hash__(self):
        return hash(("field", self.path))

    def __repr__(self):
        return f"Field({self.path!r})"


class Literal(Expression):
    """Constant value; resolved once per query."""

    def __init__(self, value: Any):
        self.value = value

    def evaluate(self, document: Any) -> Any:
        return self.value

    def label(self) -> str:
        return "literal"

    def __eq__(self, other):
        return isinstance(other, Literal) and type(other.value) is type(self.value) and other.value == self.value

    def __hash__(self):
        return hash(("literal", repr(self.value)))

    def __repr__(self):
        return f"Literal({self.value!r})"


class Parameter(Expression):
    """Named placeholder (``@name``) bound before execution."""

    def __init__(self, name: str):
        self.name = name

    def evaluate(self, document: Any) -> Any:
        raise UnboundParameterError(f"Parameter @{self.name} is not bound")

    def bind(self, params: Optional[Params] = None) -> Expression:
        params = params or {}
        if self.name not in params:
            raise UnboundParameterError(f"No value supplied for parameter @{self.name}")
        return Literal(params[self.name])

    def label(self) -> str:
        return self.name

    def __repr__(self):
        return f"Parameter({self.name!r})"


def is_constant(expression: Expression) -> bool:
    """True for nodes whose value does not depend on the document."""
    return isinstance(expression, Literal)


class Comparison(Expression):
    """Binary comparison; UNDEFINED operands or incomparable types yield UNDEFINED."""

    def __init__(self, op: str, left: Expression, right: Expression):
        if op not in _COMPARATORS:
            raise QueryError(f"Unknown comparison operator: {op}")
        self.op = op
        self.left = left
        self.right = right
        self._compare = _COMPARATORS[op]

    def evaluate(self, document: Any) -> Any:
        left = self.left.evaluate(document)
        if left is UNDEFINED:
            return UNDEFINED
        right = self.right.evaluate(document)
        if right is UNDEFINED:
            return UNDEFINED
        # NULL never compares
        if left is None or right is None:
            return UNDEFINED
        try:
            return bool(self._compare(left, right))
        except (TypeError, ValueError):
            # incomparable types, or array operands with no single truth value
            return UNDEFINED

    def bind(self, params: Optional[Params] = None) -> Expression:
        return Comparison(self.op, self.left.bind(params), self.right.bind(params))

    def label(self) -> str:
        return f"{self.left.label()} {self.op} {self.right.label()}"

    def __repr__(self):
        return f"Comparison({self.op!r}, {self.left!r}, {self.right!r})"


class And(Expression):
    def __init__(self, *operands: Expression):
        if len(operands) < 2:
            raise QueryError("AND needs at least two operands")
        self.operands: Tuple[Expression, ...] = operands

    def evaluate(self, document: Any) -> Any:
        undefined = False
        for operand in self.operands:
            value = operand.evaluate(document)
            if value is False:
                return False
            if value is not True:
                undefined = True
        return UNDEFINED if undefined else True

    def bind(self, params: Optional[Params] = None) -> Expression:
        return And(*(operand.bind(params) for operand in self.operands))

    def __repr__(self):
        return f"And{self.operands!r}"


class Or(Expression):
    def __init__(self, *operands: Expression):
        if len(operands) < 2:
            raise QueryError("OR needs at least two operands")
        self.operands: Tuple[Expression, ...] = operands

    def evaluate(self, document: Any) -> Any:
        undefined = False
        for operand in self.operands:
            value = operand.evaluate(document)
            if value is True:
                return True
            if value is not False:
                undefined = True
        return UNDEFINED if undefined else False

    def bind(self, params: Optional[Params] = None) -> Expression:
        return Or(*(operand.bind(params) for operand in self.operands))

    def __repr__(self):
        return f"Or{self.operands!r}"


class Not(Expression):
    def __init__(self, operand: Expression):
        self.operand = operand

    def evaluate(self, document: Any) -> Any:
        value = self.operand.evaluate(document)
        if value is True:
            return False
        if value is False:
            return True
        return UNDEFINED

    def bind(self, params: Optional[Params] = None) -> Expression:
        return Not(self.operand.bind(params))

    def __repr__(self):
        return f"Not({self.operand!r})"


class Call(Expression):
    """
    Invocation of a registered NamedOperator.

    Binding hands the bound arguments to the operator once, which returns
    the per-document callable used during the scan.
    """

    def __init__(self, operator, arguments: Sequence[Expression]):
        self.operator = operator
        self.arguments: Tuple[Expression, ...] = tuple(arguments)
        self._impl: Optional[Callable[[Any], Any]] = None

    @property
    def name(self) -> str:
        return self.operator.name

    @property
    def is_bound(self) -> bool:
        return self._impl is not None

    def bind(self, params: Optional[Params] = None) -> Expression:
        bound = Call(self.operator, [argument.bind(params) for argument in self.arguments])
        bound._impl = self.operator.bind(bound.arguments)
        return bound

    def evaluate(self, document: Any) -> Any:
        if self._impl is None:
            raise QueryError(f"{self.name} must be bound before evaluation")
        return self._impl(document)

    def label(self) -> str:
        return self.name.lower()

    def __repr__(self):
        return f"Call({self.name!r}, {list(self.arguments)!r})"
