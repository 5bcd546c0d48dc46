"""
Error taxonomy for the document store and the vector query layer.
"""

from typing import Optional


class DocvecError(Exception):
    """Base class for all docvec errors."""


class VectorError(DocvecError):
    """A value could not be used as a vector."""


class VectorTypeError(VectorError, TypeError):
    """A value claimed to be a vector contains non-numeric elements."""


class DimensionError(VectorError, ValueError):
    """Zero-length vector construction attempt."""


class DimensionMismatchError(VectorError, ValueError):
    """Two vectors of different length met in a distance computation."""

    def __init__(self, expected: int, actual: int, message: Optional[str] = None):
        self.expected = expected
        self.actual = actual
        super().__init__(message or f"Vector dimension {actual} does not match expected dimension {expected}")


class UnknownMetricError(DocvecError, KeyError):
    """No distance metric is registered under the requested name."""

    def __str__(self):
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ""


class QueryError(DocvecError, ValueError):
    """A query could not be built, bound or executed."""


class QuerySyntaxError(QueryError):
    """The textual query could not be parsed."""

    def __init__(self, message: str, position: int = -1):
        self.position = position
        if position >= 0:
            message = f"{message} (at position {position})"
        super().__init__(message)


class UnknownOperatorError(QueryError):
    """No operator is registered for the requested name and arity."""


class UnboundParameterError(QueryError):
    """A query parameter was referenced but never bound."""


class DocumentStoreError(DocvecError):
    """The underlying SQLite store failed."""
