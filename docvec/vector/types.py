"""
Vector value - fixed-length float32 embeddings carried inside documents.
Casting into and out of the generic document value model.
"""

import json
import numbers
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

import numpy as np

from ..core.errors import DimensionError, VectorTypeError
from ..core.values import UNDEFINED, get_path


def _is_real_number(value: Any) -> bool:
    # bool is an int subclass but never a vector component
    if isinstance(value, (bool, np.bool_)):
        return False
    return isinstance(value, numbers.Real)


def _parse_bracketed(text: str) -> Any:
    """Parse a JSON-style bracketed numeric array such as ``"[1.0, 0.0]"``."""
    stripped = text.strip()
    if not (stripped.startswith("[") and stripped.endswith("]")):
        raise VectorTypeError(f"String value is not a bracketed array: {text[:40]!r}")
    try:
        return json.loads(stripped)
    except json.JSONDecodeError as e:
        raise VectorTypeError(f"Malformed bracketed array: {e}") from e


def _coerce_components(value: Any) -> np.ndarray:
    """Convert any accepted vector shape into a 1-D float32 array."""
    if isinstance(value, Vector):
        return value._components

    if isinstance(value, str):
        value = _parse_bracketed(value)

    if isinstance(value, np.ndarray):
        if value.ndim != 1:
            raise VectorTypeError(f"Vector arrays must be one-dimensional; received shape {value.shape}")
        if value.dtype.kind not in "iuf":
            raise VectorTypeError(f"Vector arrays must be numeric; received dtype {value.dtype}")
        items = value
    elif isinstance(value, (Mapping, bytes, bytearray)) or not hasattr(value, "__iter__"):
        raise VectorTypeError(f"Value of type {type(value).__name__} is not vector-shaped")
    else:
        items = list(value)
        for position, item in enumerate(items):
            if not _is_real_number(item):
                raise VectorTypeError(
                    f"Vector component {position} is not numeric: {type(item).__name__}"
                )

    if len(items) == 0:
        raise DimensionError("Vector dimension must be at least 1")

    try:
        with np.errstate(over="ignore"):
            components = np.asarray(items, dtype=np.float32)
    except (OverflowError, ValueError, TypeError) as e:
        raise VectorTypeError(f"Vector components are not representable as float32: {e}") from e
    if not np.all(np.isfinite(components)):
        raise VectorTypeError("Vector components must be finite float32 values")
    return components


class Vector:
    """
    Immutable fixed-length embedding.

    Components are held as a read-only float32 array; equality and hashing
    are by component sequence.
    """

    __slots__ = ("_components", "_hash")

    def __init__(self, components: Any):
        array = np.array(_coerce_components(components), dtype=np.float32, copy=True)
        array.setflags(write=False)
        self._components = array
        self._hash = None

    @classmethod
    def from_value(cls, value: Any) -> "Vector":
        """Cast a document or query value to a Vector, raising on bad input."""
        if isinstance(value, Vector):
            return value
        return cls(value)

    @property
    def dimension(self) -> int:
        """Number of components; fixed at construction."""
        return int(self._components.shape[0])

    @property
    def components(self) -> Tuple[float, ...]:
        return tuple(self._components.tolist())

    def to_list(self) -> List[float]:
        """Generic array form, the inverse of construction."""
        return self._components.tolist()

    def to_array(self, dtype=np.float32) -> np.ndarray:
        """Return a writable copy of the components."""
        return self._components.astype(dtype, copy=True)

    def __len__(self) -> int:
        return self.dimension

    def __iter__(self) -> Iterator[float]:
        return iter(self.to_list())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vector):
            return NotImplemented
        return np.array_equal(self._components, other._components)

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = hash(self.components)
        return self._hash

    def __repr__(self) -> str:
        if self.dimension <= 8:
            return f"Vector({self.to_list()})"
        head = ", ".join(f"{c:g}" for c in self.to_list()[:4])
        return f"Vector([{head}, ...], dimension={self.dimension})"


def as_vector(value: Any) -> Optional[Vector]:
    """Explicit optional conversion: a Vector, or None when the value is not vector-shaped."""
    if value is UNDEFINED or value is None:
        return None
    try:
        return Vector.from_value(value)
    except (VectorTypeError, DimensionError):
        return None


def try_extract(document: Any, field_path: str) -> Optional[Vector]:
    """Read a vector field by path; None if missing or not vector-shaped."""
    return as_vector(get_path(document, field_path))


@dataclass
class NearHit:
    """Represents a ranked result from a near search."""

    document: Dict[str, Any]
    """The matching document"""

    distance: float
    """Distance from the query vector (lower is closer)"""

    @property
    def id(self) -> Any:
        return self.document.get("_id")
