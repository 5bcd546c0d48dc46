"""
Generic document value model.
Documents are plain JSON-shaped dicts; fields are addressed by dotted paths.
"""

import json
from typing import Any, Mapping, Sequence

import numpy as np


class _Undefined:
    """Sentinel for a missing field or an undefined expression result."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "UNDEFINED"

    def __reduce__(self):
        return (_Undefined, ())


UNDEFINED = _Undefined()


def split_path(path: str) -> list:
    """Split a dotted field path into its segments."""
    if not isinstance(path, str) or not path.strip():
        raise ValueError("field path must be a non-empty string")
    segments = path.strip().split(".")
    if any(not segment for segment in segments):
        raise ValueError(f"malformed field path: {path!r}")
    return segments


def get_path(document: Any, path: str) -> Any:
    """
    Resolve a dotted path against a document.

    Mapping segments are looked up by key, sequence segments by integer index
    (``"chunks.0.embedding"``). Anything that does not resolve yields UNDEFINED.

    Args:
        document: The document (or nested value) to read from
        path: Dotted field path

    Returns:
        The field value, or UNDEFINED when the path is missing
    """
    current = document
    for segment in split_path(path):
        if isinstance(current, Mapping):
            if segment not in current:
                return UNDEFINED
            current = current[segment]
        elif isinstance(current, Sequence) and not isinstance(current, (str, bytes)):
            try:
                index = int(segment)
            except ValueError:
                return UNDEFINED
            if index < 0 or index >= len(current):
                return UNDEFINED
            current = current[index]
        else:
            return UNDEFINED
    return current


def _encode_default(value: Any) -> Any:
    """json.dumps hook for values the document model accepts natively."""
    if isinstance(value, np.ndarray):
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    # Vector values and anything else exposing a list form
    to_list = getattr(value, "to_list", None)
    if callable(to_list):
        return to_list()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def encode_document(document: Mapping[str, Any]) -> str:
    """Serialize a document to the JSON text stored in SQLite."""
    return json.dumps(document, default=_encode_default, allow_nan=False, sort_keys=True)


def decode_document(body: str) -> dict:
    """Deserialize a stored document body."""
    return json.loads(body)
