"""
Configuration for the embedded document store and its vector query layer.
Environment driven; getters re-read the environment so settings can change at runtime.
"""

import os
from pathlib import Path
from typing import List

# Database path configuration
DB_PATH = os.getenv("DOCVEC_DB_PATH", "./data/docvec.db")

# Debug flag is now a function to be dynamic
DEBUG = os.getenv("DOCVEC_DEBUG", "false").lower() == "true"

# Vector query configuration
DEFAULT_METRIC = os.getenv("DOCVEC_DEFAULT_METRIC", "cosine")  # cosine|euclidean|dot
QUERY_LOGGING = os.getenv("DOCVEC_QUERY_LOGGING", "true").lower() == "true"

# Schema validation on insert (default disabled)
SCHEMA_VALIDATION_STRICT = os.getenv("DOCVEC_SCHEMA_VALIDATION_STRICT", "false").lower() == "true"

# Version string
VERSION = "0.1.0"


def get_db_path() -> str:
    """Get the SQLite path backing the document store."""
    return os.getenv("DOCVEC_DB_PATH", DB_PATH)


def debug_enabled():
    """Check if debug mode is enabled."""
    return os.getenv("DOCVEC_DEBUG", "false").lower() == "true"


def get_default_metric() -> str:
    """Get the metric used when a query does not name one."""
    return os.getenv("DOCVEC_DEFAULT_METRIC", DEFAULT_METRIC).lower()


def schema_validation_strict() -> bool:
    """Check if inserts are validated against the pydantic request model."""
    return os.getenv("DOCVEC_SCHEMA_VALIDATION_STRICT", "false").lower() == "true"


def query_logging_enabled() -> bool:
    """Check if per-query completion records are logged."""
    return os.getenv("DOCVEC_QUERY_LOGGING", "true").lower() == "true"


def ensure_db_directory():
    """Ensure the database directory exists."""
    Path(get_db_path()).parent.mkdir(parents=True, exist_ok=True)


def validate_config() -> List[str]:
    """Validate configuration and return any issues."""
    from ..vector.distance import available_metrics

    issues = []

    metric = get_default_metric()
    if metric not in available_metrics():
        issues.append(f"Invalid DOCVEC_DEFAULT_METRIC: {metric}")

    if not get_db_path().strip():
        issues.append("DOCVEC_DB_PATH must not be empty")

    return issues
