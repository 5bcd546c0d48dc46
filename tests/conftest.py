"""
Shared fixtures: a throwaway SQLite store per test and the small sample collection.
"""

import pytest

from docvec.core.db import init_db


@pytest.fixture(autouse=True)
def temp_db(tmp_path, monkeypatch):
    """Point the document store at a fresh database file."""
    db_path = tmp_path / "docvec_test.db"
    monkeypatch.setenv("DOCVEC_DB_PATH", str(db_path))
    monkeypatch.setenv("DOCVEC_DEFAULT_METRIC", "cosine")
    monkeypatch.setenv("DOCVEC_SCHEMA_VALIDATION_STRICT", "false")
    init_db()
    return db_path


@pytest.fixture
def sample_docs():
    """Three 2-d documents: on-target, orthogonal and diagonal to [1, 0]."""
    return [
        {"_id": "1", "title": "east", "embedding": [1.0, 0.0]},
        {"_id": "2", "title": "north", "embedding": [0.0, 1.0]},
        {"_id": "3", "title": "north-east", "embedding": [1.0, 1.0]},
    ]
