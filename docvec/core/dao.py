"""
Document access layer over SQLite.
Supplies the lazy, snapshot-isolated collection scans the vector query layer consumes.
"""

import sqlite3
import uuid
from typing import Any, Dict, Iterator, List, Optional, Sequence

from pydantic import ValidationError

from .config import schema_validation_strict
from .db import get_db
from .errors import DocumentStoreError
from .schema import DocumentInsertRequest, DocumentRecord
from .values import UNDEFINED, decode_document, encode_document, get_path
from ..util.logging import logger
from ..vector.types import Vector

ID_FIELD = "_id"


def _resolve_id(document: Dict[str, Any], doc_id: Optional[str]) -> str:
    if doc_id is not None:
        return str(doc_id)
    if document.get(ID_FIELD) is not None:
        return str(document[ID_FIELD])
    return uuid.uuid4().hex


def _validate_vector_fields(collection: str, doc_id: str, document: Dict[str, Any], vector_fields: Sequence[str]) -> None:
    """Cast each declared vector field so malformed embeddings fail at insertion."""
    for path in vector_fields:
        value = get_path(document, path)
        if value is UNDEFINED:
            continue
        vector = Vector.from_value(value)
        logger.log_vector_operation("attached", f"{collection}:{doc_id}", {
            "field": path,
            "dimension": vector.dimension
        })


def insert_document(
    collection: str,
    document: Dict[str, Any],
    doc_id: Optional[str] = None,
    vector_fields: Sequence[str] = (),
) -> str:
    """
    Insert or replace a document.

    Args:
        collection: Collection name
        document: JSON-shaped dict; Vector and numpy values are stored as arrays
        doc_id: Explicit id; falls back to the document's ``_id``, then a new uuid
        vector_fields: Paths that must hold valid vectors when present

    Returns:
        The stored document id

    Raises:
        ValidationError: If strict schema validation is enabled and the input is invalid
        VectorTypeError, DimensionError: If a declared vector field is malformed
        DocumentStoreError: If the SQLite write fails
    """
    if schema_validation_strict():
        try:
            DocumentInsertRequest(collection=collection, doc_id=doc_id, body=document)
        except ValidationError as e:
            logger.log_schema_validation_error(
                "document.insert", e.errors(), {"collection": collection, "doc_id": doc_id}
            )
            raise

    resolved_id = _resolve_id(document, doc_id)
    _validate_vector_fields(collection, resolved_id, document, vector_fields)

    body = {key: value for key, value in document.items() if key != ID_FIELD}
    try:
        encoded = encode_document(body)
    except (TypeError, ValueError) as e:
        raise DocumentStoreError(f"Document {resolved_id!r} is not JSON-serializable: {e}") from e

    try:
        with get_db() as conn:
            conn.execute(
                """
                INSERT INTO documents (collection, id, body) VALUES (?, ?, ?)
                ON CONFLICT(collection, id) DO UPDATE SET body = excluded.body, updated_at = CURRENT_TIMESTAMP
                """,
                (collection, resolved_id, encoded)
            )
            conn.commit()
    except sqlite3.Error as e:
        logger.error(f"Database error during insert_document for collection '{collection}': {e}")
        raise DocumentStoreError(str(e)) from e

    logger.log_document_operation("inserted", collection, resolved_id)
    return resolved_id


def insert_many(collection: str, documents: Sequence[Dict[str, Any]], vector_fields: Sequence[str] = ()) -> List[str]:
    """Insert several documents, returning their ids in order."""
    return [insert_document(collection, document, vector_fields=vector_fields) for document in documents]


def _row_to_document(doc_id: str, body: str) -> Dict[str, Any]:
    document = decode_document(body)
    document[ID_FIELD] = doc_id
    return document


def get_record(collection: str, doc_id: str) -> Optional[DocumentRecord]:
    """Get a document with its storage metadata."""
    try:
        with get_db() as conn:
            row = conn.execute(
                "SELECT id, body, updated_at FROM documents WHERE collection = ? AND id = ?",
                (collection, str(doc_id))
            ).fetchone()
    except sqlite3.Error as e:
        logger.error(f"Failed to get document '{doc_id}' from '{collection}': {e}")
        raise DocumentStoreError(str(e)) from e

    if row is None:
        return None
    return DocumentRecord(
        collection=collection,
        id=row[0],
        body=_row_to_document(row[0], row[1]),
        updated_at=row[2]
    )


def get_document(collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
    """Get a document by id, or None if it does not exist."""
    record = get_record(collection, doc_id)
    return record.body if record else None


def delete_document(collection: str, doc_id: str) -> bool:
    """Delete a document; returns True if a row was removed."""
    try:
        with get_db() as conn:
            cursor = conn.execute(
                "DELETE FROM documents WHERE collection = ? AND id = ?",
                (collection, str(doc_id))
            )
            conn.commit()
            deleted = cursor.rowcount > 0
    except sqlite3.Error as e:
        logger.error(f"Database error during delete_document for collection '{collection}': {e}")
        raise DocumentStoreError(str(e)) from e

    if deleted:
        logger.log_document_operation("deleted", collection, str(doc_id))
    return deleted


def count_documents(collection: str) -> int:
    """Number of documents in a collection."""
    try:
        with get_db() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM documents WHERE collection = ?", (collection,)
            ).fetchone()
    except sqlite3.Error as e:
        raise DocumentStoreError(str(e)) from e
    return int(row[0])


def list_collections() -> List[str]:
    """Names of all non-empty collections."""
    try:
        with get_db() as conn:
            rows = conn.execute(
                "SELECT DISTINCT collection FROM documents ORDER BY collection"
            ).fetchall()
    except sqlite3.Error as e:
        raise DocumentStoreError(str(e)) from e
    return [row[0] for row in rows]


def scan_collection(collection: str) -> Iterator[Dict[str, Any]]:
    """
    Lazily yield every document of a collection in insertion order.

    The scan runs inside a single read transaction, so it sees one consistent
    snapshot even while other connections write. Rows are decoded one at a
    time; closing the generator ends the transaction and releases the connection.
    """
    try:
        with get_db(isolation_level=None) as conn:
            conn.execute("BEGIN")
            cursor = conn.execute(
                "SELECT id, body FROM documents WHERE collection = ? ORDER BY rowid",
                (collection,)
            )
            try:
                for doc_id, body in cursor:
                    yield _row_to_document(doc_id, body)
            finally:
                cursor.close()
                if conn.in_transaction:
                    conn.execute("COMMIT")
    except sqlite3.Error as e:
        logger.error(f"Scan of collection '{collection}' failed: {e}")
        raise DocumentStoreError(str(e)) from e
