"""
Typed records and insert validation for the document store.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, field_validator


@dataclass
class DocumentRecord:
    collection: str
    id: str
    body: Dict[str, Any]
    updated_at: Optional[datetime] = None


class DocumentInsertRequest(BaseModel):
    collection: str
    doc_id: Optional[str] = None
    body: Dict[str, Any]

    @field_validator('collection')
    @classmethod
    def collection_must_be_valid(cls, v):
        if not v.strip():
            raise ValueError('collection cannot be empty')
        if not all(ch.isalnum() or ch in "_-" for ch in v):
            raise ValueError('collection may only contain letters, digits, "_" and "-"')
        return v

    @field_validator('doc_id')
    @classmethod
    def doc_id_must_not_be_blank(cls, v):
        if v is not None and not v.strip():
            raise ValueError('doc_id cannot be blank')
        return v

    @field_validator('body')
    @classmethod
    def body_keys_must_be_strings(cls, v):
        for key in v:
            if not isinstance(key, str) or not key:
                raise ValueError('document field names must be non-empty strings')
            if "." in key:
                raise ValueError(f'document field names cannot contain ".": {key!r}')
        return v
