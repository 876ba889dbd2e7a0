"""Typed failures raised by the entity store and blob backends."""
from __future__ import annotations

from typing import Any, Mapping, Sequence


class StoreError(Exception):
    """Base exception for storefront persistence."""


class RecordNotFoundError(StoreError):
    """Raised when an id is absent from its collection."""

    def __init__(self, kind: str, record_id: Any) -> None:
        super().__init__(f"{kind} record {record_id!s} not found")
        self.kind = kind
        self.record_id = record_id


class ValidationError(StoreError):
    """Raised when required fields are missing or cannot be coerced."""

    def __init__(self, kind: str, fields: Sequence[str], payload: Mapping[str, Any] | None = None) -> None:
        self.kind = kind
        self.fields = list(fields)
        self.payload = dict(payload or {})
        super().__init__(f"{kind}: invalid or missing field(s): {', '.join(self.fields)}")


class StorageUnavailableError(StoreError):
    """Raised when a collection file or blob backend cannot be read or written."""


class ConflictError(StoreError):
    """Reserved for concurrent-mutation detection; mutations are serialized today."""
