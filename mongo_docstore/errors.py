"""Adapter-level errors for the document store.

Only conditions the adapter detects itself get a type here. Driver errors
(``pymongo.errors.PyMongoError`` and friends) are raised to the caller as-is.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class DocStoreError(Exception):
    """Base class for every error the adapter raises on its own."""

    default_message = "Document store error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


class NotConnectedError(DocStoreError):
    """Raised when a data operation runs before a successful ``connect``."""

    default_message = "No connection to database"


class DocumentNotFoundError(DocStoreError):
    """Raised when a find operation matches no document."""

    default_message = "No document found"


class EmptyObjectError(DocStoreError):
    """Raised when insert or update is called without a document."""

    default_message = "Empty object"


class InvalidIDError(DocStoreError):
    """Raised when the ``_id`` value is not a 24-character lowercase hex string."""

    default_message = "Invalid ID"

    def __init__(self, value: Any = None, message: str | None = None) -> None:
        super().__init__(message)
        self.value = value


class ErrorSource(str, Enum):
    ADAPTER = "adapter"
    BACKEND = "backend"


def error_source(exc: BaseException) -> ErrorSource:
    """Tell apart adapter errors from everything the backend raised."""

    if isinstance(exc, DocStoreError):
        return ErrorSource.ADAPTER
    return ErrorSource.BACKEND
