"""Document store adapter with a MongoDB backend.

Example usage:

    from mongo_docstore import DocumentNotFoundError, MongoStore

    with MongoStore("numbers", "testing") as store:
        store.connect()
        store.insert_one({"name": "pi", "value": 3.14159})
        try:
            doc = store.find_one({"name": "pi"})
        except DocumentNotFoundError:
            doc = None
"""

from .config import (
    DEFAULT_MONGO_URL,
    DEFAULT_QUERY_TIMEOUT,
    StoreSettings,
    settings,
)
from .errors import (
    DocStoreError,
    DocumentNotFoundError,
    EmptyObjectError,
    ErrorSource,
    InvalidIDError,
    NotConnectedError,
    error_source,
)
from .identifiers import ID_FIELD, normalize_identifier, parse_object_id
from .interface import DocumentStore
from .mongo import MongoStore

__all__ = [
    "DEFAULT_MONGO_URL",
    "DEFAULT_QUERY_TIMEOUT",
    "StoreSettings",
    "settings",
    "DocStoreError",
    "DocumentNotFoundError",
    "EmptyObjectError",
    "ErrorSource",
    "InvalidIDError",
    "NotConnectedError",
    "error_source",
    "ID_FIELD",
    "normalize_identifier",
    "parse_object_id",
    "DocumentStore",
    "MongoStore",
]
