"""Conversion between the hex-string ``_id`` callers see and ``bson.ObjectId``."""

from __future__ import annotations

import re
from typing import Any, Mapping, Optional

from bson import ObjectId

from .errors import InvalidIDError
from .typing import Document

ID_FIELD = "_id"

_HEX_ID = re.compile(r"^[0-9a-f]{24}$")


def parse_object_id(value: Any) -> ObjectId:
    """Parse a 24-character lowercase hex string into an ``ObjectId``."""

    if not isinstance(value, str) or not _HEX_ID.match(value):
        raise InvalidIDError(value)
    return ObjectId(value)


def normalize_identifier(mapping: Optional[Mapping[str, Any]]) -> Optional[dict]:
    """
    Return a copy of ``mapping`` ready to be sent to the backend.

    When ``_id`` is present its hex string is replaced by the parsed
    ``ObjectId``; every other key is copied untouched. The input is never
    modified.
    """

    if mapping is None:
        return None
    normalized = dict(mapping)
    if ID_FIELD in normalized:
        normalized[ID_FIELD] = parse_object_id(normalized[ID_FIELD])
    return normalized


def to_builtin(value: Any) -> Any:
    """Turn driver containers (``SON``, tuples, ...) into plain dicts and lists."""

    if isinstance(value, Mapping):
        return {key: to_builtin(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_builtin(item) for item in value]
    return value


def document_from_backend(raw: Mapping[str, Any]) -> Document:
    doc = to_builtin(raw)
    # Documents written by other clients may use non-ObjectId ids; keep those.
    if isinstance(doc.get(ID_FIELD), ObjectId):
        doc[ID_FIELD] = str(doc[ID_FIELD])
    return doc
