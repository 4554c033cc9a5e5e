"""Abstract contract for schemaless document stores.

Calling code should depend on ``DocumentStore`` rather than on a concrete
client so that backends can be swapped. ``MongoStore`` is the implementation
shipped with this package.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable

from .typing import Document, Filter


@runtime_checkable
class DocumentStore(Protocol):
    def connect(self, url: Optional[str] = None) -> None:
        """Open the connection to the database."""
        ...

    def disconnect(self) -> None:
        """Close the connection. Errors while closing are not raised."""
        ...

    def find_one(self, filter: Filter) -> Document:
        """Return one document matching ``filter`` or raise ``DocumentNotFoundError``."""
        ...

    def find_many(self, filter: Filter) -> List[Document]:
        """Return every matching document; an empty match raises ``DocumentNotFoundError``."""
        ...

    def insert_one(self, doc: Optional[Document]) -> None:
        """Insert a new document."""
        ...

    def update_one(self, filter: Filter, update: Optional[Document]) -> bool:
        """
        Merge ``update`` into the document matching ``filter``.

        Returns False when nothing was modified, including when no document
        matched.
        """
        ...

    def delete_one(self, filter: Filter) -> bool:
        """
        Delete one document matching ``filter``.

        Returns False when no document was found to delete.
        """
        ...
