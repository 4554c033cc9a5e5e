"""MongoDB implementation of ``DocumentStore`` built on pymongo.

Example:

    store = MongoStore("numbers", "testing")
    store.connect()
    store.insert_one({"name": "pi", "value": 3.14159})
    doc = store.find_one({"name": "pi"})  # {"_id": "65f0...", "name": "pi", ...}
    store.disconnect()

Every backend round trip is bounded by ``pymongo.timeout``. Errors reported by
the driver (including deadline overruns) reach the caller unchanged; only the
conditions in ``mongo_docstore.errors`` are raised by the adapter itself.
"""

from __future__ import annotations

import time
from typing import Any, List, Optional

import pymongo
from loguru import logger
from pymongo import MongoClient, ReadPreference
from pymongo.collection import Collection
from pymongo.errors import PyMongoError

from . import config
from .config import DEFAULT_QUERY_TIMEOUT, StoreSettings
from .errors import DocumentNotFoundError, EmptyObjectError, NotConnectedError
from .identifiers import document_from_backend, normalize_identifier
from .typing import Document, Filter


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class MongoStore:
    """
    Document store backed by a single MongoDB collection.

    - name: database name
    - collection: collection holding the documents
    - query_timeout: seconds allowed for each query; connecting gets twice as
      long for the client and again for the ping
    """

    def __init__(
        self,
        name: str,
        collection: str,
        query_timeout: float = DEFAULT_QUERY_TIMEOUT,
    ) -> None:
        if query_timeout <= 0:
            raise ValueError(f"query_timeout must be positive, got {query_timeout!r}")
        self.name = name
        self.collection = collection
        self.query_timeout = query_timeout
        self._client: Optional[MongoClient] = None

    @classmethod
    def with_query_timeout(
        cls, name: str, collection: str, query_timeout: float
    ) -> "MongoStore":
        return cls(name, collection, query_timeout=query_timeout)

    @classmethod
    def from_settings(
        cls, collection: str, settings: Optional[StoreSettings] = None
    ) -> "MongoStore":
        """Build a store using the database name and timeout from ``settings``."""

        settings = settings or config.settings
        return cls(settings.db_name, collection, query_timeout=settings.query_timeout)

    @property
    def connected(self) -> bool:
        return self._client is not None

    def __enter__(self) -> "MongoStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.disconnect()

    def __repr__(self) -> str:
        return (
            f"MongoStore(name={self.name!r}, collection={self.collection!r}, "
            f"query_timeout={self.query_timeout!r}, connected={self.connected})"
        )

    # ---------------------------------------------------------
    # CONNECTION
    # ---------------------------------------------------------

    def connect(self, url: Optional[str] = None) -> None:
        """
        Create the client for ``url`` and ping the primary.

        Driver errors from either step are raised unchanged and leave the
        store disconnected. Calling this on a connected store replaces the
        client without closing the previous one.
        """

        if url is None:
            url = config.settings.mongo_url
        deadline = self.query_timeout * 2
        start = time.perf_counter()

        with pymongo.timeout(deadline):
            client = MongoClient(url)

        try:
            with pymongo.timeout(deadline):
                client.admin.command("ping", read_preference=ReadPreference.PRIMARY)
        except PyMongoError:
            client.close()
            raise

        if self._client is not None:
            logger.warning(
                "MongoStore {db}.{coll} reconnected without disconnecting first",
                db=self.name,
                coll=self.collection,
            )
        self._client = client
        logger.info(
            "MongoStore connected to {db}.{coll} in {duration:.2f} ms",
            db=self.name,
            coll=self.collection,
            duration=_elapsed_ms(start),
        )

    def disconnect(self) -> None:
        """Close the client. Errors while closing are logged, never raised."""

        if self._client is None:
            return
        try:
            with pymongo.timeout(self.query_timeout):
                self._client.close()
        except PyMongoError as exc:
            logger.warning(
                "MongoStore {db}.{coll} failed to disconnect cleanly: {error}",
                db=self.name,
                coll=self.collection,
                error=exc,
            )
            return
        logger.info(
            "MongoStore disconnected from {db}.{coll}",
            db=self.name,
            coll=self.collection,
        )

    def _collection(self) -> Collection:
        if self._client is None:
            raise NotConnectedError()
        return self._client[self.name][self.collection]

    # ---------------------------------------------------------
    # READ
    # ---------------------------------------------------------

    def find_one(self, filter: Filter) -> Document:
        """
        Return the first document matching ``filter``.

        A hex ``_id`` in ``filter`` is matched against the stored ObjectId.
        """

        query = normalize_identifier(filter)
        collection = self._collection()
        start = time.perf_counter()
        with pymongo.timeout(self.query_timeout):
            raw = collection.find_one(query)
        if raw is None:
            logger.debug(
                "find_one on {coll} matched nothing in {duration:.2f} ms",
                coll=self.collection,
                duration=_elapsed_ms(start),
            )
            raise DocumentNotFoundError()
        logger.debug(
            "find_one on {coll} completed in {duration:.2f} ms",
            coll=self.collection,
            duration=_elapsed_ms(start),
        )
        return document_from_backend(raw)

    def find_many(self, filter: Filter) -> List[Document]:
        """Return every document matching ``filter``; no match is an error."""

        query = normalize_identifier(filter)
        collection = self._collection()
        start = time.perf_counter()
        with collection.find(query) as cursor:
            # The first batch and the rest of the cursor get separate deadlines.
            with pymongo.timeout(self.query_timeout):
                first = next(cursor, None)
            if first is None:
                logger.debug(
                    "find_many on {coll} matched nothing in {duration:.2f} ms",
                    coll=self.collection,
                    duration=_elapsed_ms(start),
                )
                raise DocumentNotFoundError()
            with pymongo.timeout(self.query_timeout):
                rest = list(cursor)

        docs = [document_from_backend(raw) for raw in [first, *rest]]
        logger.debug(
            "find_many on {coll} returned {count} documents in {duration:.2f} ms",
            coll=self.collection,
            count=len(docs),
            duration=_elapsed_ms(start),
        )
        return docs

    # ---------------------------------------------------------
    # WRITE
    # ---------------------------------------------------------

    def insert_one(self, doc: Optional[Document]) -> None:
        """
        Insert ``doc``. A hex ``_id`` is stored as ObjectId; without one the
        server assigns a new id. ``doc`` itself is left untouched.
        """

        record = normalize_identifier(doc)
        collection = self._collection()
        if record is None:
            raise EmptyObjectError()
        start = time.perf_counter()
        with pymongo.timeout(self.query_timeout):
            result = collection.insert_one(record)
        logger.debug(
            "insert_one on {coll} stored {id} in {duration:.2f} ms",
            coll=self.collection,
            id=result.inserted_id,
            duration=_elapsed_ms(start),
        )

    def update_one(self, filter: Filter, update: Optional[Document]) -> bool:
        """
        Set the fields of ``update`` on the first document matching ``filter``.

        Other fields of the stored document are kept. Returns True only when a
        field actually changed.
        """

        query = normalize_identifier(filter)
        fields = normalize_identifier(update)
        collection = self._collection()
        if fields is None:
            raise EmptyObjectError()
        start = time.perf_counter()
        with pymongo.timeout(self.query_timeout):
            result = collection.update_one(query, {"$set": fields})
        modified = result.modified_count > 0
        logger.debug(
            "update_one on {coll} matched={matched} modified={modified} in {duration:.2f} ms",
            coll=self.collection,
            matched=result.matched_count,
            modified=result.modified_count,
            duration=_elapsed_ms(start),
        )
        return modified

    def delete_one(self, filter: Filter) -> bool:
        """Delete the first document matching ``filter``; False when none matched."""

        query = normalize_identifier(filter)
        collection = self._collection()
        start = time.perf_counter()
        with pymongo.timeout(self.query_timeout):
            result = collection.delete_one(query)
        deleted = result.deleted_count > 0
        logger.debug(
            "delete_one on {coll} deleted={deleted} in {duration:.2f} ms",
            coll=self.collection,
            deleted=deleted,
            duration=_elapsed_ms(start),
        )
        return deleted
