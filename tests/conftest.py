import copy
from contextlib import contextmanager
from types import SimpleNamespace

import pymongo
import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

import mongo_docstore.mongo as mongo_module
from mongo_docstore import MongoStore


def _matches(doc, query):
    if not query:
        return True
    return all(doc.get(key) == value for key, value in query.items())


class FakeCursor:
    def __init__(self, server, docs):
        self.server = server
        self._docs = iter(docs)
        self.closed = False

    def __iter__(self):
        return self

    def __next__(self):
        self.server.note_deadline("next")
        return next(self._docs)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.closed = True


class FakeCollection:
    def __init__(self, server):
        self.server = server
        self.docs = []

    def _record(self, name, *args):
        self.server.calls.append((name, copy.deepcopy(args)))
        self.server.note_deadline(name)

    def find_one(self, query):
        self._record("find_one", query)
        for doc in self.docs:
            if _matches(doc, query):
                return copy.deepcopy(doc)
        return None

    def find(self, query):
        self._record("find", query)
        return FakeCursor(self.server, [copy.deepcopy(d) for d in self.docs if _matches(d, query)])

    def insert_one(self, doc):
        self._record("insert_one", doc)
        doc.setdefault("_id", ObjectId())
        if any(existing["_id"] == doc["_id"] for existing in self.docs):
            raise DuplicateKeyError("E11000 duplicate key error")
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    def update_one(self, query, update):
        self._record("update_one", query, update)
        for doc in self.docs:
            if _matches(doc, query):
                fields = update["$set"]
                modified = any(doc.get(k) != v for k, v in fields.items())
                doc.update(copy.deepcopy(fields))
                return SimpleNamespace(matched_count=1, modified_count=int(modified))
        return SimpleNamespace(matched_count=0, modified_count=0)

    def delete_one(self, query):
        self._record("delete_one", query)
        for index, doc in enumerate(self.docs):
            if _matches(doc, query):
                del self.docs[index]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)


class FakeServer:
    """In-process stand-in for a MongoDB deployment."""

    def __init__(self):
        self.collections = {}
        self.calls = []
        self.clients = []
        self.ping_error = None
        self.close_error = None
        # seconds of every pymongo.timeout scope opened, in order
        self.deadline_scopes = []
        self._active_scope = None
        self.deadlines = []

    def note_deadline(self, operation):
        self.deadlines.append((operation, self._active_scope))

    def deadlines_for(self, operation):
        """(seconds, scope index) for each call of ``operation``."""
        return [
            (None if scope is None else self.deadline_scopes[scope], scope)
            for name, scope in self.deadlines
            if name == operation
        ]

    def timeout_recorder(self, real_timeout):
        server = self

        @contextmanager
        def recording_timeout(seconds):
            server.deadline_scopes.append(seconds)
            previous = server._active_scope
            server._active_scope = len(server.deadline_scopes) - 1
            try:
                with real_timeout(seconds):
                    yield
            finally:
                server._active_scope = previous

        return recording_timeout

    def collection(self, db_name, coll_name):
        key = (db_name, coll_name)
        if key not in self.collections:
            self.collections[key] = FakeCollection(self)
        return self.collections[key]

    def client_factory(self):
        server = self

        class FakeMongoClient:
            def __init__(self, url, **kwargs):
                self.url = url
                server.note_deadline("client")
                self.closed = False
                self.admin = SimpleNamespace(command=self._command)
                server.clients.append(self)

            def _command(self, name, **kwargs):
                server.calls.append(("command", (name, kwargs)))
                server.note_deadline(name)
                if server.ping_error is not None:
                    raise server.ping_error
                return {"ok": 1.0}

            def close(self):
                server.calls.append(("close", ()))
                server.note_deadline("close")
                if server.close_error is not None:
                    raise server.close_error
                self.closed = True

            def __getitem__(self, db_name):
                return _FakeDatabase(server, db_name)

        return FakeMongoClient


class _FakeDatabase:
    def __init__(self, server, name):
        self.server = server
        self.name = name

    def __getitem__(self, coll_name):
        return self.server.collection(self.name, coll_name)


@pytest.fixture()
def fake_server(monkeypatch):
    server = FakeServer()
    monkeypatch.setattr(mongo_module, "MongoClient", server.client_factory())
    monkeypatch.setattr(
        mongo_module.pymongo, "timeout", server.timeout_recorder(pymongo.timeout)
    )
    return server


@pytest.fixture()
def store(fake_server):
    instance = MongoStore("numbers", "testing")
    instance.connect("mongodb://fake:27017")
    fake_server.calls.clear()
    fake_server.deadlines.clear()
    yield instance
    instance.disconnect()


@pytest.fixture()
def collection(fake_server, store):
    return fake_server.collection("numbers", "testing")
