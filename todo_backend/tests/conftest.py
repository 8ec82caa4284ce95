"""
Pytest configuration and shared fixtures.

The store is replaced by an in-memory stand-in for the Motor client that
implements just the calls the repository makes (find, find_one,
insert_one, replace_one, delete_one, update_one, find_one_and_update and
the admin ping). Data lives on a ``FakeMongoServer`` so it survives a
disconnect/reconnect just like a real server.
"""

import asyncio
import copy
import itertools
from types import SimpleNamespace

import pytest
from pymongo import ReturnDocument
from pymongo.errors import AutoReconnect, ServerSelectionTimeoutError

from todo_store.connection import ConnectionManager
from todo_store.repositories import CounterPolicy, MaxPlusOnePolicy, TodoRepository
from todo_store.settings import Settings


def _matches(doc, flt):
    return all(doc.get(key) == value for key, value in (flt or {}).items())


def _project(doc, projection):
    if not projection:
        return copy.deepcopy(doc)
    included = [k for k, v in projection.items() if v and k != "_id"]
    if included:
        out = {k: copy.deepcopy(doc[k]) for k in included if k in doc}
        if projection.get("_id", 1) and "_id" in doc:
            out["_id"] = doc["_id"]
        return out
    return {k: copy.deepcopy(v) for k, v in doc.items() if projection.get(k, 1)}


def _sorted(docs, sort):
    for key, direction in reversed(list(sort or [])):
        docs = sorted(docs, key=lambda d: d.get(key), reverse=direction < 0)
    return docs


class FakeCursor:
    def __init__(self, docs, projection):
        self._docs = docs
        self._projection = projection

    def sort(self, key, direction=1):
        self._docs = _sorted(self._docs, [(key, direction)])
        return self

    async def to_list(self, length=None):
        docs = self._docs if length is None else self._docs[:length]
        return [_project(d, self._projection) for d in docs]


class FakeCollection:
    def __init__(self, server, name):
        self._server = server
        self._docs = server.collection(name)
        self.name = name

    def _check(self):
        if self._server.fail_operations:
            raise AutoReconnect("connection reset")

    def find(self, filter=None, projection=None):
        self._check()
        return FakeCursor([d for d in self._docs if _matches(d, filter)], projection)

    async def find_one(self, filter=None, projection=None, sort=None):
        self._check()
        docs = _sorted([d for d in self._docs if _matches(d, filter)], sort)
        return _project(docs[0], projection) if docs else None

    async def insert_one(self, document):
        self._check()
        document.setdefault("_id", next(self._server.object_ids))
        self._docs.append(copy.deepcopy(document))
        return SimpleNamespace(inserted_id=document["_id"], acknowledged=True)

    async def replace_one(self, filter, replacement, upsert=False):
        self._check()
        for i, doc in enumerate(self._docs):
            if _matches(doc, filter):
                new_doc = copy.deepcopy(replacement)
                new_doc["_id"] = doc["_id"]
                self._docs[i] = new_doc
                return SimpleNamespace(matched_count=1, modified_count=1, upserted_id=None)
        assert not upsert, "repository must never upsert"
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)

    async def delete_one(self, filter):
        self._check()
        for i, doc in enumerate(self._docs):
            if _matches(doc, filter):
                del self._docs[i]
                return SimpleNamespace(deleted_count=1)
        return SimpleNamespace(deleted_count=0)

    def _apply(self, doc, update, inserting):
        for key, value in update.get("$set", {}).items():
            doc[key] = value
        if inserting:
            for key, value in update.get("$setOnInsert", {}).items():
                doc[key] = value
        for key, value in update.get("$inc", {}).items():
            doc[key] = doc.get(key, 0) + value

    def _upsert(self, filter, update):
        doc = dict(filter)
        self._apply(doc, update, inserting=True)
        doc.setdefault("_id", next(self._server.object_ids))
        self._docs.append(doc)
        return doc

    async def update_one(self, filter, update, upsert=False):
        self._check()
        for doc in self._docs:
            if _matches(doc, filter):
                self._apply(doc, update, inserting=False)
                return SimpleNamespace(matched_count=1, upserted_id=None)
        if upsert:
            doc = self._upsert(filter, update)
            return SimpleNamespace(matched_count=0, upserted_id=doc["_id"])
        return SimpleNamespace(matched_count=0, upserted_id=None)

    async def find_one_and_update(self, filter, update, upsert=False, return_document=ReturnDocument.BEFORE):
        self._check()
        for doc in self._docs:
            if _matches(doc, filter):
                before = copy.deepcopy(doc)
                self._apply(doc, update, inserting=False)
                return copy.deepcopy(doc) if return_document == ReturnDocument.AFTER else before
        if upsert:
            doc = self._upsert(filter, update)
            return copy.deepcopy(doc) if return_document == ReturnDocument.AFTER else None
        return None


class FakeDatabase:
    def __init__(self, server, name):
        self._server = server
        self.name = name

    def __getitem__(self, collection_name):
        return FakeCollection(self._server, f"{self.name}.{collection_name}")

    async def command(self, name):
        # Yield like a network round trip so concurrent connects interleave
        await asyncio.sleep(0)
        if self._server.fail_ping:
            raise ServerSelectionTimeoutError("No servers found yet")
        return {"ok": 1.0}


class FakeMotorClient:
    def __init__(self, server, uri, **kwargs):
        self._server = server
        self.uri = uri
        self.options = kwargs
        self.closed = False
        self.admin = FakeDatabase(server, "admin")

    def __getitem__(self, name):
        return FakeDatabase(self._server, name)

    def close(self):
        self.closed = True
        self._server.closes += 1


class FakeMongoServer:
    def __init__(self):
        self._collections = {}
        self.clients = []
        self.closes = 0
        self.fail_ping = False
        self.fail_operations = False
        self.object_ids = itertools.count(1)

    def collection(self, full_name):
        return self._collections.setdefault(full_name, [])

    def documents(self, database, collection):
        return self._collections.get(f"{database}.{collection}", [])

    def client_factory(self, uri, **kwargs):
        client = FakeMotorClient(self, uri, **kwargs)
        self.clients.append(client)
        return client


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def settings():
    return Settings(db_uri="mongodb://localhost:27017", database_name="todo_test")


@pytest.fixture
def mongo_server():
    return FakeMongoServer()


@pytest.fixture
def manager(settings, mongo_server):
    return ConnectionManager(settings, client_factory=mongo_server.client_factory)


@pytest.fixture
async def connected_manager(manager):
    await manager.connect()
    yield manager
    await manager.disconnect()


@pytest.fixture(params=["max", "counter"])
def id_policy(request):
    if request.param == "counter":
        return CounterPolicy("counters")
    return MaxPlusOnePolicy()


@pytest.fixture
def repository(connected_manager, id_policy):
    return TodoRepository(connected_manager, "todos", id_policy)
