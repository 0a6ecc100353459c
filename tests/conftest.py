"""Shared test fixtures for MindBridge backend tests."""

import copy
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from common.database.store import StoreCaller
from mindbridge.services.circles.content_service import CircleContentService
from mindbridge.services.circles.membership_service import MembershipService
from mindbridge.services.friends.friendship_service import FriendshipService
from mindbridge.services.messages.direct_message_service import DirectMessageService
from mindbridge.services.wellbeing.journal_service import JournalService
from mindbridge.services.wellbeing.mood_service import MoodService

_MISSING = object()


# ─────────────────────────────────────────────────────────────────
# In-memory stand-in for the subset of Motor the services use
# ─────────────────────────────────────────────────────────────────


def _matches(doc, query):
    for key, cond in query.items():
        if key == "$or":
            if not any(_matches(doc, sub) for sub in cond):
                return False
            continue

        value = doc.get(key, _MISSING)
        if isinstance(cond, dict) and cond and all(k.startswith("$") for k in cond):
            for op, arg in cond.items():
                if op == "$ne":
                    if value is not _MISSING and value == arg:
                        return False
                elif op == "$gt":
                    if value is _MISSING or not value > arg:
                        return False
                elif op == "$in":
                    if value is _MISSING or value not in arg:
                        return False
                elif op == "$gte":
                    if value is _MISSING or not value >= arg:
                        return False
                elif op == "$lte":
                    if value is _MISSING or not value <= arg:
                        return False
                else:
                    raise NotImplementedError(op)
        elif value is _MISSING or value != cond:
            return False
    return True


def _apply_update(doc, update, inserting=False):
    before = copy.deepcopy(doc)
    for op, fields in update.items():
        for key, arg in fields.items():
            if op == "$set":
                doc[key] = arg
            elif op == "$setOnInsert":
                if inserting:
                    doc[key] = arg
            elif op == "$inc":
                doc[key] = doc.get(key, 0) + arg
            elif op == "$unset":
                doc.pop(key, None)
            else:
                raise NotImplementedError(op)
    return doc != before


class FakeCursor:
    def __init__(self, docs):
        self._docs = docs

    def sort(self, key, direction=1):
        self._docs.sort(key=lambda d: d.get(key), reverse=direction < 0)
        return self

    async def to_list(self, length=None):
        docs = self._docs if length is None else self._docs[:length]
        return [copy.deepcopy(d) for d in docs]


class FakeCollection:
    """
    Keeps documents in a list and honours unique indexes.

    `fail_next(method, exc)` makes the next call of that method raise.
    """

    def __init__(self, name):
        self.name = name
        self.docs = []
        self._unique_keys = []
        self._failures = {}

    def fail_next(self, method, exc):
        self._failures.setdefault(method, []).append(exc)

    def _maybe_fail(self, method):
        pending = self._failures.get(method)
        if pending:
            raise pending.pop(0)

    def _first(self, query):
        for doc in self.docs:
            if _matches(doc, query):
                return doc
        return None

    async def create_index(self, keys, unique=False, name=None, **kwargs):
        self._maybe_fail("create_index")
        if unique:
            self._unique_keys.append(tuple(k for k, _ in keys))
        return name or "_".join(k for k, _ in keys)

    async def insert_one(self, doc):
        self._maybe_fail("insert_one")
        if "_id" not in doc:
            doc["_id"] = ObjectId()
        for fields in self._unique_keys:
            key = tuple(doc.get(f) for f in fields)
            if any(tuple(d.get(f) for f in fields) == key for d in self.docs):
                raise DuplicateKeyError(f"E11000 duplicate key on {fields}")
        self.docs.append(copy.deepcopy(doc))
        return SimpleNamespace(inserted_id=doc["_id"])

    async def find_one(self, query):
        self._maybe_fail("find_one")
        doc = self._first(query)
        return copy.deepcopy(doc) if doc else None

    def find(self, query=None):
        self._maybe_fail("find")
        return FakeCursor([d for d in self.docs if _matches(d, query or {})])

    async def count_documents(self, query):
        self._maybe_fail("count_documents")
        return sum(1 for d in self.docs if _matches(d, query))

    async def update_one(self, query, update):
        self._maybe_fail("update_one")
        doc = self._first(query)
        if doc is None:
            return SimpleNamespace(matched_count=0, modified_count=0)
        modified = _apply_update(doc, update)
        return SimpleNamespace(matched_count=1, modified_count=int(modified))

    async def find_one_and_update(self, query, update, return_document=False, upsert=False):
        self._maybe_fail("find_one_and_update")
        doc = self._first(query)
        if doc is None:
            if not upsert:
                return None
            # Equality fields of the filter seed the new document
            doc = {k: v for k, v in query.items() if not isinstance(v, dict)}
            _apply_update(doc, update, inserting=True)
            await self.insert_one(doc)
            return copy.deepcopy(doc) if return_document else None
        before = copy.deepcopy(doc)
        _apply_update(doc, update)
        return copy.deepcopy(doc) if return_document else before

    async def delete_one(self, query):
        self._maybe_fail("delete_one")
        doc = self._first(query)
        if doc is None:
            return SimpleNamespace(deleted_count=0)
        self.docs.remove(doc)
        return SimpleNamespace(deleted_count=1)

    async def delete_many(self, query):
        self._maybe_fail("delete_many")
        matched = [d for d in self.docs if _matches(d, query)]
        for doc in matched:
            self.docs.remove(doc)
        return SimpleNamespace(deleted_count=len(matched))

    async def find_one_and_delete(self, query):
        self._maybe_fail("find_one_and_delete")
        doc = self._first(query)
        if doc is None:
            return None
        self.docs.remove(doc)
        return copy.deepcopy(doc)


class FakeDatabase:
    def __init__(self):
        self._collections = {}

    def __getitem__(self, name):
        if name not in self._collections:
            self._collections[name] = FakeCollection(name)
        return self._collections[name]


# ─────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────


@pytest.fixture
def sample_user_id():
    return str(ObjectId())


@pytest.fixture
def mock_collection():
    collection = AsyncMock()
    # Motor's find() returns a cursor synchronously (not a coroutine),
    # so use MagicMock for it. Async methods like find_one, insert_one,
    # count_documents etc. stay as AsyncMock.
    collection.find = MagicMock()
    return collection


@pytest.fixture
def mock_db(mock_collection):
    db = MagicMock()
    db.__getitem__ = MagicMock(return_value=mock_collection)
    return db


@pytest.fixture
def store():
    # No backoff delay so retry tests stay fast
    return StoreCaller(max_retries=2, base_delay=0, max_delay=0)


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest_asyncio.fixture
async def membership_service(fake_db, store):
    service = MembershipService(fake_db, store=store)
    await service.ensure_indexes()
    return service


@pytest.fixture
def content_service(fake_db, membership_service, store):
    return CircleContentService(fake_db, membership_service, store=store)


@pytest_asyncio.fixture
async def friendship_service(fake_db, store):
    service = FriendshipService(fake_db, store=store)
    await service.ensure_indexes()
    return service


@pytest.fixture
def message_service(fake_db, store):
    return DirectMessageService(fake_db, store=store, max_length=50, page_size=10)


@pytest.fixture
def friends_only_message_service(fake_db, store, friendship_service):
    return DirectMessageService(fake_db, store=store, friendships=friendship_service)


@pytest_asyncio.fixture
async def mood_service(fake_db, store):
    service = MoodService(fake_db, store=store)
    await service.ensure_indexes()
    return service


@pytest.fixture
def journal_service(fake_db, membership_service, store):
    return JournalService(fake_db, membership_service, store=store)


@pytest.fixture
def make_friends(friendship_service):
    """Create an accepted friendship between two users."""

    async def befriend(user_a, user_b):
        request = await friendship_service.send_request(user_a, user_b)
        return await friendship_service.accept_request(user_b, request.id)

    return befriend


@pytest.fixture
def ledger_counts(fake_db):
    """Return (stored memberCount, number of active rows) for a circle."""

    def counts(circle_id):
        circle_oid = ObjectId(circle_id)
        circle = next(d for d in fake_db["circles"].docs if d["_id"] == circle_oid)
        active = sum(
            1
            for d in fake_db["circlememberships"].docs
            if d["circleId"] == circle_oid and d["status"] == "active"
        )
        return circle["memberCount"], active

    return counts
