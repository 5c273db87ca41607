import copy

import pytest
from pymongo.errors import DuplicateKeyError, OperationFailure, PyMongoError

from core.stores import MongoDocumentStore, VERSION_FIELD
from core.transactions import Transaction, TransactionConflict, run_transaction


def _matches(doc: dict, query: dict) -> bool:
    for key, expected in query.items():
        if key == "$or":
            if not any(_matches(doc, clause) for clause in expected):
                return False
        elif isinstance(expected, dict) and "$exists" in expected:
            if (key in doc) != expected["$exists"]:
                return False
        elif doc.get(key) != expected:
            return False
    return True


class _Result:
    def __init__(self, matched_count=0, deleted_count=0):
        self.matched_count = matched_count
        self.deleted_count = deleted_count


class FakeCollection:
    """Just the motor collection calls the store makes, over a dict keyed by ``_id``."""

    def __init__(self):
        self.docs = {}
        self.fail_next_write = None

    def _raise_pending(self):
        if self.fail_next_write is not None:
            error, self.fail_next_write = self.fail_next_write, None
            raise error

    def _find(self, query):
        return next((doc for doc in self.docs.values() if _matches(doc, query)), None)

    async def find_one(self, query, projection=None, session=None):
        doc = self._find(query)
        if doc is None:
            return None
        if projection:
            return {k: v for k, v in doc.items() if k == "_id" or k in projection}
        return copy.deepcopy(doc)

    async def find(self, query):
        for doc in list(self.docs.values()):
            if _matches(doc, query):
                yield copy.deepcopy(doc)

    async def insert_one(self, doc, session=None):
        self._raise_pending()
        if doc["_id"] in self.docs:
            raise DuplicateKeyError(f"E11000 duplicate key error: {doc['_id']}")
        self.docs[doc["_id"]] = copy.deepcopy(doc)

    async def replace_one(self, query, doc, session=None):
        self._raise_pending()
        current = self._find(query)
        if current is None:
            return _Result(matched_count=0)
        self.docs[current["_id"]] = copy.deepcopy(doc)
        return _Result(matched_count=1)

    async def delete_one(self, query, session=None):
        self._raise_pending()
        current = self._find(query)
        if current is None:
            return _Result(deleted_count=0)
        del self.docs[current["_id"]]
        return _Result(deleted_count=1)

    async def update_one(self, query, update, upsert=False):
        doc = self._find(query)
        if doc is None:
            doc = {"_id": query["_id"]}
            self.docs[doc["_id"]] = doc
        doc.update(update.get("$set", {}))
        for key, step in update.get("$inc", {}).items():
            doc[key] = doc.get(key, 0) + step


class FakeDatabase:
    def __init__(self):
        self.collections = {}

    def __getitem__(self, name) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection())


class _FakeTransaction:
    """Restores every collection when the block raises, like an aborted server transaction."""

    def __init__(self, db: FakeDatabase):
        self._db = db
        self._saved = None

    async def __aenter__(self):
        self._saved = {name: copy.deepcopy(c.docs) for name, c in self._db.collections.items()}
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if exc_type is not None:
            for name, collection in self._db.collections.items():
                collection.docs = self._saved.get(name, {})
        return False


class _FakeSession:
    def __init__(self, db: FakeDatabase):
        self._db = db

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    def start_transaction(self):
        return _FakeTransaction(self._db)


class FakeClient:
    def __init__(self, db: FakeDatabase):
        self._db = db
        self.sessions = 0

    async def start_session(self):
        self.sessions += 1
        return _FakeSession(self._db)


@pytest.fixture
def db():
    return FakeDatabase()


@pytest.fixture
def client(db):
    return FakeClient(db)


@pytest.fixture
def mongo(client, db):
    return MongoDocumentStore(client, db)


async def _increment(transaction: Transaction, doc_id="a"):
    doc = await transaction.get("things", doc_id)
    doc["count"] += 1
    transaction.set("things", doc_id, doc)


class TestReadAndPut:
    async def test_put_upserts_and_bumps_version(self, mongo, db):
        await mongo.put("things", "a", {"_id": "a", "count": 1})
        await mongo.put("things", "a", {"count": 2})

        assert db["things"].docs["a"] == {"_id": "a", "count": 2, VERSION_FIELD: 2}

    async def test_read_hides_version_field(self, mongo):
        await mongo.put("things", "a", {"count": 1})

        snapshot = await mongo.read("things", "a")

        assert snapshot.data == {"_id": "a", "count": 1}
        assert snapshot.version == 1
        assert (await mongo.read("things", "missing")).version is None

    async def test_list_hides_version_field(self, mongo):
        await mongo.put("things", "a", {"count": 1})
        await mongo.put("things", "b", {"count": 2})

        assert sorted(d["count"] for d in await mongo.list("things")) == [1, 2]
        assert all(VERSION_FIELD not in d for d in await mongo.list("things"))


class TestCommit:
    async def test_set_replaces_and_bumps_version(self, mongo, db, client):
        await mongo.put("things", "a", {"count": 1})

        await run_transaction(mongo, _increment)

        assert db["things"].docs["a"] == {"_id": "a", "count": 2, VERSION_FIELD: 2}
        assert client.sessions == 1

    async def test_stale_version_conflicts_and_writes_nothing(self, mongo, db):
        await mongo.put("things", "a", {"count": 1})
        await mongo.put("things", "b", {"count": 10})
        transaction = Transaction(mongo)
        a = await transaction.get("things", "a")
        b = await transaction.get("things", "b")
        transaction.set("things", "a", {**a, "count": 100})
        transaction.set("things", "b", {**b, "count": 100})

        await mongo.put("things", "b", {"count": 11})

        with pytest.raises(TransactionConflict):
            await mongo.commit(transaction.reads, transaction.writes)

        assert db["things"].docs["a"]["count"] == 1
        assert db["things"].docs["b"]["count"] == 11

    async def test_changed_read_only_document_conflicts(self, mongo, db):
        await mongo.put("things", "a", {"count": 1})
        await mongo.put("things", "b", {"count": 10})
        transaction = Transaction(mongo)
        await transaction.get("things", "a")
        b = await transaction.get("things", "b")
        transaction.set("things", "b", {**b, "count": 11})

        await mongo.put("things", "a", {"count": 2})

        with pytest.raises(TransactionConflict):
            await mongo.commit(transaction.reads, transaction.writes)
        assert db["things"].docs["b"]["count"] == 10

    async def test_read_only_document_created_meanwhile_conflicts(self, mongo, db):
        await mongo.put("things", "b", {"count": 10})
        transaction = Transaction(mongo)
        assert await transaction.get("things", "a") is None
        b = await transaction.get("things", "b")
        transaction.set("things", "b", b)

        await mongo.put("things", "a", {"count": 1})

        with pytest.raises(TransactionConflict):
            await mongo.commit(transaction.reads, transaction.writes)

    async def test_legacy_document_without_version_matches(self, mongo, db):
        db["things"].docs["a"] = {"_id": "a", "count": 1}

        assert (await mongo.read("things", "a")).version == 0
        await run_transaction(mongo, _increment)

        assert db["things"].docs["a"] == {"_id": "a", "count": 2, VERSION_FIELD: 1}

    async def test_legacy_document_changed_meanwhile_conflicts(self, mongo, db):
        db["things"].docs["a"] = {"_id": "a", "count": 1}
        transaction = Transaction(mongo)
        await _increment(transaction)

        await mongo.put("things", "a", {"count": 5})

        with pytest.raises(TransactionConflict):
            await mongo.commit(transaction.reads, transaction.writes)
        assert db["things"].docs["a"]["count"] == 5

    async def test_set_on_missing_document_inserts(self, mongo, db):
        async def _upsert(transaction: Transaction):
            assert await transaction.get("things", "a") is None
            transaction.set("things", "a", {"count": 1})

        await run_transaction(mongo, _upsert)

        assert db["things"].docs["a"] == {"_id": "a", "count": 1, VERSION_FIELD: 1}

    async def test_insert_colliding_with_existing_id_conflicts(self, mongo, db):
        transaction = Transaction(mongo)
        assert await transaction.get("things", "a") is None
        transaction.set("things", "a", {"count": 1})

        await mongo.put("things", "a", {"count": 7})

        with pytest.raises(TransactionConflict):
            await mongo.commit(transaction.reads, transaction.writes)
        assert db["things"].docs["a"]["count"] == 7

    async def test_create_over_existing_document_conflicts(self, mongo, db):
        await mongo.put("things", "a", {"count": 1})
        transaction = Transaction(mongo)
        transaction.create("things", "a", {"count": 0})

        with pytest.raises(TransactionConflict):
            await mongo.commit(transaction.reads, transaction.writes)
        assert db["things"].docs["a"]["count"] == 1

    async def test_delete(self, mongo, db):
        await mongo.put("things", "a", {"count": 1})

        async def _delete(transaction: Transaction):
            await transaction.get("things", "a")
            transaction.delete("things", "a")

        await run_transaction(mongo, _delete)
        assert "a" not in db["things"].docs

    async def test_delete_of_never_existing_document_is_skipped(self, mongo, db):
        await mongo.put("things", "b", {"count": 1})

        async def _delete(transaction: Transaction):
            assert await transaction.get("things", "a") is None
            await _increment(transaction, "b")
            transaction.delete("things", "a")

        await run_transaction(mongo, _delete)
        assert db["things"].docs["b"]["count"] == 2

    async def test_delete_of_changed_document_conflicts(self, mongo, db):
        await mongo.put("things", "a", {"count": 1})
        transaction = Transaction(mongo)
        await transaction.get("things", "a")
        transaction.delete("things", "a")

        await mongo.put("things", "a", {"count": 2})

        with pytest.raises(TransactionConflict):
            await mongo.commit(transaction.reads, transaction.writes)
        assert db["things"].docs["a"]["count"] == 2


class TestDriverErrors:
    async def test_transient_transaction_error_is_a_conflict(self, mongo, db):
        await mongo.put("things", "a", {"count": 1})
        db["things"].fail_next_write = OperationFailure(
            "WriteConflict", code=112, details={"errorLabels": ["TransientTransactionError"]}
        )

        with pytest.raises(TransactionConflict):
            await run_transaction(mongo, _increment)
        assert db["things"].docs["a"]["count"] == 1

    async def test_other_driver_errors_propagate(self, mongo, db):
        await mongo.put("things", "a", {"count": 1})
        db["things"].fail_next_write = PyMongoError("connection reset")

        with pytest.raises(PyMongoError) as exc:
            await run_transaction(mongo, _increment)
        assert not isinstance(exc.value, TransactionConflict)
        assert db["things"].docs["a"]["count"] == 1
