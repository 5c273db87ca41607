import asyncio
import copy
from typing import Dict, List, Optional, Tuple

from pymongo.errors import DuplicateKeyError, PyMongoError

from core.logger import setup_logger
from core.transactions import DocKey, DocumentSnapshot, DocumentStore, TransactionConflict, Write

logger = setup_logger("stores")

VERSION_FIELD = "_version"


class MongoDocumentStore(DocumentStore):
    """
    Versioned documents in MongoDB.

    Every stored document carries a ``_version`` counter. A commit runs in a
    multi-document session transaction and only touches documents whose
    version still equals the one read; otherwise the whole commit aborts.
    Documents written before versioning existed count as version 0.
    """

    def __init__(self, client, db):
        self._client = client
        self._db = db

    async def read(self, collection: str, doc_id: str) -> DocumentSnapshot:
        doc = await self._db[collection].find_one({"_id": doc_id})
        if doc is None:
            return DocumentSnapshot(None, None)
        version = doc.pop(VERSION_FIELD, 0)
        return DocumentSnapshot(doc, version)

    async def list(self, collection: str) -> List[dict]:
        docs = []
        async for doc in self._db[collection].find({}):
            doc.pop(VERSION_FIELD, None)
            docs.append(doc)
        return docs

    async def put(self, collection: str, doc_id: str, data: dict) -> None:
        await self._db[collection].update_one(
            {"_id": doc_id},
            {"$set": {k: v for k, v in data.items() if k != "_id"}, "$inc": {VERSION_FIELD: 1}},
            upsert=True
        )

    async def commit(self, reads: Dict[DocKey, Optional[int]], writes: List[Write]) -> None:
        try:
            async with await self._client.start_session() as session:
                async with session.start_transaction():
                    await self._apply(reads, writes, session)
        except DuplicateKeyError as e:
            raise TransactionConflict() from e
        except PyMongoError as e:
            if e.has_error_label("TransientTransactionError"):
                raise TransactionConflict() from e
            raise

    @staticmethod
    def _match(doc_id: str, version: int) -> dict:
        if version == 0:
            return {"_id": doc_id, "$or": [{VERSION_FIELD: 0}, {VERSION_FIELD: {"$exists": False}}]}
        return {"_id": doc_id, VERSION_FIELD: version}

    async def _apply(self, reads: Dict[DocKey, Optional[int]], writes: List[Write], session):
        written = {(w.collection, w.doc_id) for w in writes}

        # Documents only read still have to be unchanged
        for (collection, doc_id), version in reads.items():
            if (collection, doc_id) in written:
                continue
            doc = await self._db[collection].find_one({"_id": doc_id}, {VERSION_FIELD: 1}, session=session)
            current = None if doc is None else doc.get(VERSION_FIELD, 0)
            if current != version:
                raise TransactionConflict()

        for write in writes:
            collection = self._db[write.collection]
            expected = reads.get((write.collection, write.doc_id))

            if write.kind == "create" or (write.kind == "set" and expected is None):
                body = {**write.data, "_id": write.doc_id, VERSION_FIELD: 1}
                await collection.insert_one(body, session=session)

            elif write.kind == "set":
                body = {**write.data, "_id": write.doc_id, VERSION_FIELD: expected + 1}
                result = await collection.replace_one(self._match(write.doc_id, expected), body, session=session)
                if result.matched_count == 0:
                    raise TransactionConflict()

            elif write.kind == "delete":
                if expected is None:
                    continue
                result = await collection.delete_one(self._match(write.doc_id, expected), session=session)
                if result.deleted_count == 0:
                    raise TransactionConflict()


class MemoryDocumentStore(DocumentStore):
    """In-process store with the same optimistic semantics, for local runs and tests."""

    def __init__(self):
        self._documents: Dict[DocKey, Tuple[int, dict]] = {}
        self._lock = asyncio.Lock()

    async def read(self, collection: str, doc_id: str) -> DocumentSnapshot:
        # Yield like a network round-trip so concurrent transactions interleave
        await asyncio.sleep(0)
        entry = self._documents.get((collection, doc_id))
        if entry is None:
            return DocumentSnapshot(None, None)
        version, data = entry
        return DocumentSnapshot(copy.deepcopy(data), version)

    async def list(self, collection: str) -> List[dict]:
        return [
            copy.deepcopy(data)
            for (name, _), (_, data) in self._documents.items()
            if name == collection
        ]

    async def commit(self, reads: Dict[DocKey, Optional[int]], writes: List[Write]) -> None:
        async with self._lock:
            for key, version in reads.items():
                entry = self._documents.get(key)
                current = None if entry is None else entry[0]
                if current != version:
                    raise TransactionConflict()

            for write in writes:
                if write.kind == "create" and (write.collection, write.doc_id) in self._documents:
                    raise TransactionConflict()

            for write in writes:
                key = (write.collection, write.doc_id)
                if write.kind == "delete":
                    self._documents.pop(key, None)
                else:
                    version = self._documents[key][0] + 1 if key in self._documents else 1
                    self._documents[key] = (version, {**copy.deepcopy(write.data), "_id": write.doc_id})

    async def put(self, collection: str, doc_id: str, data: dict) -> None:
        key = (collection, doc_id)
        version = self._documents[key][0] + 1 if key in self._documents else 1
        self._documents[key] = (version, {**copy.deepcopy(data), "_id": doc_id})
