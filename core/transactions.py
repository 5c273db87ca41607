"""Optimistic read-modify-write transactions over named documents.

A ``Transaction`` records the version of every document it reads and buffers
every write. ``DocumentStore.commit`` applies the buffered writes only if none
of the documents read has changed since, otherwise it raises
``TransactionConflict`` and nothing is applied.

``run_transaction`` makes exactly one attempt. Retrying is the caller's
decision; ``retry_on_conflict`` is the bounded policy the callable layer uses.
"""

import asyncio
import copy
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar

from core.logger import setup_logger

logger = setup_logger("transactions")

T = TypeVar("T")
DocKey = Tuple[str, str]


class TransactionConflict(Exception):
    """A document read by the transaction changed before commit. Nothing was written."""
    code = "aborted"

    def __init__(self, message: str = "The data changed while processing your request. Please try again."):
        self.message = message
        super().__init__(message)


@dataclass(frozen=True)
class DocumentSnapshot:
    data: Optional[dict]
    # None when the document does not exist
    version: Optional[int]

    @property
    def exists(self) -> bool:
        return self.data is not None


@dataclass(frozen=True)
class Write:
    kind: str  # "set" | "create" | "delete"
    collection: str
    doc_id: str
    data: Optional[dict] = None


class DocumentStore(ABC):
    @abstractmethod
    async def read(self, collection: str, doc_id: str) -> DocumentSnapshot:
        ...

    @abstractmethod
    async def commit(self, reads: Dict[DocKey, Optional[int]], writes: List[Write]) -> None:
        """Apply ``writes`` atomically if every entry of ``reads`` still has the recorded version."""
        ...

    @abstractmethod
    async def list(self, collection: str) -> List[dict]:
        """Non-transactional scan of a collection."""
        ...

    @abstractmethod
    async def put(self, collection: str, doc_id: str, data: dict) -> None:
        """Write outside any transaction (seeding and admin tooling)."""
        ...


class Transaction:
    def __init__(self, store: DocumentStore):
        self._store = store
        self._snapshots: Dict[DocKey, DocumentSnapshot] = {}
        self._writes: Dict[DocKey, Write] = {}

    @property
    def reads(self) -> Dict[DocKey, Optional[int]]:
        return {key: snap.version for key, snap in self._snapshots.items()}

    @property
    def writes(self) -> List[Write]:
        return list(self._writes.values())

    async def get(self, collection: str, doc_id: str) -> Optional[dict]:
        """Read a document. Returns a private copy, or None if it does not exist."""
        if self._writes:
            raise RuntimeError("Transactions require all reads to be executed before all writes.")
        key = (collection, doc_id)
        snapshot = self._snapshots.get(key)
        if snapshot is None:
            snapshot = await self._store.read(collection, doc_id)
            self._snapshots[key] = snapshot
        return copy.deepcopy(snapshot.data)

    def set(self, collection: str, doc_id: str, data: dict):
        key = (collection, doc_id)
        if key not in self._snapshots:
            raise RuntimeError(f"{collection}/{doc_id} must be read before it is replaced.")
        self._writes[key] = Write("set", collection, doc_id, copy.deepcopy(data))

    def create(self, collection: str, doc_id: str, data: dict):
        self._writes[(collection, doc_id)] = Write("create", collection, doc_id, copy.deepcopy(data))

    def delete(self, collection: str, doc_id: str):
        key = (collection, doc_id)
        if key not in self._snapshots:
            raise RuntimeError(f"{collection}/{doc_id} must be read before it is deleted.")
        self._writes[key] = Write("delete", collection, doc_id)


async def run_transaction(store: DocumentStore, fn: Callable[[Transaction], Awaitable[T]]) -> T:
    """Run ``fn`` once inside a fresh transaction and commit its writes.

    Any exception raised by ``fn`` propagates and nothing is committed.
    """
    transaction = Transaction(store)
    result = await fn(transaction)
    if transaction.writes:
        await store.commit(transaction.reads, transaction.writes)
    return result


async def retry_on_conflict(
        operation: Callable[[], Awaitable[T]],
        attempts: int = 3,
        backoff: float = 0.05,
) -> T:
    """
    Re-run a whole operation from scratch when its transaction conflicts.
    Only ``TransactionConflict`` is retried; delay doubles after each attempt.
    """
    if attempts < 1:
        raise ValueError("attempts must be positive")

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except TransactionConflict:
            if attempt == attempts:
                logger.warning(f"Transaction conflict, giving up after {attempts} attempt(s)")
                raise
            delay = backoff * (2 ** (attempt - 1))
            logger.warning(f"Transaction conflict on attempt {attempt}/{attempts}, retrying in {delay:.3f}s")
            await asyncio.sleep(delay)
