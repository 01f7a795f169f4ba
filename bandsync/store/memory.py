"""In-process document store with revision-checked conditional writes."""

from __future__ import annotations

import asyncio
import copy
import logging
import uuid

from bandsync.constants import TRANSACTION_MAX_ATTEMPTS
from bandsync.errors import ConcurrentModification, NotFoundError

from .base import DocumentStore, Filter, Mutator, Record, matches, strip_id

logger = logging.getLogger(__name__)


class MemoryStore(DocumentStore):
    """A ``DocumentStore`` kept in a dict, used for tests and local runs.

    Every write bumps the document's revision. ``transactional_update`` reads
    the revision, yields to the event loop, and only writes if the revision is
    still the same, so interleaved tasks behave like concurrent clients of a
    real optimistic-concurrency backend.
    """

    def __init__(self, max_attempts: int = TRANSACTION_MAX_ATTEMPTS) -> None:
        self.max_attempts = max_attempts
        self._collections: dict[str, dict[str, tuple[int, Record]]] = {}
        self._clock = 0

    def _docs(self, collection: str) -> dict[str, tuple[int, Record]]:
        return self._collections.setdefault(collection, {})

    def _write(self, collection: str, doc_id: str, record: Record) -> None:
        self._clock += 1
        self._docs(collection)[doc_id] = (self._clock, copy.deepcopy(strip_id(record)))

    def _read(self, collection: str, doc_id: str) -> tuple[int, Record]:
        entry = self._docs(collection).get(doc_id)
        if entry is None:
            raise NotFoundError(f"Document {collection}/{doc_id} not found.")
        revision, data = entry
        return revision, {**copy.deepcopy(data), "id": doc_id}

    def revision(self, collection: str, doc_id: str) -> int | None:
        """Return the current revision marker of a document, if it exists."""
        entry = self._docs(collection).get(doc_id)
        return entry[0] if entry else None

    async def get(self, collection: str, doc_id: str) -> Record:
        await asyncio.sleep(0)
        return self._read(collection, doc_id)[1]

    async def query(
        self, collection: str, filters: tuple[Filter, ...] | list[Filter] = ()
    ) -> list[Record]:
        await asyncio.sleep(0)
        results = []
        for doc_id in sorted(self._docs(collection)):
            record = self._read(collection, doc_id)[1]
            if all(matches(record, condition) for condition in filters):
                results.append(record)
        return results

    async def put(self, collection: str, doc_id: str, record: Record) -> None:
        await asyncio.sleep(0)
        self._write(collection, doc_id, record)

    async def add(self, collection: str, record: Record) -> str:
        await asyncio.sleep(0)
        doc_id = uuid.uuid4().hex[:20]
        self._write(collection, doc_id, record)
        return doc_id

    async def delete(self, collection: str, doc_id: str) -> None:
        await asyncio.sleep(0)
        self._docs(collection).pop(doc_id, None)

    async def transactional_update(
        self, collection: str, doc_id: str, mutator: Mutator
    ) -> Record:
        for attempt in range(1, self.max_attempts + 1):
            await asyncio.sleep(0)
            revision, current = self._read(collection, doc_id)
            updated = mutator(current)
            # The write happens after a suspension point, like a network round trip.
            await asyncio.sleep(0)
            if self.revision(collection, doc_id) != revision:
                logger.warning(
                    f"Conflict updating {collection}/{doc_id} "
                    f"(attempt {attempt}/{self.max_attempts})"
                )
                continue
            self._write(collection, doc_id, updated)
            return {**strip_id(updated), "id": doc_id}

        logger.error(
            f"Giving up on {collection}/{doc_id} after {self.max_attempts} conflicts"
        )
        raise ConcurrentModification()
