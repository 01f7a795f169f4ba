"""Tests for the Firestore adapter, against a mocked async client."""

import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from google.api_core import exceptions as google_exceptions

from bandsync.errors import (
    ConcurrentModification,
    NotFoundError,
    UpstreamUnavailable,
    ValidationError,
)
from bandsync.store import where
from bandsync.store.firestore import FirestoreStore


def snapshot(doc_id, data):
    snap = MagicMock()
    snap.id = doc_id
    snap.exists = data is not None
    snap.to_dict.return_value = dict(data) if data is not None else None
    return snap


class AsyncStream:
    """Async iterator over a fixed list of snapshots."""

    def __init__(self, items):
        self._items = list(items)

    def __aiter__(self):
        return self

    async def __anext__(self):
        if not self._items:
            raise StopAsyncIteration
        return self._items.pop(0)


class FirestoreStoreTestCase(unittest.IsolatedAsyncioTestCase):
    """Tests for FirestoreStore."""

    def setUp(self):
        self.client = MagicMock()
        self.doc_ref = self.client.collection.return_value.document.return_value
        self.doc_ref.id = "generated"
        self.doc_ref.get = AsyncMock()
        self.doc_ref.set = AsyncMock()
        self.doc_ref.delete = AsyncMock()
        self.store = FirestoreStore(self.client, attempts=2, base_delay=0)

    async def test_get(self):
        self.doc_ref.get.return_value = snapshot("g1", {"name": "The Reds"})
        record = await self.store.get("groups", "g1")
        self.assertEqual(record, {"id": "g1", "name": "The Reds"})
        self.client.collection.assert_called_with("groups")
        self.client.collection.return_value.document.assert_called_with("g1")

    async def test_get_missing(self):
        self.doc_ref.get.return_value = snapshot("g1", None)
        with self.assertRaises(NotFoundError):
            await self.store.get("groups", "g1")

    async def test_transient_errors_are_retried_then_surface(self):
        self.doc_ref.get.side_effect = [
            google_exceptions.ServiceUnavailable("down"),
            snapshot("g1", {"name": "The Reds"}),
        ]
        record = await self.store.get("groups", "g1")
        self.assertEqual(record["name"], "The Reds")

        self.doc_ref.get.side_effect = google_exceptions.DeadlineExceeded("slow")
        with self.assertRaises(UpstreamUnavailable):
            await self.store.get("groups", "g1")

    async def test_put_strips_id(self):
        await self.store.put("users", "u1", {"id": "u1", "name": "Sam"})
        self.doc_ref.set.assert_awaited_once_with({"name": "Sam"})

    async def test_add_returns_generated_id(self):
        doc_id = await self.store.add("events", {"title": "Gig"})
        self.assertEqual(doc_id, "generated")
        self.client.collection.return_value.document.assert_called_with()
        self.doc_ref.set.assert_awaited_once_with({"title": "Gig"})

    async def test_delete(self):
        await self.store.delete("events", "e1")
        self.doc_ref.delete.assert_awaited_once()

    async def test_query_chains_field_filters(self):
        collection = self.client.collection.return_value
        query = collection.where.return_value.where.return_value
        query.stream.return_value = AsyncStream(
            [snapshot("t1", {"groupId": "g1"}), snapshot("t2", {"groupId": "g1"})]
        )
        results = await self.store.query(
            "tasks", [where("groupId", "==", "g1"), where("completed", "==", False)]
        )
        self.assertEqual([r["id"] for r in results], ["t1", "t2"])
        first_filter = collection.where.call_args.kwargs["filter"]
        self.assertEqual(
            (first_filter.field_path, first_filter.op_string, first_filter.value),
            ("groupId", "==", "g1"),
        )


@patch(
    "bandsync.store.firestore.firestore.async_transactional",
    new=lambda func: func,
)
class FirestoreTransactionTestCase(unittest.IsolatedAsyncioTestCase):
    """Tests for transactional_update with the transaction decorator bypassed."""

    def setUp(self):
        self.client = MagicMock()
        self.doc_ref = self.client.collection.return_value.document.return_value
        self.doc_ref.get = AsyncMock()
        self.transaction = self.client.transaction.return_value
        self.store = FirestoreStore(
            self.client, attempts=1, base_delay=0, max_transaction_attempts=7
        )

    async def test_mutator_result_is_written_in_transaction(self):
        self.doc_ref.get.return_value = snapshot("c", {"value": 1})
        result = await self.store.transactional_update(
            "counters", "c", lambda doc: {**doc, "value": doc["value"] + 1}
        )
        self.assertEqual(result, {"id": "c", "value": 2})
        self.client.transaction.assert_called_once_with(max_attempts=7)
        self.doc_ref.get.assert_awaited_once_with(transaction=self.transaction)
        self.transaction.set.assert_called_once_with(self.doc_ref, {"value": 2})

    async def test_missing_document(self):
        self.doc_ref.get.return_value = snapshot("c", None)
        with self.assertRaises(NotFoundError):
            await self.store.transactional_update("counters", "c", lambda doc: doc)
        self.transaction.set.assert_not_called()

    async def test_mutator_errors_propagate_without_writing(self):
        self.doc_ref.get.return_value = snapshot("c", {"value": 1})

        def reject(doc):
            raise ValidationError("no")

        with self.assertRaises(ValidationError):
            await self.store.transactional_update("counters", "c", reject)
        self.transaction.set.assert_not_called()

    async def test_contention_becomes_concurrent_modification(self):
        self.doc_ref.get.side_effect = google_exceptions.Aborted("contention")
        with self.assertRaises(ConcurrentModification):
            await self.store.transactional_update("counters", "c", lambda doc: doc)

        exhausted = ValueError("Failed to commit transaction in 7 attempts.")
        exhausted.__cause__ = google_exceptions.Aborted("contention")
        self.doc_ref.get.side_effect = exhausted
        with self.assertRaises(ConcurrentModification):
            await self.store.transactional_update("counters", "c", lambda doc: doc)

    async def test_unrelated_value_errors_propagate(self):
        self.doc_ref.get.side_effect = ValueError("bad path")
        with self.assertRaises(ValueError):
            await self.store.transactional_update("counters", "c", lambda doc: doc)


if __name__ == "__main__":
    unittest.main()
