"""Firestore-backed document store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore

from bandsync.constants import (
    STORE_RETRY_ATTEMPTS,
    STORE_RETRY_BASE_DELAY,
    STORE_TIMEOUT,
    TRANSACTION_MAX_ATTEMPTS,
)
from bandsync.errors import ConcurrentModification, NotFoundError

from .base import DocumentStore, Filter, Mutator, Record, strip_id
from .retry import call_with_retry

if TYPE_CHECKING:
    from google.cloud.firestore_v1.async_client import AsyncClient

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.InternalServerError,
    google_exceptions.TooManyRequests,
)


def _is_contention(error: BaseException) -> bool:
    """Return True if a transaction failed because it kept being aborted."""
    if isinstance(error, google_exceptions.Aborted):
        return True
    return isinstance(error, ValueError) and isinstance(
        error.__cause__, google_exceptions.Aborted
    )


class FirestoreStore(DocumentStore):
    """A ``DocumentStore`` on top of the async Firestore client."""

    def __init__(
        self,
        client: AsyncClient,
        *,
        timeout: float = STORE_TIMEOUT,
        attempts: int = STORE_RETRY_ATTEMPTS,
        base_delay: float = STORE_RETRY_BASE_DELAY,
        max_transaction_attempts: int = TRANSACTION_MAX_ATTEMPTS,
    ) -> None:
        self._client = client
        self._timeout = timeout
        self._attempts = attempts
        self._base_delay = base_delay
        self._max_transaction_attempts = max_transaction_attempts

    async def _call(self, operation: Any, description: str) -> Any:
        return await call_with_retry(
            operation,
            attempts=self._attempts,
            base_delay=self._base_delay,
            timeout=self._timeout,
            retry_on=TRANSIENT_ERRORS,
            description=description,
        )

    @staticmethod
    def _to_record(snapshot: Any) -> Record:
        data = snapshot.to_dict() or {}
        data["id"] = snapshot.id
        return data

    async def get(self, collection: str, doc_id: str) -> Record:
        doc_ref = self._client.collection(collection).document(doc_id)
        snapshot = await self._call(doc_ref.get, f"get {collection}/{doc_id}")
        if not snapshot.exists:
            raise NotFoundError(f"Document {collection}/{doc_id} not found.")
        return self._to_record(snapshot)

    async def query(
        self, collection: str, filters: tuple[Filter, ...] | list[Filter] = ()
    ) -> list[Record]:
        query = self._client.collection(collection)
        for condition in filters:
            query = query.where(
                filter=firestore.FieldFilter(
                    condition.field, condition.op, condition.value
                )
            )

        async def run() -> list[Record]:
            return [self._to_record(doc) async for doc in query.stream()]

        return await self._call(run, f"query {collection}")

    async def put(self, collection: str, doc_id: str, record: Record) -> None:
        doc_ref = self._client.collection(collection).document(doc_id)
        await self._call(
            lambda: doc_ref.set(strip_id(record)), f"put {collection}/{doc_id}"
        )

    async def add(self, collection: str, record: Record) -> str:
        doc_ref = self._client.collection(collection).document()
        await self._call(
            lambda: doc_ref.set(strip_id(record)), f"add {collection}/{doc_ref.id}"
        )
        return doc_ref.id

    async def delete(self, collection: str, doc_id: str) -> None:
        doc_ref = self._client.collection(collection).document(doc_id)
        await self._call(doc_ref.delete, f"delete {collection}/{doc_id}")

    async def transactional_update(
        self, collection: str, doc_id: str, mutator: Mutator
    ) -> Record:
        doc_ref = self._client.collection(collection).document(doc_id)

        @firestore.async_transactional
        async def apply(transaction: Any) -> Record:
            snapshot = await doc_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise NotFoundError(f"Document {collection}/{doc_id} not found.")
            updated = strip_id(mutator(self._to_record(snapshot)))
            transaction.set(doc_ref, updated)
            return {**updated, "id": doc_id}

        def attempt() -> Any:
            return apply(
                self._client.transaction(max_attempts=self._max_transaction_attempts)
            )

        try:
            return await self._call(attempt, f"transaction {collection}/{doc_id}")
        except (google_exceptions.Aborted, ValueError) as e:
            if not _is_contention(e):
                raise
            logger.error(f"Transaction on {collection}/{doc_id} kept conflicting: {e}")
            raise ConcurrentModification() from e
