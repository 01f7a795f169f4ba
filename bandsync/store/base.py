"""The document store interface the services are written against."""

from __future__ import annotations

import abc
from typing import Any, Callable, NamedTuple

Record = dict[str, Any]
Mutator = Callable[[Record], Record]

OPERATORS = ("==", "!=", "<", "<=", ">", ">=", "in", "array_contains")


class Filter(NamedTuple):
    """A single field condition for ``DocumentStore.query``."""

    field: str
    op: str
    value: Any


def where(field: str, op: str, value: Any) -> Filter:
    """Build a query filter, rejecting unsupported operators."""
    if op not in OPERATORS:
        raise ValueError(f"Unsupported operator: {op}")
    return Filter(field, op, value)


def matches(record: Record, condition: Filter) -> bool:
    """Evaluate a filter against a plain record."""
    value = record.get(condition.field)
    op = condition.op
    if op == "array_contains":
        return isinstance(value, list) and condition.value in value
    if op == "in":
        return value in condition.value
    if op == "==":
        return value == condition.value
    if op == "!=":
        return value != condition.value
    if value is None:
        return False
    try:
        if op == "<":
            return value < condition.value
        if op == "<=":
            return value <= condition.value
        if op == ">":
            return value > condition.value
        if op == ">=":
            return value >= condition.value
    except TypeError:
        return False
    raise ValueError(f"Unsupported operator: {op}")


def strip_id(record: Record) -> Record:
    """Return the record without its ``id`` key, which is not stored."""
    return {k: v for k, v in record.items() if k != "id"}


class DocumentStore(abc.ABC):
    """Async request/response access to a document database.

    Records are plain dicts. Records returned by the store always carry their
    document id under ``"id"``; the ``"id"`` key of records passed in is
    ignored.
    """

    @abc.abstractmethod
    async def get(self, collection: str, doc_id: str) -> Record:
        """Return a document, raising ``NotFoundError`` if it does not exist."""

    @abc.abstractmethod
    async def query(
        self, collection: str, filters: tuple[Filter, ...] | list[Filter] = ()
    ) -> list[Record]:
        """Return all documents in a collection that satisfy every filter."""

    @abc.abstractmethod
    async def put(self, collection: str, doc_id: str, record: Record) -> None:
        """Create or fully replace a document."""

    @abc.abstractmethod
    async def add(self, collection: str, record: Record) -> str:
        """Create a document under a generated id and return the id."""

    @abc.abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Delete a document. Deleting a missing document is not an error."""

    @abc.abstractmethod
    async def transactional_update(
        self, collection: str, doc_id: str, mutator: Mutator
    ) -> Record:
        """Read-modify-write a document conditioned on it being unchanged.

        ``mutator`` receives a copy of the current document and returns the
        full replacement. Exceptions raised by the mutator abort the update
        without writing. Raises ``NotFoundError`` for a missing document and
        ``ConcurrentModification`` once the retry budget is spent.
        """
