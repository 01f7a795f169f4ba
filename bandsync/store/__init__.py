"""Document store interface and backends."""

from .base import DocumentStore, Filter, where
from .memory import MemoryStore

__all__ = ["DocumentStore", "Filter", "MemoryStore", "where"]
