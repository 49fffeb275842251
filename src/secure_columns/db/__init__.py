"""
Record stores for secure columns.

This package provides the persistence engines that drive the secure
record lifecycle hooks, an in-memory store and an ArangoDB store.
"""

from .arangodb import ArangoRecordStore
from .memory import InMemoryRecordStore
from .record_store import RecordStore

__all__ = ["ArangoRecordStore", "InMemoryRecordStore", "RecordStore"]
