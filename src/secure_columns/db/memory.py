"""
In-memory record store.

Keeps rows in dictionaries. Useful for tests and for development without
a database server.
"""

from copy import deepcopy
from typing import Any

from .record_store import RecordStore


class InMemoryRecordStore(RecordStore):
    """Record store backed by a dictionary per collection."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}

    def _write_row(self, collection: str, key: str, row: dict[str, Any]) -> None:
        # Copy so later changes to the live record never reach stored rows
        self.collections.setdefault(collection, {})[key] = deepcopy(row)

    def _read_row(self, collection: str, key: str) -> tuple[dict[str, Any], None]:
        try:
            return deepcopy(self.collections[collection][key]), None
        except KeyError:
            raise KeyError(f"Record {key} not found in {collection}") from None

    def _query_rows(
        self, collection: str, filters: dict[str, Any], limit: int
    ) -> list[tuple[dict[str, Any], None]]:
        results = []
        for row in self.collections.get(collection, {}).values():
            if len(results) >= limit:
                break
            if all(row.get(name) == value for name, value in filters.items()):
                results.append((deepcopy(row), None))
        return results

    def _delete_row(self, collection: str, key: str) -> None:
        try:
            del self.collections[collection][key]
        except KeyError:
            raise KeyError(f"Record {key} not found in {collection}") from None
