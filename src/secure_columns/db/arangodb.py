"""
ArangoDB record store.

This module provides a record store backed by ArangoDB through the
python-arango driver. All record types share one collection; each
document carries the record type name and the row under ``data``.
"""

import base64
import sys
from datetime import date, datetime, timezone
from typing import Any

from arango import ArangoClient
from arango.exceptions import (
    ArangoError,
    CollectionCreateError,
    DocumentDeleteError,
    DocumentGetError,
    DocumentInsertError,
)

from ..config import SecureColumnsConfig
from .record_store import RecordStore


# JSON has no bytes or dates, tagged objects carry them instead
_BINARY_TAG = "$binary"
_DATETIME_TAG = "$datetime"
_DATE_TAG = "$date"


def encode_value(value: Any) -> Any:
    """Convert a column value to a JSON compatible document value."""
    if isinstance(value, (bytes, bytearray)):
        return {_BINARY_TAG: base64.b64encode(bytes(value)).decode("ascii")}
    if isinstance(value, datetime):
        return {_DATETIME_TAG: value.isoformat()}
    if isinstance(value, date):
        return {_DATE_TAG: value.isoformat()}
    return value


def decode_value(value: Any) -> Any:
    """Inverse of encode_value."""
    if isinstance(value, dict) and len(value) == 1:
        if _BINARY_TAG in value:
            return base64.b64decode(value[_BINARY_TAG])
        if _DATETIME_TAG in value:
            return datetime.fromisoformat(value[_DATETIME_TAG])
        if _DATE_TAG in value:
            return date.fromisoformat(value[_DATE_TAG])
    return value


class ArangoRecordStore(RecordStore):
    """
    Record store for ArangoDB.

    Connection problems are fatal: the store reports them on stderr and
    exits, rather than letting the application run without its database.
    """

    def __init__(self, collection: str | None = None) -> None:
        """
        Initialize the ArangoDB record store.

        Args:
            collection: Name of the document collection, defaults to the
                ``database.collection`` setting
        """
        self.document_collection = collection or SecureColumnsConfig.get("database.collection", "secure_records")

        db_config = SecureColumnsConfig.get_database_credentials()
        db_url = SecureColumnsConfig.get_database_url()

        try:
            self.client = ArangoClient(hosts=db_url)

            self.db = self.client.db(
                name=db_config["database"],
                username=db_config["username"],
                password=db_config["password"],
                auth_method="basic",
                verify=True,
            )
        except ArangoError as e:
            print(f"Failed to connect to ArangoDB: {e}", file=sys.stderr)
            sys.exit(1)

        self._ensure_collection_exists()

    def _ensure_collection_exists(self) -> None:
        """Create the document collection if it does not exist yet."""
        try:
            if not self.db.has_collection(self.document_collection):
                print(f"Creating collection: {self.document_collection}", file=sys.stderr)
                self.db.create_collection(self.document_collection)
        except CollectionCreateError as e:
            print(f"Failed to create collection: {e}", file=sys.stderr)
            sys.exit(1)
        except ArangoError as e:
            print(f"Failed to list collections: {e}", file=sys.stderr)
            sys.exit(1)

    @property
    def collection(self):
        return self.db.collection(self.document_collection)

    def _write_row(self, collection: str, key: str, row: dict[str, Any]) -> None:
        document = {
            "_key": key,
            "record_type": collection,
            "updated_at": datetime.now(timezone.utc).isoformat(),
            "data": {name: encode_value(value) for name, value in row.items()},
        }

        try:
            self.collection.insert(document, overwrite=True)
        except DocumentInsertError as e:
            print(f"Failed to insert document: {e}", file=sys.stderr)
            sys.exit(1)

    def _read_row(self, collection: str, key: str) -> tuple[dict[str, Any], None]:
        try:
            document = self.collection.get(key)
        except DocumentGetError as e:
            print(f"Failed to get document: {e}", file=sys.stderr)
            sys.exit(1)

        if document is None or document.get("record_type") != collection:
            raise KeyError(f"Record {key} not found in {collection}")

        return self._decode_row(document), None

    def _query_rows(
        self, collection: str, filters: dict[str, Any], limit: int
    ) -> list[tuple[dict[str, Any], None]]:
        filter_conditions = []
        bind_vars: dict[str, Any] = {
            "@collection": self.document_collection,
            "record_type": collection,
            "limit": limit,
        }

        for i, (name, value) in enumerate(filters.items()):
            filter_conditions.append(f"doc.data[@field{i}] == @value{i}")
            bind_vars[f"field{i}"] = name
            bind_vars[f"value{i}"] = encode_value(value)

        filter_clause = " AND ".join(filter_conditions) if filter_conditions else "true"

        query = f"""
        FOR doc IN @@collection
        FILTER doc.record_type == @record_type
        AND {filter_clause}
        LIMIT @limit
        RETURN doc
        """

        try:
            cursor = self.db.aql.execute(query, bind_vars=bind_vars, batch_size=1000)
            return [(self._decode_row(document), None) for document in cursor]
        except ArangoError as e:
            print(f"Query failed: {e}", file=sys.stderr)
            sys.exit(1)

    def _delete_row(self, collection: str, key: str) -> None:
        # Reading first also checks the record type of the document
        self._read_row(collection, key)

        try:
            self.collection.delete(key)
        except DocumentDeleteError as e:
            print(f"Failed to delete document: {e}", file=sys.stderr)
            sys.exit(1)

    @staticmethod
    def _decode_row(document: dict[str, Any]) -> dict[str, Any]:
        return {name: decode_value(value) for name, value in document.get("data", {}).items()}

    def close(self) -> None:
        """Close the database connection."""
        self.client.close()
