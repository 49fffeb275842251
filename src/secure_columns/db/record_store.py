"""
Record store base class.

A record store is the persistence engine secure records plug into. It
owns the hook sequence: ``before_write`` right before a row is written,
``after_write`` once the write succeeded, ``after_read`` after every load.
Concrete stores only implement the raw row operations.
"""

import uuid
from abc import ABC, abstractmethod
from typing import Any, TypeVar

from ..models.secure_record import SecureRecord


R = TypeVar("R", bound=SecureRecord)


class RecordStore(ABC):
    """
    Base class for persistence engines of secure records.

    Rows are plain dictionaries keyed by column name. Secure columns in
    a row always hold ciphertext.
    """

    def save(self, record: SecureRecord, key: str | None = None) -> str:
        """
        Encrypt and write a record, then return it to plaintext.

        If the write fails the record is decrypted again before the error
        is re-raised, so the caller never holds a half-saved record.

        Args:
            record: The record to store
            key: Key of an existing row to replace; a new key is generated
                when omitted

        Returns:
            The key of the stored row
        """
        if not isinstance(record, SecureRecord):
            raise ValueError("Record must be an instance of SecureRecord")

        record_key = key or str(uuid.uuid4())
        collection = self.collection_name(type(record))

        record.before_write()
        try:
            self._write_row(collection, record_key, record.to_row())
        except BaseException:
            record.restore_after_failed_write()
            raise
        record.after_write()

        return record_key

    def get(self, record_cls: type[R], key: str) -> R:
        """
        Load and decrypt one record.

        Args:
            record_cls: The record class to instantiate
            key: Key of the row

        Returns:
            The record with plaintext secure columns

        Raises:
            KeyError: If no row exists for the key
        """
        row, raw = self._read_row(self.collection_name(record_cls), key)
        return self._load(record_cls, row, raw)

    def query(
        self, record_cls: type[R], filters: dict[str, Any] | None = None, limit: int = 50
    ) -> list[R]:
        """
        Load records whose columns equal the given values.

        Args:
            record_cls: The record class to instantiate
            filters: Column name to value; secure columns cannot be filtered
            limit: Maximum number of records

        Returns:
            Matching records with plaintext secure columns
        """
        filters = filters or {}
        secure_names = {col.name for col in record_cls.secure_columns()}
        rejected = sorted(secure_names.intersection(filters))
        if rejected:
            raise ValueError(f"Cannot filter on encrypted column(s): {', '.join(rejected)}")

        rows = self._query_rows(self.collection_name(record_cls), filters, limit)
        return [self._load(record_cls, row, raw) for row, raw in rows]

    def delete(self, record_cls: type[SecureRecord], key: str) -> None:
        """
        Delete one record.

        Raises:
            KeyError: If no row exists for the key
        """
        self._delete_row(self.collection_name(record_cls), key)

    def collection_name(self, record_cls: type[SecureRecord]) -> str:
        return record_cls.__name__

    def _load(self, record_cls: type[R], row: dict[str, Any], raw: dict[str, Any] | None) -> R:
        record = record_cls.from_storage(row, raw=raw)
        record.after_read()
        return record

    @abstractmethod
    def _write_row(self, collection: str, key: str, row: dict[str, Any]) -> None:
        """Insert or replace a row."""

    @abstractmethod
    def _read_row(self, collection: str, key: str) -> tuple[dict[str, Any], dict[str, Any] | None]:
        """Return the coerced row and the raw stored row (or None if identical)."""

    @abstractmethod
    def _query_rows(
        self, collection: str, filters: dict[str, Any], limit: int
    ) -> list[tuple[dict[str, Any], dict[str, Any] | None]]:
        """Return matching rows as (row, raw) pairs."""

    @abstractmethod
    def _delete_row(self, collection: str, key: str) -> None:
        """Remove a row."""
