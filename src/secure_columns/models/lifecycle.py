"""
Lifecycle hook dispatcher.

The persistence engine calls the record hooks at fixed points: before a
write, after a write, and after a read. These functions do the actual work
of replacing secure column values with ciphertext and back.

State of one record::

    PLAIN --before write--> ENCRYPTING --> ENCRYPTED
    ENCRYPTED --after write / after read--> DECRYPTING --> PLAIN

A pass that fails midway leaves the record in ENCRYPTING or DECRYPTING,
with some columns transformed and some not. Such a record must not be
written or used.
"""

from enum import Enum
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from ..encryption.codec import deserialize, serialize
from ..encryption.overrides import active_override
from ..encryption.provider import CryptoProvider
from ..errors import DecodeError, DecryptionFailedError, MissingProviderError, ProviderError

if TYPE_CHECKING:
    from .secure_record import SecureRecord


class RecordState(str, Enum):
    """Encryption state of a record instance."""

    PLAIN = "plain"
    ENCRYPTING = "encrypting"
    ENCRYPTED = "encrypted"
    DECRYPTING = "decrypting"


def resolve_provider(record_type: type["SecureRecord"]) -> CryptoProvider:
    """
    Find the provider to use for a record type right now.

    Args:
        record_type: The record class

    Returns:
        The innermost override, else the configured default provider

    Raises:
        MissingProviderError: If neither is available
    """
    provider = active_override(record_type)
    if provider is not None:
        return provider

    config = record_type.secure_config()
    if config is not None and config.default_provider is not None:
        return config.default_provider

    raise MissingProviderError("No crypto provider defined")


def encrypt_secure_columns(record: "SecureRecord") -> None:
    """
    Replace every secure column value with its ciphertext.

    None values are encrypted too, so storage never reveals which
    secure columns are empty.
    """
    columns = type(record).secure_columns()
    if not columns:
        return

    provider = resolve_provider(type(record))
    record._secure_state = RecordState.ENCRYPTING
    for col in columns:
        plaintext = getattr(record, col.name)
        setattr(record, col.name, provider.encrypt(serialize(plaintext)))

    # What is in memory now is exactly what gets written
    record._raw_attributes = {}
    record._secure_state = RecordState.ENCRYPTED


@lru_cache(maxsize=None)
def _column_adapter(record_type: type["SecureRecord"], name: str) -> TypeAdapter:
    return TypeAdapter(record_type.model_fields[name].annotation)


def _decrypt(provider: CryptoProvider, ciphertext: Any, adapter: TypeAdapter) -> Any:
    try:
        # Restores models, tuples and enums the codec reduced to plain data
        return adapter.validate_python(deserialize(provider.decrypt(ciphertext)))
    except (ProviderError, DecodeError, ValidationError):
        raise DecryptionFailedError() from None


def decrypt_secure_columns(record: "SecureRecord") -> None:
    """
    Replace every secure column's ciphertext with its plaintext.

    The value each column held before decryption is kept in the record's
    snapshot. Columns whose current value is None are recorded but left
    alone.

    Raises:
        DecryptionFailedError: If any column fails to decrypt or decode
    """
    columns = type(record).secure_columns()
    record._encrypted_attributes = {}
    if not columns:
        record._secure_state = RecordState.PLAIN
        return

    # Resolved on first use, a record with only None columns needs no provider
    provider: CryptoProvider | None = None
    record._secure_state = RecordState.DECRYPTING
    for col in columns:
        raw_value = record.read_raw_attribute(col.name)
        record._encrypted_attributes[col.name] = raw_value
        if getattr(record, col.name) is not None:
            if provider is None:
                provider = resolve_provider(type(record))
            setattr(
                record,
                col.name,
                _decrypt(provider, raw_value, _column_adapter(type(record), col.name)),
            )

    record._secure_state = RecordState.PLAIN


def read_before_decryption(record: "SecureRecord", name: str) -> Any:
    """
    Read a column as it was before the last decryption pass.

    Args:
        record: The record instance
        name: The column name

    Returns:
        The snapshot value when one exists and is not None, else the
        current value
    """
    snapshot_value = record._encrypted_attributes.get(str(name))
    if snapshot_value is None:
        return getattr(record, str(name))
    return snapshot_value
