"""
Secure Columns - transparent column level encryption for records.

Designated columns are encrypted just before a record is written and
decrypted right after it is written or read, so application code only
ever sees plaintext while storage only ever sees ciphertext.
"""

from .config import SecureColumnsConfig
from .encryption import AEADProvider, CryptoProvider, EncryptionAlgorithm
from .errors import (
    ConfigurationError,
    DecodeError,
    DecryptionFailedError,
    MissingProviderError,
    ProviderError,
    SecureColumnsError,
)
from .models import ColumnDescriptor, ColumnType, RecordState, SecureConfig, SecureRecord, column

__version__ = "0.1.0"

__all__ = [
    "AEADProvider",
    "ColumnDescriptor",
    "ColumnType",
    "ConfigurationError",
    "CryptoProvider",
    "DecodeError",
    "DecryptionFailedError",
    "EncryptionAlgorithm",
    "MissingProviderError",
    "ProviderError",
    "RecordState",
    "SecureColumnsConfig",
    "SecureColumnsError",
    "SecureConfig",
    "SecureRecord",
    "column",
]
