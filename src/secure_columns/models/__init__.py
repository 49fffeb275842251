"""
Record models for secure columns.

This package provides the secure record base class, the column catalog
and the per record type security configuration.
"""

from .lifecycle import RecordState
from .schema import ColumnDescriptor, ColumnType, column
from .secure_config import SecureConfig, classify_secure_columns
from .secure_record import SecureLifecycle, SecureRecord

__all__ = [
    "ColumnDescriptor",
    "ColumnType",
    "RecordState",
    "SecureConfig",
    "SecureLifecycle",
    "SecureRecord",
    "classify_secure_columns",
    "column",
]
