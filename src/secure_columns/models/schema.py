"""
Column catalog for secure records.

Each record field maps to one storage column with a declared type. The
declared type is taken from ``column()`` metadata when present and inferred
from the field annotation otherwise.
"""

import types
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Union, get_args, get_origin

from pydantic import Field
from pydantic.fields import FieldInfo


class ColumnType(str, Enum):
    """Declared storage types of record columns."""

    BINARY = "binary"
    TEXT = "text"
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    DATE = "date"
    JSON = "json"


@dataclass(frozen=True)
class ColumnDescriptor:
    """A storage column: its name and declared type."""

    name: str
    declared_type: ColumnType


# Metadata key under which column() stores the declared type
COLUMN_TYPE_KEY = "column_type"

# Checked in order, bool before int since bool subclasses int
_INFERRED_TYPES: list[tuple[type, ColumnType]] = [
    (bytes, ColumnType.BINARY),
    (bytearray, ColumnType.BINARY),
    (str, ColumnType.TEXT),
    (bool, ColumnType.BOOLEAN),
    (int, ColumnType.INTEGER),
    (float, ColumnType.FLOAT),
    (datetime, ColumnType.DATETIME),
    (date, ColumnType.DATE),
    (dict, ColumnType.JSON),
    (list, ColumnType.JSON),
]


def column(column_type: ColumnType | str, default: Any = ..., **kwargs: Any) -> Any:
    """
    Declare a record field with an explicit storage type.

    Args:
        column_type: The declared storage type of the column
        default: Default value of the field
        **kwargs: Further keyword arguments for pydantic.Field

    Returns:
        A pydantic field definition carrying the column type
    """
    extra = dict(kwargs.pop("json_schema_extra", None) or {})
    extra[COLUMN_TYPE_KEY] = ColumnType(column_type).value
    return Field(default, json_schema_extra=extra, **kwargs)


def _unwrap_optional(annotation: Any) -> Any:
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def infer_column_type(annotation: Any) -> ColumnType:
    """
    Infer the storage type of a column from a field annotation.

    Args:
        annotation: The field's type annotation

    Returns:
        The inferred column type, TEXT when nothing more specific matches
    """
    annotation = _unwrap_optional(annotation)
    target = get_origin(annotation) or annotation
    if isinstance(target, type):
        for python_type, column_type in _INFERRED_TYPES:
            if issubclass(target, python_type):
                return column_type
    return ColumnType.TEXT


def describe_field(name: str, field: FieldInfo) -> ColumnDescriptor:
    """Build the column descriptor of one pydantic field."""
    extra = field.json_schema_extra
    if isinstance(extra, dict) and COLUMN_TYPE_KEY in extra:
        return ColumnDescriptor(name, ColumnType(extra[COLUMN_TYPE_KEY]))
    return ColumnDescriptor(name, infer_column_type(field.annotation))
