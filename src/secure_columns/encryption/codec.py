"""
Serialization codec for secure column values.

Column values are never encrypted directly. They are first turned into a
canonical YAML document of plain scalars and collections. Richer values
(models, enums, UUIDs, decimals) are reduced to those forms here and are
restored from the column's annotation when the record is decrypted.
"""

from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

import yaml
from pydantic import BaseModel

from ..errors import DecodeError, SerializationError


def _prepare(value: Any) -> Any:
    """Convert values YAML's safe dumper cannot represent as-is."""
    if isinstance(value, Enum):
        return _prepare(value.value)
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, BaseModel):
        return _prepare(value.model_dump())
    if isinstance(value, dict):
        return {key: _prepare(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_prepare(item) for item in value]
    if isinstance(value, (set, frozenset)):
        return {_prepare(item) for item in value}
    return value


def serialize(value: Any) -> bytes:
    """
    Serialize a value to canonical UTF-8 encoded YAML.

    Args:
        value: The value to serialize

    Returns:
        The encoded document

    Raises:
        SerializationError: If the value has no YAML representation
    """
    try:
        document = yaml.safe_dump(
            _prepare(value),
            allow_unicode=True,
            sort_keys=True,
            default_flow_style=False,
        )
    except yaml.representer.RepresenterError as e:
        raise SerializationError(
            f"Cannot serialize value of type {type(value).__name__}"
        ) from e
    return document.encode("utf-8")


def deserialize(data: bytes | str) -> Any:
    """
    Deserialize a document produced by serialize.

    Args:
        data: The encoded document

    Returns:
        The original value

    Raises:
        DecodeError: If the document is not valid UTF-8 or not valid YAML
    """
    try:
        text = data.decode("utf-8") if isinstance(data, (bytes, bytearray)) else data
        return yaml.safe_load(text)
    except (UnicodeDecodeError, yaml.YAMLError) as e:
        raise DecodeError("Malformed serialized value") from e
