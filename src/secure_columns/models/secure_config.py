"""
Per record type security configuration.

``SecureOptions`` validates the raw options a record type is configured
with; ``SecureConfig`` is the resolved value each record type owns, and
``classify_secure_columns`` picks the columns that configuration secures.
"""

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..config import SecureColumnsConfig
from ..encryption.provider import CryptoProvider
from ..errors import ConfigurationError
from .schema import ColumnDescriptor, ColumnType


@dataclass
class SecureConfig:
    """
    Resolved security configuration of one record type.

    Subclasses receive a copy of their parent's value, never a shared
    reference.
    """

    excluded_columns: set[str] = field(default_factory=set)
    storage_type: ColumnType = ColumnType.BINARY
    default_provider: CryptoProvider | None = None

    def copy(self) -> "SecureConfig":
        """Independent copy; the provider itself is shared."""
        return SecureConfig(
            excluded_columns=set(self.excluded_columns),
            storage_type=self.storage_type,
            default_provider=self.default_provider,
        )


def _flatten(names: Any) -> Iterable[Any]:
    if isinstance(names, (str, bytes)) or not isinstance(names, Iterable):
        yield names
        return
    for name in names:
        yield from _flatten(name)


class SecureOptions(BaseModel):
    """Raw configuration options accepted by configure_security."""

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True, populate_by_name=True)

    except_: list[str] = Field(default_factory=list, alias="except")
    storage_type: ColumnType = ColumnType.BINARY
    crypto_provider: Any = None

    @field_validator("except_", mode="before")
    @classmethod
    def _flatten_except(cls, value: Any) -> list[Any]:
        if value is None:
            return []
        return [str(name) for name in _flatten(value)]

    @field_validator("crypto_provider")
    @classmethod
    def _check_provider(cls, value: Any) -> Any:
        if value is not None and not isinstance(value, CryptoProvider):
            raise ValueError("crypto provider must define encrypt() and decrypt()")
        return value


def _unknown_options(error: ValidationError) -> list[str]:
    return [
        str(detail["loc"][0])
        for detail in error.errors()
        if detail["type"] == "extra_forbidden" and detail["loc"]
    ]


def build_secure_config(options: Mapping[str, Any]) -> SecureConfig:
    """
    Validate raw options and build a SecureConfig.

    Args:
        options: Mapping with the keys ``except``, ``storage_type`` and
            ``crypto_provider``, all optional

    Returns:
        The resolved configuration

    Raises:
        ConfigurationError: If any key is unrecognised or any value invalid
    """
    options = dict(options)
    if "except_" in options:
        if "except" in options:
            raise ConfigurationError("conflicting options: except, except_")
        options["except"] = options.pop("except_")
    # Settings default, validated with the other options
    options.setdefault("storage_type", SecureColumnsConfig.get_default_storage_type())

    try:
        parsed = SecureOptions.model_validate(options)
    except ValidationError as e:
        unknown = _unknown_options(e)
        if unknown:
            raise ConfigurationError(f"unknown option(s): {', '.join(unknown)}") from None
        raise ConfigurationError(f"invalid option(s): {e}") from None

    return SecureConfig(
        excluded_columns=set(parsed.except_),
        storage_type=parsed.storage_type,
        default_provider=parsed.crypto_provider,
    )


def classify_secure_columns(
    config: SecureConfig, columns: Sequence[ColumnDescriptor]
) -> list[ColumnDescriptor]:
    """
    Select the secure columns of a record type.

    Args:
        config: The record type's configuration
        columns: All columns of the record type

    Returns:
        Columns of the configured storage type that are not excluded,
        in their original order
    """
    return [
        col
        for col in columns
        if col.declared_type == config.storage_type and col.name not in config.excluded_columns
    ]
