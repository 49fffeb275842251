"""
Base secure record implementation.

This module provides the base class for records with transparently
encrypted columns. Subclasses declare their columns as pydantic fields and
opt in with ``configure_security``; the persistence engine drives the
encryption through the lifecycle hooks.
"""

from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import Any, ClassVar, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ConfigDict, PrivateAttr

from ..encryption.overrides import active_override, provider_override
from ..encryption.provider import CryptoProvider
from .lifecycle import (
    RecordState,
    decrypt_secure_columns,
    encrypt_secure_columns,
    read_before_decryption,
)
from .schema import ColumnDescriptor, describe_field
from .secure_config import SecureConfig, build_secure_config, classify_secure_columns


T = TypeVar("T")
R = TypeVar("R", bound="SecureRecord")


@runtime_checkable
class SecureLifecycle(Protocol):
    """Hooks a persistence engine calls around reads and writes."""

    def before_write(self) -> None:
        ...

    def after_write(self) -> None:
        ...

    def after_read(self) -> None:
        ...

    def restore_after_failed_write(self) -> None:
        ...


class SecureRecord(BaseModel):
    """
    Base class for records with encrypted columns.

    Example::

        class Patient(SecureRecord):
            name: str
            ssn: str | None = column(ColumnType.BINARY, default=None)

        Patient.configure_security(crypto_provider=AEADProvider())

    Columns whose declared type matches the configured storage type are
    encrypted unless excluded. In memory they always hold plaintext outside
    of a write.
    """

    # Ciphertext is assigned into fields annotated with plaintext types
    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=False)

    # Per class security configuration, None until configured
    __secure_config__: ClassVar[SecureConfig | None] = None

    # Column values as they were before the last decryption pass
    _encrypted_attributes: dict[str, Any] = PrivateAttr(default_factory=dict)

    # Raw stored values registered by an engine that coerces on load
    _raw_attributes: dict[str, Any] = PrivateAttr(default_factory=dict)

    _secure_state: RecordState = PrivateAttr(default=RecordState.PLAIN)

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        """Give each subclass its own copy of the parent configuration."""
        super().__pydantic_init_subclass__(**kwargs)
        parent_config = cls.__secure_config__
        cls.__secure_config__ = parent_config.copy() if parent_config is not None else None

    # Configuration

    @classmethod
    def configure_security(
        cls, options: Mapping[str, Any] | None = None, **kwargs: Any
    ) -> SecureConfig:
        """
        Configure transparent encryption for this record type.

        Args:
            options: Mapping of options; ``except`` cannot be passed as a
                keyword argument, so it may be given here or as ``except_``
            **kwargs: Options as keyword arguments (``except_``,
                ``storage_type``, ``crypto_provider``)

        Returns:
            The new configuration, which replaces any previous or
            inherited one

        Raises:
            ConfigurationError: If any option is unknown or invalid
        """
        config = build_secure_config({**(options or {}), **kwargs})
        cls.__secure_config__ = config
        return config

    @classmethod
    def secure_config(cls) -> SecureConfig | None:
        return cls.__secure_config__

    @classmethod
    def columns(cls) -> list[ColumnDescriptor]:
        """All storage columns of this record type, in field order."""
        return [describe_field(name, field) for name, field in cls.model_fields.items()]

    @classmethod
    def secure_columns(cls) -> list[ColumnDescriptor]:
        """
        Columns encrypted for this record type.

        Returns:
            The secure columns, empty when the type is not configured
        """
        config = cls.__secure_config__
        if config is None:
            return []
        return classify_secure_columns(config, cls.columns())

    # Provider selection

    @classmethod
    def crypto_provider(cls) -> CryptoProvider | None:
        """The provider encryption would use right now, if any."""
        provider = active_override(cls)
        if provider is not None:
            return provider
        config = cls.__secure_config__
        return config.default_provider if config is not None else None

    @classmethod
    @contextmanager
    def crypto_provider_override(cls, provider: CryptoProvider) -> Iterator[CryptoProvider]:
        """Use another provider for this record type inside a with block."""
        with provider_override(cls, provider):
            yield provider

    @classmethod
    def with_crypto_provider(cls, provider: CryptoProvider, body: Callable[[], T]) -> T:
        """
        Run a callable with another provider active for this record type.

        Args:
            provider: The provider to use while body runs
            body: Callable taking no arguments

        Returns:
            Whatever body returns
        """
        with provider_override(cls, provider):
            return body()

    # Engine integration

    @classmethod
    def from_storage(
        cls: type[R], row: Mapping[str, Any], raw: Mapping[str, Any] | None = None
    ) -> R:
        """
        Build a record from a stored row without validation.

        Args:
            row: Column values as loaded
            raw: Values as stored, before the engine coerced them; defaults
                to row itself

        Returns:
            The record, still holding ciphertext until after_read runs
        """
        known = {name: value for name, value in row.items() if name in cls.model_fields}
        record = cls.model_construct(**known)
        record._raw_attributes = dict(raw) if raw is not None else {}
        record._secure_state = RecordState.ENCRYPTED
        return record

    def to_row(self) -> dict[str, Any]:
        """Current column values keyed by column name."""
        return {name: getattr(self, name) for name in type(self).model_fields}

    def read_raw_attribute(self, name: str) -> Any:
        """Stored value of a column before any coercion by the engine."""
        if name in self._raw_attributes:
            return self._raw_attributes[name]
        return getattr(self, name)

    @property
    def secure_state(self) -> RecordState:
        return self._secure_state

    def before_write(self) -> None:
        encrypt_secure_columns(self)

    def after_write(self) -> None:
        decrypt_secure_columns(self)

    def after_read(self) -> None:
        decrypt_secure_columns(self)

    def restore_after_failed_write(self) -> None:
        """Return to plaintext after before_write ran but the write failed."""
        if self._secure_state == RecordState.ENCRYPTED:
            decrypt_secure_columns(self)

    def read_attribute_before_decryption(self, name: str) -> Any:
        """
        Read a column as it was before the last decryption.

        Args:
            name: The column name

        Returns:
            The pre-decryption value when recorded, else the current value
        """
        return read_before_decryption(self, name)
