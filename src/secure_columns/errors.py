"""
Exception types for secure columns.

Every error raised by the package derives from SecureColumnsError so callers
can catch the whole family at a persistence boundary.
"""


class SecureColumnsError(Exception):
    """Base class for all secure column errors."""


class ConfigurationError(SecureColumnsError, ValueError):
    """Raised when a record type is configured with invalid options."""


class MissingProviderError(SecureColumnsError):
    """Raised when no crypto provider is active for a record type."""


class ProviderError(SecureColumnsError):
    """Raised by a crypto provider that cannot process its input."""


class DecodeError(SecureColumnsError):
    """Raised when decrypted bytes cannot be deserialized."""


class SerializationError(SecureColumnsError, ValueError):
    """Raised when a value cannot be serialized for encryption."""


class DecryptionFailedError(SecureColumnsError):
    """
    Opaque decryption failure.

    The message is fixed and the original exception is never chained, so
    nothing about the key or the plaintext structure reaches the caller.
    """

    MESSAGE = "Failed to decode the field. Incorrect key?"

    def __init__(self) -> None:
        super().__init__(self.MESSAGE)
