"""
Crypto provider contract.

A provider is any object with ``encrypt`` and ``decrypt`` methods over bytes.
Secure columns never look inside a provider; they only call these two
methods on the serialized form of a column value.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class CryptoProvider(Protocol):
    """
    Interface every concrete cipher must satisfy.

    Implementations report failures by raising ``ProviderError``. A decrypt
    failure (wrong key, corrupted ciphertext) is an expected outcome and is
    turned into an opaque error by the caller.
    """

    def encrypt(self, data: bytes) -> bytes:
        ...

    def decrypt(self, data: bytes) -> bytes:
        ...
