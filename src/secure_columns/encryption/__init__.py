"""
Encryption utilities for secure columns.

This package holds the crypto provider contract, the serialization codec
applied before encryption, scoped provider overrides and a reference
AEAD provider.
"""

from .aead_provider import AEADProvider, EncryptionAlgorithm
from .codec import deserialize, serialize
from .overrides import active_override, provider_override
from .provider import CryptoProvider

__all__ = [
    "AEADProvider",
    "CryptoProvider",
    "EncryptionAlgorithm",
    "active_override",
    "deserialize",
    "provider_override",
    "serialize",
]
