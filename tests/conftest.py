"""
Pytest configuration for secure columns tests.
"""

import os
from typing import Callable, Generator

import pytest

from secure_columns.config import SecureColumnsConfig
from secure_columns.encryption import AEADProvider
from secure_columns.errors import ProviderError


ENV_KEYS = [
    "SECURE_COLUMNS_MODE",
    "SECURE_COLUMNS_ENCRYPTION_KEY",
    "SECURE_COLUMNS_ALGORITHM",
    "SECURE_COLUMNS_DB_URL",
    "SECURE_COLUMNS_DB_USERNAME",
    "SECURE_COLUMNS_DB_PASSWORD",
]


class XorProvider:
    """
    Toy provider for tests.

    The first ciphertext byte is the key, so decrypting with another key
    fails the way a real cipher would. Calls are counted.
    """

    def __init__(self, key: int = 42) -> None:
        self.key = key
        self.encrypt_calls = 0
        self.decrypt_calls = 0

    def encrypt(self, data: bytes) -> bytes:
        self.encrypt_calls += 1
        return bytes([self.key]) + bytes(b ^ self.key for b in data)

    def decrypt(self, data: bytes) -> bytes:
        self.decrypt_calls += 1
        if not data or data[0] != self.key:
            raise ProviderError(f"key byte mismatch: expected {self.key}")
        return bytes(b ^ self.key for b in data[1:])


@pytest.fixture(autouse=True)
def clean_environment() -> Generator[None, None, None]:
    """
    Run every test with no SECURE_COLUMNS_* variables and fresh settings.

    The original environment is restored afterwards.
    """
    original_env = {key: os.environ.pop(key, None) for key in ENV_KEYS}
    SecureColumnsConfig.initialize()

    yield

    for key, value in original_env.items():
        if value is not None:
            os.environ[key] = value
        else:
            os.environ.pop(key, None)
    SecureColumnsConfig.initialize()


@pytest.fixture
def prod_mode_env() -> Generator[None, None, None]:
    """Set production mode for the duration of a test."""
    os.environ["SECURE_COLUMNS_MODE"] = "PROD"
    SecureColumnsConfig.initialize()

    yield


@pytest.fixture
def make_xor_provider() -> Callable[[int], XorProvider]:
    """Factory for toy providers with a given key byte."""
    return XorProvider


@pytest.fixture
def xor_provider() -> XorProvider:
    return XorProvider(42)


@pytest.fixture
def aead_provider() -> AEADProvider:
    """Real provider with a low iteration count to keep tests fast."""
    return AEADProvider("test-master-key-for-unit-testing", key_iterations=1000)
