"""
Reference AEAD crypto provider.

This module provides an authenticated encryption provider suitable for
secure columns. Every message gets its own salt and nonce, and the key
is derived from a master key with PBKDF2.
"""

import hashlib
import os
import sys
from enum import Enum

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ..config import SecureColumnsConfig
from ..errors import ProviderError


class EncryptionAlgorithm(str, Enum):
    """Supported encryption algorithms."""

    AES_GCM = "AES-GCM"
    CHACHA20_POLY1305 = "ChaCha20-Poly1305"


# Envelope layout: version | algorithm | salt | nonce | ciphertext + tag
ENVELOPE_VERSION = 1
SALT_SIZE = 16
NONCE_SIZE = 12
TAG_SIZE = 16

_ALGORITHM_IDS = {
    EncryptionAlgorithm.AES_GCM: 1,
    EncryptionAlgorithm.CHACHA20_POLY1305: 2,
}
_ALGORITHMS_BY_ID = {value: key for key, value in _ALGORITHM_IDS.items()}

_HEADER_SIZE = 2 + SALT_SIZE + NONCE_SIZE


class AEADProvider:
    """
    Authenticated encryption provider.

    Encrypts opaque byte payloads with AES-GCM or ChaCha20-Poly1305. The
    output is a self-contained envelope, so decryption needs nothing but
    the same master key and key context.
    """

    def __init__(
        self,
        master_key: str | None = None,
        *,
        algorithm: EncryptionAlgorithm | str | None = None,
        key_context: str = "",
        key_iterations: int | None = None,
    ) -> None:
        """
        Initialize the provider.

        Args:
            master_key: Optional master encryption key
            algorithm: Algorithm used for new ciphertexts
            key_context: Extra input mixed into every derived key, e.g. a
                table name, so ciphertexts cannot be moved between contexts
            key_iterations: PBKDF2 iteration count
        """
        self.master_key = master_key or self._get_master_key()

        if not self.master_key:
            print("ERROR: No master encryption key provided or found in environment", file=sys.stderr)
            sys.exit(1)

        try:
            self.algorithm = EncryptionAlgorithm(
                algorithm or SecureColumnsConfig.get("encryption.algorithm", EncryptionAlgorithm.AES_GCM.value)
            )
        except ValueError as e:
            raise ProviderError(f"Unsupported encryption algorithm: {algorithm}") from e

        self.key_context = key_context
        self.key_iterations = key_iterations or SecureColumnsConfig.get("encryption.key_iterations", 100000)

    def _get_master_key(self) -> str:
        """
        Get the master encryption key from the environment or configuration.

        Returns:
            The master key, or an empty string if none is available
        """
        key = os.environ.get("SECURE_COLUMNS_ENCRYPTION_KEY")
        if key:
            return key

        key = SecureColumnsConfig.get("encryption.key")
        if key:
            return key

        if SecureColumnsConfig.is_dev_mode():
            return "dev-only-encryption-key-do-not-use-in-production"

        return ""

    def derive_key(self, salt: bytes) -> bytes:
        """
        Derive the 256-bit key for one message.

        Args:
            salt: Per-message salt

        Returns:
            The derived key
        """
        # Mix in the key context before stretching
        context_key = hashlib.sha256(
            self.master_key.encode("utf-8") + self.key_context.encode("utf-8")
        ).digest()

        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt,
            iterations=self.key_iterations,
            backend=default_backend(),
        )
        return kdf.derive(context_key)

    def encrypt(self, data: bytes) -> bytes:
        """
        Encrypt a payload.

        Args:
            data: Plaintext bytes

        Returns:
            The encrypted envelope
        """
        if not isinstance(data, (bytes, bytearray)):
            raise ProviderError("Plaintext must be bytes")

        salt = os.urandom(SALT_SIZE)
        nonce = os.urandom(NONCE_SIZE)
        key = self.derive_key(salt)

        if self.algorithm == EncryptionAlgorithm.AES_GCM:
            cipher = Cipher(algorithms.AES(key), modes.GCM(nonce), backend=default_backend())
            encryptor = cipher.encryptor()
            ciphertext = encryptor.update(bytes(data)) + encryptor.finalize() + encryptor.tag
        else:
            ciphertext = ChaCha20Poly1305(key).encrypt(nonce, bytes(data), None)

        header = bytes([ENVELOPE_VERSION, _ALGORITHM_IDS[self.algorithm]])
        return header + salt + nonce + ciphertext

    def decrypt(self, data: bytes) -> bytes:
        """
        Decrypt an envelope produced by encrypt.

        Args:
            data: The encrypted envelope

        Returns:
            The plaintext bytes

        Raises:
            ProviderError: If the envelope is malformed or fails authentication
        """
        if not isinstance(data, (bytes, bytearray)) or len(data) < _HEADER_SIZE + TAG_SIZE:
            raise ProviderError("Invalid ciphertext envelope")

        data = bytes(data)
        if data[0] != ENVELOPE_VERSION:
            raise ProviderError(f"Unsupported envelope version: {data[0]}")

        algorithm = _ALGORITHMS_BY_ID.get(data[1])
        if algorithm is None:
            raise ProviderError(f"Unsupported encryption algorithm id: {data[1]}")

        salt = data[2:2 + SALT_SIZE]
        nonce = data[2 + SALT_SIZE:_HEADER_SIZE]
        ciphertext = data[_HEADER_SIZE:]
        key = self.derive_key(salt)

        try:
            if algorithm == EncryptionAlgorithm.AES_GCM:
                cipher = Cipher(
                    algorithms.AES(key),
                    modes.GCM(nonce, ciphertext[-TAG_SIZE:]),
                    backend=default_backend(),
                )
                decryptor = cipher.decryptor()
                return decryptor.update(ciphertext[:-TAG_SIZE]) + decryptor.finalize()
            return ChaCha20Poly1305(key).decrypt(nonce, ciphertext, None)
        except InvalidTag as e:
            raise ProviderError("Ciphertext failed authentication") from e
