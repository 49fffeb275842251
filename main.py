#!/usr/bin/env python3
"""
Secure Columns demo entry point.

This script stores a record with encrypted columns, loads it back and
shows what the storage layer holds compared to what the application sees.
"""

import argparse
import os
import sys
from datetime import date
from typing import Any

from secure_columns import (
    AEADProvider,
    ColumnType,
    DecryptionFailedError,
    SecureColumnsConfig,
    SecureRecord,
    column,
)
from secure_columns.db import InMemoryRecordStore, RecordStore


class PatientRecord(SecureRecord):
    """Example patient record with encrypted columns."""

    name: str
    birth_date: date
    ssn: str | None = column(ColumnType.BINARY, default=None)
    diagnosis: dict[str, Any] | None = column(ColumnType.BINARY, default=None)
    legacy_token: bytes | None = column(ColumnType.BINARY, default=None)


def parse_args() -> argparse.Namespace:
    """
    Parse command line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description="Secure Columns demo")

    parser.add_argument(
        "--config",
        help="Path to configuration file"
    )

    parser.add_argument(
        "--mode",
        choices=["DEV", "PROD"],
        help="Override operation mode (DEV or PROD)"
    )

    parser.add_argument(
        "--store",
        choices=["memory", "arango"],
        default="memory",
        help="Record store to use (default: memory)"
    )

    parser.add_argument(
        "--algorithm",
        choices=["AES-GCM", "ChaCha20-Poly1305"],
        help="Encryption algorithm for new ciphertexts"
    )

    return parser.parse_args()


def make_store(kind: str) -> RecordStore:
    if kind == "arango":
        from secure_columns.db import ArangoRecordStore
        return ArangoRecordStore()
    return InMemoryRecordStore()


def run_demo(store: RecordStore, provider: AEADProvider) -> None:
    """Save a patient, load it back and print both representations."""
    PatientRecord.configure_security(
        {"except": ["legacy_token"]},
        crypto_provider=provider,
    )
    print(f"Secure columns: {[col.name for col in PatientRecord.secure_columns()]}")

    patient = PatientRecord(
        name="Jane Roe",
        birth_date=date(1984, 3, 12),
        ssn="123-45-6789",
        diagnosis={"code": "E11.9", "notes": ["diet", "metformin"]},
        legacy_token=b"\x00\x01",
    )

    key = store.save(patient)
    print(f"Stored patient with key: {key}")

    loaded = store.get(PatientRecord, key)
    print(f"  Name: {loaded.name}")
    print(f"  SSN: {loaded.ssn}")
    print(f"  Diagnosis: {loaded.diagnosis}")

    ciphertext = loaded.read_attribute_before_decryption("ssn")
    print(f"  SSN ciphertext: {len(ciphertext)} bytes")

    # A record read with the wrong key fails without revealing why
    other = AEADProvider("some-other-key", key_iterations=provider.key_iterations)
    try:
        PatientRecord.with_crypto_provider(other, lambda: store.get(PatientRecord, key))
    except DecryptionFailedError as e:
        print(f"  Wrong key: {type(e).__name__}: {e}")


def main() -> None:
    """Main entry point for the demo."""
    args = parse_args()

    if args.mode:
        os.environ["SECURE_COLUMNS_MODE"] = args.mode

    SecureColumnsConfig.initialize(args.config)

    mode = SecureColumnsConfig.get("mode")
    print(f"Secure Columns - {mode} mode")

    provider = AEADProvider(algorithm=args.algorithm)
    print(f"Algorithm: {provider.algorithm.value}")

    try:
        run_demo(make_store(args.store), provider)
    except KeyboardInterrupt:
        print("Demo stopped")
        sys.exit(0)


if __name__ == "__main__":
    main()
