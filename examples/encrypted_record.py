"""
Example of using encrypted columns in secure records.

This example demonstrates subtype configuration inheritance and scoped
provider overrides, e.g. for re-encrypting rows under a new key.
"""

import os

from secure_columns import AEADProvider, ColumnType, SecureColumnsConfig, SecureRecord, column
from secure_columns.db import InMemoryRecordStore


class Account(SecureRecord):
    """
    Account with encrypted credentials.

    Both binary columns are secured; ``username`` is a text column and
    stays readable in storage.
    """

    username: str
    password_hint: str | None = column(ColumnType.BINARY, default=None)
    api_key: str | None = column(ColumnType.BINARY, default=None)


class ServiceAccount(Account):
    """Inherits a copy of Account's configuration when it is defined."""

    owner: str = "ops"


def main() -> None:
    """Example usage of secure records."""
    os.environ["SECURE_COLUMNS_MODE"] = "DEV"
    SecureColumnsConfig.initialize()

    old_key = AEADProvider("example-old-master-key", key_iterations=10000)
    new_key = AEADProvider("example-new-master-key", key_iterations=10000)

    # Configured after ServiceAccount is defined, so ServiceAccount keeps
    # its own unconfigured copy until it is configured too
    Account.configure_security(crypto_provider=old_key)
    ServiceAccount.configure_security({"except": ["api_key"]}, crypto_provider=old_key)

    print("Account secures:", [col.name for col in Account.secure_columns()])
    print("ServiceAccount secures:", [col.name for col in ServiceAccount.secure_columns()])

    store = InMemoryRecordStore()
    key = store.save(Account(username="jdoe", password_hint="first pet", api_key="ak-123"))

    # Re-encrypt under the new key: load with the old one, save with the new one
    account = store.get(Account, key)
    Account.with_crypto_provider(new_key, lambda: store.save(account, key=key))

    with Account.crypto_provider_override(new_key):
        reloaded = store.get(Account, key)

    print("Re-encrypted hint:", reloaded.password_hint)


if __name__ == "__main__":
    main()
