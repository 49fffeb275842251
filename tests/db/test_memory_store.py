"""
Tests for the record store hook sequence, using the in-memory store.
"""

from typing import Any

import pytest
from pydantic import BaseModel

from secure_columns.db import InMemoryRecordStore
from secure_columns.encryption.codec import deserialize
from secure_columns.errors import DecryptionFailedError
from secure_columns.models import ColumnType, RecordState, SecureRecord, column


class _FailingStore(InMemoryRecordStore):
    """Store whose writes always fail after the record was encrypted."""

    def _write_row(self, collection: str, key: str, row: dict[str, Any]) -> None:
        raise ConnectionError("database went away")


class Address(BaseModel):
    street: str


def _make_account_class(provider):
    class Account(SecureRecord):
        username: str
        api_key: str | None = column(ColumnType.BINARY, default=None)
        settings: dict[str, Any] | None = column(ColumnType.BINARY, default=None)
        address: Address | None = column(ColumnType.BINARY, default=None)
        scopes: tuple[str, ...] | None = column(ColumnType.BINARY, default=None)

    Account.configure_security(crypto_provider=provider)
    return Account


class TestInMemoryRecordStore:
    """Tests for saving and loading through a record store."""

    def setup_method(self) -> None:
        self.store = InMemoryRecordStore()

    def test_storage_only_sees_ciphertext(self, xor_provider) -> None:
        Account = _make_account_class(xor_provider)
        account = Account(username="jdoe", api_key="ak-123", settings={"theme": "dark"})

        key = self.store.save(account)

        row = self.store.collections["Account"][key]
        assert row["username"] == "jdoe"
        assert isinstance(row["api_key"], bytes)
        assert deserialize(xor_provider.decrypt(row["api_key"])) == "ak-123"

        # The saved record is usable again right away
        assert account.api_key == "ak-123"
        assert account.settings == {"theme": "dark"}
        assert account.secure_state == RecordState.PLAIN

    def test_get_returns_plaintext(self, xor_provider) -> None:
        Account = _make_account_class(xor_provider)
        key = self.store.save(Account(username="jdoe", api_key="ak-123"))

        loaded = self.store.get(Account, key)

        assert loaded.username == "jdoe"
        assert loaded.api_key == "ak-123"
        assert loaded.settings is None
        assert loaded.read_attribute_before_decryption("api_key") == self.store.collections["Account"][key]["api_key"]

    def test_save_with_existing_key_replaces_row(self, xor_provider) -> None:
        Account = _make_account_class(xor_provider)
        account = Account(username="jdoe", api_key="old")
        key = self.store.save(account)

        account.api_key = "new"
        assert self.store.save(account, key=key) == key

        assert self.store.get(Account, key).api_key == "new"
        assert len(self.store.collections["Account"]) == 1

    def test_stored_rows_do_not_alias_records(self, xor_provider) -> None:
        Account = _make_account_class(xor_provider)
        settings = {"theme": "dark"}
        key = self.store.save(Account(username="jdoe", settings=settings))

        loaded = self.store.get(Account, key)
        loaded.settings["theme"] = "light"

        assert self.store.get(Account, key).settings == {"theme": "dark"}

    def test_reencrypt_with_override(self, make_xor_provider) -> None:
        """Rows can be moved to a new key by saving under an override."""
        old, new = make_xor_provider(1), make_xor_provider(2)
        Account = _make_account_class(old)
        key = self.store.save(Account(username="jdoe", api_key="ak-123"))

        account = self.store.get(Account, key)
        Account.with_crypto_provider(new, lambda: self.store.save(account, key=key))

        with pytest.raises(DecryptionFailedError):
            self.store.get(Account, key)

        with Account.crypto_provider_override(new):
            assert self.store.get(Account, key).api_key == "ak-123"

    def test_query(self, xor_provider) -> None:
        Account = _make_account_class(xor_provider)
        for name in ["alice", "bob", "alice"]:
            self.store.save(Account(username=name, api_key=f"key-{name}"))

        results = self.store.query(Account, {"username": "alice"})

        assert len(results) == 2
        assert all(result.api_key == "key-alice" for result in results)
        assert len(self.store.query(Account, limit=1)) == 1

    def test_query_with_zero_limit(self, xor_provider) -> None:
        Account = _make_account_class(xor_provider)
        for name in ["alice", "bob"]:
            self.store.save(Account(username=name))

        assert self.store.query(Account, limit=0) == []
        assert self.store.query(Account, {"username": "bob"}, limit=0) == []

    def test_query_on_secure_column_is_rejected(self, xor_provider) -> None:
        Account = _make_account_class(xor_provider)

        with pytest.raises(ValueError, match="api_key"):
            self.store.query(Account, {"api_key": "ak-123"})

    def test_delete(self, xor_provider) -> None:
        Account = _make_account_class(xor_provider)
        key = self.store.save(Account(username="jdoe"))

        self.store.delete(Account, key)

        with pytest.raises(KeyError):
            self.store.get(Account, key)
        with pytest.raises(KeyError):
            self.store.delete(Account, key)

    def test_get_missing_record(self, xor_provider) -> None:
        Account = _make_account_class(xor_provider)

        with pytest.raises(KeyError):
            self.store.get(Account, "missing")

    def test_rejects_non_secure_records(self) -> None:
        with pytest.raises(ValueError):
            self.store.save({"username": "jdoe"})

    def test_failed_write_restores_plaintext(self, xor_provider) -> None:
        """A write error leaves the in-memory record as it was before save."""
        Account = _make_account_class(xor_provider)
        account = Account(username="jdoe", api_key="ak-123")

        with pytest.raises(ConnectionError):
            _FailingStore().save(account)

        assert account.api_key == "ak-123"
        assert account.secure_state == RecordState.PLAIN

    def test_decryption_failure_aborts_load(self, make_xor_provider) -> None:
        Account = _make_account_class(make_xor_provider(1))
        key = self.store.save(Account(username="jdoe", api_key="ak-123"))

        Account.configure_security(crypto_provider=make_xor_provider(9))

        with pytest.raises(DecryptionFailedError):
            self.store.get(Account, key)

    def test_structured_columns_keep_their_types(self, xor_provider) -> None:
        """Model and tuple columns are the same type after save and after load."""
        Account = _make_account_class(xor_provider)
        account = Account(username="jdoe", address=Address(street="Main"), scopes=("read", "write"))

        key = self.store.save(account)

        assert isinstance(account.address, Address)
        assert account.scopes == ("read", "write")

        loaded = self.store.get(Account, key)
        assert loaded.address == Address(street="Main")
        assert isinstance(loaded.address, Address)
        assert loaded.scopes == ("read", "write")
