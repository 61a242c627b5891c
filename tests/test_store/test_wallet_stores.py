"""Tests for wal.store — in-memory and filesystem wallet stores."""
from __future__ import annotations

from pathlib import Path

import pytest

from wal.errors import InvalidError, WalletNotFoundError
from wal.store import FilesystemWalletStore, InMemoryWalletStore, WalletStore
from wal.wallet import lifecycle
from wal.wallet.model import Wallet

MNEMONIC = ["abandon"] * 11 + ["about"]


def _wallet(name: str) -> Wallet:
    return lifecycle.new_wallet(name, MNEMONIC)


@pytest.fixture(params=["memory", "filesystem"])
def store(request: pytest.FixtureRequest, tmp_path: Path) -> WalletStore:
    if request.param == "memory":
        return InMemoryWalletStore()
    return FilesystemWalletStore(tmp_path / "wallets")


# ---------------------------------------------------------------------------
# Shared behaviour
# ---------------------------------------------------------------------------


class TestWalletStoreContract:
    def test_get_missing(self, store: WalletStore) -> None:
        with pytest.raises(WalletNotFoundError):
            store.get("ghost")
        assert not store.exists("ghost")

    def test_upsert_then_get(self, store: WalletStore) -> None:
        wallet = _wallet("alice")
        store.upsert(wallet)
        assert store.exists("alice")
        assert store.get("alice") == wallet

    def test_upsert_replaces_whole_document(self, store: WalletStore) -> None:
        wallet = _wallet("alice")
        store.upsert(wallet)
        updated = lifecycle.create_identity(wallet, "id1", False, "did:wal:a", "did:wal:a:b")
        store.upsert(updated)
        assert len(store.get("alice").identities) == 1

    def test_list_summaries_sorted(self, store: WalletStore) -> None:
        for name in ("carol", "alice", "bob"):
            store.upsert(_wallet(name))
        assert [s.name for s in store.list_summaries()] == ["alice", "bob", "carol"]

    def test_returned_wallet_does_not_alias_store(self, store: WalletStore) -> None:
        store.upsert(_wallet("alice"))
        fetched = store.get("alice")
        fetched.identities.append(
            lifecycle.create_identity(fetched, "x", False, "u", "v").identities[0]
        )
        assert store.get("alice").identities == []


# ---------------------------------------------------------------------------
# Backend specifics
# ---------------------------------------------------------------------------


class TestInMemoryWalletStore:
    def test_len_and_contains(self) -> None:
        store = InMemoryWalletStore()
        store.upsert(_wallet("alice"))
        assert len(store) == 1
        assert "alice" in store


class TestFilesystemWalletStore:
    def test_one_file_per_wallet(self, tmp_path: Path) -> None:
        store = FilesystemWalletStore(tmp_path)
        store.upsert(_wallet("alice"))
        store.upsert(_wallet("bob"))
        assert sorted(p.name for p in tmp_path.glob("*.json")) == ["alice.json", "bob.json"]

    def test_awkward_names_are_quoted(self, tmp_path: Path) -> None:
        store = FilesystemWalletStore(tmp_path)
        store.upsert(_wallet("team/alice smith"))
        assert store.exists("team/alice smith")
        assert [s.name for s in store.list_summaries()] == ["team/alice smith"]

    def test_persists_across_instances(self, tmp_path: Path) -> None:
        FilesystemWalletStore(tmp_path).upsert(_wallet("alice"))
        assert FilesystemWalletStore(tmp_path).get("alice").name == "alice"

    def test_corrupt_document(self, tmp_path: Path) -> None:
        store = FilesystemWalletStore(tmp_path)
        (tmp_path / "alice.json").write_text("{broken", encoding="utf-8")
        with pytest.raises(InvalidError):
            store.get("alice")

    def test_list_skips_corrupt_documents(self, tmp_path: Path) -> None:
        store = FilesystemWalletStore(tmp_path)
        store.upsert(_wallet("bob"))
        (tmp_path / "alice.json").write_text("{broken", encoding="utf-8")
        assert [s.name for s in store.list_summaries()] == ["bob"]

    def test_document_under_wrong_name(self, tmp_path: Path) -> None:
        store = FilesystemWalletStore(tmp_path)
        store.upsert(_wallet("bob"))
        (tmp_path / "bob.json").rename(tmp_path / "alice.json")
        with pytest.raises(InvalidError):
            store.get("alice")
