"""Wallet stores — keyed document storage for whole wallet aggregates."""
from __future__ import annotations

from wal.store.base import WalletStore
from wal.store.filesystem import FilesystemWalletStore
from wal.store.memory import InMemoryWalletStore

__all__ = ["FilesystemWalletStore", "InMemoryWalletStore", "WalletStore"]
