"""InMemoryWalletStore — dict-backed wallet store for tests and embedding."""
from __future__ import annotations

import threading

from wal.errors import WalletNotFoundError
from wal.store.base import WalletStore
from wal.wallet.model import Wallet, WalletSummary


class InMemoryWalletStore(WalletStore):
    """Wallet store keeping deep copies of wallets in a dict.

    Copies go in on :meth:`upsert` and come out on :meth:`get`, so a caller
    holding a wallet never aliases the stored value.

    Example
    -------
    ::

        store = InMemoryWalletStore()
        store.upsert(wallet)
        assert store.exists(wallet.name)
    """

    def __init__(self) -> None:
        self._wallets: dict[str, Wallet] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> Wallet:
        with self._lock:
            if name not in self._wallets:
                raise WalletNotFoundError(name)
            return self._wallets[name].model_copy(deep=True)

    def exists(self, name: str) -> bool:
        with self._lock:
            return name in self._wallets

    def list_summaries(self) -> list[WalletSummary]:
        with self._lock:
            wallets = list(self._wallets.values())
        return sorted((w.summary() for w in wallets), key=lambda s: s.name)

    def upsert(self, wallet: Wallet) -> None:
        with self._lock:
            self._wallets[wallet.name] = wallet.model_copy(deep=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._wallets)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._wallets


__all__ = ["InMemoryWalletStore"]
