"""Wallet storage — abstract interface.

A store holds whole wallet documents keyed by wallet name. It has a single
write entry point, :meth:`WalletStore.upsert`, which replaces the full
document: there are no field-level updates and no cross-wallet
transactions. Callers read a wallet, transform it in memory, and write the
whole aggregate back.

Two concurrent read-modify-write cycles on the same name are
last-write-wins; callers needing stronger guarantees must serialize
operations per wallet name themselves.
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from wal.wallet.model import Wallet, WalletSummary


class WalletStore(ABC):
    """Abstract base class for wallet storage backends."""

    @abstractmethod
    def get(self, name: str) -> Wallet:
        """Return the wallet stored under *name*.

        Raises
        ------
        WalletNotFoundError
            If no wallet is stored under *name*.
        """

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Return True if a wallet is stored under *name*."""

    @abstractmethod
    def list_summaries(self) -> list[WalletSummary]:
        """Return summaries of all stored wallets, sorted by name."""

    @abstractmethod
    def upsert(self, wallet: Wallet) -> None:
        """Insert *wallet*, or replace the document stored under its name."""


__all__ = ["WalletStore"]
