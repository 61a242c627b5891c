"""wal.wallet — the wallet aggregate and everything that changes it.

Submodules
----------
model
    Wallet, Identity, Key, IssuedCredential, ImportedCredential and enums.
keys
    Recovery phrases, seeds, and deterministic Ed25519 key derivation.
lifecycle
    Pure state transitions with one precondition function per operation.
transfer
    Wallet and credential export/import files.
"""
from __future__ import annotations

from wal.wallet.model import (
    Claim,
    CredentialProof,
    CredentialSource,
    CredentialStatus,
    Identity,
    ImportedCredential,
    IssuedCredential,
    Key,
    KeyPurpose,
    KeyStatus,
    PublicationState,
    Wallet,
    WalletSummary,
)

__all__ = [
    "Claim",
    "CredentialProof",
    "CredentialSource",
    "CredentialStatus",
    "Identity",
    "ImportedCredential",
    "IssuedCredential",
    "Key",
    "KeyPurpose",
    "KeyStatus",
    "PublicationState",
    "Wallet",
    "WalletSummary",
]
