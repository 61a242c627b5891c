"""wal — wallets of self-sovereign identities and verifiable credentials.

Public API
----------
The stable public surface is everything exported from this module.

Example
-------
>>> import wal
>>> wal.__version__
'0.1.0'

Quick start
-----------
::

    from wal import InMemoryWalletStore, WalletService
    from wal.adapters import (
        Ed25519Signer, Ed25519Verifier, EnvelopeService, FileLedger,
        PeerKeyring, RevocationRegistry,
    )

    registry = RevocationRegistry()
    ledger = FileLedger()
    keyring = PeerKeyring()
    service = WalletService(
        store=InMemoryWalletStore(),
        ledger=ledger,
        signer=Ed25519Signer(registry),
        verifier=Ed25519Verifier(ledger, registry),
        encryption=EnvelopeService(keyring),
        keyring=keyring,
    )
    service.create_wallet("alice")
    service.create_identity("alice", "issuer", is_issuer=True)
"""
from __future__ import annotations

__version__: str = "0.1.0"

from wal.config import WalSettings
from wal.errors import (
    DuplicateError,
    ExternalFailureError,
    InvalidError,
    NotFoundError,
    WalError,
)
from wal.service import (
    RegistryStatus,
    RevocationReport,
    VerificationResult,
    WalletService,
)
from wal.store import FilesystemWalletStore, InMemoryWalletStore, WalletStore
from wal.wallet.model import (
    CredentialSource,
    Identity,
    KeyPurpose,
    Wallet,
    WalletSummary,
)

__all__ = [
    "__version__",
    "CredentialSource",
    "DuplicateError",
    "ExternalFailureError",
    "FilesystemWalletStore",
    "Identity",
    "InMemoryWalletStore",
    "InvalidError",
    "KeyPurpose",
    "NotFoundError",
    "RegistryStatus",
    "RevocationReport",
    "VerificationResult",
    "Wallet",
    "WalError",
    "WalletService",
    "WalletStore",
    "WalletSummary",
    "WalSettings",
]
