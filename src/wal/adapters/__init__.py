"""Local reference implementations of the collaborator contracts.

- :class:`FileLedger`          — :class:`~wal.collaborators.Ledger`
- :class:`Ed25519Signer`       — :class:`~wal.collaborators.Signer`
- :class:`Ed25519Verifier`     — :class:`~wal.collaborators.Verifier`
- :class:`EnvelopeService`     — :class:`~wal.collaborators.EncryptionService`
- :class:`RevocationRegistry`  — shared by signer and verifier
- :class:`PeerKeyring`         — private keys of local peer identities
"""
from __future__ import annotations

from wal.adapters.encryption import EnvelopeService, PeerKeyring
from wal.adapters.ledger import FileLedger
from wal.adapters.revocation import RevocationRegistry
from wal.adapters.signer import Ed25519Signer, Ed25519Verifier

__all__ = [
    "Ed25519Signer",
    "Ed25519Verifier",
    "EnvelopeService",
    "FileLedger",
    "PeerKeyring",
    "RevocationRegistry",
]
