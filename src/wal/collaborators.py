"""Collaborator contracts — what the orchestrator needs from the outside world.

The lifecycle core never signs, publishes, or encrypts anything itself. It
talks to four collaborators through these protocols:

``Signer``
    issues credential proofs and notifies the revocation registry
``Verifier``
    checks a credential payload and lists what is wrong with it
``Ledger``
    encodes identity URIs, publishes identity documents, and resolves them
``EncryptionService``
    packs and unpacks peer-to-peer message envelopes

:mod:`wal.adapters` holds local reference implementations. Any of them can
be swapped for a network-backed one by passing a different object to
:class:`~wal.service.WalletService`. Implementations report failures by
raising :class:`~wal.errors.ExternalFailureError`.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from wal.did.document import IdentityDocument
from wal.wallet.keys import KeyMaterial
from wal.wallet.model import Claim, CredentialProof


# ------------------------------------------------------------------
# Value types
# ------------------------------------------------------------------


@dataclass(frozen=True)
class SigningKey:
    """Derived key material together with the identity it belongs to.

    Parameters
    ----------
    issuer_uri:
        The identity reference other parties resolve (canonical once
        published, long form before).
    material:
        The derived keypair.
    """

    issuer_uri: str
    material: KeyMaterial

    @property
    def verification_method(self) -> str:
        return f"{self.issuer_uri}#{self.material.key_id}"


@dataclass(frozen=True)
class RegistryAck:
    """Acknowledgement from the revocation registry."""

    credential_hash: str
    operation_id: str


@dataclass(frozen=True)
class VerificationError:
    """One reason a credential failed verification.

    Parameters
    ----------
    code:
        Stable machine-readable reason (e.g. ``"revoked"``).
    message:
        Human-readable detail.
    """

    code: str
    message: str


@dataclass(frozen=True)
class LedgerReceipt:
    """What the ledger returns for a publish."""

    canonical_uri: str
    operation_id: str


@dataclass(frozen=True)
class UnpackResult:
    """A decrypted message.

    ``sender_uri`` is set only for authenticated envelopes; ``signer_uri``
    only when the plaintext carried a verified signature.
    """

    plaintext: str
    sender_uri: str | None = None
    signer_uri: str | None = None


# ------------------------------------------------------------------
# Protocols
# ------------------------------------------------------------------


@runtime_checkable
class Signer(Protocol):
    def issue(self, claim: Claim, issuer_key: SigningKey) -> CredentialProof:
        """Sign *claim* with *issuer_key* and return the proof."""
        ...

    def revoke(self, proof: CredentialProof, revocation_key: SigningKey) -> RegistryAck:
        """Record the credential behind *proof* as revoked in the registry."""
        ...


@runtime_checkable
class Verifier(Protocol):
    def check(self, credential_payload: dict[str, Any]) -> list[VerificationError]:
        """Return every problem found with the payload; empty means valid."""
        ...


@runtime_checkable
class Ledger(Protocol):
    def uris_for(self, state: dict[str, Any]) -> tuple[str, str]:
        """Return ``(canonical_uri, long_form_uri)`` for an initial identity state."""
        ...

    def publish(self, document: IdentityDocument) -> LedgerReceipt:
        """Publish *document*, or replace a previously published version."""
        ...

    def resolve(self, uri: str) -> IdentityDocument:
        """Return the current document for a canonical or long-form URI."""
        ...


@runtime_checkable
class EncryptionService(Protocol):
    def pack(
        self,
        plaintext: str,
        recipient_uri: str,
        sender_uri: str | None = None,
        signer_uri: str | None = None,
    ) -> dict[str, Any]:
        """Encrypt *plaintext* for *recipient_uri* (authenticated when a sender is given)."""
        ...

    def unpack(self, envelope: dict[str, Any]) -> UnpackResult:
        """Decrypt an envelope addressed to one of our identities."""
        ...


__all__ = [
    "EncryptionService",
    "Ledger",
    "LedgerReceipt",
    "RegistryAck",
    "Signer",
    "SigningKey",
    "UnpackResult",
    "VerificationError",
    "Verifier",
]
