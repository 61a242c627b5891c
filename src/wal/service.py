"""WalletService — runs each wallet operation end to end.

For every operation the service:

1. loads the wallet by name from the :class:`~wal.store.WalletStore`
2. runs the operation's precondition from :mod:`wal.wallet.lifecycle`
3. calls the collaborators the operation needs (ledger, signer, verifier,
   encryption service)
4. applies the lifecycle transform
5. upserts the whole wallet

A failure in steps 1-4 leaves the stored wallet untouched. The one
exception is credential revocation: the local state is committed first and
the registry is notified afterwards, so a registry failure is reported in
the returned :class:`RevocationReport` instead of being raised.

Example
-------
::

    service = WalletService.from_settings(WalSettings())
    service.create_wallet("alice")
    service.create_identity("alice", "id1", is_issuer=True)
    service.publish_identity("alice", "id1")
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from wal.adapters import (
    Ed25519Signer,
    Ed25519Verifier,
    EnvelopeService,
    FileLedger,
    PeerKeyring,
    RevocationRegistry,
)
from wal.collaborators import (
    EncryptionService,
    Ledger,
    Signer,
    SigningKey,
    UnpackResult,
    VerificationError,
    Verifier,
)
from wal.config import WalSettings
from wal.did.document import IdentityDocument
from wal.did.peer import PeerDocument, PeerIdentity, create_peer_identity, resolve_peer_identity
from wal.did.uri import ED25519_PUB_MULTICODEC, multibase_key
from wal.errors import CredentialNotFoundError, WalError, WalletAlreadyExistsError
from wal.store import FilesystemWalletStore, WalletStore
from wal.wallet import lifecycle
from wal.wallet.keys import SeedKeyManager, generate_mnemonic, validate_mnemonic
from wal.wallet.model import (
    Claim,
    CredentialSource,
    Identity,
    ImportedCredential,
    IssuedCredential,
    Key,
    KeyPurpose,
    Wallet,
    WalletSummary,
)
from wal.wallet.transfer import (
    export_credential_file,
    export_wallet_file,
    read_credential_file,
    read_wallet_file,
)

logger = logging.getLogger(__name__)

_SAMPLE_NAMES = ("Alice", "Bob", "Charlie", "David", "Eve", "Felix", "Gavin")
_SAMPLE_DEGREES = ("Law", "Data Science", "Economics", "Computer Science", "Politics", "Education")


# ------------------------------------------------------------------
# Results
# ------------------------------------------------------------------


class RegistryStatus(str, Enum):
    """Outcome of notifying the revocation registry."""

    ACKNOWLEDGED = "acknowledged"
    FAILED = "failed"


@dataclass(frozen=True)
class RevocationReport:
    """Result of revoking an issued credential.

    The credential is always revoked locally when a report is returned.
    ``registry_status`` says whether the public registry knows about it.
    """

    credential_alias: str
    credential_hash: str
    registry_status: RegistryStatus
    operation_id: str | None = None
    error: str | None = None

    @property
    def fully_revoked(self) -> bool:
        return self.registry_status is RegistryStatus.ACKNOWLEDGED


@dataclass(frozen=True)
class VerificationResult:
    """What the verifier found for one stored credential."""

    alias: str
    source: CredentialSource
    errors: list[VerificationError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors


# ------------------------------------------------------------------
# Service
# ------------------------------------------------------------------


class WalletService:
    """Orchestrates wallet operations over a store and four collaborators.

    Parameters
    ----------
    store:
        Where wallets are persisted.
    ledger:
        Encodes identity URIs, publishes and resolves identity documents.
    signer:
        Issues credential proofs and notifies the revocation registry.
    verifier:
        Checks credential payloads.
    encryption:
        Packs and unpacks peer-to-peer envelopes.
    keyring:
        Receives the private keys of peer identities created here. ``None``
        means created peer identities are returned but not kept.
    mnemonic_strength:
        Entropy bits for generated recovery phrases.
    """

    def __init__(
        self,
        store: WalletStore,
        ledger: Ledger,
        signer: Signer,
        verifier: Verifier,
        encryption: EncryptionService,
        keyring: PeerKeyring | None = None,
        mnemonic_strength: int = 256,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._signer = signer
        self._verifier = verifier
        self._encryption = encryption
        self._keyring = keyring
        self._mnemonic_strength = mnemonic_strength

    @classmethod
    def from_settings(cls, settings: WalSettings) -> "WalletService":
        """Wire the file-backed reference adapters at the configured paths."""
        registry = RevocationRegistry(settings.revocation_file)
        ledger = FileLedger(settings.ledger_file)
        keyring = PeerKeyring(settings.keyring_file)
        return cls(
            store=FilesystemWalletStore(settings.store_dir),
            ledger=ledger,
            signer=Ed25519Signer(registry),
            verifier=Ed25519Verifier(ledger, registry),
            encryption=EnvelopeService(keyring),
            keyring=keyring,
            mnemonic_strength=settings.mnemonic_strength,
        )

    # ------------------------------------------------------------------
    # Wallets
    # ------------------------------------------------------------------

    def create_wallet(
        self,
        name: str,
        mnemonic: list[str] | None = None,
        passphrase: str = "",
    ) -> Wallet:
        """Create a wallet from *mnemonic*, or from a freshly generated one.

        Raises
        ------
        WalletAlreadyExistsError
            If a wallet named *name* exists.
        InvalidMnemonicError
            If a supplied phrase does not validate.
        """
        if self._store.exists(name):
            raise WalletAlreadyExistsError(name)
        words = validate_mnemonic(mnemonic) if mnemonic else generate_mnemonic(self._mnemonic_strength)
        wallet = lifecycle.new_wallet(name, words, passphrase)
        self._store.upsert(wallet)
        logger.info("Created wallet %r", name)
        return wallet

    def list_wallets(self) -> list[WalletSummary]:
        return self._store.list_summaries()

    def get_wallet(self, name: str) -> Wallet:
        return self._store.get(name)

    def show_mnemonic(self, name: str) -> tuple[list[str], str]:
        """Return the recovery phrase and passphrase of wallet *name*."""
        wallet = self._store.get(name)
        return list(wallet.mnemonic), wallet.passphrase

    def export_wallet(self, name: str, path: Path) -> Path:
        wallet = self._store.get(name)
        export_wallet_file(wallet, path)
        logger.info("Exported wallet %r to %s", name, path)
        return path

    def import_wallet(self, path: Path, name: str | None = None) -> Wallet:
        """Import a wallet export, optionally under a new *name*.

        Raises
        ------
        InvalidFileError
            If the file does not hold a wallet.
        WalletAlreadyExistsError
            If the target name is taken.
        """
        wallet = read_wallet_file(path)
        if name is not None:
            wallet = lifecycle.rename_wallet(wallet, name)
        if self._store.exists(wallet.name):
            raise WalletAlreadyExistsError(wallet.name)
        self._store.upsert(wallet)
        logger.info("Imported wallet %r from %s", wallet.name, path)
        return wallet

    # ------------------------------------------------------------------
    # Identities
    # ------------------------------------------------------------------

    def create_identity(self, name: str, alias: str, is_issuer: bool = False) -> Identity:
        """Derive a new unpublished identity in wallet *name*."""
        wallet = self._store.get(name)
        plan = lifecycle.check_create_identity(wallet, alias, is_issuer)
        manager = SeedKeyManager.for_wallet(wallet)
        state = {
            "publicKeys": [
                {
                    "id": key.key_id,
                    "purpose": key.purpose.value,
                    "publicKeyMultibase": multibase_key(
                        ED25519_PUB_MULTICODEC,
                        manager.derive_raw(plan.derivation_index, key.derivation_index, key.purpose)[1],
                    ),
                }
                for key in plan.keys
            ]
        }
        canonical_uri, long_form_uri = self._ledger.uris_for(state)
        updated = lifecycle.create_identity(wallet, alias, is_issuer, canonical_uri, long_form_uri)
        self._store.upsert(updated)
        logger.info(
            "Created %s DID %r in wallet %r (index %d)",
            "issuer" if is_issuer else "holder",
            alias,
            name,
            plan.derivation_index,
        )
        return lifecycle.check_identity(updated, alias)

    def identity_document(self, name: str, alias: str) -> IdentityDocument:
        """Return the document derived locally from the wallet's seed."""
        wallet = self._store.get(name)
        return self._document(wallet, lifecycle.check_identity(wallet, alias))

    def publish_identity(self, name: str, alias: str) -> Identity:
        """Publish an identity's document to the ledger.

        Raises
        ------
        IdentityAlreadyPublishedError
            If the identity is already published. The ledger is not called.
        """
        wallet = self._store.get(name)
        identity = lifecycle.check_publish_identity(wallet, alias)
        receipt = self._ledger.publish(self._document(wallet, identity))
        updated = lifecycle.publish_identity(wallet, alias, receipt.operation_id)
        self._store.upsert(updated)
        logger.info("Published DID %r as %s", alias, receipt.canonical_uri)
        return lifecycle.check_identity(updated, alias)

    def resolve_identity(self, name: str, alias: str) -> IdentityDocument:
        """Return what the ledger reports for an identity of this wallet."""
        wallet = self._store.get(name)
        identity = lifecycle.check_identity(wallet, alias)
        return self._ledger.resolve(_identity_uri(identity))

    def resolve_uri(self, uri: str) -> IdentityDocument:
        return self._ledger.resolve(uri)

    def add_key(self, name: str, alias: str, key_id: str, purpose: KeyPurpose) -> Key:
        """Add an active key; a published identity's ledger entry is updated."""
        wallet = self._store.get(name)
        updated = lifecycle.add_key(wallet, alias, key_id, purpose)
        self._push_if_published(updated, alias)
        self._store.upsert(updated)
        logger.info("Added %s key %r to DID %r", purpose.value, key_id, alias)
        return _key(updated, alias, key_id)

    def revoke_key(self, name: str, alias: str, key_id: str) -> Key:
        """Revoke a key; a published identity's ledger entry is updated."""
        wallet = self._store.get(name)
        updated = lifecycle.revoke_key(wallet, alias, key_id)
        self._push_if_published(updated, alias)
        self._store.upsert(updated)
        logger.info("Revoked key %r of DID %r", key_id, alias)
        return _key(updated, alias, key_id)

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    def issue_credential(
        self,
        name: str,
        issuer_alias: str,
        subject_uri: str,
        credential_alias: str,
        claim: dict[str, Any] | None = None,
    ) -> IssuedCredential:
        """Sign a credential about *subject_uri* with the issuer's issuing key.

        Without *claim* a sample name/degree/date claim is issued.
        """
        wallet = self._store.get(name)
        content = dict(claim) if claim is not None else _sample_claim()
        context = lifecycle.check_issue_credential(
            wallet, issuer_alias, credential_alias, subject_uri, content
        )
        material = SeedKeyManager.for_wallet(wallet).derive(context.issuer, context.issuing_key)
        proof = self._signer.issue(
            Claim(subject_uri=subject_uri, content=content),
            SigningKey(issuer_uri=_identity_uri(context.issuer), material=material),
        )
        updated = lifecycle.issue_credential(
            wallet, issuer_alias, credential_alias, subject_uri, content, proof
        )
        self._store.upsert(updated)
        logger.info("Issued credential %r from DID %r to %s", credential_alias, issuer_alias, subject_uri)
        return next(c for c in updated.issued_credentials if c.alias == credential_alias)

    def revoke_credential(self, name: str, credential_alias: str) -> RevocationReport:
        """Revoke an issued credential locally, then notify the registry.

        Raises
        ------
        CredentialNotFoundError
            If no issued credential has *credential_alias*.
        CredentialAlreadyRevokedError
            If it is already revoked.
        MissingKeyError
            If the issuer has no active revocation key.
        """
        wallet = self._store.get(name)
        context = lifecycle.check_revoke_credential(wallet, credential_alias)
        material = SeedKeyManager.for_wallet(wallet).derive(context.issuer, context.revocation_key)
        updated = lifecycle.revoke_credential(wallet, credential_alias)
        self._store.upsert(updated)
        logger.info("Revoked credential %r in wallet %r", credential_alias, name)

        credential_hash = context.credential.proof.credential_hash
        try:
            ack = self._signer.revoke(
                context.credential.proof,
                SigningKey(issuer_uri=_identity_uri(context.issuer), material=material),
            )
        except WalError as exc:
            logger.warning(
                "Credential %r is revoked locally but the registry was not updated: %s",
                credential_alias,
                exc,
            )
            return RevocationReport(
                credential_alias=credential_alias,
                credential_hash=credential_hash,
                registry_status=RegistryStatus.FAILED,
                error=str(exc),
            )
        return RevocationReport(
            credential_alias=credential_alias,
            credential_hash=credential_hash,
            registry_status=RegistryStatus.ACKNOWLEDGED,
            operation_id=ack.operation_id,
        )

    def verify_credential(
        self, name: str, source: CredentialSource, alias: str
    ) -> VerificationResult:
        wallet = self._store.get(name)
        payload = lifecycle.check_verify_credential(wallet, source, alias)
        errors = list(self._verifier.check(payload))
        logger.debug("Verified %s credential %r: %d error(s)", source.value, alias, len(errors))
        return VerificationResult(alias=alias, source=source, errors=errors)

    def export_credential(self, name: str, alias: str, path: Path) -> Path:
        """Write an issued credential's signed payload to *path*."""
        wallet = self._store.get(name)
        credential = wallet.find_issued(alias)
        if credential is None:
            raise CredentialNotFoundError(name, alias)
        export_credential_file(credential.proof.signed_credential, path)
        logger.info("Exported credential %r to %s", alias, path)
        return path

    def import_credential(self, name: str, alias: str, path: Path) -> ImportedCredential:
        wallet = self._store.get(name)
        lifecycle.check_import_credential(wallet, alias)
        payload = read_credential_file(path)
        updated = lifecycle.import_credential(wallet, alias, payload)
        self._store.upsert(updated)
        logger.info("Imported credential %r into wallet %r", alias, name)
        return next(c for c in updated.imported_credentials if c.alias == alias)

    # ------------------------------------------------------------------
    # Peer messaging
    # ------------------------------------------------------------------

    def create_peer_identity(self) -> PeerIdentity:
        identity = create_peer_identity()
        if self._keyring is not None:
            self._keyring.add(identity)
        logger.info("Created peer DID %s", identity.did)
        return identity

    def resolve_peer_identity(self, uri: str) -> PeerDocument:
        return resolve_peer_identity(uri)

    def pack_message(
        self,
        plaintext: str,
        recipient_uri: str,
        sender_uri: str | None = None,
        signer_uri: str | None = None,
    ) -> dict[str, Any]:
        resolve_peer_identity(recipient_uri)
        return self._encryption.pack(plaintext, recipient_uri, sender_uri, signer_uri)

    def unpack_message(self, envelope: dict[str, Any]) -> UnpackResult:
        return self._encryption.unpack(envelope)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _document(self, wallet: Wallet, identity: Identity) -> IdentityDocument:
        materials = SeedKeyManager.for_wallet(wallet).derive_all(identity)
        return IdentityDocument.build(identity.canonical_uri, identity, materials)

    def _push_if_published(self, wallet: Wallet, alias: str) -> None:
        identity = lifecycle.check_identity(wallet, alias)
        if identity.published:
            receipt = self._ledger.publish(self._document(wallet, identity))
            logger.debug("Updated ledger entry of %s (operation %s)", alias, receipt.operation_id)


def _key(wallet: Wallet, alias: str, key_id: str) -> Key:
    identity = lifecycle.check_identity(wallet, alias)
    return next(k for k in identity.keys if k.key_id == key_id)


def _identity_uri(identity: Identity) -> str:
    """The reference other parties resolve: canonical once published."""
    return identity.canonical_uri if identity.published else identity.long_form_uri


def _sample_claim() -> dict[str, Any]:
    return {
        "name": random.choice(_SAMPLE_NAMES),
        "degree": random.choice(_SAMPLE_DEGREES),
        "date": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
    }


__all__ = [
    "RegistryStatus",
    "RevocationReport",
    "VerificationResult",
    "WalletService",
]
