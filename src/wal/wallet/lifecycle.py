"""Lifecycle transforms — every validated state transition of a wallet.

Each operation is a pure function: it takes a :class:`~wal.wallet.model.Wallet`
and returns a *new* wallet, or raises a typed :mod:`wal.errors` failure. The
input wallet is never mutated and nothing here performs I/O.

Every operation has exactly one precondition function, ``check_<operation>``,
holding all of its existence, uniqueness, and syntax lookups. The
orchestrator calls the precondition before it contacts any collaborator, so
a signer or ledger is never invoked for a request that would be rejected.
The transform calls the same precondition again; both are cheap and pure.

Transitions
-----------
=====================  ==========================================
create_identity        (none) -> Unpublished
publish_identity       Unpublished -> Published
add_key                (none) -> Active
revoke_key             Active -> Revoked
issue_credential       (none) -> Active
revoke_credential      Active -> Revoked
import_credential      (none) -> stored verbatim
=====================  ==========================================
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from wal.did.uri import parse_identity_uri
from wal.errors import (
    CredentialAlreadyRevokedError,
    CredentialNotFoundError,
    DuplicateCredentialAliasError,
    DuplicateIdentityAliasError,
    DuplicateKeyIdError,
    IdentityAlreadyPublishedError,
    IdentityNotFoundError,
    InvalidError,
    KeyAlreadyRevokedError,
    KeyNotFoundError,
    KeyPurposeNotAllowedError,
    MissingKeyError,
)
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
)

_ISSUER_KEY_PURPOSES = (KeyPurpose.MASTER, KeyPurpose.ISSUING, KeyPurpose.REVOCATION)


# ------------------------------------------------------------------
# Precondition results
# ------------------------------------------------------------------


@dataclass(frozen=True)
class IdentityPlan:
    """What :func:`create_identity` will append, known before any derivation."""

    alias: str
    derivation_index: int
    is_issuer: bool
    keys: tuple[Key, ...]


@dataclass(frozen=True)
class IssueContext:
    issuer: Identity
    issuing_key: Key


@dataclass(frozen=True)
class RevokeContext:
    credential: IssuedCredential
    issuer: Identity
    revocation_key: Key


# ------------------------------------------------------------------
# Wallet
# ------------------------------------------------------------------


def new_wallet(name: str, mnemonic: list[str], passphrase: str = "") -> Wallet:
    """Return an empty wallet holding the given seed material."""
    if not name or not name.strip():
        raise InvalidError("Wallet name must not be empty.")
    return Wallet(name=name, mnemonic=list(mnemonic), passphrase=passphrase)


def rename_wallet(wallet: Wallet, name: str) -> Wallet:
    """Return a copy of *wallet* stored under *name* (used on import)."""
    if not name or not name.strip():
        raise InvalidError("Wallet name must not be empty.")
    return wallet.model_copy(update={"name": name}, deep=True)


# ------------------------------------------------------------------
# Identities
# ------------------------------------------------------------------


def initial_keys(is_issuer: bool) -> tuple[Key, ...]:
    """Return the keys a new identity starts with.

    Issuers get ``master0``, ``issuing0``, ``revocation0``; everyone else
    gets ``master0`` only. Derivation indices follow key order.
    """
    purposes = _ISSUER_KEY_PURPOSES if is_issuer else (KeyPurpose.MASTER,)
    return tuple(
        Key(key_id=f"{purpose.value}0", purpose=purpose, derivation_index=index)
        for index, purpose in enumerate(purposes)
    )


def check_create_identity(wallet: Wallet, alias: str, is_issuer: bool) -> IdentityPlan:
    if not alias or not alias.strip():
        raise InvalidError("DID alias must not be empty.")
    if wallet.find_identity(alias) is not None:
        raise DuplicateIdentityAliasError(alias)
    return IdentityPlan(
        alias=alias,
        derivation_index=wallet.next_identity_index,
        is_issuer=is_issuer,
        keys=initial_keys(is_issuer),
    )


def create_identity(
    wallet: Wallet,
    alias: str,
    is_issuer: bool,
    canonical_uri: str,
    long_form_uri: str,
) -> Wallet:
    """Append a new unpublished identity.

    The URIs are computed by the caller from the keys in
    :func:`check_create_identity`'s plan.

    Raises
    ------
    DuplicateIdentityAliasError
        If *alias* is already used in the wallet.
    """
    plan = check_create_identity(wallet, alias, is_issuer)
    identity = Identity(
        alias=plan.alias,
        derivation_index=plan.derivation_index,
        is_issuer=plan.is_issuer,
        keys=list(plan.keys),
        next_key_index=len(plan.keys),
        publication_state=PublicationState.UNPUBLISHED,
        canonical_uri=canonical_uri,
        long_form_uri=long_form_uri,
    )
    updated = wallet.model_copy(deep=True)
    updated.identities.append(identity)
    updated.next_identity_index = plan.derivation_index + 1
    return updated


def check_identity(wallet: Wallet, alias: str) -> Identity:
    """Return the identity aliased *alias* or raise :class:`IdentityNotFoundError`."""
    identity = wallet.find_identity(alias)
    if identity is None:
        raise IdentityNotFoundError(wallet.name, alias)
    return identity


def check_publish_identity(wallet: Wallet, alias: str) -> Identity:
    identity = check_identity(wallet, alias)
    if identity.published:
        raise IdentityAlreadyPublishedError(alias)
    return identity


def publish_identity(wallet: Wallet, alias: str, operation_id: str | None = None) -> Wallet:
    """Mark an identity published.

    Raises
    ------
    IdentityNotFoundError
        If *alias* is absent.
    IdentityAlreadyPublishedError
        If the identity is already published. Publication never reverts.
    """
    check_publish_identity(wallet, alias)
    return _update_identity(
        wallet,
        alias,
        publication_state=PublicationState.PUBLISHED,
        publish_operation_id=operation_id,
    )


def check_add_key(wallet: Wallet, alias: str, key_id: str, purpose: KeyPurpose) -> Identity:
    identity = check_identity(wallet, alias)
    if not key_id or not key_id.strip():
        raise InvalidError("Key id must not be empty.")
    if identity.find_key(key_id) is not None:
        raise DuplicateKeyIdError(alias, key_id)
    if purpose is not KeyPurpose.MASTER and not identity.is_issuer:
        raise KeyPurposeNotAllowedError(alias, purpose.value)
    return identity


def add_key(wallet: Wallet, alias: str, key_id: str, purpose: KeyPurpose) -> Wallet:
    """Append an active key with the identity's next derivation index."""
    identity = check_add_key(wallet, alias, key_id, purpose)
    key = Key(key_id=key_id, purpose=purpose, derivation_index=identity.next_key_index)
    return _update_identity(
        wallet,
        alias,
        keys=[*identity.keys, key],
        next_key_index=identity.next_key_index + 1,
    )


def check_revoke_key(wallet: Wallet, alias: str, key_id: str) -> tuple[Identity, Key]:
    identity = check_identity(wallet, alias)
    key = identity.find_key(key_id)
    if key is None:
        raise KeyNotFoundError(alias, key_id)
    if not key.active:
        raise KeyAlreadyRevokedError(alias, key_id)
    return identity, key


def revoke_key(wallet: Wallet, alias: str, key_id: str) -> Wallet:
    """Revoke an active key. The key keeps its derivation index forever."""
    identity, _ = check_revoke_key(wallet, alias, key_id)
    keys = [
        key.model_copy(update={"status": KeyStatus.REVOKED}) if key.key_id == key_id else key
        for key in identity.keys
    ]
    return _update_identity(wallet, alias, keys=keys)


# ------------------------------------------------------------------
# Credentials
# ------------------------------------------------------------------


def check_issue_credential(
    wallet: Wallet,
    issuer_alias: str,
    credential_alias: str,
    subject_uri: str,
    content: dict[str, Any] | None = None,
) -> IssueContext:
    issuer = check_identity(wallet, issuer_alias)
    if not credential_alias or not credential_alias.strip():
        raise InvalidError("Credential alias must not be empty.")
    if wallet.find_issued(credential_alias) is not None:
        raise DuplicateCredentialAliasError(credential_alias, CredentialSource.ISSUED.value)
    parse_identity_uri(subject_uri)
    if content and "id" in content:
        raise InvalidError("Claims must not set 'id'; the subject URI is the subject id.")
    issuing_key = issuer.active_key(KeyPurpose.ISSUING)
    if issuing_key is None:
        raise MissingKeyError(issuer_alias, KeyPurpose.ISSUING.value)
    return IssueContext(issuer=issuer, issuing_key=issuing_key)


def issue_credential(
    wallet: Wallet,
    issuer_alias: str,
    credential_alias: str,
    subject_uri: str,
    content: dict[str, Any],
    proof: CredentialProof,
) -> Wallet:
    """Append an active issued credential carrying the signer's *proof*."""
    check_issue_credential(wallet, issuer_alias, credential_alias, subject_uri, content)
    credential = IssuedCredential(
        alias=credential_alias,
        issuer_alias=issuer_alias,
        subject_uri=subject_uri,
        claim=Claim(subject_uri=subject_uri, content=dict(content)),
        proof=proof,
    )
    updated = wallet.model_copy(deep=True)
    updated.issued_credentials.append(credential)
    return updated


def check_revoke_credential(wallet: Wallet, credential_alias: str) -> RevokeContext:
    credential = wallet.find_issued(credential_alias)
    if credential is None:
        raise CredentialNotFoundError(wallet.name, credential_alias)
    if credential.revoked:
        raise CredentialAlreadyRevokedError(credential_alias)
    issuer = check_identity(wallet, credential.issuer_alias)
    revocation_key = issuer.active_key(KeyPurpose.REVOCATION)
    if revocation_key is None:
        raise MissingKeyError(issuer.alias, KeyPurpose.REVOCATION.value)
    return RevokeContext(credential=credential, issuer=issuer, revocation_key=revocation_key)


def revoke_credential(wallet: Wallet, credential_alias: str) -> Wallet:
    """Mark an issued credential revoked. Revocation never reverts."""
    check_revoke_credential(wallet, credential_alias)
    updated = wallet.model_copy(deep=True)
    updated.issued_credentials = [
        c.model_copy(update={"status": CredentialStatus.REVOKED}) if c.alias == credential_alias else c
        for c in updated.issued_credentials
    ]
    return updated


def check_import_credential(wallet: Wallet, alias: str) -> None:
    if not alias or not alias.strip():
        raise InvalidError("Credential alias must not be empty.")
    if wallet.find_imported(alias) is not None:
        raise DuplicateCredentialAliasError(alias, CredentialSource.IMPORTED.value)


def import_credential(wallet: Wallet, alias: str, payload: dict[str, Any]) -> Wallet:
    """Store an externally obtained credential verbatim.

    Issued and imported aliases are separate namespaces: importing ``c1``
    succeeds even when an issued credential ``c1`` exists. Authenticity is
    not checked here; that happens at verify time.
    """
    check_import_credential(wallet, alias)
    updated = wallet.model_copy(deep=True)
    updated.imported_credentials.append(
        ImportedCredential(alias=alias, verified_credential=dict(payload))
    )
    return updated


def check_verify_credential(
    wallet: Wallet, source: CredentialSource, alias: str
) -> dict[str, Any]:
    """Return the payload to hand to the verifier."""
    if source is CredentialSource.ISSUED:
        issued = wallet.find_issued(alias)
        if issued is None:
            raise CredentialNotFoundError(wallet.name, alias, source.value)
        return issued.proof.signed_credential
    imported = wallet.find_imported(alias)
    if imported is None:
        raise CredentialNotFoundError(wallet.name, alias, source.value)
    return imported.verified_credential


# ------------------------------------------------------------------
# Internal
# ------------------------------------------------------------------


def _update_identity(wallet: Wallet, alias: str, **changes: Any) -> Wallet:
    updated = wallet.model_copy(deep=True)
    updated.identities = [
        Identity.model_validate(
            {**identity.model_dump(), **changes}
        )
        if identity.alias == alias
        else identity
        for identity in updated.identities
    ]
    return updated


__all__ = [
    "IdentityPlan",
    "IssueContext",
    "RevokeContext",
    "add_key",
    "check_add_key",
    "check_create_identity",
    "check_identity",
    "check_import_credential",
    "check_issue_credential",
    "check_publish_identity",
    "check_revoke_credential",
    "check_revoke_key",
    "check_verify_credential",
    "create_identity",
    "import_credential",
    "initial_keys",
    "issue_credential",
    "new_wallet",
    "publish_identity",
    "rename_wallet",
    "revoke_credential",
    "revoke_key",
]
