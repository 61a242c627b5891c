"""Wallet aggregate — the entity model persisted as one document per wallet.

Entities
--------
- :class:`Wallet`             — one recovery seed plus everything derived from it
- :class:`Identity`           — a DID derived from the wallet seed
- :class:`Key`                — a key attached to an identity
- :class:`IssuedCredential`   — a credential this wallet signed
- :class:`ImportedCredential` — a credential obtained from elsewhere

All entities are Pydantic v2 models. They serialize with camelCase aliases
(``model_dump(by_alias=True)``) so the stored and exported JSON stays close
to the identity/credential vocabulary, while Python attributes remain
snake_case.

Invariants enforced on load
---------------------------
- identity aliases unique per wallet
- issued credential aliases unique per wallet
- imported credential aliases unique per wallet (separate namespace)
- key ids unique per identity
- derivation indices unique and below the wallet/identity counters
- non-issuer identities hold master keys only
"""
from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from wal.errors import InvalidError

_MODEL_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="forbid",
)


# ------------------------------------------------------------------
# Enumerations
# ------------------------------------------------------------------


class KeyPurpose(str, Enum):
    """What an identity key may be used for."""

    MASTER = "master"
    ISSUING = "issuing"
    REVOCATION = "revocation"

    @classmethod
    def parse(cls, raw: str) -> "KeyPurpose":
        """Parse a user-supplied purpose string (case-insensitive).

        Raises
        ------
        InvalidError
            If *raw* names no known purpose.
        """
        try:
            return cls(raw.strip().lower())
        except ValueError as exc:
            allowed = ", ".join(p.value for p in cls)
            raise InvalidError(
                f"Unknown key purpose {raw!r}. Expected one of: {allowed}."
            ) from exc


class KeyStatus(str, Enum):
    ACTIVE = "active"
    REVOKED = "revoked"


class PublicationState(str, Enum):
    UNPUBLISHED = "unpublished"
    PUBLISHED = "published"


class CredentialStatus(str, Enum):
    ACTIVE = "active"
    REVOKED = "revoked"


class CredentialSource(str, Enum):
    """Which credential namespace of a wallet to look in."""

    ISSUED = "issued"
    IMPORTED = "imported"

    @classmethod
    def parse(cls, raw: str) -> "CredentialSource":
        try:
            return cls(raw.strip().lower())
        except ValueError as exc:
            raise InvalidError(
                f"Unknown credential source {raw!r}. Expected 'issued' or 'imported'."
            ) from exc


# ------------------------------------------------------------------
# Keys and identities
# ------------------------------------------------------------------


class Key(BaseModel):
    """A key attached to an identity.

    Parameters
    ----------
    key_id:
        Identifier unique within the owning identity (e.g. ``master0``).
    purpose:
        What the key may be used for.
    status:
        ``ACTIVE`` until revoked; revocation is one-way.
    derivation_index:
        Position within the identity used to derive the key from the seed.
    """

    model_config = _MODEL_CONFIG

    key_id: str
    purpose: KeyPurpose
    derivation_index: int = Field(ge=0)
    status: KeyStatus = KeyStatus.ACTIVE

    @property
    def active(self) -> bool:
        return self.status is KeyStatus.ACTIVE


class Identity(BaseModel):
    """A DID derived from the wallet seed.

    ``long_form_uri`` is self-contained and usable before publication;
    ``canonical_uri`` only resolves once ``publication_state`` is
    ``PUBLISHED``.
    """

    model_config = _MODEL_CONFIG

    alias: str
    derivation_index: int = Field(ge=0)
    is_issuer: bool = False
    keys: list[Key] = Field(default_factory=list)
    next_key_index: int = Field(default=0, ge=0)
    publication_state: PublicationState = PublicationState.UNPUBLISHED
    canonical_uri: str
    long_form_uri: str
    publish_operation_id: str | None = None

    @property
    def published(self) -> bool:
        return self.publication_state is PublicationState.PUBLISHED

    def find_key(self, key_id: str) -> Key | None:
        """Return the key with *key_id*, or ``None``."""
        for key in self.keys:
            if key.key_id == key_id:
                return key
        return None

    def active_key(self, purpose: KeyPurpose) -> Key | None:
        """Return the first active key with *purpose*, or ``None``."""
        for key in self.keys:
            if key.purpose is purpose and key.active:
                return key
        return None

    @model_validator(mode="after")
    def _check_keys(self) -> "Identity":
        seen_ids: set[str] = set()
        seen_indices: set[int] = set()
        for key in self.keys:
            if key.key_id in seen_ids:
                raise ValueError(f"duplicated key id {key.key_id!r} on DID {self.alias!r}")
            if key.derivation_index in seen_indices or key.derivation_index >= self.next_key_index:
                raise ValueError(
                    f"key {key.key_id!r} has a reused or out-of-range derivation index"
                )
            if not self.is_issuer and key.purpose is not KeyPurpose.MASTER:
                raise ValueError(
                    f"non-issuer DID {self.alias!r} holds a {key.purpose.value} key"
                )
            seen_ids.add(key.key_id)
            seen_indices.add(key.derivation_index)
        return self


# ------------------------------------------------------------------
# Credentials
# ------------------------------------------------------------------


class Claim(BaseModel):
    """The attested content of an issued credential."""

    model_config = _MODEL_CONFIG

    subject_uri: str
    content: dict[str, Any] = Field(default_factory=dict)


class CredentialProof(BaseModel):
    """What the signer returns for an issued credential.

    Parameters
    ----------
    signed_credential:
        The complete signed credential payload (the thing a holder keeps and
        a verifier checks).
    verification_method:
        ``<issuer uri>#<key id>`` of the key that signed it.
    credential_hash:
        Hex digest the revocation registry tracks the credential by.
    """

    model_config = _MODEL_CONFIG

    signed_credential: dict[str, Any]
    verification_method: str
    credential_hash: str


class IssuedCredential(BaseModel):
    model_config = _MODEL_CONFIG

    alias: str
    issuer_alias: str
    subject_uri: str
    claim: Claim
    proof: CredentialProof
    status: CredentialStatus = CredentialStatus.ACTIVE

    @property
    def revoked(self) -> bool:
        return self.status is CredentialStatus.REVOKED


class ImportedCredential(BaseModel):
    """A credential payload obtained from elsewhere, stored verbatim."""

    model_config = _MODEL_CONFIG

    alias: str
    verified_credential: dict[str, Any]


# ------------------------------------------------------------------
# Wallet
# ------------------------------------------------------------------


class WalletSummary(BaseModel):
    """What listing wallets returns. Never carries seed material."""

    model_config = _MODEL_CONFIG

    name: str
    identities: int = 0
    issued_credentials: int = 0
    imported_credentials: int = 0


class Wallet(BaseModel):
    """One recovery seed and everything derived from or stored against it.

    ``mnemonic`` and ``passphrase`` are set once at creation and excluded
    from ``repr`` so they do not leak into logs or tracebacks.
    """

    model_config = _MODEL_CONFIG

    name: str = Field(min_length=1)
    mnemonic: list[str] = Field(repr=False)
    passphrase: str = Field(default="", repr=False)
    next_identity_index: int = Field(default=0, ge=0)
    identities: list[Identity] = Field(default_factory=list)
    issued_credentials: list[IssuedCredential] = Field(default_factory=list)
    imported_credentials: list[ImportedCredential] = Field(default_factory=list)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def find_identity(self, alias: str) -> Identity | None:
        for identity in self.identities:
            if identity.alias == alias:
                return identity
        return None

    def find_issued(self, alias: str) -> IssuedCredential | None:
        for credential in self.issued_credentials:
            if credential.alias == alias:
                return credential
        return None

    def find_imported(self, alias: str) -> ImportedCredential | None:
        for credential in self.imported_credentials:
            if credential.alias == alias:
                return credential
        return None

    def summary(self) -> WalletSummary:
        return WalletSummary(
            name=self.name,
            identities=len(self.identities),
            issued_credentials=len(self.issued_credentials),
            imported_credentials=len(self.imported_credentials),
        )

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_document(self) -> dict[str, Any]:
        """Serialize to the JSON-ready document stored and exported."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_document(cls, document: dict[str, Any]) -> "Wallet":
        """Rebuild a wallet from :meth:`to_document` output.

        Raises
        ------
        pydantic.ValidationError
            If the document is malformed or breaks an aggregate invariant.
        """
        return cls.model_validate(document)

    # ------------------------------------------------------------------
    # Invariants
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def _check_invariants(self) -> "Wallet":
        _require_unique("DID alias", [i.alias for i in self.identities])
        _require_unique("issued credential alias", [c.alias for c in self.issued_credentials])
        _require_unique(
            "imported credential alias", [c.alias for c in self.imported_credentials]
        )
        indices = [i.derivation_index for i in self.identities]
        _require_unique("DID derivation index", [str(i) for i in indices])
        if any(index >= self.next_identity_index for index in indices):
            raise ValueError("DID derivation index at or beyond the wallet counter")
        return self


def _require_unique(label: str, values: list[str]) -> None:
    seen: set[str] = set()
    for value in values:
        if value in seen:
            raise ValueError(f"duplicated {label} {value!r}")
        seen.add(value)


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
