"""IdentityDocument — the public view of a ``did:wal`` identity.

An identity document lists the identity's public keys as verification
methods. It is what the ledger publishes and what a verifier resolves to
find the key a credential was signed with.

Document shape (JSON)
---------------------
::

    {
      "@context": ["https://www.w3.org/ns/did/v1"],
      "id": "did:wal:<hash>",
      "controller": "did:wal:<hash>",
      "verificationMethod": [
        {
          "id": "did:wal:<hash>#master0",
          "type": "Ed25519VerificationKey2020",
          "controller": "did:wal:<hash>",
          "publicKeyMultibase": "z6Mk...",
          "purpose": "master",
          "revoked": false
        }
      ]
    }
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field, field_validator

from wal.did.uri import (
    ED25519_PUB_MULTICODEC,
    decode_multibase_key,
    multibase_key,
    parse_identity_uri,
)
from wal.errors import InvalidIdentityUriError
from wal.wallet.keys import KeyMaterial
from wal.wallet.model import Identity, KeyPurpose

VERIFICATION_KEY_TYPE = "Ed25519VerificationKey2020"
_DID_CONTEXT = "https://www.w3.org/ns/did/v1"


# ------------------------------------------------------------------
# Verification method
# ------------------------------------------------------------------


@dataclass(frozen=True)
class VerificationMethod:
    """One public key of an identity.

    Parameters
    ----------
    id:
        ``<did>#<key id>``.
    controller:
        The DID that controls this key.
    public_key_multibase:
        Multibase/multicodec encoding of the raw Ed25519 public key.
    purpose:
        The key purpose (master, issuing, revocation).
    revoked:
        Whether the key has been revoked.
    """

    id: str
    controller: str
    public_key_multibase: str
    purpose: KeyPurpose
    revoked: bool = False
    type: str = VERIFICATION_KEY_TYPE

    def __post_init__(self) -> None:
        if "#" not in self.id:
            raise ValueError(f"VerificationMethod.id {self.id!r} has no key fragment.")
        if not self.public_key_multibase:
            raise ValueError("VerificationMethod.public_key_multibase must not be empty.")

    @property
    def key_id(self) -> str:
        return self.id.split("#", 1)[1]

    def public_key(self) -> bytes:
        """Return the raw 32-byte Ed25519 public key."""
        return decode_multibase_key(self.public_key_multibase, ED25519_PUB_MULTICODEC)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "type": self.type,
            "controller": self.controller,
            "publicKeyMultibase": self.public_key_multibase,
            "purpose": self.purpose.value,
            "revoked": self.revoked,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VerificationMethod":
        return cls(
            id=data["id"],
            controller=data["controller"],
            public_key_multibase=data["publicKeyMultibase"],
            purpose=KeyPurpose(data["purpose"]),
            revoked=bool(data.get("revoked", False)),
            type=data.get("type", VERIFICATION_KEY_TYPE),
        )


# ------------------------------------------------------------------
# Identity document
# ------------------------------------------------------------------


class IdentityDocument(BaseModel):
    """The public document of a ``did:wal`` identity.

    Parameters
    ----------
    id:
        The identity's canonical URI.
    verification_method:
        Public keys, in the identity's key order.
    """

    model_config = {"arbitrary_types_allowed": True}

    context: list[str] = Field(default_factory=lambda: [_DID_CONTEXT])
    id: str
    verification_method: list[VerificationMethod] = Field(default_factory=list)

    @field_validator("id")
    @classmethod
    def validate_id(cls, value: str) -> str:
        try:
            parse_identity_uri(value)
        except InvalidIdentityUriError as exc:
            raise ValueError(str(exc)) from exc
        return value

    @property
    def controller(self) -> str:
        return self.id

    def find_method(self, key_id: str) -> VerificationMethod | None:
        """Return the verification method for *key_id* (bare id or fragment URI)."""
        fragment = key_id.split("#", 1)[-1]
        for method in self.verification_method:
            if method.key_id == fragment:
                return method
        return None

    def initial_state(self) -> dict[str, Any]:
        """Return the state encoded into canonical and long-form URIs.

        Only the key list contributes, so the state is independent of the
        URI it produces.
        """
        return {
            "publicKeys": [
                {
                    "id": method.key_id,
                    "purpose": method.purpose.value,
                    "publicKeyMultibase": method.public_key_multibase,
                }
                for method in self.verification_method
            ]
        }

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def build(
        cls, did: str, identity: Identity, materials: list[KeyMaterial]
    ) -> "IdentityDocument":
        """Build the document of *identity* from its derived key *materials*.

        *materials* must be in the same order as ``identity.keys``.
        """
        methods = [
            VerificationMethod(
                id=f"{did}#{key.key_id}",
                controller=did,
                public_key_multibase=multibase_key(ED25519_PUB_MULTICODEC, material.public_key),
                purpose=key.purpose,
                revoked=not key.active,
            )
            for key, material in zip(identity.keys, materials)
        ]
        return cls(id=did, verification_method=methods)

    @classmethod
    def from_state(cls, did: str, state: dict[str, Any]) -> "IdentityDocument":
        """Build a document from an initial state (as embedded in a long-form URI).

        Raises
        ------
        InvalidIdentityUriError
            If the state does not describe a list of well-formed keys.
        """
        try:
            methods = [
                VerificationMethod(
                    id=f"{did}#{entry['id']}",
                    controller=did,
                    public_key_multibase=entry["publicKeyMultibase"],
                    purpose=KeyPurpose(entry["purpose"]),
                )
                for entry in state.get("publicKeys", [])
            ]
            return cls(id=did, verification_method=methods)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise InvalidIdentityUriError(did, f"Embedded key state is malformed: {exc!r}") from exc

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, object]:
        return {
            "@context": self.context,
            "id": self.id,
            "controller": self.controller,
            "verificationMethod": [vm.to_dict() for vm in self.verification_method],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IdentityDocument":
        """Rebuild a document from :meth:`to_dict` output.

        Raises
        ------
        ValueError
            If a field is missing or malformed.
        """
        try:
            methods = [VerificationMethod.from_dict(vm) for vm in data.get("verificationMethod", [])]
            return cls(
                context=data.get("@context", [_DID_CONTEXT]),
                id=data["id"],
                verification_method=methods,
            )
        except KeyError as exc:
            raise ValueError(f"Missing identity document field: {exc}") from exc


__all__ = ["IdentityDocument", "VERIFICATION_KEY_TYPE", "VerificationMethod"]
