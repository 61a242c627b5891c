"""Verifiable credentials — the payload a signer produces and a verifier checks.

Follows the W3C Verifiable Credentials Data Model
(https://www.w3.org/TR/vc-data-model/) closely enough for a holder to read,
without aiming at full JSON-LD processing. The signature covers the
canonical JSON of the credential *without* its ``proof`` member.
"""
from __future__ import annotations

import hashlib
import json
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator

_VC_CONTEXT = "https://www.w3.org/2018/credentials/v1"
PROOF_TYPE = "Ed25519Signature2020"


# ------------------------------------------------------------------
# CredentialSubject
# ------------------------------------------------------------------


@dataclass(frozen=True)
class CredentialSubject:
    """The entity described by a credential.

    Parameters
    ----------
    id:
        The identity reference of the subject.
    claims:
        Arbitrary key-value claims about the subject.
    """

    id: str
    claims: dict[str, Any]

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("CredentialSubject.id must not be empty.")

    def to_dict(self) -> dict[str, Any]:
        return {**self.claims, "id": self.id}


# ------------------------------------------------------------------
# VerifiableCredential (Pydantic v2)
# ------------------------------------------------------------------


class VerifiableCredential(BaseModel):
    """A W3C-style verifiable credential.

    Parameters
    ----------
    context:
        JSON-LD context URIs.
    id:
        Unique identifier (``urn:uuid:`` by default).
    type:
        Always includes ``"VerifiableCredential"``.
    issuer:
        Identity reference of the issuer.
    issuance_date:
        UTC datetime of issuance.
    credential_subject:
        Subject and claims.
    proof:
        Signature block, ``None`` until signed.
    """

    model_config = {"arbitrary_types_allowed": True}

    context: list[str] = Field(default_factory=lambda: [_VC_CONTEXT])
    id: str = Field(default_factory=lambda: f"urn:uuid:{uuid.uuid4()}")
    type: list[str] = Field(default_factory=lambda: ["VerifiableCredential"])
    issuer: str
    issuance_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    credential_subject: CredentialSubject
    proof: dict[str, Any] | None = None

    @field_validator("issuer")
    @classmethod
    def validate_issuer_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("issuer must not be empty.")
        return value

    @field_validator("type")
    @classmethod
    def validate_type_includes_base(cls, value: list[str]) -> list[str]:
        if "VerifiableCredential" not in value:
            raise ValueError("type list must include 'VerifiableCredential'.")
        return value

    # ------------------------------------------------------------------
    # Signing input
    # ------------------------------------------------------------------

    def unsigned_dict(self) -> dict[str, Any]:
        """Return the credential as a dict without its ``proof`` member."""
        return {
            "@context": self.context,
            "id": self.id,
            "type": self.type,
            "issuer": self.issuer,
            "issuanceDate": self.issuance_date.isoformat(),
            "credentialSubject": self.credential_subject.to_dict(),
        }

    def signing_input(self) -> bytes:
        """Return the canonical bytes the proof signature covers."""
        return json.dumps(self.unsigned_dict(), sort_keys=True, separators=(",", ":")).encode(
            "utf-8"
        )

    def content_hash(self) -> str:
        """Return the hex SHA-256 of :meth:`signing_input`."""
        return hashlib.sha256(self.signing_input()).hexdigest()

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        data = self.unsigned_dict()
        if self.proof is not None:
            data["proof"] = dict(self.proof)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "VerifiableCredential":
        """Rebuild a credential from :meth:`to_dict` output.

        Raises
        ------
        ValueError
            If a required member is missing or malformed.
        """
        try:
            subject_raw = dict(data["credentialSubject"])
            subject_id = str(subject_raw.pop("id", ""))
            return cls(
                context=data.get("@context", [_VC_CONTEXT]),
                id=data["id"],
                type=data.get("type", ["VerifiableCredential"]),
                issuer=data["issuer"],
                issuance_date=datetime.fromisoformat(data["issuanceDate"]),
                credential_subject=CredentialSubject(id=subject_id, claims=subject_raw),
                proof=data.get("proof"),
            )
        except (KeyError, TypeError) as exc:
            raise ValueError(f"Malformed credential: {exc!r}") from exc


__all__ = ["CredentialSubject", "PROOF_TYPE", "VerifiableCredential"]
