"""Ed25519 credential signer and verifier.

:class:`Ed25519Signer` turns a claim into a signed
:class:`~wal.did.credentials.VerifiableCredential` and records revocations
in a :class:`~wal.adapters.revocation.RevocationRegistry`.
:class:`Ed25519Verifier` checks a credential payload against the issuer's
identity document (resolved through a ledger) and the same registry.

Checks performed by the verifier
--------------------------------
- ``malformed``            — payload is not a credential
- ``missing_proof``        — no proof block, or it lacks required members
- ``issuer_mismatch``      — the signing key does not belong to the issuer
- ``issuer_unresolvable``  — the issuer's document cannot be resolved
- ``unknown_key``          — the signing key is not in the issuer's document
- ``key_purpose``          — the signing key is not an issuing key
- ``invalid_signature``    — the signature does not verify
- ``revoked``              — the credential is in the revocation registry

A key that was revoked *after* signing does not fail verification; only
credential revocation does.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from wal.adapters.revocation import RevocationRegistry
from wal.collaborators import Ledger, RegistryAck, SigningKey, VerificationError
from wal.did.credentials import PROOF_TYPE, CredentialSubject, VerifiableCredential
from wal.did.uri import base58btc_decode, base58btc_encode, canonical_of
from wal.errors import ExternalFailureError, InvalidIdentityUriError, WalError
from wal.wallet.keys import verify_signature
from wal.wallet.model import Claim, CredentialProof, KeyPurpose

logger = logging.getLogger(__name__)


class Ed25519Signer:
    """Signs credentials with derived Ed25519 issuing keys.

    Parameters
    ----------
    registry:
        Revocation registry notified by :meth:`revoke`.
    """

    def __init__(self, registry: RevocationRegistry) -> None:
        self._registry = registry

    def issue(self, claim: Claim, issuer_key: SigningKey) -> CredentialProof:
        if issuer_key.material.purpose is not KeyPurpose.ISSUING:
            raise ExternalFailureError(
                f"Key {issuer_key.material.key_id!r} is not an issuing key."
            )
        try:
            credential = VerifiableCredential(
                issuer=issuer_key.issuer_uri,
                credential_subject=CredentialSubject(
                    id=claim.subject_uri, claims=dict(claim.content)
                ),
            )
        except ValueError as exc:
            raise ExternalFailureError(f"Cannot build credential: {exc}") from exc

        signature = issuer_key.material.sign(credential.signing_input())
        credential.proof = {
            "type": PROOF_TYPE,
            "created": datetime.now(timezone.utc).isoformat(),
            "verificationMethod": issuer_key.verification_method,
            "proofPurpose": "assertionMethod",
            "proofValue": "z" + base58btc_encode(signature),
        }
        logger.debug("Signed credential %s with %s", credential.id, issuer_key.verification_method)
        return CredentialProof(
            signed_credential=credential.to_dict(),
            verification_method=issuer_key.verification_method,
            credential_hash=credential.content_hash(),
        )

    def revoke(self, proof: CredentialProof, revocation_key: SigningKey) -> RegistryAck:
        if revocation_key.material.purpose is not KeyPurpose.REVOCATION:
            raise ExternalFailureError(
                f"Key {revocation_key.material.key_id!r} is not a revocation key."
            )
        signed_by = proof.verification_method.split("#", 1)[0]
        try:
            same_issuer = canonical_of(signed_by) == canonical_of(revocation_key.issuer_uri)
        except InvalidIdentityUriError as exc:
            raise ExternalFailureError(f"Cannot match credential issuer: {exc}") from exc
        if not same_issuer:
            raise ExternalFailureError(
                "Revocation key does not belong to the identity that issued the credential."
            )
        operation_id = self._registry.revoke(
            proof.credential_hash, revocation_key.verification_method
        )
        logger.debug("Registry revoked %s (operation %s)", proof.credential_hash, operation_id)
        return RegistryAck(credential_hash=proof.credential_hash, operation_id=operation_id)


class Ed25519Verifier:
    """Checks credential payloads produced by :class:`Ed25519Signer`.

    Parameters
    ----------
    ledger:
        Resolves issuer identity documents.
    registry:
        Revocation registry consulted for every credential.
    """

    def __init__(self, ledger: Ledger, registry: RevocationRegistry) -> None:
        self._ledger = ledger
        self._registry = registry

    def check(self, credential_payload: dict[str, Any]) -> list[VerificationError]:
        try:
            credential = VerifiableCredential.from_dict(credential_payload)
        except ValueError as exc:
            return [VerificationError("malformed", str(exc))]

        proof = credential.proof or {}
        method_ref = proof.get("verificationMethod")
        proof_value = proof.get("proofValue")
        if not isinstance(method_ref, str) or not isinstance(proof_value, str) or "#" not in method_ref:
            return [VerificationError("missing_proof", "Credential carries no usable proof.")]

        errors: list[VerificationError] = []
        signer_uri, _, key_id = method_ref.partition("#")
        if signer_uri != credential.issuer:
            errors.append(
                VerificationError(
                    "issuer_mismatch",
                    f"Signed by {signer_uri!r} but issued by {credential.issuer!r}.",
                )
            )

        try:
            document = self._ledger.resolve(signer_uri)
        except WalError as exc:
            errors.append(VerificationError("issuer_unresolvable", str(exc)))
            return errors

        method = document.find_method(key_id)
        if method is None:
            errors.append(VerificationError("unknown_key", f"No key {key_id!r} on {signer_uri!r}."))
            return errors
        if method.purpose is not KeyPurpose.ISSUING:
            errors.append(
                VerificationError("key_purpose", f"Key {key_id!r} is a {method.purpose.value} key.")
            )

        try:
            signature = base58btc_decode(proof_value[1:]) if proof_value.startswith("z") else b""
            valid = verify_signature(method.public_key(), signature, credential.signing_input())
        except ValueError:
            valid = False
        if not valid:
            errors.append(VerificationError("invalid_signature", "Signature does not verify."))

        if self._registry.is_revoked(credential.content_hash()):
            errors.append(VerificationError("revoked", "Credential has been revoked."))
        return errors


__all__ = ["Ed25519Signer", "Ed25519Verifier"]
