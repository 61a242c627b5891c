"""Peer identities — ``did:peer`` numalgo 2 identifiers for messaging.

A peer identity carries its keys inside the identifier, so it never touches
the ledger::

    did:peer:2.Ez<x25519 key agreement>.Vz<ed25519 authentication>

``E`` marks a key-agreement key and ``V`` a verification (authentication)
key; each is a multibase/multicodec-encoded raw public key.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.asymmetric.x25519 import X25519PrivateKey
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
    PublicFormat,
)

from wal.did.uri import (
    ED25519_PUB_MULTICODEC,
    X25519_PUB_MULTICODEC,
    decode_multibase_key,
    multibase_key,
    parse_identity_uri,
)
from wal.errors import InvalidIdentityUriError

_PREFIX = "did:peer:2"
AGREEMENT_FRAGMENT = "key-x25519-1"
AUTHENTICATION_FRAGMENT = "key-ed25519-1"


@dataclass(frozen=True)
class PeerIdentity:
    """A freshly created peer identity with its private keys.

    Parameters
    ----------
    did:
        The ``did:peer:2`` identifier.
    agreement_private_key:
        32-byte raw X25519 private key.
    authentication_private_key:
        32-byte raw Ed25519 private key.
    """

    did: str
    agreement_private_key: bytes = field(repr=False)
    authentication_private_key: bytes = field(repr=False)


@dataclass(frozen=True)
class PeerDocument:
    """The resolved public keys of a peer identity."""

    did: str
    agreement_key: bytes
    authentication_key: bytes

    @property
    def agreement_key_id(self) -> str:
        return f"{self.did}#{AGREEMENT_FRAGMENT}"

    @property
    def authentication_key_id(self) -> str:
        return f"{self.did}#{AUTHENTICATION_FRAGMENT}"

    def to_dict(self) -> dict[str, object]:
        return {
            "@context": ["https://www.w3.org/ns/did/v1"],
            "id": self.did,
            "keyAgreement": [
                {
                    "id": self.agreement_key_id,
                    "type": "X25519KeyAgreementKey2020",
                    "controller": self.did,
                    "publicKeyMultibase": multibase_key(X25519_PUB_MULTICODEC, self.agreement_key),
                }
            ],
            "authentication": [
                {
                    "id": self.authentication_key_id,
                    "type": "Ed25519VerificationKey2020",
                    "controller": self.did,
                    "publicKeyMultibase": multibase_key(
                        ED25519_PUB_MULTICODEC, self.authentication_key
                    ),
                }
            ],
        }


def create_peer_identity() -> PeerIdentity:
    """Generate fresh keys and return the resulting peer identity."""
    agreement = X25519PrivateKey.generate()
    authentication = Ed25519PrivateKey.generate()
    agreement_public = agreement.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
    authentication_public = authentication.public_key().public_bytes(
        Encoding.Raw, PublicFormat.Raw
    )
    did = (
        f"{_PREFIX}"
        f".E{multibase_key(X25519_PUB_MULTICODEC, agreement_public)}"
        f".V{multibase_key(ED25519_PUB_MULTICODEC, authentication_public)}"
    )
    return PeerIdentity(
        did=did,
        agreement_private_key=agreement.private_bytes(
            Encoding.Raw, PrivateFormat.Raw, NoEncryption()
        ),
        authentication_private_key=authentication.private_bytes(
            Encoding.Raw, PrivateFormat.Raw, NoEncryption()
        ),
    )


def resolve_peer_identity(did: str) -> PeerDocument:
    """Decode the keys embedded in a ``did:peer:2`` identifier.

    Raises
    ------
    InvalidIdentityUriError
        If *did* is not a ``did:peer:2`` identifier with one key-agreement
        and one authentication key.
    """
    # Strip any key fragment so "did:peer:2...#key-x25519-1" resolves too.
    did = did.split("#", 1)[0]
    parse_identity_uri(did)
    if not did.startswith(f"{_PREFIX}."):
        raise InvalidIdentityUriError(did, "Not a did:peer:2 identity.")
    agreement: bytes | None = None
    authentication: bytes | None = None
    for element in did[len(_PREFIX) + 1:].split("."):
        purpose, encoded = element[:1], element[1:]
        try:
            if purpose == "E":
                agreement = decode_multibase_key(encoded, X25519_PUB_MULTICODEC)
            elif purpose == "V":
                authentication = decode_multibase_key(encoded, ED25519_PUB_MULTICODEC)
        except ValueError as exc:
            raise InvalidIdentityUriError(did, str(exc)) from exc
    if agreement is None or authentication is None:
        raise InvalidIdentityUriError(did, "Missing key-agreement or authentication key.")
    return PeerDocument(did=did, agreement_key=agreement, authentication_key=authentication)


__all__ = [
    "AGREEMENT_FRAGMENT",
    "AUTHENTICATION_FRAGMENT",
    "PeerDocument",
    "PeerIdentity",
    "create_peer_identity",
    "resolve_peer_identity",
]
