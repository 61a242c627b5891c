"""wal.did — identity references, documents, and credentials.

Submodules
----------
uri
    ``did:wal`` canonical and long-form URIs, DID syntax validation.
document
    IdentityDocument and VerificationMethod.
credentials
    The VerifiableCredential payload signed by issuers.
peer
    ``did:peer:2`` identities used for messaging.
"""
from __future__ import annotations

from wal.did.credentials import CredentialSubject, VerifiableCredential
from wal.did.document import IdentityDocument, VerificationMethod
from wal.did.peer import PeerDocument, PeerIdentity, create_peer_identity, resolve_peer_identity
from wal.did.uri import (
    DID_METHOD,
    ParsedUri,
    canonical_of,
    is_well_formed,
    parse_identity_uri,
)

__all__ = [
    "DID_METHOD",
    "CredentialSubject",
    "IdentityDocument",
    "ParsedUri",
    "PeerDocument",
    "PeerIdentity",
    "VerifiableCredential",
    "VerificationMethod",
    "canonical_of",
    "create_peer_identity",
    "is_well_formed",
    "parse_identity_uri",
    "resolve_peer_identity",
]
