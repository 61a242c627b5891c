"""Tests for wal.did.peer — did:peer:2 identities."""
from __future__ import annotations

import pytest

from wal.did.peer import create_peer_identity, resolve_peer_identity
from wal.errors import InvalidIdentityUriError


class TestPeerIdentity:
    def test_create_and_resolve(self) -> None:
        identity = create_peer_identity()
        assert identity.did.startswith("did:peer:2.Ez")
        assert ".Vz" in identity.did
        document = resolve_peer_identity(identity.did)
        assert document.did == identity.did
        assert len(document.agreement_key) == 32
        assert len(document.authentication_key) == 32

    def test_identities_are_unique(self) -> None:
        assert create_peer_identity().did != create_peer_identity().did

    def test_fragment_is_ignored(self) -> None:
        identity = create_peer_identity()
        document = resolve_peer_identity(f"{identity.did}#key-x25519-1")
        assert document.did == identity.did

    def test_document_dict(self) -> None:
        identity = create_peer_identity()
        data = resolve_peer_identity(identity.did).to_dict()
        assert data["id"] == identity.did
        assert data["keyAgreement"][0]["id"].endswith("#key-x25519-1")
        assert data["authentication"][0]["id"].endswith("#key-ed25519-1")

    def test_private_keys_hidden_from_repr(self) -> None:
        identity = create_peer_identity()
        assert identity.agreement_private_key.hex() not in repr(identity)

    @pytest.mark.parametrize(
        "uri",
        ["did:example:123", "did:peer:2", "did:peer:2.Ez123", "did:peer:0zabc", "nonsense"],
    )
    def test_invalid_peer_uris(self, uri: str) -> None:
        with pytest.raises(InvalidIdentityUriError):
            resolve_peer_identity(uri)
