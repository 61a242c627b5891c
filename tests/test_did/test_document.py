"""Tests for wal.did.document — identity documents."""
from __future__ import annotations

import pytest

from wal.did.document import IdentityDocument, VerificationMethod
from wal.did.uri import canonical_uri_for
from wal.errors import InvalidIdentityUriError
from wal.wallet import lifecycle
from wal.wallet.keys import SeedKeyManager
from wal.wallet.model import KeyPurpose, Wallet

MNEMONIC = ["abandon"] * 11 + ["about"]


@pytest.fixture()
def wallet() -> Wallet:
    # The URIs are placeholders; documents are built with real ones below.
    return lifecycle.create_identity(
        lifecycle.new_wallet("w", MNEMONIC), "iss", True, "did:wal:x", "did:wal:x:y"
    )


@pytest.fixture()
def document(wallet: Wallet) -> IdentityDocument:
    identity = wallet.identities[0]
    materials = SeedKeyManager.for_wallet(wallet).derive_all(identity)
    draft = IdentityDocument.build("did:example:draft", identity, materials)
    did = canonical_uri_for(draft.initial_state())
    return IdentityDocument.build(did, identity, materials)


class TestIdentityDocument:
    def test_one_method_per_key(self, document: IdentityDocument) -> None:
        assert [m.key_id for m in document.verification_method] == [
            "master0",
            "issuing0",
            "revocation0",
        ]
        assert document.find_method("issuing0") is not None
        assert document.find_method(f"{document.id}#revocation0") is not None
        assert document.find_method("nope") is None

    def test_initial_state_is_self_consistent(self, document: IdentityDocument) -> None:
        assert canonical_uri_for(document.initial_state()) == document.id

    def test_from_state_matches_build(self, document: IdentityDocument) -> None:
        rebuilt = IdentityDocument.from_state(document.id, document.initial_state())
        assert rebuilt.to_dict() == document.to_dict()

    def test_dict_round_trip(self, document: IdentityDocument) -> None:
        assert IdentityDocument.from_dict(document.to_dict()).to_dict() == document.to_dict()

    def test_revoked_key_marked(self, wallet: Wallet, document: IdentityDocument) -> None:
        updated = lifecycle.revoke_key(wallet, "iss", "issuing0")
        identity = updated.identities[0]
        materials = SeedKeyManager.for_wallet(updated).derive_all(identity)
        rebuilt = IdentityDocument.build(document.id, identity, materials)
        method = rebuilt.find_method("issuing0")
        assert method is not None and method.revoked

    def test_public_key_round_trip(self, wallet: Wallet, document: IdentityDocument) -> None:
        material = SeedKeyManager.for_wallet(wallet).derive_all(wallet.identities[0])[1]
        method = document.find_method("issuing0")
        assert method is not None
        assert method.public_key() == material.public_key
        assert method.purpose is KeyPurpose.ISSUING

    def test_invalid_id_rejected(self) -> None:
        with pytest.raises(ValueError):
            IdentityDocument(id="not-a-did")

    def test_from_dict_missing_id(self) -> None:
        with pytest.raises(ValueError):
            IdentityDocument.from_dict({"verificationMethod": []})

    @pytest.mark.parametrize(
        "state",
        [
            {"publicKeys": [{}]},
            {"publicKeys": 7},
            {"publicKeys": [{"id": "k", "purpose": "signing", "publicKeyMultibase": "z1"}]},
        ],
    )
    def test_from_state_malformed(self, state: dict) -> None:
        with pytest.raises(InvalidIdentityUriError):
            IdentityDocument.from_state(canonical_uri_for(state), state)


class TestVerificationMethod:
    def test_id_needs_fragment(self) -> None:
        with pytest.raises(ValueError):
            VerificationMethod(
                id="did:example:a",
                controller="did:example:a",
                public_key_multibase="z123",
                purpose=KeyPurpose.MASTER,
            )
