"""Tests for wal.wallet.model — aggregate invariants and serialization."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from wal.errors import InvalidError
from wal.wallet import lifecycle
from wal.wallet.model import (
    CredentialSource,
    Identity,
    Key,
    KeyPurpose,
    Wallet,
)

MNEMONIC = ["abandon"] * 11 + ["about"]


def _identity(alias: str, index: int, is_issuer: bool = False) -> Identity:
    return Identity(
        alias=alias,
        derivation_index=index,
        is_issuer=is_issuer,
        keys=[Key(key_id="master0", purpose=KeyPurpose.MASTER, derivation_index=0)],
        next_key_index=1,
        canonical_uri=f"did:wal:{alias}",
        long_form_uri=f"did:wal:{alias}:state",
    )


class TestKeyPurpose:
    @pytest.mark.parametrize("raw", ["master", "ISSUING", " Revocation "])
    def test_parse_accepts_known_values(self, raw: str) -> None:
        assert KeyPurpose.parse(raw).value == raw.strip().lower()

    def test_parse_rejects_unknown(self) -> None:
        with pytest.raises(InvalidError):
            KeyPurpose.parse("signing")


class TestCredentialSource:
    def test_parse(self) -> None:
        assert CredentialSource.parse("Imported") is CredentialSource.IMPORTED

    def test_parse_rejects_unknown(self) -> None:
        with pytest.raises(InvalidError):
            CredentialSource.parse("borrowed")


class TestIdentityInvariants:
    def test_duplicate_key_ids_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Identity(
                alias="a",
                derivation_index=0,
                keys=[
                    Key(key_id="k", purpose=KeyPurpose.MASTER, derivation_index=0),
                    Key(key_id="k", purpose=KeyPurpose.MASTER, derivation_index=1),
                ],
                next_key_index=2,
                canonical_uri="did:wal:a",
                long_form_uri="did:wal:a:s",
            )

    def test_key_index_beyond_counter_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Identity(
                alias="a",
                derivation_index=0,
                keys=[Key(key_id="k", purpose=KeyPurpose.MASTER, derivation_index=5)],
                next_key_index=1,
                canonical_uri="did:wal:a",
                long_form_uri="did:wal:a:s",
            )

    def test_holder_with_issuing_key_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Identity(
                alias="a",
                derivation_index=0,
                is_issuer=False,
                keys=[Key(key_id="i", purpose=KeyPurpose.ISSUING, derivation_index=0)],
                next_key_index=1,
                canonical_uri="did:wal:a",
                long_form_uri="did:wal:a:s",
            )

    def test_active_key_skips_revoked(self) -> None:
        identity = lifecycle.create_identity(
            lifecycle.new_wallet("w", MNEMONIC), "a", True, "did:wal:a", "did:wal:a:s"
        ).identities[0]
        assert identity.active_key(KeyPurpose.ISSUING) is not None
        assert identity.find_key("missing") is None


class TestWalletInvariants:
    def test_duplicate_identity_alias_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Wallet(
                name="w",
                mnemonic=MNEMONIC,
                next_identity_index=2,
                identities=[_identity("a", 0), _identity("a", 1)],
            )

    def test_reused_identity_index_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Wallet(
                name="w",
                mnemonic=MNEMONIC,
                next_identity_index=2,
                identities=[_identity("a", 0), _identity("b", 0)],
            )

    def test_identity_index_beyond_counter_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Wallet(name="w", mnemonic=MNEMONIC, next_identity_index=0, identities=[_identity("a", 0)])

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Wallet(name="", mnemonic=MNEMONIC)


class TestWalletSerialization:
    def test_document_uses_camel_case(self) -> None:
        wallet = Wallet(name="w", mnemonic=MNEMONIC, next_identity_index=1, identities=[_identity("a", 0)])
        document = wallet.to_document()
        assert "nextIdentityIndex" in document
        assert "issuedCredentials" in document
        assert document["identities"][0]["canonicalUri"] == "did:wal:a"
        assert document["identities"][0]["keys"][0]["purpose"] == "master"

    def test_document_round_trip(self) -> None:
        wallet = Wallet(name="w", mnemonic=MNEMONIC, next_identity_index=1, identities=[_identity("a", 0)])
        assert Wallet.from_document(wallet.to_document()) == wallet

    def test_repr_hides_seed_material(self) -> None:
        wallet = Wallet(name="w", mnemonic=MNEMONIC, passphrase="secret")
        text = repr(wallet)
        assert "abandon" not in text
        assert "secret" not in text

    def test_summary_never_carries_seed(self) -> None:
        summary = Wallet(name="w", mnemonic=MNEMONIC).summary()
        assert summary.name == "w"
        assert "mnemonic" not in summary.model_dump()
