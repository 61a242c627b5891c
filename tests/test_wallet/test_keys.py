"""Tests for wal.wallet.keys — recovery phrases and key derivation."""
from __future__ import annotations

import pytest

from wal.errors import InvalidMnemonicError
from wal.wallet import lifecycle
from wal.wallet.keys import (
    SeedKeyManager,
    generate_mnemonic,
    seed_from_mnemonic,
    validate_mnemonic,
    verify_signature,
)
from wal.wallet.model import KeyPurpose

MNEMONIC = ["abandon"] * 11 + ["about"]


class TestMnemonic:
    def test_default_strength_gives_24_words(self) -> None:
        words = generate_mnemonic()
        assert len(words) == 24
        assert validate_mnemonic(words) == words

    def test_128_bits_gives_12_words(self) -> None:
        assert len(generate_mnemonic(128)) == 12

    def test_unsupported_strength(self) -> None:
        with pytest.raises(InvalidMnemonicError):
            generate_mnemonic(100)

    def test_validate_normalizes_case(self) -> None:
        assert validate_mnemonic([w.upper() for w in MNEMONIC]) == MNEMONIC

    def test_bad_checksum_rejected(self) -> None:
        with pytest.raises(InvalidMnemonicError):
            validate_mnemonic(["abandon"] * 12)

    def test_empty_rejected(self) -> None:
        with pytest.raises(InvalidMnemonicError):
            validate_mnemonic(["", " "])

    def test_seed_depends_on_passphrase(self) -> None:
        assert len(seed_from_mnemonic(MNEMONIC)) == 64
        assert seed_from_mnemonic(MNEMONIC, "a") != seed_from_mnemonic(MNEMONIC, "b")


class TestSeedKeyManager:
    @pytest.fixture()
    def manager(self) -> SeedKeyManager:
        return SeedKeyManager(seed_from_mnemonic(MNEMONIC))

    def test_derivation_is_deterministic(self, manager: SeedKeyManager) -> None:
        again = SeedKeyManager(seed_from_mnemonic(MNEMONIC))
        assert manager.derive_raw(0, 1, KeyPurpose.ISSUING) == again.derive_raw(0, 1, KeyPurpose.ISSUING)

    def test_slots_yield_distinct_keys(self, manager: SeedKeyManager) -> None:
        publics = {
            manager.derive_raw(0, 0, KeyPurpose.MASTER)[1],
            manager.derive_raw(1, 0, KeyPurpose.MASTER)[1],
            manager.derive_raw(0, 1, KeyPurpose.MASTER)[1],
            manager.derive_raw(0, 0, KeyPurpose.ISSUING)[1],
        }
        assert len(publics) == 4

    def test_derive_all_signs_and_verifies(self) -> None:
        wallet = lifecycle.create_identity(
            lifecycle.new_wallet("w", MNEMONIC), "iss", True, "did:wal:x", "did:wal:x:y"
        )
        identity = wallet.identities[0]
        materials = SeedKeyManager.for_wallet(wallet).derive_all(identity)
        assert [m.key_id for m in materials] == ["master0", "issuing0", "revocation0"]
        signature = materials[1].sign(b"payload")
        assert verify_signature(materials[1].public_key, signature, b"payload")
        assert not verify_signature(materials[0].public_key, signature, b"payload")
        assert not verify_signature(materials[1].public_key, signature, b"other")

    def test_private_key_not_in_repr(self) -> None:
        wallet = lifecycle.create_identity(
            lifecycle.new_wallet("w", MNEMONIC), "a", False, "did:wal:x", "did:wal:x:y"
        )
        material = SeedKeyManager.for_wallet(wallet).derive_all(wallet.identities[0])[0]
        assert material.private_key.hex() not in repr(material)
