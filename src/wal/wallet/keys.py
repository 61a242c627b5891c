"""Recovery phrases, seeds, and deterministic key derivation.

A wallet's seed is the BIP-39 seed of its recovery phrase and passphrase.
Every identity key is an Ed25519 key derived from that seed with HKDF-SHA256,
keyed by the identity's derivation index, the key's derivation index, and the
key's purpose. The same wallet therefore always re-derives the same keys, so
no private key material is ever persisted.

Derivation info string::

    wal/did/<identity index>/key/<key index>/<purpose>
"""
from __future__ import annotations

from dataclasses import dataclass, field

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from mnemonic import Mnemonic

from wal.errors import InvalidMnemonicError
from wal.wallet.model import Identity, Key, KeyPurpose, Wallet

_LANGUAGE = "english"
_HKDF_SALT = b"wal-key-derivation"
_ALLOWED_STRENGTHS = (128, 160, 192, 224, 256)


# ------------------------------------------------------------------
# Recovery phrases
# ------------------------------------------------------------------


def generate_mnemonic(strength: int = 256) -> list[str]:
    """Generate a fresh recovery phrase.

    Parameters
    ----------
    strength:
        Entropy bits: 128 yields 12 words, 256 yields 24 words.

    Returns
    -------
    list[str]
        The phrase as ordered words.
    """
    if strength not in _ALLOWED_STRENGTHS:
        raise InvalidMnemonicError(
            f"Mnemonic strength must be one of {_ALLOWED_STRENGTHS}, got {strength}."
        )
    return Mnemonic(_LANGUAGE).generate(strength=strength).split()


def validate_mnemonic(words: list[str]) -> list[str]:
    """Return *words* normalized to lower case if they form a valid phrase.

    Raises
    ------
    InvalidMnemonicError
        If the word count, vocabulary, or checksum is wrong.
    """
    normalized = [w.strip().lower() for w in words if w.strip()]
    if not normalized:
        raise InvalidMnemonicError("Mnemonic phrase is empty.")
    if not Mnemonic(_LANGUAGE).check(" ".join(normalized)):
        raise InvalidMnemonicError(
            "Mnemonic phrase failed validation (unknown word or bad checksum)."
        )
    return normalized


def seed_from_mnemonic(words: list[str], passphrase: str = "") -> bytes:
    """Return the 64-byte BIP-39 seed for *words* and *passphrase*."""
    return Mnemonic.to_seed(" ".join(words), passphrase=passphrase)


# ------------------------------------------------------------------
# Key material
# ------------------------------------------------------------------


@dataclass(frozen=True)
class KeyMaterial:
    """A derived Ed25519 keypair bound to one identity key.

    Parameters
    ----------
    key_id:
        The identity key this material belongs to.
    purpose:
        The key's purpose.
    public_key:
        32-byte raw public key.
    private_key:
        32-byte raw private key. Excluded from ``repr``.
    """

    key_id: str
    purpose: KeyPurpose
    public_key: bytes
    private_key: bytes = field(repr=False)

    def sign(self, data: bytes) -> bytes:
        """Sign *data*, returning the 64-byte Ed25519 signature."""
        return Ed25519PrivateKey.from_private_bytes(self.private_key).sign(data)


def verify_signature(public_key: bytes, signature: bytes, data: bytes) -> bool:
    """Return ``True`` if *signature* over *data* verifies against *public_key*."""
    try:
        Ed25519PublicKey.from_public_bytes(public_key).verify(signature, data)
        return True
    except (InvalidSignature, ValueError):
        return False


class SeedKeyManager:
    """Derives identity keys from a wallet's seed.

    Example
    -------
    ::

        manager = SeedKeyManager.for_wallet(wallet)
        material = manager.derive(identity, identity.keys[0])
        signature = material.sign(b"payload")
    """

    def __init__(self, seed: bytes) -> None:
        self._seed = seed

    @classmethod
    def for_wallet(cls, wallet: Wallet) -> "SeedKeyManager":
        return cls(seed_from_mnemonic(wallet.mnemonic, wallet.passphrase))

    def derive_raw(self, identity_index: int, key_index: int, purpose: KeyPurpose) -> tuple[bytes, bytes]:
        """Derive the ``(private_key, public_key)`` pair for one key slot."""
        info = f"wal/did/{identity_index}/key/{key_index}/{purpose.value}".encode("utf-8")
        private_bytes = HKDF(
            algorithm=hashes.SHA256(),
            length=32,
            salt=_HKDF_SALT,
            info=info,
        ).derive(self._seed)
        public_bytes = (
            Ed25519PrivateKey.from_private_bytes(private_bytes)
            .public_key()
            .public_bytes(Encoding.Raw, PublicFormat.Raw)
        )
        return private_bytes, public_bytes

    def derive(self, identity: Identity, key: Key) -> KeyMaterial:
        """Derive the key material for *key* of *identity*."""
        private_bytes, public_bytes = self.derive_raw(
            identity.derivation_index, key.derivation_index, key.purpose
        )
        return KeyMaterial(
            key_id=key.key_id,
            purpose=key.purpose,
            public_key=public_bytes,
            private_key=private_bytes,
        )

    def derive_all(self, identity: Identity) -> list[KeyMaterial]:
        """Derive material for every key of *identity*, in key order."""
        return [self.derive(identity, key) for key in identity.keys]


__all__ = [
    "KeyMaterial",
    "SeedKeyManager",
    "generate_mnemonic",
    "seed_from_mnemonic",
    "validate_mnemonic",
    "verify_signature",
]
