"""Envelope encryption between peer identities.

Two modes, chosen by whether a sender is given to :meth:`EnvelopeService.pack`:

anoncrypt
    ECDH-ES: an ephemeral X25519 key agrees with the recipient's key. The
    recipient learns nothing about the sender.
authcrypt
    ECDH-1PU: the ephemeral agreement is combined with a second agreement
    between the sender's static key and the recipient's key, so only the
    named sender could have produced the envelope.

Either mode may additionally carry an Ed25519 signature over the plaintext
by a signer identity. Content is encrypted with ChaCha20-Poly1305; the
protected header is bound as associated data.

Envelope shape::

    {"protected": <b64url header JSON>, "iv": <b64url>, "ciphertext": <b64url>}

Private keys of the local peer identities live in a :class:`PeerKeyring`.
"""
from __future__ import annotations

import base64
import json
import logging
import os
import threading
from pathlib import Path
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.asymmetric.x25519 import (
    X25519PrivateKey,
    X25519PublicKey,
)
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305
from cryptography.hazmat.primitives.kdf.hkdf import HKDF
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from wal.collaborators import UnpackResult
from wal.did.peer import PeerIdentity, resolve_peer_identity
from wal.did.uri import X25519_PUB_MULTICODEC, decode_multibase_key, multibase_key
from wal.errors import ExternalFailureError, WalError
from wal.wallet.keys import verify_signature

logger = logging.getLogger(__name__)

ENVELOPE_TYPE = "application/wal-envelope+json"
_ALG_ANON = "ECDH-ES+C20P"
_ALG_AUTH = "ECDH-1PU+C20P"


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _b64decode(value: str) -> bytes:
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))


# ------------------------------------------------------------------
# PeerKeyring
# ------------------------------------------------------------------


class PeerKeyring:
    """Private keys of the peer identities created on this machine.

    Parameters
    ----------
    path:
        JSON file holding the keys, or ``None`` for in-memory only.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._secrets: dict[str, dict[str, str]] = {}
        self._lock = threading.Lock()
        if path is not None and path.exists():
            try:
                self._secrets = json.loads(path.read_text(encoding="utf-8") or "{}")
            except (OSError, json.JSONDecodeError) as exc:
                raise ExternalFailureError(f"Cannot read peer keyring {path}: {exc}") from exc

    def add(self, identity: PeerIdentity) -> None:
        with self._lock:
            self._secrets[identity.did] = {
                "agreement": identity.agreement_private_key.hex(),
                "authentication": identity.authentication_private_key.hex(),
            }
            self._persist()

    def agreement_key(self, did: str) -> X25519PrivateKey:
        return X25519PrivateKey.from_private_bytes(bytes.fromhex(self._secret(did, "agreement")))

    def authentication_key(self, did: str) -> Ed25519PrivateKey:
        return Ed25519PrivateKey.from_private_bytes(
            bytes.fromhex(self._secret(did, "authentication"))
        )

    def __contains__(self, did: object) -> bool:
        with self._lock:
            return did in self._secrets

    def _secret(self, did: str, kind: str) -> str:
        with self._lock:
            entry = self._secrets.get(did)
        if entry is None:
            raise ExternalFailureError(f"No private keys held for peer DID {did!r}.")
        return entry[kind]

    def _persist(self) -> None:
        if self._path is None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(self._secrets, indent=2), encoding="utf-8")
            os.chmod(self._path, 0o600)
        except OSError as exc:
            raise ExternalFailureError(f"Cannot write peer keyring {self._path}: {exc}") from exc


# ------------------------------------------------------------------
# EnvelopeService
# ------------------------------------------------------------------


class EnvelopeService:
    """Packs and unpacks envelopes between ``did:peer`` identities.

    Example
    -------
    ::

        service = EnvelopeService(keyring)
        envelope = service.pack("hello", bob_did, sender_uri=alice_did)
        result = service.unpack(envelope)   # run with bob's keyring
        assert result.sender_uri == alice_did
    """

    def __init__(self, keyring: PeerKeyring) -> None:
        self._keyring = keyring

    def pack(
        self,
        plaintext: str,
        recipient_uri: str,
        sender_uri: str | None = None,
        signer_uri: str | None = None,
    ) -> dict[str, Any]:
        try:
            recipient = resolve_peer_identity(recipient_uri)
            recipient_key = X25519PublicKey.from_public_bytes(recipient.agreement_key)

            inner: dict[str, Any] = {"body": plaintext}
            if signer_uri is not None:
                signer = resolve_peer_identity(signer_uri)
                signature = self._keyring.authentication_key(signer.did).sign(
                    plaintext.encode("utf-8")
                )
                inner["signer"] = signer.did
                inner["signature"] = _b64encode(signature)

            ephemeral = X25519PrivateKey.generate()
            epk = ephemeral.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw)
            header: dict[str, Any] = {
                "typ": ENVELOPE_TYPE,
                "alg": _ALG_ANON,
                "kid": recipient.agreement_key_id,
                "epk": multibase_key(X25519_PUB_MULTICODEC, epk),
            }
            shared = ephemeral.exchange(recipient_key)
            if sender_uri is not None:
                sender = resolve_peer_identity(sender_uri)
                shared += self._keyring.agreement_key(sender.did).exchange(recipient_key)
                header["alg"] = _ALG_AUTH
                header["skid"] = sender.agreement_key_id

            protected = _b64encode(json.dumps(header, sort_keys=True).encode("utf-8"))
            nonce = os.urandom(12)
            ciphertext = ChaCha20Poly1305(_content_key(shared, header["alg"])).encrypt(
                nonce, json.dumps(inner).encode("utf-8"), protected.encode("ascii")
            )
        except (WalError, ValueError) as exc:
            raise ExternalFailureError(f"Cannot pack message: {exc}") from exc

        logger.debug("Packed %s envelope for %s", header["alg"], recipient.did)
        return {
            "protected": protected,
            "iv": _b64encode(nonce),
            "ciphertext": _b64encode(ciphertext),
        }

    def unpack(self, envelope: dict[str, Any]) -> UnpackResult:
        try:
            protected = str(envelope["protected"])
            header = json.loads(_b64decode(protected))
            recipient_did = str(header["kid"]).split("#", 1)[0]
            epk = X25519PublicKey.from_public_bytes(
                decode_multibase_key(str(header["epk"]), X25519_PUB_MULTICODEC)
            )
            own_key = self._keyring.agreement_key(recipient_did)
            shared = own_key.exchange(epk)

            sender_uri: str | None = None
            if header.get("alg") == _ALG_AUTH:
                sender = resolve_peer_identity(str(header["skid"]))
                shared += own_key.exchange(X25519PublicKey.from_public_bytes(sender.agreement_key))
                sender_uri = sender.did

            inner = json.loads(
                ChaCha20Poly1305(_content_key(shared, str(header["alg"]))).decrypt(
                    _b64decode(str(envelope["iv"])),
                    _b64decode(str(envelope["ciphertext"])),
                    protected.encode("ascii"),
                )
            )
            plaintext = str(inner["body"])
        except InvalidTag as exc:
            raise ExternalFailureError("Envelope failed authentication.") from exc
        except WalError as exc:
            raise ExternalFailureError(f"Cannot unpack message: {exc}") from exc
        except (KeyError, TypeError, ValueError) as exc:
            raise ExternalFailureError(f"Malformed envelope: {exc!r}") from exc

        signer_uri: str | None = None
        if "signer" in inner:
            try:
                signer = resolve_peer_identity(str(inner["signer"]))
                signature = _b64decode(str(inner.get("signature", "")))
            except (WalError, ValueError) as exc:
                raise ExternalFailureError(f"Cannot check message signature: {exc}") from exc
            if not verify_signature(signer.authentication_key, signature, plaintext.encode("utf-8")):
                raise ExternalFailureError(f"Signature by {signer.did!r} does not verify.")
            signer_uri = signer.did

        return UnpackResult(plaintext=plaintext, sender_uri=sender_uri, signer_uri=signer_uri)


def _content_key(shared: bytes, alg: str) -> bytes:
    return HKDF(
        algorithm=hashes.SHA256(),
        length=32,
        salt=None,
        info=alg.encode("ascii"),
    ).derive(shared)


__all__ = ["ENVELOPE_TYPE", "EnvelopeService", "PeerKeyring"]
