"""Identity references — syntax checks and the ``did:wal`` URI encodings.

Any identity reference accepted from outside (a credential subject, a
message recipient) must match the generic DID syntax::

    did:<method>:<method-specific-id>

``did:wal`` identities come in two encodings of the same initial state:

Canonical
    ``did:wal:<base58btc(sha256(state))>`` — only resolvable against
    published state.
Long form
    ``did:wal:<hash>:<base58btc(state)>`` — self-contained; usable before
    publication because the state travels inside the URI.

The state is the canonical JSON (sorted keys, compact separators) of the
identity's initial public keys.
"""
from __future__ import annotations

import hashlib
import json
import re
from dataclasses import dataclass
from typing import Any

from wal.errors import InvalidIdentityUriError

DID_METHOD: str = "wal"

_DID_PATTERN = re.compile(
    r"^did:(?P<method>[a-z0-9]+):(?P<msid>(?:[A-Za-z0-9._%\-]*:)*[A-Za-z0-9._%\-]+)$"
)

# Multicodec prefixes (varint-encoded)
ED25519_PUB_MULTICODEC: bytes = b"\xed\x01"
X25519_PUB_MULTICODEC: bytes = b"\xec\x01"

_BASE58_ALPHABET: str = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"


# ---------------------------------------------------------------------------
# Base58btc codec
# ---------------------------------------------------------------------------


def base58btc_encode(data: bytes) -> str:
    """Encode *data* as base58btc (leading zero bytes become ``1``)."""
    n = int.from_bytes(data, "big")
    result: list[str] = []
    while n > 0:
        n, remainder = divmod(n, 58)
        result.append(_BASE58_ALPHABET[remainder])
    for byte in data:
        if byte == 0:
            result.append("1")
        else:
            break
    return "".join(reversed(result))


def base58btc_decode(encoded: str) -> bytes:
    """Decode a base58btc string.

    Raises
    ------
    ValueError
        If *encoded* contains a character outside the base58btc alphabet.
    """
    n = 0
    for char in encoded:
        position = _BASE58_ALPHABET.find(char)
        if position < 0:
            raise ValueError(f"Invalid base58btc character {char!r}")
        n = n * 58 + position
    result = n.to_bytes((n.bit_length() + 7) // 8, "big") if n > 0 else b""
    pad_size = len(encoded) - len(encoded.lstrip("1"))
    return b"\x00" * pad_size + result


def multibase_key(prefix: bytes, public_key: bytes) -> str:
    """Return ``z<base58btc(prefix + public_key)>``."""
    return "z" + base58btc_encode(prefix + public_key)


def decode_multibase_key(value: str, prefix: bytes) -> bytes:
    """Inverse of :func:`multibase_key`.

    Raises
    ------
    ValueError
        If *value* is not base58btc multibase or carries another multicodec.
    """
    if not value.startswith("z"):
        raise ValueError(f"Unsupported multibase encoding in {value!r}")
    decoded = base58btc_decode(value[1:])
    if not decoded.startswith(prefix):
        raise ValueError(f"Unexpected multicodec prefix in {value!r}")
    return decoded[len(prefix):]


# ---------------------------------------------------------------------------
# Generic syntax
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParsedUri:
    """The pieces of a syntactically valid DID."""

    method: str
    method_specific_id: str

    @property
    def segments(self) -> list[str]:
        return self.method_specific_id.split(":")


def parse_identity_uri(uri: str) -> ParsedUri:
    """Split *uri* into method and method-specific id.

    For ``did:wal`` long-form references the embedded state must also decode
    and hash to the canonical suffix.

    Raises
    ------
    InvalidIdentityUriError
        If *uri* is not a well-formed identity reference.
    """
    match = _DID_PATTERN.match(uri or "")
    if not match:
        raise InvalidIdentityUriError(uri, "Expected format: did:<method>:<id>")
    parsed = ParsedUri(match.group("method"), match.group("msid"))
    if parsed.method == DID_METHOD:
        _check_wal_segments(uri, parsed.segments)
    return parsed


def is_well_formed(uri: str) -> bool:
    """Return ``True`` if :func:`parse_identity_uri` accepts *uri*."""
    try:
        parse_identity_uri(uri)
    except InvalidIdentityUriError:
        return False
    return True


def _check_wal_segments(uri: str, segments: list[str]) -> None:
    if len(segments) not in (1, 2):
        raise InvalidIdentityUriError(uri, "did:wal takes a hash and an optional state.")
    try:
        digest = base58btc_decode(segments[0])
    except ValueError as exc:
        raise InvalidIdentityUriError(uri, str(exc)) from exc
    if len(digest) != 32:
        raise InvalidIdentityUriError(uri, "The hash segment is not a SHA-256 digest.")
    if len(segments) == 2:
        try:
            state_bytes = base58btc_decode(segments[1])
        except ValueError as exc:
            raise InvalidIdentityUriError(uri, str(exc)) from exc
        if hashlib.sha256(state_bytes).digest() != digest:
            raise InvalidIdentityUriError(uri, "Embedded state does not match its hash.")


# ---------------------------------------------------------------------------
# did:wal encodings
# ---------------------------------------------------------------------------


def encode_state(state: dict[str, Any]) -> bytes:
    """Return the canonical JSON bytes of an identity's initial state."""
    return json.dumps(state, sort_keys=True, separators=(",", ":")).encode("utf-8")


def canonical_uri_for(state: dict[str, Any]) -> str:
    digest = hashlib.sha256(encode_state(state)).digest()
    return f"did:{DID_METHOD}:{base58btc_encode(digest)}"


def long_form_uri_for(state: dict[str, Any]) -> str:
    return f"{canonical_uri_for(state)}:{base58btc_encode(encode_state(state))}"


def canonical_of(uri: str) -> str:
    """Return the canonical form of a ``did:wal`` URI (canonical or long form)."""
    parsed = parse_identity_uri(uri)
    if parsed.method != DID_METHOD:
        raise InvalidIdentityUriError(uri, f"Not a did:{DID_METHOD} identity.")
    return f"did:{DID_METHOD}:{parsed.segments[0]}"


def decode_long_form(uri: str) -> dict[str, Any]:
    """Return the initial state embedded in a long-form ``did:wal`` URI.

    Raises
    ------
    InvalidIdentityUriError
        If *uri* is not a long-form ``did:wal`` reference.
    """
    parsed = parse_identity_uri(uri)
    if parsed.method != DID_METHOD or len(parsed.segments) != 2:
        raise InvalidIdentityUriError(uri, "Not a long-form did:wal identity.")
    try:
        state = json.loads(base58btc_decode(parsed.segments[1]).decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise InvalidIdentityUriError(uri, "Embedded state is not JSON.") from exc
    if not isinstance(state, dict):
        raise InvalidIdentityUriError(uri, "Embedded state is not a JSON object.")
    return state


__all__ = [
    "DID_METHOD",
    "ED25519_PUB_MULTICODEC",
    "ParsedUri",
    "X25519_PUB_MULTICODEC",
    "base58btc_decode",
    "base58btc_encode",
    "canonical_of",
    "canonical_uri_for",
    "decode_long_form",
    "decode_multibase_key",
    "encode_state",
    "is_well_formed",
    "long_form_uri_for",
    "multibase_key",
    "parse_identity_uri",
]
