"""Tests for wal.did.uri — DID syntax and did:wal encodings."""
from __future__ import annotations

from typing import Any

import pytest

from wal.did.uri import (
    ED25519_PUB_MULTICODEC,
    X25519_PUB_MULTICODEC,
    base58btc_decode,
    base58btc_encode,
    canonical_of,
    canonical_uri_for,
    decode_long_form,
    decode_multibase_key,
    is_well_formed,
    long_form_uri_for,
    multibase_key,
    parse_identity_uri,
)
from wal.errors import InvalidIdentityUriError


@pytest.fixture()
def state() -> dict[str, Any]:
    return {
        "publicKeys": [
            {
                "id": "master0",
                "purpose": "master",
                "publicKeyMultibase": multibase_key(ED25519_PUB_MULTICODEC, b"\x01" * 32),
            }
        ]
    }


class TestBase58:
    def test_leading_zero_bytes_preserved(self) -> None:
        data = b"\x00\x00hello"
        encoded = base58btc_encode(data)
        assert encoded.startswith("11")
        assert base58btc_decode(encoded) == data

    def test_invalid_character(self) -> None:
        with pytest.raises(ValueError):
            base58btc_decode("0OIl")

    def test_multibase_prefix_checked(self) -> None:
        value = multibase_key(X25519_PUB_MULTICODEC, b"\x02" * 32)
        assert value.startswith("z")
        assert decode_multibase_key(value, X25519_PUB_MULTICODEC) == b"\x02" * 32
        with pytest.raises(ValueError):
            decode_multibase_key(value, ED25519_PUB_MULTICODEC)


class TestGenericSyntax:
    @pytest.mark.parametrize(
        "uri",
        ["did:example:123", "did:web:example.com", "did:example:a:b:c", "did:key:z6Mk-abc_1.2"],
    )
    def test_well_formed(self, uri: str) -> None:
        assert is_well_formed(uri)

    @pytest.mark.parametrize(
        "uri", ["", "holder", "did:", "did:example", "did:Example:1", "did:example:a b", "urn:x:y"]
    )
    def test_malformed(self, uri: str) -> None:
        assert not is_well_formed(uri)
        with pytest.raises(InvalidIdentityUriError):
            parse_identity_uri(uri)

    def test_parsed_pieces(self) -> None:
        parsed = parse_identity_uri("did:example:a:b")
        assert parsed.method == "example"
        assert parsed.segments == ["a", "b"]


class TestWalEncodings:
    def test_canonical_uri_shape(self, state: dict[str, Any]) -> None:
        uri = canonical_uri_for(state)
        assert uri.startswith("did:wal:")
        assert len(base58btc_decode(uri.split(":")[2])) == 32

    def test_long_form_extends_canonical(self, state: dict[str, Any]) -> None:
        canonical = canonical_uri_for(state)
        long_form = long_form_uri_for(state)
        assert long_form.startswith(canonical + ":")
        assert canonical_of(long_form) == canonical
        assert canonical_of(canonical) == canonical

    def test_long_form_decodes_to_state(self, state: dict[str, Any]) -> None:
        assert decode_long_form(long_form_uri_for(state)) == state

    def test_encoding_independent_of_key_order(self, state: dict[str, Any]) -> None:
        reordered = {"publicKeys": [dict(reversed(list(state["publicKeys"][0].items())))]}
        assert canonical_uri_for(reordered) == canonical_uri_for(state)

    def test_tampered_state_rejected(self, state: dict[str, Any]) -> None:
        canonical = canonical_uri_for(state)
        other = long_form_uri_for({"publicKeys": []}).split(":")[3]
        with pytest.raises(InvalidIdentityUriError):
            parse_identity_uri(f"{canonical}:{other}")

    def test_short_hash_rejected(self) -> None:
        with pytest.raises(InvalidIdentityUriError):
            parse_identity_uri("did:wal:abc")

    def test_canonical_has_no_state(self, state: dict[str, Any]) -> None:
        with pytest.raises(InvalidIdentityUriError):
            decode_long_form(canonical_uri_for(state))

    def test_canonical_of_other_method(self) -> None:
        with pytest.raises(InvalidIdentityUriError):
            canonical_of("did:example:123")
