"""Tests for wal.adapters.ledger and wal.adapters.revocation."""
from __future__ import annotations

from pathlib import Path

import pytest

from wal.adapters.ledger import FileLedger
from wal.adapters.revocation import RevocationRegistry
from wal.did.document import IdentityDocument
from wal.did.uri import long_form_uri_for
from wal.errors import ExternalFailureError, InvalidIdentityUriError, NotFoundError
from wal.wallet import lifecycle
from wal.wallet.keys import SeedKeyManager

MNEMONIC = ["abandon"] * 11 + ["about"]


def _document(ledger: FileLedger) -> tuple[IdentityDocument, str]:
    wallet = lifecycle.create_identity(
        lifecycle.new_wallet("w", MNEMONIC), "iss", True, "did:wal:x", "did:wal:x:y"
    )
    identity = wallet.identities[0]
    materials = SeedKeyManager.for_wallet(wallet).derive_all(identity)
    state = IdentityDocument.build("did:example:draft", identity, materials).initial_state()
    canonical, long_form = ledger.uris_for(state)
    return IdentityDocument.build(canonical, identity, materials), long_form


# ---------------------------------------------------------------------------
# FileLedger
# ---------------------------------------------------------------------------


class TestFileLedger:
    def test_publish_then_resolve(self) -> None:
        ledger = FileLedger()
        document, long_form = _document(ledger)
        receipt = ledger.publish(document)
        assert receipt.canonical_uri == document.id
        assert ledger.resolve(document.id).to_dict() == document.to_dict()
        assert ledger.resolve(long_form).id == document.id
        assert ledger.is_published(long_form)
        assert ledger.operation_id(document.id) == receipt.operation_id
        assert len(ledger) == 1

    def test_unpublished_canonical_not_found(self) -> None:
        ledger = FileLedger()
        document, _ = _document(ledger)
        with pytest.raises(NotFoundError):
            ledger.resolve(document.id)

    def test_unpublished_long_form_resolves_from_uri(self) -> None:
        ledger = FileLedger()
        document, long_form = _document(ledger)
        resolved = ledger.resolve(long_form)
        assert resolved.to_dict() == document.to_dict()

    def test_republish_replaces_document(self) -> None:
        ledger = FileLedger()
        document, _ = _document(ledger)
        first = ledger.publish(document)
        second = ledger.publish(document)
        assert first.operation_id != second.operation_id
        assert len(ledger) == 1

    def test_long_form_id_rejected(self) -> None:
        ledger = FileLedger()
        document, long_form = _document(ledger)
        with pytest.raises(ExternalFailureError):
            ledger.publish(IdentityDocument(id=long_form, verification_method=[]))

    def test_other_methods_not_resolvable(self) -> None:
        with pytest.raises(NotFoundError):
            FileLedger().resolve("did:example:123")

    def test_persistence(self, tmp_path: Path) -> None:
        path = tmp_path / "ledger.ndjson"
        ledger = FileLedger(path)
        document, _ = _document(ledger)
        receipt = ledger.publish(document)
        reloaded = FileLedger(path)
        assert reloaded.resolve(document.id).to_dict() == document.to_dict()
        assert reloaded.operation_id(document.id) == receipt.operation_id

    def test_malformed_long_form_state(self) -> None:
        with pytest.raises(InvalidIdentityUriError):
            FileLedger().resolve(long_form_uri_for({"publicKeys": [{}]}))

    def test_failed_write_leaves_nothing_published(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        ledger = FileLedger(blocker / "ledger.ndjson")
        document, _ = _document(ledger)
        with pytest.raises(ExternalFailureError):
            ledger.publish(document)
        assert not ledger.is_published(document.id)
        assert len(ledger) == 0

    def test_failed_update_keeps_previous_document(self, tmp_path: Path) -> None:
        path = tmp_path / "ledger.ndjson"
        ledger = FileLedger(path)
        document, _ = _document(ledger)
        receipt = ledger.publish(document)
        path.unlink()
        path.mkdir()
        with pytest.raises(ExternalFailureError):
            ledger.publish(IdentityDocument(id=document.id, verification_method=[]))
        assert ledger.resolve(document.id).to_dict() == document.to_dict()
        assert ledger.operation_id(document.id) == receipt.operation_id

    def test_corrupt_file(self, tmp_path: Path) -> None:
        path = tmp_path / "ledger.ndjson"
        path.write_text("{not json}\n", encoding="utf-8")
        with pytest.raises(ExternalFailureError):
            FileLedger(path)


# ---------------------------------------------------------------------------
# RevocationRegistry
# ---------------------------------------------------------------------------


class TestRevocationRegistry:
    def test_revoke_is_idempotent(self) -> None:
        registry = RevocationRegistry()
        first = registry.revoke("abc", "did:wal:x#revocation0")
        assert registry.revoke("abc", "did:wal:x#revocation0") == first
        assert registry.is_revoked("abc")
        assert not registry.is_revoked("def")

    def test_persistence(self, tmp_path: Path) -> None:
        path = tmp_path / "revocations.json"
        RevocationRegistry(path).revoke("abc", "by")
        assert RevocationRegistry(path).revoked_hashes() == ["abc"]

    def test_corrupt_file(self, tmp_path: Path) -> None:
        path = tmp_path / "revocations.json"
        path.write_text("[", encoding="utf-8")
        with pytest.raises(ExternalFailureError):
            RevocationRegistry(path)

    def test_failed_write_is_not_recorded(self, tmp_path: Path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("", encoding="utf-8")
        registry = RevocationRegistry(blocker / "revocations.json")
        with pytest.raises(ExternalFailureError):
            registry.revoke("abc", "by")
        assert not registry.is_revoked("abc")
