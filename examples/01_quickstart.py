#!/usr/bin/env python3
"""Example: Quickstart

Creates a wallet with an issuer DID, publishes it, issues a credential to
a holder and verifies it before and after revocation. Everything lives in
memory so the example leaves no files behind.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install did-wal
"""
from __future__ import annotations

import wal
from wal import CredentialSource, InMemoryWalletStore, WalletService
from wal.adapters import (
    Ed25519Signer,
    Ed25519Verifier,
    EnvelopeService,
    FileLedger,
    PeerKeyring,
    RevocationRegistry,
)


def main() -> None:
    print(f"wal version: {wal.__version__}")

    ledger = FileLedger()
    registry = RevocationRegistry()
    keyring = PeerKeyring()
    service = WalletService(
        store=InMemoryWalletStore(),
        ledger=ledger,
        signer=Ed25519Signer(registry),
        verifier=Ed25519Verifier(ledger, registry),
        encryption=EnvelopeService(keyring),
        keyring=keyring,
    )

    # Step 1: Create a wallet and an issuer DID
    service.create_wallet("university")
    issuer = service.create_identity("university", "registrar", is_issuer=True)
    print(f"Issuer DID: {issuer.canonical_uri}")
    print(f"Keys: {', '.join(k.key_id for k in issuer.keys)}")

    # Step 2: Publish it
    published = service.publish_identity("university", "registrar")
    print(f"Published (operation {published.publish_operation_id})")

    # Step 3: Issue a credential to a holder
    service.create_wallet("student")
    holder = service.create_identity("student", "me")
    credential = service.issue_credential(
        "university", "registrar", holder.canonical_uri, "diploma", {"degree": "Economics"}
    )
    print(f"Issued {credential.alias!r}, hash {credential.proof.credential_hash[:16]}...")

    # Step 4: Verify, revoke, verify again
    result = service.verify_credential("university", CredentialSource.ISSUED, "diploma")
    print(f"Valid before revocation: {result.valid}")
    report = service.revoke_credential("university", "diploma")
    print(f"Registry status: {report.registry_status.value}")
    result = service.verify_credential("university", CredentialSource.ISSUED, "diploma")
    print(f"Valid after revocation: {result.valid} ({[e.code for e in result.errors]})")

    print("\nQuickstart complete.")


if __name__ == "__main__":
    main()
