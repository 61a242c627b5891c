#!/usr/bin/env python3
"""Example: Peer messaging

Creates two peer DIDs and sends an authenticated, signed message from one
to the other.

Usage:
    python examples/02_peer_messaging.py

Requirements:
    pip install did-wal
"""
from __future__ import annotations

import json

from wal.adapters import EnvelopeService, PeerKeyring
from wal.did import create_peer_identity


def main() -> None:
    keyring = PeerKeyring()
    envelopes = EnvelopeService(keyring)

    # Step 1: Create both parties; their private keys go into the keyring
    alice = create_peer_identity()
    bob = create_peer_identity()
    keyring.add(alice)
    keyring.add(bob)
    print(f"Alice: {alice.did[:48]}...")
    print(f"Bob:   {bob.did[:48]}...")

    # Step 2: Alice packs a message for Bob
    envelope = envelopes.pack("Meet at noon.", bob.did, sender_uri=alice.did, signer_uri=alice.did)
    print(f"Envelope header: {json.dumps(envelope)[:60]}...")

    # Step 3: Bob unpacks it
    result = envelopes.unpack(envelope)
    print(f"Plaintext: {result.plaintext}")
    print(f"Sender is Alice: {result.sender_uri == alice.did}")
    print(f"Signed by Alice: {result.signer_uri == alice.did}")


if __name__ == "__main__":
    main()
