"""RevocationRegistry — the public list of revoked credentials.

Credentials are tracked by content hash (see
:meth:`~wal.did.credentials.VerifiableCredential.content_hash`). Each entry
records which verification method authorized the revocation and the
registry operation id. With a path configured the registry is mirrored to a
JSON file after every change.
"""
from __future__ import annotations

import json
import threading
import uuid
from pathlib import Path

from wal.errors import ExternalFailureError


class RevocationRegistry:
    """Registry of revoked credential hashes.

    Parameters
    ----------
    path:
        JSON file mirroring the registry, or ``None`` for in-memory only.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._revoked: dict[str, dict[str, str]] = {}
        self._lock = threading.Lock()
        if path is not None and path.exists():
            self._load(path)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def revoke(self, credential_hash: str, revoked_by: str) -> str:
        """Record *credential_hash* as revoked and return the operation id.

        Revoking an already revoked hash returns the original operation id.
        """
        with self._lock:
            existing = self._revoked.get(credential_hash)
            if existing is not None:
                return existing["operationId"]
            operation_id = uuid.uuid4().hex
            self._revoked[credential_hash] = {
                "revokedBy": revoked_by,
                "operationId": operation_id,
            }
            try:
                self._persist()
            except ExternalFailureError:
                del self._revoked[credential_hash]
                raise
        return operation_id

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def is_revoked(self, credential_hash: str) -> bool:
        with self._lock:
            return credential_hash in self._revoked

    def revoked_hashes(self) -> list[str]:
        with self._lock:
            return sorted(self._revoked)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persist(self) -> None:
        if self._path is None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps({"revoked": self._revoked}, indent=2, sort_keys=True),
                encoding="utf-8",
            )
        except OSError as exc:
            raise ExternalFailureError(
                f"Cannot write revocation registry {self._path}: {exc}"
            ) from exc

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8") or "{}")
        except (OSError, json.JSONDecodeError) as exc:
            raise ExternalFailureError(f"Cannot read revocation registry {path}: {exc}") from exc
        self._revoked = {
            str(h): {str(k): str(v) for k, v in entry.items()}
            for h, entry in (data.get("revoked") or {}).items()
        }


__all__ = ["RevocationRegistry"]
