"""FileLedger — a local stand-in for an identity network.

Published identity documents are kept in memory keyed by canonical URI and,
when a path is configured, mirrored to a newline-delimited JSON file (one
published document per line). Publishing the same canonical URI again
replaces the stored document; that is how key additions and revocations on
a published identity reach the ledger.

Resolution
----------
- canonical URI: the published document, or ``NotFoundError``
- long-form URI: the published document when the canonical form has been
  published, otherwise the document embedded in the URI itself
"""
from __future__ import annotations

import json
import logging
import threading
import uuid
from pathlib import Path
from typing import Any

from wal.collaborators import LedgerReceipt
from wal.did.document import IdentityDocument
from wal.did.uri import (
    DID_METHOD,
    canonical_of,
    canonical_uri_for,
    decode_long_form,
    long_form_uri_for,
    parse_identity_uri,
)
from wal.errors import ExternalFailureError, NotFoundError

logger = logging.getLogger(__name__)


class FileLedger:
    """Ledger adapter with optional NDJSON persistence.

    Parameters
    ----------
    path:
        File mirroring the published documents. ``None`` keeps everything
        in memory.

    Example
    -------
    ::

        ledger = FileLedger(Path("ledger.ndjson"))
        canonical, long_form = ledger.uris_for(state)
        receipt = ledger.publish(document)
        assert ledger.resolve(long_form).id == canonical
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._documents: dict[str, IdentityDocument] = {}
        self._operations: dict[str, str] = {}
        self._lock = threading.Lock()
        if path is not None and path.exists():
            self._load(path)

    # ------------------------------------------------------------------
    # Ledger protocol
    # ------------------------------------------------------------------

    def uris_for(self, state: dict[str, Any]) -> tuple[str, str]:
        return canonical_uri_for(state), long_form_uri_for(state)

    def publish(self, document: IdentityDocument) -> LedgerReceipt:
        canonical = canonical_of(document.id)
        if canonical != document.id:
            raise ExternalFailureError(
                f"Ledger only accepts documents keyed by canonical URI, got {document.id!r}."
            )
        operation_id = uuid.uuid4().hex
        with self._lock:
            previous = self._documents.get(canonical), self._operations.get(canonical)
            replaced = previous[0] is not None
            self._documents[canonical] = document
            self._operations[canonical] = operation_id
            try:
                self._persist()
            except ExternalFailureError:
                self._restore(canonical, *previous)
                raise
        logger.debug(
            "Ledger %s %s (operation %s)",
            "updated" if replaced else "published",
            canonical,
            operation_id,
        )
        return LedgerReceipt(canonical_uri=canonical, operation_id=operation_id)

    def resolve(self, uri: str) -> IdentityDocument:
        parsed = parse_identity_uri(uri)
        if parsed.method != DID_METHOD:
            raise NotFoundError(f"Ledger cannot resolve did:{parsed.method} identities.")
        canonical = canonical_of(uri)
        with self._lock:
            published = self._documents.get(canonical)
        if published is not None:
            return published
        if len(parsed.segments) == 2:
            return IdentityDocument.from_state(canonical, decode_long_form(uri))
        raise NotFoundError(f"DID {canonical!r} is not published.")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_published(self, uri: str) -> bool:
        with self._lock:
            return canonical_of(uri) in self._documents

    def operation_id(self, uri: str) -> str | None:
        with self._lock:
            return self._operations.get(canonical_of(uri))

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _restore(
        self, canonical: str, document: IdentityDocument | None, operation_id: str | None
    ) -> None:
        if document is None:
            self._documents.pop(canonical, None)
            self._operations.pop(canonical, None)
        else:
            self._documents[canonical] = document
            self._operations[canonical] = operation_id or ""

    def _persist(self) -> None:
        if self._path is None:
            return
        lines: list[str] = []
        for canonical in sorted(self._documents):
            entry = self._documents[canonical].to_dict()
            entry["_operationId"] = self._operations[canonical]
            lines.append(json.dumps(entry))
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text("\n".join(lines), encoding="utf-8")
        except OSError as exc:
            raise ExternalFailureError(f"Cannot write ledger file {self._path}: {exc}") from exc

    def _load(self, path: Path) -> None:
        try:
            content = path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ExternalFailureError(f"Cannot read ledger file {path}: {exc}") from exc
        for line_number, raw_line in enumerate(content.splitlines(), start=1):
            raw_line = raw_line.strip()
            if not raw_line:
                continue
            try:
                entry = json.loads(raw_line)
                operation_id = str(entry.pop("_operationId", ""))
                document = IdentityDocument.from_dict(entry)
            except (json.JSONDecodeError, ValueError) as exc:
                raise ExternalFailureError(
                    f"Ledger file {path} is corrupt on line {line_number}: {exc}"
                ) from exc
            self._documents[document.id] = document
            self._operations[document.id] = operation_id


__all__ = ["FileLedger"]
