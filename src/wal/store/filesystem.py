"""FilesystemWalletStore — one JSON document per wallet on disk.

Layout::

    <base_dir>/
        alice.json
        issuer%20wallet.json

File names are the percent-encoded wallet name; the authoritative name is
the ``name`` field inside the document. Writes go to a temporary sibling
file that then replaces the target, so a reader never sees a half-written
document.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from urllib.parse import quote, unquote

from pydantic import ValidationError

from wal.errors import ExternalFailureError, InvalidError, WalletNotFoundError
from wal.store.base import WalletStore
from wal.wallet.model import Wallet, WalletSummary

logger = logging.getLogger(__name__)

_SUFFIX = ".json"


class FilesystemWalletStore(WalletStore):
    """Filesystem-backed wallet storage.

    Parameters
    ----------
    base_dir:
        Directory holding the wallet documents. Created if missing.
    """

    def __init__(self, base_dir: Path) -> None:
        self._base_dir = base_dir
        try:
            self._base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ExternalFailureError(
                f"Cannot create wallet store directory {base_dir}: {exc}"
            ) from exc

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    # ------------------------------------------------------------------
    # WalletStore interface
    # ------------------------------------------------------------------

    def get(self, name: str) -> Wallet:
        path = self._wallet_path(name)
        if not path.exists():
            raise WalletNotFoundError(name)
        return self._read(path)

    def exists(self, name: str) -> bool:
        return self._wallet_path(name).exists()

    def list_summaries(self) -> list[WalletSummary]:
        summaries: list[WalletSummary] = []
        for path in sorted(self._base_dir.glob(f"*{_SUFFIX}")):
            try:
                summaries.append(self._read(path).summary())
            except InvalidError as exc:
                logger.warning("Skipping unreadable wallet document %s: %s", path.name, exc)
        return sorted(summaries, key=lambda s: s.name)

    def upsert(self, wallet: Wallet) -> None:
        path = self._wallet_path(wallet.name)
        tmp_path = path.with_suffix(".tmp")
        try:
            tmp_path.write_text(
                json.dumps(wallet.to_document(), indent=2), encoding="utf-8"
            )
            tmp_path.replace(path)
        except OSError as exc:
            raise ExternalFailureError(
                f"Cannot write wallet {wallet.name!r} to {path}: {exc}"
            ) from exc
        logger.debug("Stored wallet %r at %s", wallet.name, path)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _wallet_path(self, name: str) -> Path:
        return self._base_dir / f"{quote(name, safe='')}{_SUFFIX}"

    def _read(self, path: Path) -> Wallet:
        try:
            document = json.loads(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise ExternalFailureError(f"Cannot read wallet document {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise InvalidError(f"Wallet document {path.name} is not valid JSON: {exc}") from exc
        try:
            wallet = Wallet.from_document(document)
        except ValidationError as exc:
            raise InvalidError(f"Wallet document {path.name} is malformed: {exc}") from exc
        if wallet.name != unquote(path.name[: -len(_SUFFIX)]):
            raise InvalidError(
                f"Wallet document {path.name} holds wallet {wallet.name!r}."
            )
        return wallet


__all__ = ["FilesystemWalletStore"]
