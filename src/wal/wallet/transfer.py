"""Wallet and credential transfer files.

A wallet export is the wallet's stored document, pretty-printed, so it can
be moved to another machine and imported under the same or a new name::

    {"format": "wal-wallet", "version": 1, "wallet": {...}}

A credential export is the signed credential payload of one issued
credential; importing it into another wallet stores it verbatim::

    {"format": "wal-credential", "version": 1, "credential": {...}}

Bare payloads (a wallet document or a credential without the envelope) are
accepted on import so files produced by other tools still load.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from wal.errors import ExternalFailureError, InvalidFileError
from wal.wallet.model import Wallet

logger = logging.getLogger(__name__)

WALLET_FORMAT = "wal-wallet"
CREDENTIAL_FORMAT = "wal-credential"
FORMAT_VERSION = 1


# ------------------------------------------------------------------
# Wallets
# ------------------------------------------------------------------


def export_wallet_file(wallet: Wallet, path: Path) -> Path:
    """Write *wallet* (including its seed material) to *path*."""
    _write_json(
        path,
        {"format": WALLET_FORMAT, "version": FORMAT_VERSION, "wallet": wallet.to_document()},
    )
    logger.debug("Wrote wallet export %s", path)
    return path


def read_wallet_file(path: Path) -> Wallet:
    """Read a wallet export.

    Raises
    ------
    InvalidFileError
        If the file is not JSON or does not hold a valid wallet.
    """
    data = _read_json(path)
    document = _unwrap(data, WALLET_FORMAT, "wallet", path)
    try:
        return Wallet.from_document(document)
    except ValidationError as exc:
        raise InvalidFileError(f"{path} does not hold a valid wallet: {exc}") from exc


# ------------------------------------------------------------------
# Credentials
# ------------------------------------------------------------------


def export_credential_file(payload: dict[str, Any], path: Path) -> Path:
    """Write one signed credential payload to *path*."""
    _write_json(
        path,
        {"format": CREDENTIAL_FORMAT, "version": FORMAT_VERSION, "credential": payload},
    )
    logger.debug("Wrote credential export %s", path)
    return path


def read_credential_file(path: Path) -> dict[str, Any]:
    """Read a credential export and return the payload.

    Only the shape is checked (a JSON object with ``issuer`` and
    ``credentialSubject``); authenticity is checked at verify time.
    """
    data = _read_json(path)
    payload = _unwrap(data, CREDENTIAL_FORMAT, "credential", path)
    missing = [member for member in ("issuer", "credentialSubject") if member not in payload]
    if missing:
        raise InvalidFileError(
            f"{path} does not hold a credential (missing {', '.join(missing)})."
        )
    return payload


# ------------------------------------------------------------------
# Internal
# ------------------------------------------------------------------


def _unwrap(data: Any, format_name: str, member: str, path: Path) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise InvalidFileError(f"{path} must contain a JSON object.")
    if "format" not in data:
        return data
    if data.get("format") != format_name:
        raise InvalidFileError(
            f"{path} is a {data.get('format')!r} file, expected {format_name!r}."
        )
    if data.get("version") != FORMAT_VERSION:
        raise InvalidFileError(f"{path} has unsupported version {data.get('version')!r}.")
    inner = data.get(member)
    if not isinstance(inner, dict):
        raise InvalidFileError(f"{path} has no {member!r} object.")
    return inner


def _read_json(path: Path) -> Any:
    try:
        content = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise InvalidFileError(f"File {path} does not exist.") from exc
    except OSError as exc:
        raise ExternalFailureError(f"Cannot read {path}: {exc}") from exc
    try:
        return json.loads(content)
    except json.JSONDecodeError as exc:
        raise InvalidFileError(f"{path} is not valid JSON: {exc}") from exc


def _write_json(path: Path, data: dict[str, Any]) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    except OSError as exc:
        raise ExternalFailureError(f"Cannot write {path}: {exc}") from exc


__all__ = [
    "export_credential_file",
    "export_wallet_file",
    "read_credential_file",
    "read_wallet_file",
]
