"""Settings for the wal command-line tool.

Every path the tool touches derives from one home directory unless set
individually. Settings come from ``WAL_``-prefixed environment variables or
a ``.env`` file in the working directory::

    WAL_HOME=/srv/wal
    WAL_LEDGER_FILE=/srv/shared/ledger.ndjson
    WAL_LOG_LEVEL=INFO

A :class:`WalSettings` value is built once by the CLI root command and passed
explicitly to :meth:`wal.service.WalletService.from_settings`.
"""
from __future__ import annotations

import logging
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class WalSettings(BaseSettings):
    """Locations and defaults for wallet operations."""

    model_config = SettingsConfigDict(
        env_prefix="WAL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # STORAGE
    # ==========================================================================

    home: Path = Field(
        default_factory=lambda: Path.home() / ".wal",
        description="Root directory for all wallet data",
    )
    store_dir: Path | None = Field(
        default=None,
        description="Directory holding one JSON document per wallet (default: <home>/wallets)",
    )
    ledger_file: Path | None = Field(
        default=None,
        description="Published identity documents (default: <home>/ledger.ndjson)",
    )
    revocation_file: Path | None = Field(
        default=None,
        description="Revoked credential hashes (default: <home>/revocations.json)",
    )
    keyring_file: Path | None = Field(
        default=None,
        description="Peer identity private keys (default: <home>/peer-keys.json)",
    )

    # ==========================================================================
    # DEFAULTS
    # ==========================================================================

    mnemonic_strength: int = Field(
        default=256,
        description="Entropy bits for generated recovery phrases (256 = 24 words)",
    )
    log_level: str = Field(
        default="WARNING",
        description="Log level (DEBUG, INFO, WARNING, ERROR)",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}")
        return normalized

    @field_validator("mnemonic_strength")
    @classmethod
    def validate_mnemonic_strength(cls, value: int) -> int:
        if value not in (128, 160, 192, 224, 256):
            raise ValueError("mnemonic_strength must be 128, 160, 192, 224, or 256")
        return value

    @model_validator(mode="after")
    def fill_paths(self) -> "WalSettings":
        home = self.home.expanduser()
        self.home = home
        if self.store_dir is None:
            self.store_dir = home / "wallets"
        if self.ledger_file is None:
            self.ledger_file = home / "ledger.ndjson"
        if self.revocation_file is None:
            self.revocation_file = home / "revocations.json"
        if self.keyring_file is None:
            self.keyring_file = home / "peer-keys.json"
        return self


def configure_logging(level: str) -> None:
    """Configure root logging for a CLI invocation."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.WARNING), format=_LOG_FORMAT)


__all__ = ["WalSettings", "configure_logging"]
