"""Tests for wal.config — WalSettings environment handling."""
from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from wal.config import WalSettings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    for name in (
        "WAL_HOME",
        "WAL_STORE_DIR",
        "WAL_LEDGER_FILE",
        "WAL_REVOCATION_FILE",
        "WAL_KEYRING_FILE",
        "WAL_MNEMONIC_STRENGTH",
        "WAL_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


class TestWalSettings:
    def test_paths_default_under_home(self, tmp_path: Path) -> None:
        settings = WalSettings(home=tmp_path)
        assert settings.store_dir == tmp_path / "wallets"
        assert settings.ledger_file == tmp_path / "ledger.ndjson"
        assert settings.revocation_file == tmp_path / "revocations.json"
        assert settings.keyring_file == tmp_path / "peer-keys.json"

    def test_home_from_environment(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("WAL_HOME", str(tmp_path / "h"))
        assert WalSettings().store_dir == tmp_path / "h" / "wallets"

    def test_individual_path_overrides_home(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.setenv("WAL_HOME", str(tmp_path))
        monkeypatch.setenv("WAL_LEDGER_FILE", str(tmp_path / "shared.ndjson"))
        settings = WalSettings()
        assert settings.ledger_file == tmp_path / "shared.ndjson"
        assert settings.store_dir == tmp_path / "wallets"

    def test_home_is_expanded(self) -> None:
        assert "~" not in str(WalSettings(home=Path("~/wal-test")).home)

    def test_env_file(self, tmp_path: Path) -> None:
        (tmp_path / ".env").write_text("WAL_LOG_LEVEL=info\n", encoding="utf-8")
        assert WalSettings().log_level == "INFO"

    def test_log_level_normalized(self) -> None:
        assert WalSettings(log_level=" debug ").log_level == "DEBUG"

    def test_invalid_log_level(self) -> None:
        with pytest.raises(ValidationError):
            WalSettings(log_level="LOUD")

    def test_mnemonic_strength(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WAL_MNEMONIC_STRENGTH", "128")
        assert WalSettings().mnemonic_strength == 128

    def test_invalid_mnemonic_strength(self) -> None:
        with pytest.raises(ValidationError):
            WalSettings(mnemonic_strength=100)
