"""Tests for runtime settings defaults, derivations, and validation errors."""

from __future__ import annotations

from pathlib import Path

import pytest

from dockerized_node.config import NodeSettings, SettingsLoadError, config_load_database_url, config_load_settings


def test_settings_defaults_describe_local_node(monkeypatch, tmp_path: Path) -> None:
    """Defaults target the local L1/L2 pair and derive paths from the data dir."""

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATA_DIR_PATH", str(tmp_path / "node-data"))

    settings = config_load_settings()

    assert settings.l2_chain_id == 270
    assert settings.l2_rpc_url == "http://127.0.0.1:3050"
    assert settings.l1_chain_id == 9
    assert settings.l1_rpc_url == "http://127.0.0.1:8545"
    assert settings.readiness_retry_interval_seconds == 1.0
    assert settings.readiness_max_wait_seconds is None
    assert settings.settings_resolved_repository_url() == "https://github.com/matter-labs/local-setup.git"
    assert settings.settings_checkout_path() == tmp_path / "node-data" / "local-setup"
    assert settings.compose_file_name == "docker-compose.yml"
    assert settings.settings_resolved_database_url() == (
        f"sqlite:///{(tmp_path / 'node-data' / 'dockerized-node.db').as_posix()}"
    )


def test_settings_honor_explicit_overrides(monkeypatch, tmp_path: Path) -> None:
    """Explicit URLs win over derived values and log level is normalized."""

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("REPOSITORY_URL", "git@github.com:example/fork.git")
    monkeypatch.setenv("DATABASE_URL", "sqlite:///custom.db")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("READINESS_MAX_WAIT_SECONDS", "900")

    settings = config_load_settings()

    assert settings.settings_resolved_repository_url() == "git@github.com:example/fork.git"
    assert settings.settings_resolved_database_url() == "sqlite:///custom.db"
    assert settings.log_level == "DEBUG"
    assert settings.readiness_max_wait_seconds == 900
    assert config_load_database_url() == "sqlite:///custom.db"


@pytest.mark.parametrize(
    ("variable_name", "variable_value"),
    [
        ("REPOSITORY_NAME", "local-setup"),
        ("READINESS_RETRY_INTERVAL_SECONDS", "0"),
        ("LOG_LEVEL", "verbose"),
        ("L2_RPC_URL", "   "),
        ("L2_RPC_URL", "localhost:3050"),
        ("L1_RPC_URL", "http://[::1"),
        ("GITHUB_API_BASE_URL", "api.github.com"),
        ("APPLICATION_PORT", "70000"),
    ],
)
def test_invalid_settings_raise_load_error(monkeypatch, tmp_path: Path, variable_name: str, variable_value: str) -> None:
    """Invalid values fail startup with a settings load error."""

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv(variable_name, variable_value)

    with pytest.raises(SettingsLoadError):
        config_load_settings()


def test_settings_read_dotenv_file(monkeypatch, tmp_path: Path) -> None:
    """Values in `.env` of the working directory are loaded."""

    monkeypatch.chdir(tmp_path)
    (tmp_path / ".env").write_text("L2_CHAIN_ID=271\nCOMPOSE_COMMAND=docker-compose\n", encoding="utf-8")

    settings = NodeSettings()

    assert settings.l2_chain_id == 271
    assert settings.compose_command == "docker-compose"
