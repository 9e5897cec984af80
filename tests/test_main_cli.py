"""Tests for command-line lifecycle commands and exit codes."""

from __future__ import annotations

from pathlib import Path

import pytest

from dockerized_node import main as main_module
from dockerized_node.domain import (
    EnvironmentStatusReport,
    LifecycleExecutionResult,
    PollTickReport,
    ProbeOutcome,
    StartupInfo,
    StartupInfoSection,
)
from dockerized_node.lifecycle import DeploymentFailedError, DeploymentFailureReason, EnvironmentNotInstalledError


class _CliManagerStub:
    """Lifecycle manager double driving observer callbacks like a real install."""

    def __init__(self, execute_error: Exception | None = None):
        self.execute_calls: list[str] = []
        self._execute_error = execute_error

    def lifecycle_execute(self, operation: str, observer=None, cancel_event=None) -> LifecycleExecutionResult:
        """Emit two progress ticks, then succeed or raise the configured error.

        Raises:
            Exception: Configured execute error.
        """

        _ = cancel_event
        self.execute_calls.append(operation)
        if observer is not None:
            for tick_index in (1, 2):
                observer(
                    PollTickReport(
                        tick_index=tick_index,
                        elapsed_milliseconds=tick_index * 1000,
                        probe_outcome=ProbeOutcome.NOT_READY,
                        environment_running=True,
                    )
                )
        if self._execute_error is not None:
            raise self._execute_error
        return LifecycleExecutionResult(operation=operation, status="success", installed_version="rev-1")

    def lifecycle_get_startup_info(self) -> StartupInfo:
        return StartupInfo(
            sections=(StartupInfoSection(text="zkSync Node (L2):", items=("Chain ID: 270",)),),
            rich_accounts_path="/data/rich-wallets.json",
        )

    def lifecycle_describe_status(self, include_latest_version: bool = False) -> EnvironmentStatusReport:
        return EnvironmentStatusReport(
            installed=True,
            running=False,
            installed_version="rev-1",
            latest_version="rev-2" if include_latest_version else None,
        )

    def lifecycle_get_logs(self) -> list[str]:
        raise EnvironmentNotInstalledError("Run install first.")


class _CliRuntimeStub:
    """Bootstrap runtime double recording whether it was closed."""

    def __init__(self, lifecycle_manager: _CliManagerStub):
        self.lifecycle_manager = lifecycle_manager
        self.close_calls = 0

    def runtime_close(self) -> None:
        self.close_calls += 1


@pytest.fixture
def cli_runtime(monkeypatch, tmp_path: Path) -> _CliRuntimeStub:
    """Patch runtime bootstrap to return a stub runtime."""

    monkeypatch.chdir(tmp_path)
    runtime = _CliRuntimeStub(_CliManagerStub())
    monkeypatch.setattr(main_module, "bootstrap_create_runtime", lambda settings: runtime)
    return runtime


def _patch_failing_runtime(monkeypatch, tmp_path: Path, execute_error: Exception) -> _CliRuntimeStub:
    monkeypatch.chdir(tmp_path)
    runtime = _CliRuntimeStub(_CliManagerStub(execute_error=execute_error))
    monkeypatch.setattr(main_module, "bootstrap_create_runtime", lambda settings: runtime)
    return runtime


def test_install_prints_progress_and_startup_info(cli_runtime, capsys) -> None:
    """Install reports elapsed time on stderr and connection info on stdout."""

    main_module.main(["install"])

    captured = capsys.readouterr()
    assert cli_runtime.lifecycle_manager.execute_calls == ["install"]
    assert "Deploying contracts... (Elapsed time: 0:02)" in captured.err
    assert "zkSync Node (L2):" in captured.out
    assert "Rich accounts: /data/rich-wallets.json" in captured.out
    assert cli_runtime.close_calls == 1


def test_failed_install_exits_with_code_one(monkeypatch, tmp_path: Path, capsys) -> None:
    """Deployment failures print the reason and exit non-zero."""

    runtime = _patch_failing_runtime(
        monkeypatch,
        tmp_path,
        DeploymentFailedError(
            "Dockerized node stopped running. Installation failed.",
            reason=DeploymentFailureReason.ENVIRONMENT_STOPPED_UNEXPECTEDLY,
        ),
    )

    with pytest.raises(SystemExit) as exit_info:
        main_module.main(["install"])

    assert exit_info.value.code == 1
    assert "Installation failed." in capsys.readouterr().err
    assert runtime.close_calls == 1


def test_state_database_failure_exits_with_code_one(monkeypatch, tmp_path: Path, capsys) -> None:
    """State database errors from the worker thread become a message and exit code 1."""

    runtime = _patch_failing_runtime(
        monkeypatch,
        tmp_path,
        RuntimeError("Failed to persist module configuration"),
    )

    with pytest.raises(SystemExit) as exit_info:
        main_module.main(["install"])

    assert exit_info.value.code == 1
    assert "install failed: Failed to persist module configuration" in capsys.readouterr().err
    assert runtime.close_calls == 1


def test_status_reports_available_update(cli_runtime, capsys) -> None:
    """Status with latest lookup hints at an update."""

    main_module.main(["status", "--check-latest"])

    captured_out = capsys.readouterr().out
    assert "Installed: yes" in captured_out
    assert "Running: no" in captured_out
    assert "Latest version: rev-2" in captured_out
    assert "An update is available." in captured_out


def test_logs_without_install_exits_with_code_one(cli_runtime, capsys) -> None:
    """Logs on a missing checkout fail with a message."""

    with pytest.raises(SystemExit) as exit_info:
        main_module.main(["logs"])

    assert exit_info.value.code == 1
    assert "Run install first." in capsys.readouterr().err
    assert cli_runtime.close_calls == 1
