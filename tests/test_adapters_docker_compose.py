"""Tests for docker compose runtime adapter commands and status parsing."""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from dockerized_node.adapters import ContainerRuntimeAdapterError, DockerComposeRuntimeAdapter
from dockerized_node.adapters import commands as commands_module


class _SubprocessRecorder:
    """Replacement for `subprocess.run` returning a scripted completed process."""

    def __init__(self, stdout: str = "", returncode: int = 0, stderr: str = "", error: Exception | None = None):
        self.calls: list[dict[str, object]] = []
        self._stdout = stdout
        self._returncode = returncode
        self._stderr = stderr
        self._error = error

    def __call__(self, arguments, **kwargs) -> subprocess.CompletedProcess:
        """Record one invocation and return the scripted result.

        Raises:
            Exception: Configured subprocess error.
        """

        self.calls.append({"arguments": arguments, **kwargs})
        if self._error is not None:
            raise self._error
        return subprocess.CompletedProcess(arguments, self._returncode, stdout=self._stdout, stderr=self._stderr)


@pytest.fixture
def compose_file(tmp_path: Path) -> Path:
    compose_file_path = tmp_path / "local-setup" / "docker-compose.yml"
    compose_file_path.parent.mkdir(parents=True)
    compose_file_path.write_text("services: {}\n", encoding="utf-8")
    return compose_file_path


def test_compose_up_runs_detached_in_checkout(monkeypatch, compose_file: Path) -> None:
    """Up targets the compose file and runs from its directory."""

    recorder = _SubprocessRecorder()
    monkeypatch.setattr(commands_module.subprocess, "run", recorder)

    DockerComposeRuntimeAdapter(command_timeout_seconds=30).adapter_compose_up(compose_file)

    assert recorder.calls[0]["arguments"] == ["docker", "compose", "--file", str(compose_file), "up", "--detach"]
    assert recorder.calls[0]["cwd"] == str(compose_file.parent)
    assert recorder.calls[0]["timeout"] == 30


def test_compose_stop_and_down_use_expected_subcommands(monkeypatch, compose_file: Path) -> None:
    """Stop keeps volumes; down removes them."""

    recorder = _SubprocessRecorder()
    monkeypatch.setattr(commands_module.subprocess, "run", recorder)
    adapter = DockerComposeRuntimeAdapter(compose_command="docker-compose")

    adapter.adapter_compose_stop(compose_file)
    adapter.adapter_compose_down(compose_file)

    assert recorder.calls[0]["arguments"][-1] == "stop"
    assert recorder.calls[1]["arguments"][-2:] == ["down", "--volumes"]
    assert recorder.calls[1]["arguments"][0] == "docker-compose"


def test_compose_status_parses_ndjson_output(monkeypatch, compose_file: Path) -> None:
    """Newer compose releases print one object per line."""

    recorder = _SubprocessRecorder(
        stdout='{"Service":"zksync","State":"running"}\n{"Service":"postgres","State":"exited"}\n'
    )
    monkeypatch.setattr(commands_module.subprocess, "run", recorder)

    snapshot = DockerComposeRuntimeAdapter().adapter_compose_status(compose_file)

    assert recorder.calls[0]["arguments"][-4:] == ["ps", "--all", "--format", "json"]
    assert [(status.service_name, status.is_running, status.state) for status in snapshot] == [
        ("zksync", True, "running"),
        ("postgres", False, "exited"),
    ]


def test_status_parser_accepts_json_array_and_empty_output() -> None:
    """Older compose releases print one array; no services prints nothing."""

    adapter = DockerComposeRuntimeAdapter()

    snapshot = adapter.adapter_parse_status_output('[{"Name":"local-setup-geth-1","State":"Running"}]')

    assert snapshot[0].service_name == "local-setup-geth-1"
    assert snapshot[0].is_running is True
    assert adapter.adapter_parse_status_output("  \n") == ()


def test_status_parser_rejects_invalid_json() -> None:
    """Garbage output is a runtime adapter failure."""

    with pytest.raises(ContainerRuntimeAdapterError):
        DockerComposeRuntimeAdapter().adapter_parse_status_output("NAME   STATE\nzksync running")


def test_compose_logs_returns_lines(monkeypatch, compose_file: Path) -> None:
    """Logs are returned line by line."""

    recorder = _SubprocessRecorder(stdout="zksync | booted\ngeth | mined block 1\n")
    monkeypatch.setattr(commands_module.subprocess, "run", recorder)

    log_lines = DockerComposeRuntimeAdapter().adapter_compose_logs(compose_file)

    assert log_lines == ["zksync | booted", "geth | mined block 1"]
    assert recorder.calls[0]["arguments"][-2:] == ["logs", "--no-color"]


def test_compose_failure_raises_with_exit_code(monkeypatch, compose_file: Path) -> None:
    """Non-zero exit carries stderr, command, and exit code."""

    recorder = _SubprocessRecorder(returncode=1, stderr="Cannot connect to the Docker daemon")
    monkeypatch.setattr(commands_module.subprocess, "run", recorder)

    with pytest.raises(ContainerRuntimeAdapterError) as error_info:
        DockerComposeRuntimeAdapter().adapter_compose_up(compose_file)

    assert error_info.value.exit_code == 1
    assert "Cannot connect to the Docker daemon" in str(error_info.value)
    assert error_info.value.command.startswith("docker compose --file")


def test_missing_executable_raises_runtime_error(monkeypatch, compose_file: Path) -> None:
    """Missing docker binary maps to the runtime adapter error."""

    monkeypatch.setattr(commands_module.subprocess, "run", _SubprocessRecorder(error=FileNotFoundError("docker")))

    with pytest.raises(ContainerRuntimeAdapterError, match="not found"):
        DockerComposeRuntimeAdapter().adapter_compose_status(compose_file)


def test_command_timeout_raises_runtime_error(monkeypatch, compose_file: Path) -> None:
    """Timed out commands map to the runtime adapter error."""

    monkeypatch.setattr(
        commands_module.subprocess,
        "run",
        _SubprocessRecorder(error=subprocess.TimeoutExpired(cmd="docker", timeout=5)),
    )

    with pytest.raises(ContainerRuntimeAdapterError, match="timed out"):
        DockerComposeRuntimeAdapter(command_timeout_seconds=5).adapter_compose_down(compose_file)


def test_adapter_rejects_blank_command_prefix() -> None:
    """Blank compose command prefix is invalid."""

    with pytest.raises(ValueError):
        DockerComposeRuntimeAdapter(compose_command="  ")
