"""Tests for git source fetcher clone/fetch decisions and revision lookup."""

from __future__ import annotations

import subprocess
from pathlib import Path

import httpx
import pytest

from dockerized_node.adapters import GitSourceFetcher, SourceFetchError
from dockerized_node.adapters import commands as commands_module

_REPOSITORY_URL = "https://github.com/matter-labs/local-setup.git"


class _GitRecorder:
    """Replacement for `subprocess.run` recording git invocations."""

    def __init__(self, returncode: int = 0, stderr: str = ""):
        self.calls: list[list[str]] = []
        self._returncode = returncode
        self._stderr = stderr

    def __call__(self, arguments, **kwargs) -> subprocess.CompletedProcess:
        _ = kwargs
        self.calls.append(list(arguments))
        return subprocess.CompletedProcess(arguments, self._returncode, stdout="", stderr=self._stderr)


def _build_fetcher(handler=None) -> GitSourceFetcher:
    transport = httpx.MockTransport(handler or (lambda request: httpx.Response(200, json=[])))
    return GitSourceFetcher(
        github_api_base_url="https://api.github.test/",
        http_client=httpx.Client(transport=transport),
    )


def test_clone_into_missing_destination(monkeypatch, tmp_path: Path) -> None:
    """Missing checkout is cloned after creating its parent."""

    recorder = _GitRecorder()
    monkeypatch.setattr(commands_module.subprocess, "run", recorder)
    destination_path = tmp_path / "data" / "local-setup"

    _build_fetcher().adapter_clone_or_fetch(_REPOSITORY_URL, destination_path)

    assert recorder.calls == [["git", "clone", _REPOSITORY_URL, str(destination_path)]]
    assert destination_path.parent.is_dir()


def test_existing_checkout_is_fetched_and_fast_forwarded(monkeypatch, tmp_path: Path) -> None:
    """Existing checkout is updated in place."""

    recorder = _GitRecorder()
    monkeypatch.setattr(commands_module.subprocess, "run", recorder)
    destination_path = tmp_path / "local-setup"
    (destination_path / ".git").mkdir(parents=True)

    _build_fetcher().adapter_clone_or_fetch(_REPOSITORY_URL, destination_path)

    assert recorder.calls == [
        ["git", "-C", str(destination_path), "fetch", "--prune", "origin"],
        ["git", "-C", str(destination_path), "pull", "--ff-only"],
    ]


def test_non_checkout_destination_is_rejected(monkeypatch, tmp_path: Path) -> None:
    """A populated non-git directory is never overwritten."""

    recorder = _GitRecorder()
    monkeypatch.setattr(commands_module.subprocess, "run", recorder)
    destination_path = tmp_path / "local-setup"
    destination_path.mkdir()
    (destination_path / "notes.txt").write_text("keep me", encoding="utf-8")

    with pytest.raises(SourceFetchError, match="not a git checkout"):
        _build_fetcher().adapter_clone_or_fetch(_REPOSITORY_URL, destination_path)

    assert recorder.calls == []


def test_git_failure_raises_source_fetch_error(monkeypatch, tmp_path: Path) -> None:
    """Git exit failures surface as source fetch errors."""

    monkeypatch.setattr(
        commands_module.subprocess,
        "run",
        _GitRecorder(returncode=128, stderr="fatal: unable to access repository"),
    )

    with pytest.raises(SourceFetchError) as error_info:
        _build_fetcher().adapter_clone_or_fetch(_REPOSITORY_URL, tmp_path / "local-setup")

    assert error_info.value.exit_code == 128


def test_latest_revision_reads_first_commit_sha() -> None:
    """Latest revision is the head commit of the default branch."""

    captured_requests: list[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        captured_requests.append(request)
        return httpx.Response(200, json=[{"sha": "a1b2c3"}, {"sha": "older"}])

    revision = _build_fetcher(_handler).adapter_resolve_latest_revision("matter-labs/local-setup")

    assert revision == "a1b2c3"
    assert captured_requests[0].url.path == "/repos/matter-labs/local-setup/commits"
    assert captured_requests[0].url.params["per_page"] == "1"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(404, json={"message": "Not Found"}),
        httpx.Response(200, json=[]),
        httpx.Response(200, json=[{"commit": {}}]),
        httpx.Response(200, text="not json"),
    ],
)
def test_latest_revision_failures_raise_source_fetch_error(response: httpx.Response) -> None:
    """Unexpected API responses are source fetch failures."""

    with pytest.raises(SourceFetchError):
        _build_fetcher(lambda request: response).adapter_resolve_latest_revision("matter-labs/local-setup")


def test_latest_revision_transport_failure_raises_source_fetch_error() -> None:
    """Unreachable API is a source fetch failure."""

    def _refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("dns failure", request=request)

    with pytest.raises(SourceFetchError):
        _build_fetcher(_refuse).adapter_resolve_latest_revision("matter-labs/local-setup")
