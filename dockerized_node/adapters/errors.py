"""Project-native typed exceptions for external collaborator failures."""

from __future__ import annotations


class NodeAdapterError(Exception):
    """Base exception for adapter-level failures.

    Attributes:
        command: Optional external command that failed.
        exit_code: Optional exit code of the failed command.
    """

    def __init__(self, message: str, command: str | None = None, exit_code: int | None = None):
        super().__init__(message)
        self.command = command
        self.exit_code = exit_code


class SourceFetchError(NodeAdapterError, ConnectionError):
    """Source repository unreachable or local checkout path unusable."""


class ContainerRuntimeAdapterError(NodeAdapterError, RuntimeError):
    """Container orchestration command failed or produced unusable output."""
