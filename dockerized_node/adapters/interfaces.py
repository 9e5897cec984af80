"""Typed interfaces for adapter-layer responsibilities."""

from pathlib import Path
from typing import Protocol

from dockerized_node.domain import ContainerStatusSnapshot, ProbeResult


class SourceFetcherPort(Protocol):
    """Port definition for fetching the compose definition repository."""

    def adapter_clone_or_fetch(self, repository_url: str, destination_path: Path) -> None:
        """Clone the repository, or update an existing checkout in place.

        Args:
            repository_url: Git clone URL.
            destination_path: Local checkout directory.

        Raises:
            SourceFetchError: Raised when the repository or local path is unusable.
        """

    def adapter_resolve_latest_revision(self, repository_name: str) -> str:
        """Resolve the latest available revision identifier.

        Args:
            repository_name: Repository identifier in `owner/name` form.

        Returns:
            str: Revision identifier (commit hash).

        Raises:
            SourceFetchError: Raised when the lookup fails.
        """


class ContainerRuntimePort(Protocol):
    """Port definition for multi-container stack orchestration."""

    def adapter_compose_up(self, compose_file_path: Path) -> None:
        """Create and start all services in the background.

        Args:
            compose_file_path: Compose definition file.

        Raises:
            ContainerRuntimeAdapterError: Raised when the runtime command fails.
        """

    def adapter_compose_stop(self, compose_file_path: Path) -> None:
        """Stop all services while keeping containers and volumes.

        Args:
            compose_file_path: Compose definition file.

        Raises:
            ContainerRuntimeAdapterError: Raised when the runtime command fails.
        """

    def adapter_compose_down(self, compose_file_path: Path) -> None:
        """Remove containers, networks, and volumes of the stack.

        Args:
            compose_file_path: Compose definition file.

        Raises:
            ContainerRuntimeAdapterError: Raised when the runtime command fails.
        """

    def adapter_compose_status(self, compose_file_path: Path) -> ContainerStatusSnapshot:
        """Return per-service running status, including stopped services.

        Args:
            compose_file_path: Compose definition file.

        Returns:
            ContainerStatusSnapshot: Point-in-time service statuses.

        Raises:
            ContainerRuntimeAdapterError: Raised when the runtime command fails.
        """

    def adapter_compose_logs(self, compose_file_path: Path) -> list[str]:
        """Return the stack log output.

        Args:
            compose_file_path: Compose definition file.

        Returns:
            list[str]: Log lines.

        Raises:
            ContainerRuntimeAdapterError: Raised when the runtime command fails.
        """


class ReadinessProbePort(Protocol):
    """Port definition for one L2 readiness probe."""

    def adapter_probe_main_contract(self, rpc_url: str) -> ProbeResult:
        """Ask the L2 RPC endpoint for its main contract address.

        Args:
            rpc_url: L2 JSON-RPC endpoint.

        Returns:
            ProbeResult: Classified probe result; transport problems never raise.
        """
