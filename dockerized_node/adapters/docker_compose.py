"""Docker Compose runtime adapter backed by the compose command-line tool."""

from __future__ import annotations

import json
import logging
import shlex
from pathlib import Path
from typing import Any, Final

from dockerized_node.domain import ContainerServiceStatus, ContainerStatusSnapshot

from .commands import adapter_run_command
from .errors import ContainerRuntimeAdapterError
from .interfaces import ContainerRuntimePort

logger = logging.getLogger(__name__)


class DockerComposeRuntimeAdapter(ContainerRuntimePort):
    """Adapter running `docker compose` subcommands against one compose file."""

    _RUNNING_STATE: Final[str] = "running"

    def __init__(self, compose_command: str = "docker compose", command_timeout_seconds: float | None = None):
        """Initialize compose runtime adapter.

        Args:
            compose_command: Space-separated compose executable prefix (`docker compose`, `docker-compose`).
            command_timeout_seconds: Optional timeout for one compose command.

        Raises:
            ValueError: Raised when the command prefix is blank or the timeout is not positive.
        """

        compose_arguments = shlex.split(compose_command)
        if not compose_arguments:
            raise ValueError("compose_command must not be blank")
        if command_timeout_seconds is not None and command_timeout_seconds <= 0:
            raise ValueError("command_timeout_seconds must be > 0")

        self._compose_arguments = tuple(compose_arguments)
        self._command_timeout_seconds = command_timeout_seconds

    def adapter_compose_up(self, compose_file_path: Path) -> None:
        """Create and start all services detached; running services are left as they are.

        Args:
            compose_file_path: Compose definition file.

        Raises:
            ContainerRuntimeAdapterError: Raised when the compose command fails.
        """

        self._adapter_run_compose(compose_file_path, "up", "--detach")

    def adapter_compose_stop(self, compose_file_path: Path) -> None:
        """Stop services while keeping containers and volumes.

        Args:
            compose_file_path: Compose definition file.

        Raises:
            ContainerRuntimeAdapterError: Raised when the compose command fails.
        """

        self._adapter_run_compose(compose_file_path, "stop")

    def adapter_compose_down(self, compose_file_path: Path) -> None:
        """Remove containers, networks, and named volumes.

        Args:
            compose_file_path: Compose definition file.

        Raises:
            ContainerRuntimeAdapterError: Raised when the compose command fails.
        """

        self._adapter_run_compose(compose_file_path, "down", "--volumes")

    def adapter_compose_status(self, compose_file_path: Path) -> ContainerStatusSnapshot:
        """Return status of every service container, stopped ones included.

        Args:
            compose_file_path: Compose definition file.

        Returns:
            ContainerStatusSnapshot: Point-in-time service statuses.

        Raises:
            ContainerRuntimeAdapterError: Raised when the command fails or output is not JSON.
        """

        output = self._adapter_run_compose(compose_file_path, "ps", "--all", "--format", "json")
        return self.adapter_parse_status_output(output)

    def adapter_compose_logs(self, compose_file_path: Path) -> list[str]:
        """Return combined service logs.

        Args:
            compose_file_path: Compose definition file.

        Returns:
            list[str]: Log lines without color codes.

        Raises:
            ContainerRuntimeAdapterError: Raised when the compose command fails.
        """

        output = self._adapter_run_compose(compose_file_path, "logs", "--no-color")
        return output.splitlines()

    def adapter_parse_status_output(self, output: str) -> ContainerStatusSnapshot:
        """Parse `ps --format json` output into a status snapshot.

        Older compose releases print one JSON array, newer ones print one JSON
        object per line; both are accepted.

        Args:
            output: Raw command output.

        Returns:
            ContainerStatusSnapshot: Parsed service statuses.

        Raises:
            ContainerRuntimeAdapterError: Raised when output is not valid JSON.
        """

        stripped_output = output.strip()
        if not stripped_output:
            return ()

        try:
            if stripped_output.startswith("["):
                raw_entries = json.loads(stripped_output)
            else:
                raw_entries = [json.loads(line) for line in stripped_output.splitlines() if line.strip()]
        except json.JSONDecodeError as error:
            raise ContainerRuntimeAdapterError("Compose status output is not valid JSON") from error

        return tuple(
            self._adapter_parse_status_entry(raw_entry) for raw_entry in raw_entries if isinstance(raw_entry, dict)
        )

    def _adapter_parse_status_entry(self, raw_entry: dict[str, Any]) -> ContainerServiceStatus:
        state = str(raw_entry.get("State") or "").strip().lower()
        service_name = str(raw_entry.get("Service") or raw_entry.get("Name") or "").strip()
        return ContainerServiceStatus(
            service_name=service_name,
            is_running=state == self._RUNNING_STATE,
            state=state,
        )

    def _adapter_run_compose(self, compose_file_path: Path, *arguments: str) -> str:
        command_arguments = [*self._compose_arguments, "--file", str(compose_file_path), *arguments]
        return adapter_run_command(
            command_arguments,
            error_type=ContainerRuntimeAdapterError,
            working_directory=compose_file_path.parent if compose_file_path.parent.is_dir() else None,
            timeout_seconds=self._command_timeout_seconds,
        )
