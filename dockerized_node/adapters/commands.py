"""Subprocess execution helper shared by command-line collaborator adapters."""

from __future__ import annotations

import logging
import shlex
import subprocess
import time
from pathlib import Path
from typing import Sequence

from .errors import NodeAdapterError

logger = logging.getLogger(__name__)


def adapter_run_command(
    arguments: Sequence[str],
    error_type: type[NodeAdapterError],
    working_directory: Path | None = None,
    timeout_seconds: float | None = None,
) -> str:
    """Run one external command and return its standard output.

    Args:
        arguments: Executable and arguments.
        error_type: Adapter error class raised on non-zero exit or timeout.
        working_directory: Optional working directory.
        timeout_seconds: Optional timeout; None waits indefinitely.

    Returns:
        str: Captured standard output.

    Raises:
        NodeAdapterError: Raised as `error_type` when the executable is missing, exits non-zero, or times out.
    """

    if not arguments:
        raise ValueError("arguments must not be empty")

    command_text = shlex.join(arguments)
    started_at = time.monotonic()
    logger.debug("Running command: %s", command_text)
    try:
        completed_process = subprocess.run(
            list(arguments),
            cwd=str(working_directory) if working_directory is not None else None,
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout_seconds,
        )
    except FileNotFoundError as error:
        raise error_type(f"Required executable not found in PATH: {arguments[0]}", command=command_text) from error
    except subprocess.TimeoutExpired as error:
        raise error_type(f"Command timed out after {timeout_seconds}s: {command_text}", command=command_text) from error

    duration_ms = int((time.monotonic() - started_at) * 1000)
    if completed_process.returncode != 0:
        stderr_text = (completed_process.stderr or "").strip()
        logger.warning(
            "Command failed: %s",
            command_text,
            extra={"exit_code": completed_process.returncode, "duration_ms": duration_ms},
        )
        raise error_type(
            f"Command failed with exit code {completed_process.returncode}: {command_text}"
            + (f": {stderr_text}" if stderr_text else ""),
            command=command_text,
            exit_code=completed_process.returncode,
        )

    logger.debug("Command completed: %s", command_text, extra={"duration_ms": duration_ms})
    return completed_process.stdout or ""
