"""Main module entrypoint for local runtime execution.

This module validates startup configuration and either launches the FastAPI
service or runs one lifecycle command against the local environment.
"""

import argparse
import logging
import sys
import threading

import uvicorn

from dockerized_node.adapters import NodeAdapterError
from dockerized_node.bootstrap import bootstrap_create_application, bootstrap_create_runtime
from dockerized_node.config import SettingsLoadError, config_load_settings
from dockerized_node.domain import PollTickReport, domain_format_elapsed_time

_LIFECYCLE_COMMANDS = ("install", "update", "start", "stop", "clean")
_QUERY_COMMANDS = ("status", "logs", "info")


def main(argv: list[str] | None = None) -> None:
    """Run selected runtime command with validated startup configuration.

    Args:
        argv: Optional argument list; defaults to `sys.argv[1:]`.

    Raises:
        SystemExit: Raised with code 1 when the command fails.
    """

    argument_parser = argparse.ArgumentParser(description="Dockerized L1/L2 node environment manager")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api", *_LIFECYCLE_COMMANDS, *_QUERY_COMMANDS),
        help="Runtime command: `api` starts the server, lifecycle commands drive the environment, "
        "`status`, `logs`, and `info` inspect it",
        type=str,
    )
    argument_parser.add_argument(
        "--check-latest",
        dest="check_latest",
        action="store_true",
        help="Also resolve the latest source revision for `status`",
    )
    parsed_arguments = argument_parser.parse_args(argv)

    try:
        settings = config_load_settings()
    except SettingsLoadError as error:
        print(str(error), file=sys.stderr)
        raise SystemExit(1) from error

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if parsed_arguments.command == "api":
        application = bootstrap_create_application(settings=settings)
        uvicorn.run(
            application,
            host=settings.application_host,
            port=settings.application_port,
        )
        return

    runtime = bootstrap_create_runtime(settings=settings)
    lifecycle_manager = runtime.lifecycle_manager
    try:
        if parsed_arguments.command in _LIFECYCLE_COMMANDS:
            main_run_lifecycle_command(lifecycle_manager, parsed_arguments.command)
        elif parsed_arguments.command == "status":
            main_print_status(lifecycle_manager, include_latest_version=parsed_arguments.check_latest)
        elif parsed_arguments.command == "logs":
            for log_line in lifecycle_manager.lifecycle_get_logs():
                print(log_line)
        else:
            for info_line in lifecycle_manager.lifecycle_get_startup_info().startup_info_lines():
                print(info_line)
    except (NodeAdapterError, RuntimeError) as error:
        print(f"{parsed_arguments.command} failed: {error}", file=sys.stderr)
        raise SystemExit(1) from error
    finally:
        runtime.runtime_close()


def main_run_lifecycle_command(lifecycle_manager, operation: str) -> None:
    """Run one lifecycle operation with readiness progress on stderr.

    Ctrl-C during the readiness wait sets the cancel event so the wait ends as
    a cancelled deployment instead of an unhandled interrupt.

    Args:
        lifecycle_manager: Wired lifecycle manager.
        operation: Lifecycle operation name.

    Raises:
        DeploymentFailedError: Raised when the readiness wait fails or is cancelled.
    """

    cancel_event = threading.Event()
    execution_outcome: dict[str, object] = {}

    def _execute() -> None:
        try:
            execution_outcome["result"] = lifecycle_manager.lifecycle_execute(
                operation,
                observer=main_print_progress,
                cancel_event=cancel_event,
            )
        except BaseException as error:  # pylint: disable=broad-exception-caught
            execution_outcome["error"] = error

    worker = threading.Thread(target=_execute, name=f"lifecycle-{operation}", daemon=True)
    worker.start()
    while worker.is_alive():
        try:
            worker.join(timeout=0.5)
        except KeyboardInterrupt:
            print("\nCancelling...", file=sys.stderr)
            cancel_event.set()

    if "error" in execution_outcome:
        raise execution_outcome["error"]

    execution_result = execution_outcome["result"]
    if operation in ("install", "update"):
        print(f"\nDockerized node {operation} completed ({execution_result.installed_version}).")
        for info_line in lifecycle_manager.lifecycle_get_startup_info().startup_info_lines():
            print(info_line)
    else:
        print(f"Dockerized node {operation} completed.")


def main_print_progress(tick_report: PollTickReport) -> None:
    """Rewrite one stderr progress line with the elapsed deployment wait."""

    sys.stderr.write(
        f"\rDeploying contracts... (Elapsed time: {domain_format_elapsed_time(tick_report.elapsed_milliseconds)})"
    )
    sys.stderr.flush()


def main_print_status(lifecycle_manager, include_latest_version: bool) -> None:
    """Print installed/running state, versions, and per-service state."""

    report = lifecycle_manager.lifecycle_describe_status(include_latest_version=include_latest_version)
    print(f"Installed: {'yes' if report.installed else 'no'}")
    print(f"Running: {'yes' if report.running else 'no'}")
    print(f"Installed version: {report.installed_version or '-'}")
    if include_latest_version:
        print(f"Latest version: {report.latest_version or '-'}")
        if report.status_update_available():
            print("An update is available. Run `update` to install it.")
    for service in report.services:
        print(f"  - {service.service_name}: {service.state or ('running' if service.is_running else 'stopped')}")


if __name__ == "__main__":
    main()
