"""Readiness polling for L2 contract deployment after the stack comes up.

The poller ticks on a fixed interval. Each tick issues exactly one probe,
then asks whether the environment is still running, then reports progress.
Ticks never overlap, so elapsed time grows monotonically by one interval per
tick. The wait ends only on confirmed deployment, on the environment stopping,
or (when configured) on the optional maximum wait or a cancel request.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from dockerized_node.adapters import ReadinessProbePort
from dockerized_node.domain import PollState, PollTerminalState, PollTickReport, domain_format_elapsed_time

from .errors import DeploymentFailedError, DeploymentFailureReason, ReadinessProbeMissError

logger = logging.getLogger(__name__)

PollObserver = Callable[[PollTickReport], None]


class ReadinessPoller:
    """Blocking retry loop waiting for the L2 node to report its main contract."""

    ENVIRONMENT_STOPPED_MESSAGE = "Dockerized node stopped running. Installation failed."

    def __init__(
        self,
        probe: ReadinessProbePort,
        retry_interval_seconds: float = 1.0,
        max_wait_seconds: float | None = None,
        sleep_function: Callable[[float], None] | None = None,
    ):
        """Initialize readiness poller.

        Args:
            probe: Adapter issuing one readiness probe per tick.
            retry_interval_seconds: Delay before each tick.
            max_wait_seconds: Optional cap on elapsed wait; None waits until success or crash.
            sleep_function: Optional sleep used when no cancel event is supplied.

        Raises:
            ValueError: Raised when timing values are invalid.
        """

        if probe is None:
            raise ValueError("probe must not be None")
        if retry_interval_seconds <= 0:
            raise ValueError("retry_interval_seconds must be > 0")
        if max_wait_seconds is not None and max_wait_seconds <= 0:
            raise ValueError("max_wait_seconds must be > 0")

        self._probe = probe
        self._retry_interval_seconds = float(retry_interval_seconds)
        self._retry_interval_milliseconds = max(1, int(round(retry_interval_seconds * 1000)))
        self._max_wait_milliseconds = None if max_wait_seconds is None else int(round(max_wait_seconds * 1000))
        self._sleep_function = sleep_function or time.sleep

    def poller_await_readiness(
        self,
        rpc_url: str,
        is_environment_running: Callable[[], bool],
        observer: PollObserver | None = None,
        cancel_event: threading.Event | None = None,
    ) -> PollState:
        """Block until the main contract is reported or the wait fails.

        Args:
            rpc_url: L2 JSON-RPC endpoint.
            is_environment_running: Running check invoked once per tick after the probe.
            observer: Optional progress callback invoked once per tick.
            cancel_event: Optional event that aborts the wait when set.

        Returns:
            PollState: Final state with terminal `succeeded`.

        Raises:
            ValueError: Raised when rpc_url is blank.
            DeploymentFailedError: Raised when the environment stops, the wait times out, or is cancelled.
            Exception: Errors from `is_environment_running` propagate unmodified.
        """

        normalized_rpc_url = rpc_url.strip()
        if not normalized_rpc_url:
            raise ValueError("rpc_url must not be blank")

        poll_state = PollState()
        while poll_state.poll_is_pending():
            if self._poller_wait_interval(cancel_event):
                self._poller_fail(
                    poll_state,
                    PollTerminalState.FAILED_ERROR,
                    DeploymentFailureReason.CANCELLED,
                    "Waiting for contract deployment was cancelled.",
                )

            poll_state.tick_count += 1
            poll_state.elapsed_milliseconds += self._retry_interval_milliseconds

            probe_result = self._probe.adapter_probe_main_contract(normalized_rpc_url)
            if not probe_result.probe_is_ready():
                poll_state.last_error = ReadinessProbeMissError(
                    f"{probe_result.outcome.value}: {probe_result.detail or 'no detail'}"
                )

            try:
                environment_running = bool(is_environment_running())
            except Exception as error:
                poll_state.terminal = PollTerminalState.FAILED_ERROR
                poll_state.last_error = error
                logger.error("Environment status check failed while awaiting deployment: %s", error)
                raise

            self._poller_notify(
                observer,
                PollTickReport(
                    tick_index=poll_state.tick_count,
                    elapsed_milliseconds=poll_state.elapsed_milliseconds,
                    probe_outcome=probe_result.outcome,
                    environment_running=environment_running,
                ),
            )

            if not environment_running:
                self._poller_fail(
                    poll_state,
                    PollTerminalState.FAILED_CRASHED,
                    DeploymentFailureReason.ENVIRONMENT_STOPPED_UNEXPECTEDLY,
                    self.ENVIRONMENT_STOPPED_MESSAGE,
                )

            if probe_result.probe_is_ready():
                poll_state.terminal = PollTerminalState.SUCCEEDED
                poll_state.last_error = None
                logger.info(
                    "Contracts deployed after %s (main contract %s)",
                    domain_format_elapsed_time(poll_state.elapsed_milliseconds),
                    probe_result.main_contract,
                )
                return poll_state

            if self._max_wait_milliseconds is not None and poll_state.elapsed_milliseconds >= self._max_wait_milliseconds:
                self._poller_fail(
                    poll_state,
                    PollTerminalState.FAILED_ERROR,
                    DeploymentFailureReason.WAIT_TIMED_OUT,
                    "Contracts were not deployed within "
                    f"{domain_format_elapsed_time(self._max_wait_milliseconds)}.",
                )

        return poll_state

    def _poller_wait_interval(self, cancel_event: threading.Event | None) -> bool:
        """Wait one retry interval.

        Returns:
            bool: True when the wait was cancelled.
        """

        if cancel_event is None:
            self._sleep_function(self._retry_interval_seconds)
            return False
        return cancel_event.wait(self._retry_interval_seconds)

    def _poller_notify(self, observer: PollObserver | None, tick_report: PollTickReport) -> None:
        if observer is None:
            return
        try:
            observer(tick_report)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.exception("Readiness observer failed on tick %s", tick_report.tick_index)

    def _poller_fail(
        self,
        poll_state: PollState,
        terminal: PollTerminalState,
        reason: DeploymentFailureReason,
        message: str,
    ) -> None:
        """Mark the poll terminal and raise the matching deployment failure.

        Raises:
            DeploymentFailedError: Always raised.
        """

        error = DeploymentFailedError(message, reason=reason, elapsed_milliseconds=poll_state.elapsed_milliseconds)
        poll_state.terminal = terminal
        poll_state.last_error = error
        logger.error(
            "Deployment failed: %s",
            message,
            extra={"reason": reason.value, "elapsed_ms": poll_state.elapsed_milliseconds},
        )
        raise error
