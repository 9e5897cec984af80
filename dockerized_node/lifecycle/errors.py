"""Typed exceptions raised by lifecycle supervision."""

from __future__ import annotations

from enum import Enum


class DeploymentFailureReason(str, Enum):
    """Reason a readiness wait ended without confirmed deployment."""

    ENVIRONMENT_STOPPED_UNEXPECTEDLY = "environment_stopped_unexpectedly"
    WAIT_TIMED_OUT = "wait_timed_out"
    CANCELLED = "cancelled"


class DeploymentFailedError(RuntimeError):
    """Readiness wait ended without the L2 node reporting its main contract.

    Attributes:
        reason: Failure reason.
        elapsed_milliseconds: Elapsed wait time when the failure was detected.
    """

    def __init__(self, message: str, reason: DeploymentFailureReason, elapsed_milliseconds: int = 0):
        super().__init__(message)
        self.reason = reason
        self.elapsed_milliseconds = elapsed_milliseconds


class ReadinessProbeMissError(Exception):
    """Recorded on poll state for a probe that did not confirm deployment; never raised."""


class LifecycleOperationActiveError(RuntimeError):
    """Raised when a non-waiting caller finds another lifecycle operation in flight."""


class EnvironmentNotInstalledError(RuntimeError):
    """Raised when an operation needs the compose definition but it is not present."""


class UnsupportedLifecycleOperationError(ValueError):
    """Raised when a lifecycle operation name is not supported."""
