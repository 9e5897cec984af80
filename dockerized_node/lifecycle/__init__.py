"""Lifecycle layer package for readiness polling and environment orchestration."""

from .errors import (
	DeploymentFailedError,
	DeploymentFailureReason,
	EnvironmentNotInstalledError,
	LifecycleOperationActiveError,
	ReadinessProbeMissError,
	UnsupportedLifecycleOperationError,
)
from .manager import DockerizedNodeLifecycleManager, LifecycleManagerConfig
from .readiness_poller import PollObserver, ReadinessPoller

__all__ = [
	"DeploymentFailedError",
	"DeploymentFailureReason",
	"DockerizedNodeLifecycleManager",
	"EnvironmentNotInstalledError",
	"LifecycleManagerConfig",
	"LifecycleOperationActiveError",
	"PollObserver",
	"ReadinessPoller",
	"ReadinessProbeMissError",
	"UnsupportedLifecycleOperationError",
]
