"""Domain models used across application layer boundaries."""

from .models import (
	ChainDescriptor,
	ContainerServiceStatus,
	ContainerStatusSnapshot,
	EnvironmentDescriptor,
	EnvironmentStatusReport,
	HealthStatus,
	LifecycleExecutionResult,
	PollState,
	PollTerminalState,
	PollTickReport,
	ProbeOutcome,
	ProbeResult,
	StartupInfo,
	StartupInfoSection,
	domain_build_environment_descriptor,
)
from .status import domain_format_elapsed_time, domain_snapshot_has_services, domain_snapshot_is_running
from .timeline import domain_build_failure_event, domain_build_stage_event

__all__ = [
	"ChainDescriptor",
	"ContainerServiceStatus",
	"ContainerStatusSnapshot",
	"EnvironmentDescriptor",
	"EnvironmentStatusReport",
	"HealthStatus",
	"LifecycleExecutionResult",
	"PollState",
	"PollTerminalState",
	"PollTickReport",
	"ProbeOutcome",
	"ProbeResult",
	"StartupInfo",
	"StartupInfoSection",
	"domain_build_environment_descriptor",
	"domain_build_failure_event",
	"domain_build_stage_event",
	"domain_format_elapsed_time",
	"domain_snapshot_has_services",
	"domain_snapshot_is_running",
]
