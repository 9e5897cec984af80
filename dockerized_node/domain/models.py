"""Typed domain models shared across runtime layers.

This module provides the value objects exchanged between the adapter, db,
lifecycle, and api layers. Only `PollState` is mutable; it is owned by a single
readiness wait and never shared.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


@dataclass(frozen=True)
class HealthStatus:
    """Health response contract used by health-check surfaces.

    Attributes:
        status: Overall status text for service health.
        detail: Additional message suitable for operational diagnostics.
    """

    status: str
    detail: str


@dataclass(frozen=True)
class ChainDescriptor:
    """Static facts about one chain node of the environment.

    Attributes:
        chain_id: Numeric chain id.
        name: Human-readable chain name.
        network: Network slug.
        rpc_url: JSON-RPC endpoint URL.
    """

    chain_id: int
    name: str
    network: str
    rpc_url: str


@dataclass(frozen=True)
class EnvironmentDescriptor:
    """Static facts about the two-node environment.

    Attributes:
        l2_chain: L2 node running atop the L1 chain.
        l1_chain: Base settlement chain node.
        rich_accounts_file_name: File name of the pre-funded accounts list in the checkout.
    """

    l2_chain: ChainDescriptor
    l1_chain: ChainDescriptor
    rich_accounts_file_name: str = "rich-wallets.json"


def domain_build_environment_descriptor(
    l2_chain_id: int = 270,
    l2_rpc_url: str = "http://127.0.0.1:3050",
    l1_chain_id: int = 9,
    l1_rpc_url: str = "http://127.0.0.1:8545",
    rich_accounts_file_name: str = "rich-wallets.json",
) -> EnvironmentDescriptor:
    """Build the environment descriptor with the dockerized node chain names.

    Args:
        l2_chain_id: L2 chain id.
        l2_rpc_url: L2 JSON-RPC endpoint.
        l1_chain_id: L1 chain id.
        l1_rpc_url: L1 JSON-RPC endpoint.
        rich_accounts_file_name: Rich accounts file name.

    Returns:
        EnvironmentDescriptor: Immutable descriptor.
    """

    return EnvironmentDescriptor(
        l2_chain=ChainDescriptor(
            chain_id=l2_chain_id,
            name="Dockerized local node",
            network="dockerized-node",
            rpc_url=l2_rpc_url,
        ),
        l1_chain=ChainDescriptor(
            chain_id=l1_chain_id,
            name="L1 Local",
            network="l1-local",
            rpc_url=l1_rpc_url,
        ),
        rich_accounts_file_name=rich_accounts_file_name,
    )


@dataclass(frozen=True)
class ContainerServiceStatus:
    """Point-in-time status of one compose service.

    Attributes:
        service_name: Compose service name.
        is_running: Whether the service container is running.
        state: Raw runtime state label (`running`, `exited`, `created`, ...).
    """

    service_name: str
    is_running: bool
    state: str = ""


ContainerStatusSnapshot = tuple[ContainerServiceStatus, ...]


class ProbeOutcome(str, Enum):
    """Classification of one readiness probe response."""

    READY = "ready"
    NOT_READY = "not_ready"
    TRANSPORT_ERROR = "transport_error"
    HTTP_ERROR = "http_error"


@dataclass(frozen=True)
class ProbeResult:
    """Result of one readiness probe request.

    Attributes:
        outcome: Probe classification.
        main_contract: Reported main contract value when ready.
        detail: Diagnostic detail for non-ready outcomes.
    """

    outcome: ProbeOutcome
    main_contract: str | None = None
    detail: str | None = None

    def probe_is_ready(self) -> bool:
        """Return whether the probe confirmed contract deployment.

        Returns:
            bool: True for `READY` outcomes.
        """

        return self.outcome is ProbeOutcome.READY


class PollTerminalState(str, Enum):
    """Terminal marker of one readiness wait."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED_CRASHED = "failed_crashed"
    FAILED_ERROR = "failed_error"


@dataclass
class PollState:
    """Mutable state of one in-flight readiness wait.

    Attributes:
        elapsed_milliseconds: Ticks multiplied by the retry interval.
        tick_count: Number of completed ticks.
        last_error: Last probe or terminal error, when any.
        terminal: Current terminal marker.
    """

    elapsed_milliseconds: int = 0
    tick_count: int = 0
    last_error: BaseException | None = None
    terminal: PollTerminalState = PollTerminalState.PENDING

    def poll_is_pending(self) -> bool:
        """Return whether the wait has not reached a terminal outcome yet.

        Returns:
            bool: True while pending.
        """

        return self.terminal is PollTerminalState.PENDING


@dataclass(frozen=True)
class PollTickReport:
    """Progress report emitted to poll observers once per tick.

    Attributes:
        tick_index: One-based tick number.
        elapsed_milliseconds: Elapsed wait time after this tick.
        probe_outcome: Classification of this tick's probe.
        environment_running: Result of this tick's running check.
    """

    tick_index: int
    elapsed_milliseconds: int
    probe_outcome: ProbeOutcome
    environment_running: bool


@dataclass(frozen=True)
class StartupInfoSection:
    """One titled block of startup information.

    Attributes:
        text: Section title.
        items: Section lines.
    """

    text: str
    items: tuple[str, ...] = ()


@dataclass(frozen=True)
class StartupInfo:
    """Connection details shown to users once the environment is up.

    Attributes:
        sections: Per-chain sections.
        rich_accounts_path: Path of the generated rich accounts file.
    """

    sections: tuple[StartupInfoSection, ...]
    rich_accounts_path: str

    def startup_info_lines(self) -> list[str]:
        """Render startup info as plain text lines.

        Returns:
            list[str]: Printable lines.
        """

        lines: list[str] = []
        for section in self.sections:
            lines.append(section.text)
            lines.extend(f"  - {item}" for item in section.items)
        lines.append(f"Rich accounts: {self.rich_accounts_path}")
        return lines

    def startup_info_as_payload(self) -> dict[str, Any]:
        """Render startup info as a JSON-serializable payload.

        Returns:
            dict[str, Any]: Payload with sections and rich accounts path.
        """

        return {
            "sections": [{"text": section.text, "items": list(section.items)} for section in self.sections],
            "rich_accounts_path": self.rich_accounts_path,
        }


@dataclass(frozen=True)
class EnvironmentStatusReport:
    """Aggregated environment status for query surfaces.

    Attributes:
        installed: Whether the checkout exists and the runtime knows its services.
        running: Whether any service is running.
        installed_version: Last confirmed installed revision.
        latest_version: Latest available revision when requested.
        services: Current service status snapshot.
    """

    installed: bool
    running: bool
    installed_version: str | None
    latest_version: str | None
    services: ContainerStatusSnapshot = ()

    def status_update_available(self) -> bool | None:
        """Return whether a newer revision than the installed one is available.

        Returns:
            bool | None: None when either revision is unknown.
        """

        if self.installed_version is None or self.latest_version is None:
            return None
        return self.installed_version != self.latest_version


@dataclass(frozen=True)
class LifecycleExecutionResult:
    """Result contract for one lifecycle operation.

    Attributes:
        operation: Operation name.
        status: Final execution state.
        installed_version: Installed revision after the operation.
        elapsed_milliseconds: Readiness wait time for install/update, otherwise 0.
        stage_timeline: Structured stage events captured during execution.
    """

    operation: str
    status: str
    installed_version: str | None = None
    elapsed_milliseconds: int = 0
    stage_timeline: list[dict[str, object]] = field(default_factory=list)
