"""Lifecycle manager for the dockerized L1/L2 node environment."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from filelock import FileLock, Timeout

from dockerized_node.adapters import ContainerRuntimePort, SourceFetcherPort
from dockerized_node.db import LifecycleRunRepositoryPort, ModuleConfigRepositoryPort
from dockerized_node.domain import (
    ContainerStatusSnapshot,
    EnvironmentDescriptor,
    EnvironmentStatusReport,
    LifecycleExecutionResult,
    StartupInfo,
    StartupInfoSection,
    domain_build_failure_event,
    domain_build_stage_event,
    domain_snapshot_has_services,
    domain_snapshot_is_running,
)

from .errors import EnvironmentNotInstalledError, LifecycleOperationActiveError, UnsupportedLifecycleOperationError
from .readiness_poller import PollObserver, ReadinessPoller

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LifecycleManagerConfig:
    """Configuration values for one environment instance.

    Attributes:
        module_key: Key of the persisted module configuration record.
        repository_name: Source repository in `owner/name` form.
        repository_url: Source repository clone URL.
        checkout_path: Local source checkout directory.
        compose_file_name: Compose definition file name inside the checkout.
        environment: Static chain descriptor.
    """

    module_key: str
    repository_name: str
    repository_url: str
    checkout_path: Path
    compose_file_name: str
    environment: EnvironmentDescriptor

    @property
    def compose_file_path(self) -> Path:
        """Compose definition path of this environment instance."""

        return self.checkout_path / self.compose_file_name

    @property
    def lock_file_path(self) -> Path:
        """Inter-process lock file guarding mutating operations on this checkout."""

        return self.checkout_path.parent / f".{self.checkout_path.name}.lock"


class DockerizedNodeLifecycleManager:
    """Orchestrates install, update, start, stop, and clean for one environment instance.

    Mutating operations are serialized by a per-instance reentrant lock and by
    a lock file next to the checkout, so two concurrent installs never
    interleave runtime commands, even from separate managers or processes.
    The latest source revision is resolved at most once per instance until
    explicitly invalidated.
    """

    _MUTATING_OPERATIONS = ("install", "update", "start", "stop", "clean")

    def __init__(
        self,
        source_fetcher: SourceFetcherPort,
        container_runtime: ContainerRuntimePort,
        readiness_poller: ReadinessPoller,
        module_config_repository: ModuleConfigRepositoryPort,
        config: LifecycleManagerConfig,
        run_repository: LifecycleRunRepositoryPort | None = None,
    ):
        """Initialize lifecycle manager dependencies.

        Args:
            source_fetcher: Adapter fetching the compose definition repository.
            container_runtime: Adapter driving the compose stack.
            readiness_poller: Poller awaiting L2 contract deployment.
            module_config_repository: Store of the installed version.
            config: Environment instance configuration.
            run_repository: Optional lifecycle run history store.

        Raises:
            ValueError: Raised when dependencies or config values are invalid.
        """

        if source_fetcher is None:
            raise ValueError("source_fetcher must not be None")
        if container_runtime is None:
            raise ValueError("container_runtime must not be None")
        if readiness_poller is None:
            raise ValueError("readiness_poller must not be None")
        if module_config_repository is None:
            raise ValueError("module_config_repository must not be None")
        if not config.module_key.strip():
            raise ValueError("config.module_key must not be blank")
        if not config.repository_name.strip():
            raise ValueError("config.repository_name must not be blank")
        if not config.repository_url.strip():
            raise ValueError("config.repository_url must not be blank")

        self._source_fetcher = source_fetcher
        self._container_runtime = container_runtime
        self._readiness_poller = readiness_poller
        self._module_config_repository = module_config_repository
        self._config = config
        self._run_repository = run_repository
        self._operation_lock = threading.RLock()
        self._operation_file_lock = FileLock(str(config.lock_file_path))
        self._latest_version_lock = threading.Lock()
        self._latest_version: str | None = None

    def lifecycle_execute(
        self,
        operation: str,
        wait_for_active: bool = True,
        observer: PollObserver | None = None,
        cancel_event: threading.Event | None = None,
    ) -> LifecycleExecutionResult:
        """Execute one mutating lifecycle operation by name.

        Args:
            operation: `install`, `update`, `start`, `stop`, or `clean`.
            wait_for_active: Block behind an in-flight operation instead of failing fast.
            observer: Optional readiness progress callback for install/update.
            cancel_event: Optional readiness cancel token for install/update.

        Returns:
            LifecycleExecutionResult: Successful execution payload.

        Raises:
            UnsupportedLifecycleOperationError: Raised for unknown operation names.
            LifecycleOperationActiveError: Raised when `wait_for_active` is False and the lock is held.
        """

        normalized_operation = operation.strip().lower()
        if normalized_operation not in self._MUTATING_OPERATIONS:
            raise UnsupportedLifecycleOperationError(f"unsupported operation={normalized_operation}")

        with self._lifecycle_hold_lock(wait_for_active=wait_for_active):
            if normalized_operation == "install":
                return self.lifecycle_install(observer=observer, cancel_event=cancel_event)
            if normalized_operation == "update":
                return self.lifecycle_update(observer=observer, cancel_event=cancel_event)
            if normalized_operation == "start":
                return self.lifecycle_start()
            if normalized_operation == "stop":
                return self.lifecycle_stop()
            return self.lifecycle_clean()

    def lifecycle_install(
        self,
        observer: PollObserver | None = None,
        cancel_event: threading.Event | None = None,
    ) -> LifecycleExecutionResult:
        """Fetch the source, bring the stack up, await deployment, then persist the version.

        The installed version is written only after the readiness wait succeeds;
        any earlier failure leaves it untouched and propagates unmodified.

        Args:
            observer: Optional readiness progress callback.
            cancel_event: Optional readiness cancel token.

        Returns:
            LifecycleExecutionResult: Result with the newly installed version.

        Raises:
            SourceFetchError: Raised when fetching the source fails.
            ContainerRuntimeAdapterError: Raised when a compose command fails.
            DeploymentFailedError: Raised when the readiness wait fails.
        """

        return self._lifecycle_run_operation(
            operation="install",
            operation_body=lambda timeline: self._lifecycle_install_locked(timeline, observer, cancel_event),
        )

    def lifecycle_update(
        self,
        observer: PollObserver | None = None,
        cancel_event: threading.Event | None = None,
    ) -> LifecycleExecutionResult:
        """Re-run install unconditionally against the latest resolved revision.

        Args:
            observer: Optional readiness progress callback.
            cancel_event: Optional readiness cancel token.

        Returns:
            LifecycleExecutionResult: Result with the installed version.
        """

        return self._lifecycle_run_operation(
            operation="update",
            operation_body=lambda timeline: self._lifecycle_install_locked(timeline, observer, cancel_event),
        )

    def lifecycle_start(self) -> LifecycleExecutionResult:
        """Bring the stack up; already running services are left as they are.

        Returns:
            LifecycleExecutionResult: Success payload.

        Raises:
            EnvironmentNotInstalledError: Raised when the compose definition is missing.
            ContainerRuntimeAdapterError: Raised when the compose command fails.
        """

        def _start(timeline: list[dict[str, object]]) -> int:
            self._lifecycle_require_compose_file()
            with self._lifecycle_stage(timeline, "compose_up"):
                self._container_runtime.adapter_compose_up(self._config.compose_file_path)
            return 0

        return self._lifecycle_run_operation(operation="start", operation_body=_start)

    def lifecycle_stop(self) -> LifecycleExecutionResult:
        """Stop the stack while preserving containers and volumes.

        Returns:
            LifecycleExecutionResult: Success payload.

        Raises:
            EnvironmentNotInstalledError: Raised when the compose definition is missing.
            ContainerRuntimeAdapterError: Raised when the compose command fails.
        """

        def _stop(timeline: list[dict[str, object]]) -> int:
            self._lifecycle_require_compose_file()
            with self._lifecycle_stage(timeline, "compose_stop"):
                self._container_runtime.adapter_compose_stop(self._config.compose_file_path)
            return 0

        return self._lifecycle_run_operation(operation="stop", operation_body=_stop)

    def lifecycle_clean(self) -> LifecycleExecutionResult:
        """Tear the stack down and remove its volumes.

        Returns:
            LifecycleExecutionResult: Success payload.

        Raises:
            EnvironmentNotInstalledError: Raised when the compose definition is missing.
            ContainerRuntimeAdapterError: Raised when the compose command fails.
        """

        def _clean(timeline: list[dict[str, object]]) -> int:
            self._lifecycle_require_compose_file()
            with self._lifecycle_stage(timeline, "compose_down"):
                self._container_runtime.adapter_compose_down(self._config.compose_file_path)
            return 0

        return self._lifecycle_run_operation(operation="clean", operation_body=_clean)

    def lifecycle_is_installed(self) -> bool:
        """Return whether the checkout exists and the runtime knows at least one service.

        Returns:
            bool: True when installed, whether running or stopped.

        Raises:
            ContainerRuntimeAdapterError: Raised when the status command fails.
        """

        if not self._config.checkout_path.is_dir():
            return False
        return domain_snapshot_has_services(self.lifecycle_status_snapshot())

    def lifecycle_is_running(self) -> bool:
        """Return whether any service of the stack is running.

        Returns:
            bool: False when the compose definition is absent or no service runs.

        Raises:
            ContainerRuntimeAdapterError: Raised when the status command fails.
        """

        return domain_snapshot_is_running(self.lifecycle_status_snapshot())

    def lifecycle_status_snapshot(self) -> ContainerStatusSnapshot:
        """Return the current per-service status, empty when nothing is checked out.

        Returns:
            ContainerStatusSnapshot: Point-in-time service statuses.

        Raises:
            ContainerRuntimeAdapterError: Raised when the status command fails.
        """

        if not self._config.compose_file_path.is_file():
            return ()
        return tuple(self._container_runtime.adapter_compose_status(self._config.compose_file_path))

    def lifecycle_get_logs(self) -> list[str]:
        """Return stack log lines.

        Returns:
            list[str]: Log lines.

        Raises:
            EnvironmentNotInstalledError: Raised when the compose definition is missing.
            ContainerRuntimeAdapterError: Raised when the logs command fails.
        """

        self._lifecycle_require_compose_file()
        return list(self._container_runtime.adapter_compose_logs(self._config.compose_file_path))

    def lifecycle_get_startup_info(self) -> StartupInfo:
        """Describe chain endpoints and the rich accounts file without any I/O.

        Returns:
            StartupInfo: Connection details for both chains.
        """

        environment = self._config.environment
        return StartupInfo(
            sections=(
                StartupInfoSection(
                    text="zkSync Node (L2):",
                    items=(f"Chain ID: {environment.l2_chain.chain_id}", f"RPC URL: {environment.l2_chain.rpc_url}"),
                ),
                StartupInfoSection(
                    text="Ethereum Node (L1):",
                    items=(f"Chain ID: {environment.l1_chain.chain_id}", f"RPC URL: {environment.l1_chain.rpc_url}"),
                ),
            ),
            rich_accounts_path=str(self._config.checkout_path / environment.rich_accounts_file_name),
        )

    def lifecycle_installed_version(self) -> str | None:
        """Return the last confirmed installed revision.

        Returns:
            str | None: Installed revision or None.
        """

        return self._module_config_repository.db_module_config_get_installed_version(self._config.module_key)

    def lifecycle_get_latest_version(self) -> str:
        """Return the latest source revision, resolving it on first use only.

        Returns:
            str: Latest revision identifier.

        Raises:
            SourceFetchError: Raised when resolution fails; nothing is cached then.
        """

        with self._latest_version_lock:
            if self._latest_version is None:
                self._latest_version = self._source_fetcher.adapter_resolve_latest_revision(self._config.repository_name)
                logger.info("Resolved latest %s revision %s", self._config.repository_name, self._latest_version)
            return self._latest_version

    def lifecycle_invalidate_latest_version(self) -> None:
        """Drop the memoized latest revision so the next lookup queries again."""

        with self._latest_version_lock:
            self._latest_version = None

    def lifecycle_describe_status(self, include_latest_version: bool = False) -> EnvironmentStatusReport:
        """Aggregate installed, running, and version state.

        Args:
            include_latest_version: Also resolve the latest revision (memoized).

        Returns:
            EnvironmentStatusReport: Status report.

        Raises:
            ContainerRuntimeAdapterError: Raised when the status command fails.
            SourceFetchError: Raised when latest revision resolution fails.
        """

        snapshot = self.lifecycle_status_snapshot()
        return EnvironmentStatusReport(
            installed=self._config.checkout_path.is_dir() and domain_snapshot_has_services(snapshot),
            running=domain_snapshot_is_running(snapshot),
            installed_version=self.lifecycle_installed_version(),
            latest_version=self.lifecycle_get_latest_version() if include_latest_version else None,
            services=snapshot,
        )

    def _lifecycle_install_locked(
        self,
        timeline: list[dict[str, object]],
        observer: PollObserver | None,
        cancel_event: threading.Event | None,
    ) -> int:
        """Run the install sequence; caller holds the operation lock.

        Returns:
            int: Readiness wait time in milliseconds.
        """

        with self._lifecycle_stage(timeline, "resolve_version"):
            latest_version = self.lifecycle_get_latest_version()

        with self._lifecycle_stage(timeline, "fetch_source", {"repository_url": self._config.repository_url}):
            self._source_fetcher.adapter_clone_or_fetch(self._config.repository_url, self._config.checkout_path)

        with self._lifecycle_stage(timeline, "compose_up"):
            self._container_runtime.adapter_compose_up(self._config.compose_file_path)

        logger.info("Waiting for contracts to be deployed... Usually it takes 5 - 15min...")
        with self._lifecycle_stage(timeline, "await_readiness") as stage_details:
            poll_state = self._readiness_poller.poller_await_readiness(
                rpc_url=self._config.environment.l2_chain.rpc_url,
                is_environment_running=self.lifecycle_is_running,
                observer=observer,
                cancel_event=cancel_event,
            )
            stage_details["elapsed_ms"] = poll_state.elapsed_milliseconds
            stage_details["tick_count"] = poll_state.tick_count

        with self._lifecycle_stage(timeline, "persist_version", {"installed_version": latest_version}):
            self._module_config_repository.db_module_config_set_installed_version(self._config.module_key, latest_version)

        return poll_state.elapsed_milliseconds

    def _lifecycle_run_operation(
        self,
        operation: str,
        operation_body: Callable[[list[dict[str, object]]], int],
    ) -> LifecycleExecutionResult:
        """Run one operation under the lock with timeline capture and run history.

        Args:
            operation: Operation name.
            operation_body: Callable receiving the timeline and returning elapsed wait milliseconds.

        Returns:
            LifecycleExecutionResult: Success payload.

        Raises:
            Exception: Any failure of the operation body propagates unmodified.
        """

        with self._lifecycle_hold_lock(wait_for_active=True):
            timeline: list[dict[str, object]] = [domain_build_stage_event(stage="run", status="started")]
            run_record = None
            if self._run_repository is not None:
                run_record = self._run_repository.db_lifecycle_run_create_started(self._config.module_key, operation)

            logger.info("Lifecycle operation %s started", operation)
            try:
                elapsed_milliseconds = operation_body(timeline)
            except BaseException as error:
                timeline.append(domain_build_failure_event(stage="run", error=error))
                logger.error("Lifecycle operation %s failed: %s", operation, error)
                if run_record is not None:
                    self._lifecycle_finalize_failed_run(run_record.lifecycle_run_id, error, timeline)
                raise

            timeline.append(domain_build_stage_event(stage="run", status="success"))
            if run_record is not None:
                self._run_repository.db_lifecycle_run_finalize(
                    lifecycle_run_id=run_record.lifecycle_run_id,
                    status="success",
                    error_type=None,
                    error_message=None,
                    diagnostics=timeline,
                )
            logger.info("Lifecycle operation %s completed", operation)
            return LifecycleExecutionResult(
                operation=operation,
                status="success",
                installed_version=self.lifecycle_installed_version(),
                elapsed_milliseconds=elapsed_milliseconds,
                stage_timeline=timeline,
            )

    def _lifecycle_finalize_failed_run(
        self,
        lifecycle_run_id: str,
        error: BaseException,
        timeline: list[dict[str, object]],
    ) -> None:
        try:
            self._run_repository.db_lifecycle_run_finalize(
                lifecycle_run_id=lifecycle_run_id,
                status="failed",
                error_type=type(error).__name__,
                error_message=str(error),
                diagnostics=timeline,
            )
        except (LookupError, RuntimeError):
            logger.exception("Failed to record failed lifecycle run %s", lifecycle_run_id)

    @contextmanager
    def _lifecycle_hold_lock(self, wait_for_active: bool) -> Iterator[None]:
        """Hold the in-process lock, then the lock file shared by every manager of this checkout.

        Raises:
            LifecycleOperationActiveError: Raised when `wait_for_active` is False and either lock is held.
        """

        if not self._operation_lock.acquire(blocking=wait_for_active):
            raise LifecycleOperationActiveError("lifecycle operation already active")
        try:
            self._config.lock_file_path.parent.mkdir(parents=True, exist_ok=True)
            try:
                self._operation_file_lock.acquire(timeout=-1 if wait_for_active else 0)
            except Timeout as error:
                raise LifecycleOperationActiveError(
                    f"lifecycle operation already active on {self._config.checkout_path}"
                ) from error
            try:
                yield
            finally:
                self._operation_file_lock.release()
        finally:
            self._operation_lock.release()

    @contextmanager
    def _lifecycle_stage(
        self,
        timeline: list[dict[str, object]],
        stage: str,
        details: dict[str, object] | None = None,
    ) -> Iterator[dict[str, object]]:
        """Record `started`, then `completed` or `failed`, around one stage.

        Yields:
            dict[str, object]: Mutable details attached to the `completed` event.
        """

        timeline.append(domain_build_stage_event(stage=stage, status="started", details=details))
        completed_details: dict[str, object] = {}
        try:
            yield completed_details
        except BaseException as error:
            timeline.append(domain_build_failure_event(stage=stage, error=error))
            raise
        timeline.append(domain_build_stage_event(stage=stage, status="completed", details=completed_details))

    def _lifecycle_require_compose_file(self) -> None:
        if not self._config.compose_file_path.is_file():
            raise EnvironmentNotInstalledError(
                f"Compose definition not found at {self._config.compose_file_path}. Run install first."
            )
