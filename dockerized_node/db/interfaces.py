"""Typed interfaces for database-layer services.

All SQL access must remain in the db package and its submodules.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from dockerized_node.domain import HealthStatus


class DatabaseHealthPort(Protocol):
    """Port definition for state database connectivity verification."""

    def db_connection_label(self) -> str:
        """Return a stable label for the active database connection target.

        Returns:
            str: Database target label for diagnostics.

        Raises:
            RuntimeError: Raised when connection metadata is unavailable.
        """

    def db_check_health(self) -> HealthStatus:
        """Check database connectivity and return deterministic health payload.

        Returns:
            HealthStatus: Database health status payload.

        Raises:
            ConnectionError: Raised when database cannot be reached.
        """


class ModuleConfigRepositoryPort(Protocol):
    """Port definition for the persisted per-environment configuration record."""

    def db_module_config_get_installed_version(self, module_key: str) -> str | None:
        """Return the last confirmed installed revision.

        Args:
            module_key: Environment module key.

        Returns:
            str | None: Installed revision, or None when never installed.

        Raises:
            RuntimeError: Raised when the read fails.
        """

    def db_module_config_set_installed_version(self, module_key: str, installed_version: str) -> None:
        """Persist the installed revision for one module.

        Args:
            module_key: Environment module key.
            installed_version: Confirmed installed revision.

        Raises:
            RuntimeError: Raised when the write fails.
        """


@dataclass(frozen=True)
class LifecycleRunState:
    """Runtime outcome state for one lifecycle run.

    Attributes:
        status: Run status (`started`, `success`, `failed`).
        started_at_utc: Run start timestamp in UTC.
        ended_at_utc: Optional run end timestamp in UTC.
        duration_ms: Optional run duration in milliseconds.
        error_type: Optional exception type name.
        error_message: Optional human-readable error message.
        diagnostics: Optional stage timeline payload.
    """

    status: str
    started_at_utc: datetime
    ended_at_utc: datetime | None
    duration_ms: int | None
    error_type: str | None
    error_message: str | None
    diagnostics: list[dict[str, Any]] | None


@dataclass(frozen=True)
class LifecycleRunRecord:
    """Persisted lifecycle run record.

    Attributes:
        lifecycle_run_id: Run identifier.
        module_key: Environment module key.
        operation: Lifecycle operation name.
        state: Outcome state.
    """

    lifecycle_run_id: str
    module_key: str
    operation: str
    state: LifecycleRunState


class LifecycleRunRepositoryPort(Protocol):
    """Port definition for lifecycle run history persistence."""

    def db_lifecycle_run_create_started(self, module_key: str, operation: str) -> LifecycleRunRecord:
        """Create one started run.

        Args:
            module_key: Environment module key.
            operation: Lifecycle operation name.

        Returns:
            LifecycleRunRecord: Newly created started run.

        Raises:
            RuntimeError: Raised when persistence fails.
        """

    def db_lifecycle_run_finalize(
        self,
        lifecycle_run_id: str,
        status: str,
        error_type: str | None,
        error_message: str | None,
        diagnostics: list[dict[str, Any]] | None,
    ) -> LifecycleRunRecord:
        """Finalize one run with its outcome and timeline.

        Args:
            lifecycle_run_id: Run identifier.
            status: Final status (`success` or `failed`).
            error_type: Exception type name when failed.
            error_message: Error message when failed.
            diagnostics: Stage timeline payload.

        Returns:
            LifecycleRunRecord: Updated run record.

        Raises:
            LookupError: Raised when the run does not exist.
            RuntimeError: Raised when persistence fails.
        """

    def db_lifecycle_run_list(self, module_key: str, limit: int, offset: int) -> list[LifecycleRunRecord]:
        """Return runs ordered by latest start first.

        Args:
            module_key: Environment module key.
            limit: Maximum rows.
            offset: Rows to skip.

        Returns:
            list[LifecycleRunRecord]: Run page.

        Raises:
            RuntimeError: Raised when the read fails.
        """

    def db_lifecycle_run_get_by_id(self, lifecycle_run_id: str) -> LifecycleRunRecord | None:
        """Return one run by id.

        Args:
            lifecycle_run_id: Run identifier.

        Returns:
            LifecycleRunRecord | None: Run record when present.

        Raises:
            RuntimeError: Raised when the read fails.
        """
