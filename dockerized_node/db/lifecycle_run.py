"""Database service for lifecycle run history persistence."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from .interfaces import LifecycleRunRecord, LifecycleRunRepositoryPort, LifecycleRunState

_LIFECYCLE_RUN_COLUMNS = (
    "lifecycle_run_id, module_key, operation, status, started_at_utc, ended_at_utc, "
    "duration_ms, error_type, error_message, diagnostics"
)


class SQLAlchemyLifecycleRunService(LifecycleRunRepositoryPort):
    """SQLAlchemy-backed lifecycle run history service.

    Timestamps are stored as ISO-8601 UTC text and diagnostics as JSON text so
    the same statements run on SQLite and PostgreSQL.
    """

    def __init__(self, engine: Engine):
        """Initialize lifecycle run persistence service.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_lifecycle_run_create_started(self, module_key: str, operation: str) -> LifecycleRunRecord:
        """Create one started run.

        Args:
            module_key: Environment module key.
            operation: Lifecycle operation name.

        Returns:
            LifecycleRunRecord: Newly created started run.

        Raises:
            ValueError: Raised when required inputs are blank.
            RuntimeError: Raised when persistence fails.
        """

        normalized_module_key = self._validate_non_empty_text(module_key, "module_key")
        normalized_operation = self._validate_non_empty_text(operation, "operation")
        lifecycle_run_id = str(uuid4())

        try:
            with self._engine.begin() as connection:
                connection.execute(
                    text(
                        "INSERT INTO lifecycle_run (lifecycle_run_id, module_key, operation, status, started_at_utc) "
                        "VALUES (:lifecycle_run_id, :module_key, :operation, 'started', :started_at_utc)"
                    ),
                    {
                        "lifecycle_run_id": lifecycle_run_id,
                        "module_key": normalized_module_key,
                        "operation": normalized_operation,
                        "started_at_utc": datetime.now(timezone.utc).isoformat(),
                    },
                )
                return self._db_fetch_run_by_id_or_raise(connection=connection, lifecycle_run_id=lifecycle_run_id)
        except SQLAlchemyError as error:
            raise RuntimeError("failed to create started lifecycle run") from error

    def db_lifecycle_run_finalize(
        self,
        lifecycle_run_id: str,
        status: str,
        error_type: str | None,
        error_message: str | None,
        diagnostics: list[dict[str, Any]] | None,
    ) -> LifecycleRunRecord:
        """Finalize one run with end timestamp and duration.

        Args:
            lifecycle_run_id: Run identifier.
            status: Final status (`success` or `failed`).
            error_type: Optional exception type name.
            error_message: Optional human-readable message.
            diagnostics: Optional stage timeline payload.

        Returns:
            LifecycleRunRecord: Finalized run row.

        Raises:
            LookupError: Raised when run is not found.
            ValueError: Raised when final status is invalid.
            RuntimeError: Raised when persistence fails.
        """

        if status not in {"success", "failed"}:
            raise ValueError("status must be one of: success, failed")

        diagnostics_payload = None
        if diagnostics is not None:
            diagnostics_payload = json.dumps(diagnostics, default=str)

        try:
            with self._engine.begin() as connection:
                started_record = self._db_fetch_run_by_id_or_raise(connection=connection, lifecycle_run_id=lifecycle_run_id)
                ended_at_utc = datetime.now(timezone.utc)
                duration_ms = max(0, int((ended_at_utc - started_record.state.started_at_utc).total_seconds() * 1000))
                connection.execute(
                    text(
                        "UPDATE lifecycle_run SET "
                        "status = :status, "
                        "ended_at_utc = :ended_at_utc, "
                        "duration_ms = :duration_ms, "
                        "error_type = :error_type, "
                        "error_message = :error_message, "
                        "diagnostics = :diagnostics "
                        "WHERE lifecycle_run_id = :lifecycle_run_id"
                    ),
                    {
                        "status": status,
                        "ended_at_utc": ended_at_utc.isoformat(),
                        "duration_ms": duration_ms,
                        "error_type": error_type,
                        "error_message": error_message,
                        "diagnostics": diagnostics_payload,
                        "lifecycle_run_id": lifecycle_run_id,
                    },
                )
                return self._db_fetch_run_by_id_or_raise(connection=connection, lifecycle_run_id=lifecycle_run_id)
        except SQLAlchemyError as error:
            raise RuntimeError("failed to finalize lifecycle run") from error

    def db_lifecycle_run_get_by_id(self, lifecycle_run_id: str) -> LifecycleRunRecord | None:
        """Fetch one lifecycle run by id.

        Args:
            lifecycle_run_id: Run identifier.

        Returns:
            LifecycleRunRecord | None: Matching run row or None.

        Raises:
            RuntimeError: Raised when database read fails.
        """

        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    text(f"SELECT {_LIFECYCLE_RUN_COLUMNS} FROM lifecycle_run WHERE lifecycle_run_id = :lifecycle_run_id"),
                    {"lifecycle_run_id": lifecycle_run_id},
                ).mappings().first()
                if row is None:
                    return None
                return self._map_lifecycle_run_record(row)
        except SQLAlchemyError as error:
            raise RuntimeError("failed to fetch lifecycle run by id") from error

    def db_lifecycle_run_list(self, module_key: str, limit: int, offset: int) -> list[LifecycleRunRecord]:
        """List runs of one module, latest first.

        Args:
            module_key: Environment module key.
            limit: Maximum number of rows.
            offset: Number of rows to skip.

        Returns:
            list[LifecycleRunRecord]: Ordered run rows.

        Raises:
            ValueError: Raised when limit or offset are invalid.
            RuntimeError: Raised when database read fails.
        """

        if limit < 1:
            raise ValueError("limit must be >= 1")
        if offset < 0:
            raise ValueError("offset must be >= 0")

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    text(
                        f"SELECT {_LIFECYCLE_RUN_COLUMNS} FROM lifecycle_run "
                        "WHERE module_key = :module_key "
                        "ORDER BY started_at_utc DESC, lifecycle_run_id DESC "
                        "LIMIT :limit OFFSET :offset"
                    ),
                    {"module_key": module_key, "limit": limit, "offset": offset},
                ).mappings().all()

                return [self._map_lifecycle_run_record(row) for row in rows]
        except SQLAlchemyError as error:
            raise RuntimeError("failed to list lifecycle runs") from error

    def _db_fetch_run_by_id_or_raise(self, connection, lifecycle_run_id: str) -> LifecycleRunRecord:
        row = connection.execute(
            text(f"SELECT {_LIFECYCLE_RUN_COLUMNS} FROM lifecycle_run WHERE lifecycle_run_id = :lifecycle_run_id"),
            {"lifecycle_run_id": lifecycle_run_id},
        ).mappings().first()
        if row is None:
            raise LookupError("lifecycle run not found")
        return self._map_lifecycle_run_record(row)

    def _map_lifecycle_run_record(self, row: Any) -> LifecycleRunRecord:
        """Map SQLAlchemy row mapping to typed lifecycle run record.

        Args:
            row: SQLAlchemy mapping row.

        Returns:
            LifecycleRunRecord: Typed run record.

        Raises:
            TypeError: Raised when diagnostics are not a JSON array.
        """

        diagnostics_value = row["diagnostics"]
        if isinstance(diagnostics_value, str):
            diagnostics_value = json.loads(diagnostics_value)
        if diagnostics_value is not None and not isinstance(diagnostics_value, list):
            raise TypeError("lifecycle_run.diagnostics must be a JSON array when present")

        ended_at_value = row["ended_at_utc"]
        return LifecycleRunRecord(
            lifecycle_run_id=row["lifecycle_run_id"],
            module_key=row["module_key"],
            operation=row["operation"],
            state=LifecycleRunState(
                status=row["status"],
                started_at_utc=datetime.fromisoformat(row["started_at_utc"]),
                ended_at_utc=datetime.fromisoformat(ended_at_value) if ended_at_value else None,
                duration_ms=row["duration_ms"],
                error_type=row["error_type"],
                error_message=row["error_message"],
                diagnostics=diagnostics_value,
            ),
        )

    def _validate_non_empty_text(self, value: str, field_name: str) -> str:
        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError(f"{field_name} must not be blank")
        return stripped_value
