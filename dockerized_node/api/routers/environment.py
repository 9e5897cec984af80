"""Environment API router for lifecycle triggers, status queries, and run history."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from dockerized_node.adapters import ContainerRuntimeAdapterError, SourceFetchError
from dockerized_node.config import NodeSettings
from dockerized_node.db import LifecycleRunRecord, LifecycleRunRepositoryPort
from dockerized_node.domain import EnvironmentStatusReport, LifecycleExecutionResult
from dockerized_node.lifecycle import (
    DeploymentFailedError,
    DockerizedNodeLifecycleManager,
    EnvironmentNotInstalledError,
    LifecycleOperationActiveError,
    UnsupportedLifecycleOperationError,
)

logger = logging.getLogger(__name__)

_API_DEFAULT_RUN_LIMIT = 20
_API_MAX_RUN_LIMIT = 200


def api_create_environment_router(
    settings: NodeSettings,
    lifecycle_manager: DockerizedNodeLifecycleManager,
    run_repository: LifecycleRunRepositoryPort,
) -> APIRouter:
    """Create environment router with lifecycle and query endpoints.

    Args:
        settings: Runtime settings used for the module key.
        lifecycle_manager: Manager executing lifecycle operations.
        run_repository: Lifecycle run history repository.

    Returns:
        APIRouter: Router exposing `/environment` APIs.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if lifecycle_manager is None:
        raise ValueError("lifecycle_manager must not be None")
    if run_repository is None:
        raise ValueError("run_repository must not be None")

    router = APIRouter(prefix="/environment", tags=["environment"])

    @router.get("/status")
    def api_environment_status(include_latest: bool = Query(default=False)) -> JSONResponse:
        """Return installed/running state and versions.

        Args:
            include_latest: Also resolve the latest available revision.

        Returns:
            JSONResponse: Status payload, 503 when a collaborator is unavailable.
        """

        try:
            report = lifecycle_manager.lifecycle_describe_status(include_latest_version=include_latest)
        except (ContainerRuntimeAdapterError, SourceFetchError) as error:
            return _api_error_response(status.HTTP_503_SERVICE_UNAVAILABLE, "COLLABORATOR_UNAVAILABLE", str(error))
        return JSONResponse(content=api_serialize_status_report(report), status_code=status.HTTP_200_OK)

    @router.get("/startup-info")
    def api_environment_startup_info() -> JSONResponse:
        """Return chain endpoints and the rich accounts file path.

        Returns:
            JSONResponse: Startup info payload.
        """

        startup_info = lifecycle_manager.lifecycle_get_startup_info()
        return JSONResponse(content=startup_info.startup_info_as_payload(), status_code=status.HTTP_200_OK)

    @router.get("/logs")
    def api_environment_logs(tail: int | None = Query(default=None, ge=1)) -> JSONResponse:
        """Return stack log lines.

        Args:
            tail: Optional number of trailing lines to return.

        Returns:
            JSONResponse: Log lines payload.
        """

        try:
            log_lines = lifecycle_manager.lifecycle_get_logs()
        except EnvironmentNotInstalledError as error:
            return _api_error_response(status.HTTP_409_CONFLICT, "NOT_INSTALLED", str(error))
        except ContainerRuntimeAdapterError as error:
            return _api_error_response(status.HTTP_503_SERVICE_UNAVAILABLE, "COLLABORATOR_UNAVAILABLE", str(error))

        if tail is not None:
            log_lines = log_lines[-tail:]
        return JSONResponse(content={"lines": log_lines, "returned": len(log_lines)}, status_code=status.HTTP_200_OK)

    @router.post("/{operation}")
    def api_environment_operation_trigger(operation: str) -> JSONResponse:
        """Run one lifecycle operation; rejects instead of queueing when one is active.

        Args:
            operation: `install`, `update`, `start`, `stop`, or `clean`.

        Returns:
            JSONResponse: Execution payload or mapped error.
        """

        try:
            execution_result = lifecycle_manager.lifecycle_execute(operation, wait_for_active=False)
        except UnsupportedLifecycleOperationError as error:
            return _api_error_response(status.HTTP_404_NOT_FOUND, "UNSUPPORTED_OPERATION", str(error))
        except LifecycleOperationActiveError:
            return _api_error_response(status.HTTP_409_CONFLICT, "OPERATION_ACTIVE", "lifecycle operation already active")
        except EnvironmentNotInstalledError as error:
            return _api_error_response(status.HTTP_409_CONFLICT, "NOT_INSTALLED", str(error))
        except DeploymentFailedError as error:
            payload = {
                "status": "error",
                "code": "DEPLOYMENT_FAILED",
                "reason": error.reason.value,
                "elapsed_ms": error.elapsed_milliseconds,
                "message": str(error),
            }
            return JSONResponse(content=payload, status_code=status.HTTP_502_BAD_GATEWAY)
        except (ContainerRuntimeAdapterError, SourceFetchError) as error:
            return _api_error_response(status.HTTP_503_SERVICE_UNAVAILABLE, "COLLABORATOR_UNAVAILABLE", str(error))

        return JSONResponse(content=api_serialize_execution_result(execution_result), status_code=status.HTTP_200_OK)

    @router.get("/runs")
    def api_environment_run_list(
        limit: int = Query(default=_API_DEFAULT_RUN_LIMIT, ge=1),
        offset: int = Query(default=0, ge=0),
    ) -> JSONResponse:
        """Return lifecycle runs, latest first.

        Args:
            limit: Max rows to return, capped server-side.
            offset: Rows to skip.

        Returns:
            JSONResponse: Runs list payload.
        """

        applied_limit = min(limit, _API_MAX_RUN_LIMIT)
        run_rows = run_repository.db_lifecycle_run_list(module_key=settings.module_key, limit=applied_limit, offset=offset)
        payload = {
            "items": [api_serialize_lifecycle_run_record(run_record) for run_record in run_rows],
            "page": {
                "limit": limit,
                "applied_limit": applied_limit,
                "offset": offset,
                "returned": len(run_rows),
            },
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/runs/{lifecycle_run_id}")
    def api_environment_run_detail(lifecycle_run_id: str) -> JSONResponse:
        """Return one lifecycle run.

        Args:
            lifecycle_run_id: Run identifier.

        Returns:
            JSONResponse: Run payload or 404 when absent.
        """

        run_record = run_repository.db_lifecycle_run_get_by_id(lifecycle_run_id=lifecycle_run_id)
        if run_record is None:
            return _api_error_response(status.HTTP_404_NOT_FOUND, "RUN_NOT_FOUND", "lifecycle run not found")
        return JSONResponse(content=api_serialize_lifecycle_run_record(run_record), status_code=status.HTTP_200_OK)

    return router


def api_serialize_status_report(report: EnvironmentStatusReport) -> dict[str, object]:
    """Serialize a status report to a JSON payload.

    Args:
        report: Environment status report.

    Returns:
        dict[str, object]: JSON-serializable payload.
    """

    return {
        "installed": report.installed,
        "running": report.running,
        "installed_version": report.installed_version,
        "latest_version": report.latest_version,
        "update_available": report.status_update_available(),
        "services": [
            {"service_name": service.service_name, "is_running": service.is_running, "state": service.state}
            for service in report.services
        ],
    }


def api_serialize_execution_result(execution_result: LifecycleExecutionResult) -> dict[str, object]:
    """Serialize a lifecycle execution result to a JSON payload.

    Args:
        execution_result: Successful execution result.

    Returns:
        dict[str, object]: JSON-serializable payload.
    """

    return {
        "operation": execution_result.operation,
        "status": execution_result.status,
        "installed_version": execution_result.installed_version,
        "elapsed_ms": execution_result.elapsed_milliseconds,
        "stage_timeline": execution_result.stage_timeline,
    }


def api_serialize_lifecycle_run_record(run_record: LifecycleRunRecord) -> dict[str, object]:
    """Serialize typed lifecycle run row to JSON response payload.

    Args:
        run_record: Typed lifecycle run record.

    Returns:
        dict[str, object]: JSON-serializable run payload.
    """

    return {
        "lifecycle_run_id": run_record.lifecycle_run_id,
        "module_key": run_record.module_key,
        "operation": run_record.operation,
        "status": run_record.state.status,
        "started_at_utc": run_record.state.started_at_utc.isoformat(),
        "ended_at_utc": run_record.state.ended_at_utc.isoformat() if run_record.state.ended_at_utc else None,
        "duration_ms": run_record.state.duration_ms,
        "error_type": run_record.state.error_type,
        "error_message": run_record.state.error_message,
        "diagnostics": run_record.state.diagnostics,
    }


def _api_error_response(status_code: int, code: str, message: str) -> JSONResponse:
    logger.warning("Environment API request failed: %s", message, extra={"code": code})
    return JSONResponse(content={"status": "error", "code": code, "message": message}, status_code=status_code)
