"""Health endpoint router composition for app, state database, and node checks."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from dockerized_node.adapters import ContainerRuntimeAdapterError
from dockerized_node.db import DatabaseHealthPort
from dockerized_node.lifecycle import DockerizedNodeLifecycleManager


def api_create_health_router(
    db_health_service: DatabaseHealthPort,
    lifecycle_manager: DockerizedNodeLifecycleManager,
) -> APIRouter:
    """Create health-check router reporting state database and node status.

    Args:
        db_health_service: DB-layer health service interface.
        lifecycle_manager: Manager used to query whether the node is running.

    Returns:
        APIRouter: Router exposing `/health` endpoint.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if db_health_service is None:
        raise ValueError("db_health_service must not be None")
    if lifecycle_manager is None:
        raise ValueError("lifecycle_manager must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    def api_health_status() -> JSONResponse:
        """Return application, state database, and node health.

        The node being stopped does not degrade service health; an unreachable
        container runtime or state database does.

        Returns:
            JSONResponse: Health payload, 503 when a dependency is unavailable.
        """

        payload: dict[str, object] = {
            "status": "ok",
            "app": "up",
            "target": db_health_service.db_connection_label(),
        }
        status_code = status.HTTP_200_OK

        try:
            db_health = db_health_service.db_check_health()
            payload["database"] = db_health.status
            payload["detail"] = db_health.detail
            if db_health.status != "ok":
                payload["status"] = "degraded"
                status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        except ConnectionError as error:
            payload["status"] = "degraded"
            payload["database"] = "down"
            payload["detail"] = str(error)
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE

        try:
            payload["node"] = "running" if lifecycle_manager.lifecycle_is_running() else "stopped"
        except ContainerRuntimeAdapterError as error:
            payload["status"] = "degraded"
            payload["node"] = "unknown"
            payload["node_detail"] = str(error)
            status_code = status.HTTP_503_SERVICE_UNAVAILABLE

        return JSONResponse(content=payload, status_code=status_code)

    return router
