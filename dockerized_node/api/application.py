"""FastAPI application factory for the environment control service."""

from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import asynccontextmanager

from fastapi import FastAPI

from dockerized_node.config import NodeSettings
from dockerized_node.db import DatabaseHealthPort, LifecycleRunRepositoryPort
from dockerized_node.lifecycle import DockerizedNodeLifecycleManager

from .routers import api_create_environment_router, api_create_health_router


def create_api_application(
    settings: NodeSettings,
    db_health_service: DatabaseHealthPort,
    lifecycle_manager: DockerizedNodeLifecycleManager,
    run_repository: LifecycleRunRepositoryPort,
    shutdown_callbacks: Sequence[Callable[[], None]] = (),
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated runtime settings used for metadata.
        db_health_service: State database health service used by health endpoints.
        lifecycle_manager: Lifecycle manager shared by all requests.
        run_repository: Lifecycle run history repository for list/detail APIs.
        shutdown_callbacks: Callables run once when the application shuts down.

    Returns:
        FastAPI: Framework application instance.
    """

    @asynccontextmanager
    async def _application_lifespan(_: FastAPI) -> AsyncIterator[None]:
        yield
        for shutdown_callback in shutdown_callbacks:
            shutdown_callback()

    application = FastAPI(title="Dockerized Node Manager", lifespan=_application_lifespan)

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        """Return service identity for bootstrap verification."""

        return {
            "service": "dockerized-node-manager",
            "module_key": settings.module_key,
            "environment": settings.environment_name,
        }

    application.include_router(
        api_create_health_router(db_health_service=db_health_service, lifecycle_manager=lifecycle_manager)
    )
    application.include_router(
        api_create_environment_router(
            settings=settings,
            lifecycle_manager=lifecycle_manager,
            run_repository=run_repository,
        )
    )

    return application
