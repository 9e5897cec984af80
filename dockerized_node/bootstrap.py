"""Application bootstrap wiring for startup validation and dependency assembly."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import FastAPI
from sqlalchemy.engine import Engine

from dockerized_node.adapters import DockerComposeRuntimeAdapter, GitSourceFetcher, MainContractRpcProbe
from dockerized_node.api import create_api_application
from dockerized_node.config import NodeSettings, config_load_settings
from dockerized_node.db import (
    SQLAlchemyDatabaseHealthService,
    SQLAlchemyLifecycleRunService,
    SQLAlchemyModuleConfigService,
    db_apply_migrations,
    db_create_engine,
)
from dockerized_node.domain import domain_build_environment_descriptor
from dockerized_node.lifecycle import DockerizedNodeLifecycleManager, LifecycleManagerConfig, ReadinessPoller


@dataclass(frozen=True)
class BootstrapRuntime:
    """Wired runtime components shared by the API and CLI surfaces.

    Attributes:
        settings: Validated runtime settings.
        lifecycle_manager: Fully wired lifecycle manager.
        run_repository: Lifecycle run history repository.
        db_health_service: State database health service.
        engine: State database engine.
        source_fetcher: Source fetcher owning a pooled HTTP client.
        readiness_rpc_client: Main contract RPC adapter owning a pooled HTTP client.
    """

    settings: NodeSettings
    lifecycle_manager: DockerizedNodeLifecycleManager
    run_repository: SQLAlchemyLifecycleRunService
    db_health_service: SQLAlchemyDatabaseHealthService
    engine: Engine
    source_fetcher: GitSourceFetcher
    readiness_rpc_client: MainContractRpcProbe

    def runtime_close(self) -> None:
        """Close pooled HTTP clients and dispose the state database engine."""

        self.readiness_rpc_client.adapter_close()
        self.source_fetcher.adapter_close()
        self.engine.dispose()


def bootstrap_create_runtime(settings: NodeSettings | None = None) -> BootstrapRuntime:
    """Migrate the state database and assemble lifecycle components.

    Args:
        settings: Optional preloaded settings; loaded from the environment when omitted.

    Returns:
        BootstrapRuntime: Wired runtime components; call `runtime_close()` when done.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_settings = settings or config_load_settings()
    database_url = resolved_settings.settings_resolved_database_url()
    engine = db_create_engine(database_url=database_url)
    db_apply_migrations(database_url=database_url)

    run_repository = SQLAlchemyLifecycleRunService(engine=engine)
    readiness_rpc_client = MainContractRpcProbe(request_timeout_seconds=resolved_settings.rpc_request_timeout_seconds)
    source_fetcher = GitSourceFetcher(
        github_api_base_url=resolved_settings.github_api_base_url,
        command_timeout_seconds=resolved_settings.command_timeout_seconds,
    )
    readiness_poller = ReadinessPoller(
        probe=readiness_rpc_client,
        retry_interval_seconds=resolved_settings.readiness_retry_interval_seconds,
        max_wait_seconds=resolved_settings.readiness_max_wait_seconds,
    )
    lifecycle_manager = DockerizedNodeLifecycleManager(
        source_fetcher=source_fetcher,
        container_runtime=DockerComposeRuntimeAdapter(
            compose_command=resolved_settings.compose_command,
            command_timeout_seconds=resolved_settings.command_timeout_seconds,
        ),
        readiness_poller=readiness_poller,
        module_config_repository=SQLAlchemyModuleConfigService(engine=engine),
        config=LifecycleManagerConfig(
            module_key=resolved_settings.module_key,
            repository_name=resolved_settings.repository_name,
            repository_url=resolved_settings.settings_resolved_repository_url(),
            checkout_path=resolved_settings.settings_checkout_path(),
            compose_file_name=resolved_settings.compose_file_name,
            environment=domain_build_environment_descriptor(
                l2_chain_id=resolved_settings.l2_chain_id,
                l2_rpc_url=resolved_settings.l2_rpc_url,
                l1_chain_id=resolved_settings.l1_chain_id,
                l1_rpc_url=resolved_settings.l1_rpc_url,
                rich_accounts_file_name=resolved_settings.rich_accounts_file_name,
            ),
        ),
        run_repository=run_repository,
    )
    return BootstrapRuntime(
        settings=resolved_settings,
        lifecycle_manager=lifecycle_manager,
        run_repository=run_repository,
        db_health_service=SQLAlchemyDatabaseHealthService(engine=engine),
        engine=engine,
        source_fetcher=source_fetcher,
        readiness_rpc_client=readiness_rpc_client,
    )


def bootstrap_create_application(settings: NodeSettings | None = None) -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Args:
        settings: Optional preloaded settings.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    runtime = bootstrap_create_runtime(settings=settings)
    return create_api_application(
        settings=runtime.settings,
        db_health_service=runtime.db_health_service,
        lifecycle_manager=runtime.lifecycle_manager,
        run_repository=runtime.run_repository,
        shutdown_callbacks=(runtime.runtime_close,),
    )
