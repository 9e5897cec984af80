"""Regression tests for lifecycle state migrations and SQLite-backed repositories."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from sqlalchemy import Engine, inspect

from dockerized_node.db import (
    SQLAlchemyDatabaseHealthService,
    SQLAlchemyLifecycleRunService,
    SQLAlchemyModuleConfigService,
    db_apply_migrations,
    db_create_engine,
)
from dockerized_node.db import session as session_module


@pytest.fixture
def migrated_engine(tmp_path: Path) -> Iterator[Engine]:
    """Create a migrated SQLite state database under a nested data directory."""

    database_url = f"sqlite:///{(tmp_path / 'state' / 'dockerized-node.db').as_posix()}"
    engine = db_create_engine(database_url=database_url)
    db_apply_migrations(database_url=database_url)
    yield engine
    engine.dispose()


def test_migrations_create_lifecycle_state_tables(migrated_engine: Engine) -> None:
    """Baseline migration creates both state tables."""

    table_names = set(inspect(migrated_engine).get_table_names())

    assert {"module_config", "lifecycle_run"} <= table_names


def test_migrations_are_repeatable(tmp_path: Path) -> None:
    """Applying migrations twice is a no-op."""

    database_url = f"sqlite:///{(tmp_path / 'state.db').as_posix()}"
    db_apply_migrations(database_url=database_url)
    db_apply_migrations(database_url=database_url)

    engine = db_create_engine(database_url=database_url)
    try:
        assert "lifecycle_run" in inspect(engine).get_table_names()
    finally:
        engine.dispose()


def test_migrations_apply_outside_repository_checkout(monkeypatch, tmp_path: Path) -> None:
    """Migration scripts ship inside the package, so any working directory works."""

    monkeypatch.chdir(tmp_path)
    migrations_path = Path(session_module.__file__).resolve().parent / "migrations"
    database_url = f"sqlite:///{(tmp_path / 'elsewhere' / 'state.db').as_posix()}"

    db_apply_migrations(database_url=database_url)

    engine = db_create_engine(database_url=database_url)
    try:
        assert {"module_config", "lifecycle_run"} <= set(inspect(engine).get_table_names())
    finally:
        engine.dispose()
    assert (migrations_path / "env.py").is_file()
    assert any((migrations_path / "versions").glob("*_lifecycle_state_baseline.py"))


def test_module_config_upsert_round_trip(migrated_engine: Engine) -> None:
    """Installed version is absent until set, then replaced in place."""

    service = SQLAlchemyModuleConfigService(engine=migrated_engine)

    assert service.db_module_config_get_installed_version("dockerized-node") is None

    service.db_module_config_set_installed_version("dockerized-node", "rev-1")
    service.db_module_config_set_installed_version("dockerized-node", "rev-2")

    assert service.db_module_config_get_installed_version("dockerized-node") == "rev-2"
    assert service.db_module_config_get_installed_version("other-module") is None


def test_module_config_rejects_blank_inputs(migrated_engine: Engine) -> None:
    """Blank keys and versions are invalid."""

    service = SQLAlchemyModuleConfigService(engine=migrated_engine)

    with pytest.raises(ValueError):
        service.db_module_config_get_installed_version(" ")
    with pytest.raises(ValueError):
        service.db_module_config_set_installed_version("dockerized-node", "")


def test_lifecycle_run_create_finalize_and_fetch(migrated_engine: Engine) -> None:
    """Started runs are finalized with duration and diagnostics."""

    service = SQLAlchemyLifecycleRunService(engine=migrated_engine)

    started_record = service.db_lifecycle_run_create_started("dockerized-node", "install")
    finalized_record = service.db_lifecycle_run_finalize(
        lifecycle_run_id=started_record.lifecycle_run_id,
        status="failed",
        error_type="DeploymentFailedError",
        error_message="Dockerized node stopped running. Installation failed.",
        diagnostics=[{"stage": "await_readiness", "status": "failed"}],
    )

    assert started_record.state.status == "started"
    assert started_record.state.ended_at_utc is None
    assert finalized_record.state.status == "failed"
    assert finalized_record.state.duration_ms is not None
    assert finalized_record.state.duration_ms >= 0
    assert finalized_record.state.diagnostics == [{"stage": "await_readiness", "status": "failed"}]

    fetched_record = service.db_lifecycle_run_get_by_id(started_record.lifecycle_run_id)
    assert fetched_record == finalized_record
    assert service.db_lifecycle_run_get_by_id("missing") is None


def test_lifecycle_run_list_orders_latest_first(migrated_engine: Engine) -> None:
    """Listing is scoped to the module and paginated."""

    service = SQLAlchemyLifecycleRunService(engine=migrated_engine)
    service.db_lifecycle_run_create_started("dockerized-node", "install")
    service.db_lifecycle_run_create_started("dockerized-node", "stop")
    service.db_lifecycle_run_create_started("other-module", "install")

    listed_records = service.db_lifecycle_run_list(module_key="dockerized-node", limit=10, offset=0)
    paged_records = service.db_lifecycle_run_list(module_key="dockerized-node", limit=1, offset=1)

    assert {record.operation for record in listed_records} == {"install", "stop"}
    assert listed_records[0].state.started_at_utc >= listed_records[1].state.started_at_utc
    assert len(paged_records) == 1


def test_lifecycle_run_finalize_rejects_unknown_run_and_status(migrated_engine: Engine) -> None:
    """Finalize validates status and run existence."""

    service = SQLAlchemyLifecycleRunService(engine=migrated_engine)

    with pytest.raises(ValueError):
        service.db_lifecycle_run_finalize("missing", status="started", error_type=None, error_message=None, diagnostics=None)
    with pytest.raises(LookupError):
        service.db_lifecycle_run_finalize("missing", status="success", error_type=None, error_message=None, diagnostics=None)


def test_health_reports_degraded_before_migration(tmp_path: Path) -> None:
    """Reachable but unmigrated database is degraded, migrated one is ok."""

    database_url = f"sqlite:///{(tmp_path / 'health.db').as_posix()}"
    engine = db_create_engine(database_url=database_url)
    health_service = SQLAlchemyDatabaseHealthService(engine=engine)
    try:
        assert health_service.db_check_health().status == "degraded"

        db_apply_migrations(database_url=database_url)

        assert health_service.db_check_health().status == "ok"
        assert health_service.db_connection_label().startswith("sqlite:///")
    finally:
        engine.dispose()
