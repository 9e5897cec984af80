"""Database layer package for lifecycle state persistence boundaries."""

from .health import SQLAlchemyDatabaseHealthService
from .interfaces import (
	DatabaseHealthPort,
	LifecycleRunRecord,
	LifecycleRunRepositoryPort,
	LifecycleRunState,
	ModuleConfigRepositoryPort,
)
from .lifecycle_run import SQLAlchemyLifecycleRunService
from .module_config import SQLAlchemyModuleConfigService
from .session import db_apply_migrations, db_create_engine

__all__ = [
	"DatabaseHealthPort",
	"LifecycleRunRecord",
	"LifecycleRunRepositoryPort",
	"LifecycleRunState",
	"ModuleConfigRepositoryPort",
	"SQLAlchemyDatabaseHealthService",
	"SQLAlchemyLifecycleRunService",
	"SQLAlchemyModuleConfigService",
	"db_apply_migrations",
	"db_create_engine",
]
