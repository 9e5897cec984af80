"""Database service for the persisted per-environment module configuration record."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from .interfaces import ModuleConfigRepositoryPort


class SQLAlchemyModuleConfigService(ModuleConfigRepositoryPort):
    """SQLAlchemy-backed store for the installed version of each environment module."""

    def __init__(self, engine: Engine):
        """Initialize module configuration service.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_module_config_get_installed_version(self, module_key: str) -> str | None:
        """Return the installed version recorded for one module.

        Args:
            module_key: Environment module key.

        Returns:
            str | None: Installed version, or None when no record or no version exists.

        Raises:
            ValueError: Raised when module_key is blank.
            RuntimeError: Raised when database read fails.
        """

        normalized_module_key = self._validate_module_key(module_key)
        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    text("SELECT installed_version FROM module_config WHERE module_key = :module_key"),
                    {"module_key": normalized_module_key},
                ).mappings().first()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to read module configuration") from error

        if row is None:
            return None
        return row["installed_version"]

    def db_module_config_set_installed_version(self, module_key: str, installed_version: str) -> None:
        """Insert or update the installed version for one module.

        Args:
            module_key: Environment module key.
            installed_version: Confirmed installed revision.

        Raises:
            ValueError: Raised when inputs are blank.
            RuntimeError: Raised when persistence fails.
        """

        normalized_module_key = self._validate_module_key(module_key)
        normalized_version = installed_version.strip()
        if not normalized_version:
            raise ValueError("installed_version must not be blank")

        try:
            with self._engine.begin() as connection:
                connection.execute(
                    text(
                        "INSERT INTO module_config (module_key, installed_version, updated_at_utc) "
                        "VALUES (:module_key, :installed_version, :updated_at_utc) "
                        "ON CONFLICT (module_key) DO UPDATE SET "
                        "installed_version = excluded.installed_version, "
                        "updated_at_utc = excluded.updated_at_utc"
                    ),
                    {
                        "module_key": normalized_module_key,
                        "installed_version": normalized_version,
                        "updated_at_utc": datetime.now(timezone.utc).isoformat(),
                    },
                )
        except SQLAlchemyError as error:
            raise RuntimeError("failed to persist module configuration") from error

    def _validate_module_key(self, module_key: str) -> str:
        stripped_value = module_key.strip()
        if not stripped_value:
            raise ValueError("module_key must not be blank")
        return stripped_value
