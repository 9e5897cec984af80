"""State database health service used by the API health endpoint."""

from sqlalchemy import Engine, inspect, text
from sqlalchemy.exc import SQLAlchemyError

from dockerized_node.domain import HealthStatus

from .interfaces import DatabaseHealthPort

_REQUIRED_TABLES = frozenset({"module_config", "lifecycle_run"})


class SQLAlchemyDatabaseHealthService(DatabaseHealthPort):
    """Health service checking that the lifecycle state database is reachable and migrated."""

    def __init__(self, engine: Engine):
        """Initialize database health service.

        Args:
            engine: SQLAlchemy engine used for connectivity checks.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_connection_label(self) -> str:
        """Return the state database URL with credentials masked.

        Returns:
            str: Rendered engine URL string.
        """

        return self._engine.url.render_as_string(hide_password=True)

    def db_check_health(self) -> HealthStatus:
        """Verify connectivity and presence of the lifecycle state tables.

        Returns:
            HealthStatus: `ok` when migrated, `degraded` when tables are missing.

        Raises:
            ConnectionError: Raised when the database cannot be reached.
        """

        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
                table_names = set(inspect(connection).get_table_names())
        except SQLAlchemyError as error:
            raise ConnectionError("state database connectivity check failed") from error

        missing_tables = sorted(_REQUIRED_TABLES - table_names)
        if missing_tables:
            return HealthStatus(status="degraded", detail=f"state schema not migrated, missing: {', '.join(missing_tables)}")
        return HealthStatus(status="ok", detail="state database connectivity verified")
