"""Database engine utilities and programmatic schema migration.

This module centralizes database connectivity primitives to enforce the db-layer
boundary for all SQLAlchemy and Alembic usage.
"""

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url

_ALEMBIC_SCRIPT_LOCATION = Path(__file__).resolve().parent / "migrations"


def db_create_engine(database_url: str) -> Engine:
    """Create the SQLAlchemy engine for the lifecycle state database.

    SQLite file databases get their parent directory created on demand.

    Args:
        database_url: SQLAlchemy database URL.

    Returns:
        Engine: Configured SQLAlchemy engine.

    Raises:
        ValueError: Raised when the database URL is blank.
    """

    if not database_url.strip():
        raise ValueError("database_url must not be blank")

    parsed_url = make_url(database_url)
    if parsed_url.get_backend_name() == "sqlite" and parsed_url.database not in (None, "", ":memory:"):
        Path(parsed_url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)

    return create_engine(database_url, pool_pre_ping=True)


def db_apply_migrations(database_url: str) -> None:
    """Upgrade the state database schema to the latest Alembic revision.

    Args:
        database_url: SQLAlchemy database URL.

    Raises:
        ValueError: Raised when the database URL is blank.
        RuntimeError: Raised when the migration scripts cannot be found.
    """

    if not database_url.strip():
        raise ValueError("database_url must not be blank")
    if not (_ALEMBIC_SCRIPT_LOCATION / "env.py").is_file():
        raise RuntimeError(f"Alembic script location not found: {_ALEMBIC_SCRIPT_LOCATION}")

    alembic_config = Config()
    alembic_config.set_main_option("script_location", str(_ALEMBIC_SCRIPT_LOCATION))
    alembic_config.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(alembic_config, "head")
