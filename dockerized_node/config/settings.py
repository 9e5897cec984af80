"""Typed runtime settings with dotenv support and startup validation."""

from pathlib import Path

from pydantic import AnyHttpUrl, Field, TypeAdapter, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_HTTP_URL_ADAPTER = TypeAdapter(AnyHttpUrl)


class SettingsLoadError(RuntimeError):
    """Raised when runtime settings cannot be loaded or validated."""


class NodeSettings(BaseSettings):
    """Settings for the dockerized node lifecycle manager and its API runtime.

    Environment variable names map directly to field names in uppercase.
    Example: `l2_rpc_url` reads from `L2_RPC_URL`.

    Attributes:
        environment_name: Runtime environment label.
        application_host: Host interface for web server binding.
        application_port: Web server port.
        data_dir_path: Root directory for the source checkout and local state database.
        database_url: SQLAlchemy URL for lifecycle state; defaults to SQLite under `data_dir_path`.
        module_key: Key of the persisted module configuration record.
        repository_name: GitHub `owner/name` of the compose definition repository.
        repository_url: Clone URL; derived from `repository_name` when blank.
        checkout_dir_name: Directory name of the source checkout inside `data_dir_path`.
        compose_file_name: Compose definition file name inside the checkout.
        rich_accounts_file_name: Rich accounts file name generated inside the checkout.
        github_api_base_url: GitHub REST API base URL used for latest revision lookup.
        compose_command: Space-separated compose executable prefix.
        l2_chain_id: L2 chain id.
        l2_rpc_url: L2 JSON-RPC endpoint probed for readiness.
        l1_chain_id: L1 chain id.
        l1_rpc_url: L1 JSON-RPC endpoint.
        readiness_retry_interval_seconds: Delay between readiness probe ticks.
        readiness_max_wait_seconds: Optional readiness wait cap; unset means unbounded.
        rpc_request_timeout_seconds: Timeout for one readiness probe request.
        command_timeout_seconds: Optional timeout for one external command; unset means unbounded.
        log_level: Root logging level name.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment_name: str = Field(default="development")
    application_host: str = Field(default="127.0.0.1")
    application_port: int = Field(default=8270, ge=1, le=65535)
    data_dir_path: Path = Field(default=Path.home() / ".dockerized-node")
    database_url: str = Field(default="")
    module_key: str = Field(default="dockerized-node", min_length=1)
    repository_name: str = Field(default="matter-labs/local-setup", min_length=1)
    repository_url: str = Field(default="")
    checkout_dir_name: str = Field(default="local-setup", min_length=1)
    compose_file_name: str = Field(default="docker-compose.yml", min_length=1)
    rich_accounts_file_name: str = Field(default="rich-wallets.json", min_length=1)
    github_api_base_url: str = Field(default="https://api.github.com")
    compose_command: str = Field(default="docker compose")
    l2_chain_id: int = Field(default=270, ge=1)
    l2_rpc_url: str = Field(default="http://127.0.0.1:3050")
    l1_chain_id: int = Field(default=9, ge=1)
    l1_rpc_url: str = Field(default="http://127.0.0.1:8545")
    readiness_retry_interval_seconds: float = Field(default=1.0, gt=0)
    readiness_max_wait_seconds: float | None = Field(default=None, gt=0)
    rpc_request_timeout_seconds: float = Field(default=10.0, gt=0)
    command_timeout_seconds: float | None = Field(default=None, gt=0)
    log_level: str = Field(default="INFO")

    @field_validator("repository_name")
    @classmethod
    def _validate_repository_name(cls, value: str) -> str:
        stripped_value = value.strip().strip("/")
        owner, separator, name = stripped_value.partition("/")
        if not separator or not owner or not name or "/" in name:
            raise ValueError("repository_name must use the `owner/name` form")
        return stripped_value

    @field_validator("compose_command")
    @classmethod
    def _validate_non_empty_string(cls, value: str) -> str:
        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError("value must not be blank")
        return stripped_value

    @field_validator("l2_rpc_url", "l1_rpc_url", "github_api_base_url")
    @classmethod
    def _validate_http_url(cls, value: str) -> str:
        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError("value must not be blank")
        try:
            _HTTP_URL_ADAPTER.validate_python(stripped_value)
        except ValidationError as error:
            raise ValueError(f"value must be an absolute http(s) URL, got {stripped_value!r}") from error
        return stripped_value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized_value = value.strip().upper()
        if normalized_value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unsupported log_level={value}")
        return normalized_value

    def settings_resolved_repository_url(self) -> str:
        """Return the clone URL, deriving a GitHub URL from `repository_name` when unset.

        Returns:
            str: Git clone URL.
        """

        explicit_url = self.repository_url.strip()
        if explicit_url:
            return explicit_url
        return f"https://github.com/{self.repository_name}.git"

    def settings_resolved_database_url(self) -> str:
        """Return the state database URL, defaulting to a SQLite file in the data dir.

        Returns:
            str: SQLAlchemy database URL.
        """

        explicit_url = self.database_url.strip()
        if explicit_url:
            return explicit_url
        return f"sqlite:///{(self.data_dir_path / 'dockerized-node.db').as_posix()}"

    def settings_checkout_path(self) -> Path:
        """Return the local source checkout directory.

        Returns:
            Path: Checkout directory path.
        """

        return self.data_dir_path / self.checkout_dir_name


def config_load_settings() -> NodeSettings:
    """Load and validate runtime settings from environment and dotenv.

    Returns:
        NodeSettings: Validated runtime settings object.

    Raises:
        SettingsLoadError: Raised when settings are missing or invalid.
    """

    try:
        return NodeSettings()
    except ValidationError as error:
        raise SettingsLoadError(
            f"Startup configuration validation failed. Update .env or environment variables. Details: {error}"
        ) from error


def config_load_database_url() -> str:
    """Load and validate only the state database URL.

    Returns:
        str: Non-empty database URL for migration and db tooling.

    Raises:
        SettingsLoadError: Raised when the database URL cannot be resolved.
    """

    database_url = config_load_settings().settings_resolved_database_url().strip()
    if not database_url:
        raise SettingsLoadError("Database URL configuration validation failed. DATABASE_URL must not be blank.")
    return database_url
