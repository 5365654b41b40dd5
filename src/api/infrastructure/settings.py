"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

from functools import lru_cache

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database connection settings.

    Environment variables:
        CONTROLPLANE_DB_HOST: Database host (default: localhost)
        CONTROLPLANE_DB_PORT: Database port (default: 5432)
        CONTROLPLANE_DB_DATABASE: Database name (default: controlplane)
        CONTROLPLANE_DB_USERNAME: Database user (default: controlplane)
        CONTROLPLANE_DB_PASSWORD: Database password (required in production)
        CONTROLPLANE_DB_POOL_MIN_CONNECTIONS: Minimum connections in pool (default: 2)
        CONTROLPLANE_DB_POOL_MAX_CONNECTIONS: Maximum connections in pool (default: 10)
        CONTROLPLANE_DB_STATEMENT_TIMEOUT_SECONDS: Server-side statement
            timeout applied to every pooled connection, 0 disables (default: 30)
    """

    model_config = SettingsConfigDict(
        env_prefix="CONTROLPLANE_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    database: str = Field(default="controlplane", description="Database name")
    username: str = Field(default="controlplane", description="Database username")
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password",
    )
    pool_min_connections: int = Field(
        default=2,
        description="Minimum connections in pool",
        ge=1,
        le=100,
    )
    pool_max_connections: int = Field(
        default=10,
        description="Maximum connections in pool",
        ge=1,
        le=100,
    )
    statement_timeout_seconds: int = Field(
        default=30,
        description="Server-side statement timeout, 0 disables it",
        ge=0,
    )

    @model_validator(mode="after")
    def validate_pool_settings(self) -> "DatabaseSettings":
        """Validate pool max >= min."""
        if self.pool_max_connections < self.pool_min_connections:
            raise ValueError(
                f"pool_max_connections ({self.pool_max_connections}) must be >= "
                f"pool_min_connections ({self.pool_min_connections})"
            )
        return self

    @property
    def connection_string(self) -> str:
        """Generate a connection string (without password for logging)."""
        return f"postgresql://{self.username}@{self.host}:{self.port}/{self.database}"


class QuerySettings(BaseSettings):
    """Read-side query settings.

    Environment variables:
        CONTROLPLANE_QUERY_PROJECTION_SCHEMA: Schema holding the read tables
            (default: projections)
        CONTROLPLANE_QUERY_INSTANCE_TABLE: Instance read table (default: instances)
        CONTROLPLANE_QUERY_DOMAIN_TABLE: Domain binding table
            (default: instance_domains)
        CONTROLPLANE_QUERY_DEFAULT_TIMEOUT_SECONDS: Per-call deadline used when
            the caller does not supply one (default: unset)
    """

    model_config = SettingsConfigDict(
        env_prefix="CONTROLPLANE_QUERY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    projection_schema: str | None = Field(
        default="projections",
        description="Schema holding the projection tables",
    )
    instance_table: str = Field(
        default="instances",
        min_length=1,
        description="Instance read table",
    )
    domain_table: str = Field(
        default="instance_domains",
        min_length=1,
        description="Domain binding table",
    )
    default_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Per-call deadline applied when the caller has none",
    )


class Settings(BaseSettings):
    """Process-wide settings.

    Environment variables:
        DEBUG: Emit debug-level log events (default: false)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    debug: bool = Field(default=False, description="Emit debug-level log events")

    @property
    def query(self) -> QuerySettings:
        """Get query settings."""
        return get_query_settings()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


@lru_cache
def get_database_settings() -> DatabaseSettings:
    """Get cached database settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return DatabaseSettings()


@lru_cache
def get_query_settings() -> QuerySettings:
    """Get cached query settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return QuerySettings()
