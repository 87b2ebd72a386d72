"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

from enum import StrEnum
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared_kernel.tenancy import (
    DEFAULT_MIN_DIGITS,
    InvalidTenantPathConfigError,
    validate_tenant_path_config,
)


class StorageBackend(StrEnum):
    """Where tenants and deferred work are stored."""

    MEMORY = "memory"
    DATABASE = "database"


class AuditRelayKind(StrEnum):
    """Available audit relay implementations."""

    LOG = "log"
    MEMORY = "memory"
    NULL = "null"


class DatabaseSettings(BaseSettings):
    """Database connection settings.

    Environment variables:
        TENANTSCOPE_DB_HOST: Database host (default: localhost)
        TENANTSCOPE_DB_PORT: Database port (default: 5432)
        TENANTSCOPE_DB_DATABASE: Database name (default: tenantscope)
        TENANTSCOPE_DB_USERNAME: Database user (default: tenantscope)
        TENANTSCOPE_DB_PASSWORD: Database password (required in production)
        TENANTSCOPE_DB_POOL_MIN_CONNECTIONS: Minimum connections in pool (default: 2)
        TENANTSCOPE_DB_POOL_MAX_CONNECTIONS: Maximum connections in pool (default: 10)
        TENANTSCOPE_DB_AUTO_CREATE_SCHEMA: Create tables at startup (default: true)
    """

    model_config = SettingsConfigDict(
        env_prefix="TENANTSCOPE_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    database: str = Field(default="tenantscope", description="Database name")
    username: str = Field(default="tenantscope", description="Database username")
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
    auto_create_schema: bool = Field(
        default=True,
        description="Create missing tables at application startup",
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


class TenancySettings(BaseSettings):
    """Tenant path and identity settings.

    Environment variables:
        TENANTSCOPE_TENANCY_MIN_DIGITS: Minimum digits in a tenant path segment (default: 7)
        TENANTSCOPE_TENANCY_MAX_DIGITS: Maximum digits, unbounded when unset
        TENANTSCOPE_TENANCY_PRINCIPAL_HEADER: Trusted upstream principal header
        TENANTSCOPE_TENANCY_SESSION_COOKIE: Session cookie name
        TENANTSCOPE_TENANCY_SEED_TENANTS: JSON object of external id to name,
            e.g. '{"1234567": "Acme"}'
    """

    model_config = SettingsConfigDict(
        env_prefix="TENANTSCOPE_TENANCY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    min_digits: int = Field(
        default=DEFAULT_MIN_DIGITS,
        description="Minimum number of digits in a tenant path segment",
    )
    max_digits: int | None = Field(
        default=None,
        description="Maximum number of digits in a tenant path segment",
    )
    principal_header: str = Field(
        default="X-Principal-ID",
        description="Header carrying the authenticated principal id",
    )
    session_cookie: str = Field(
        default="session_id",
        description="Cookie carrying the session reference",
    )
    seed_tenants: dict[int, str] = Field(
        default_factory=dict,
        description="Tenants created at startup, keyed by external id",
    )

    @field_validator("seed_tenants")
    @classmethod
    def validate_seed_tenants(cls, value: dict[int, str]) -> dict[int, str]:
        """Validate seed external ids are positive and names are not blank."""
        for external_id, name in value.items():
            if external_id <= 0:
                raise ValueError(
                    f"seed tenant external id must be positive, got {external_id}"
                )
            if not name.strip():
                raise ValueError(f"seed tenant {external_id} has an empty name")
        return value

    @model_validator(mode="after")
    def validate_path_config(self) -> "TenancySettings":
        """Reject tenant path configurations that could match ambiguously."""
        try:
            validate_tenant_path_config(self.min_digits, self.max_digits)
        except InvalidTenantPathConfigError as e:
            raise ValueError(str(e)) from e

        # Shorter ids are zero-padded in the path, longer ones never match
        if self.max_digits is not None:
            for external_id in self.seed_tenants:
                if len(str(external_id)) > self.max_digits:
                    raise ValueError(
                        f"seed tenant external id {external_id} has more than "
                        f"max_digits={self.max_digits} digits and could never "
                        "be routed to"
                    )
        return self


class DeferredWorkerSettings(BaseSettings):
    """Deferred work worker settings.

    Environment variables:
        TENANTSCOPE_WORKER_ENABLED: Run the worker in-process (default: true)
        TENANTSCOPE_WORKER_POLL_INTERVAL_SECONDS: Seconds between polls (default: 1.0)
        TENANTSCOPE_WORKER_BATCH_SIZE: Deliveries fetched per poll (default: 100)
        TENANTSCOPE_WORKER_MAX_RETRIES: Attempts before dead-lettering (default: 5)
    """

    model_config = SettingsConfigDict(
        env_prefix="TENANTSCOPE_WORKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    enabled: bool = Field(default=True, description="Run the worker in-process")
    poll_interval_seconds: float = Field(
        default=1.0,
        description="Seconds between queue polls",
        gt=0,
    )
    batch_size: int = Field(
        default=100,
        description="Maximum deliveries fetched per poll",
        ge=1,
        le=1000,
    )
    max_retries: int = Field(
        default=5,
        description="Failed attempts before a delivery is dead-lettered",
        ge=1,
    )


class AuditSettings(BaseSettings):
    """Audit relay settings.

    Environment variables:
        TENANTSCOPE_AUDIT_RELAY: One of log, memory, null (default: log)
    """

    model_config = SettingsConfigDict(
        env_prefix="TENANTSCOPE_AUDIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    relay: AuditRelayKind = Field(
        default=AuditRelayKind.LOG,
        description="Audit relay implementation",
    )


class Settings(BaseSettings):
    """Main application settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_prefix="TENANTSCOPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="Tenantscope API", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: str = Field(default="INFO", description="Minimum log level")
    storage_backend: StorageBackend = Field(
        default=StorageBackend.MEMORY,
        description="Storage for tenants and deferred work",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Normalize and validate the log level name."""
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {value}")
        return level

    @property
    def database(self) -> DatabaseSettings:
        """Get database settings."""
        return get_database_settings()

    @property
    def tenancy(self) -> TenancySettings:
        """Get tenancy settings."""
        return get_tenancy_settings()

    @property
    def worker(self) -> DeferredWorkerSettings:
        """Get deferred worker settings."""
        return get_deferred_worker_settings()

    @property
    def audit(self) -> AuditSettings:
        """Get audit settings."""
        return get_audit_settings()


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
def get_tenancy_settings() -> TenancySettings:
    """Get cached tenancy settings."""
    return TenancySettings()


@lru_cache
def get_deferred_worker_settings() -> DeferredWorkerSettings:
    """Get cached deferred worker settings."""
    return DeferredWorkerSettings()


@lru_cache
def get_audit_settings() -> AuditSettings:
    """Get cached audit settings."""
    return AuditSettings()
