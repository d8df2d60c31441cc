"""
Sales Warehouse Analytics
Centralized Configuration Management

Configuration is read from environment variables (and an optional ``.env`` file)
through Pydantic settings, one section per concern.
"""

from datetime import date
from functools import lru_cache
from typing import Optional
from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class WarehouseSettings(BaseSettings):
    """Source warehouse location"""

    model_config = SettingsConfigDict(env_prefix="WAREHOUSE_")

    source: str = Field(default="files", description="Where tables are read from: files or database")
    data_path: str = Field(default="./data/warehouse", description="Directory holding the table files")
    file_format: str = Field(default="csv", description="Table file format: csv or parquet")

    @field_validator("source")
    @classmethod
    def validate_source(cls, v: str) -> str:
        allowed = ["files", "database"]
        if v.lower() not in allowed:
            raise ValueError(f"Warehouse source must be one of: {allowed}")
        return v.lower()

    @field_validator("file_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        allowed = ["csv", "parquet"]
        if v.lower() not in allowed:
            raise ValueError(f"File format must be one of: {allowed}")
        return v.lower()


class DatabaseSettings(BaseSettings):
    """PostgreSQL warehouse connection"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_")

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    db: str = Field(default="sales_warehouse", description="Database name")
    user: str = Field(default="analytics", description="Database user")
    password: SecretStr = Field(default="analytics", description="Database password")
    url: Optional[str] = Field(default=None, description="Full SQLAlchemy URL (overrides host/port)")
    echo: bool = Field(default=False, description="Echo SQL queries")

    @property
    def async_url(self) -> str:
        """Async database URL for asyncpg"""
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"


class ReportingSettings(BaseSettings):
    """Report computation and export"""

    model_config = SettingsConfigDict(env_prefix="REPORTING_")

    reference_date: Optional[date] = Field(
        default=None,
        description="Reference 'current' date for recency and age; today when unset",
    )
    export_path: str = Field(default="./data/reports", description="Directory for materialized views")
    export_format: str = Field(default="parquet", description="Export format: parquet or csv")
    default_page_size: int = Field(default=100, description="Default API page size")
    max_page_size: int = Field(default=10000, description="Largest page the API returns")

    def resolve_reference_date(self) -> date:
        """Configured reference date, or today"""
        return self.reference_date or date.today()


class MonitoringSettings(BaseSettings):
    """Logging configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseSettings):
    """
    Main Application Settings

    Aggregates all configuration sections and provides a single entry point
    for accessing application configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="sales-analytics", description="Application name")
    app_env: str = Field(default="development", description="Environment")
    debug: bool = Field(default=False, description="Debug mode")

    # API Server
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")

    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    warehouse: WarehouseSettings = Field(default_factory=WarehouseSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    reporting: ReportingSettings = Field(default_factory=ReportingSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Validate environment value"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
