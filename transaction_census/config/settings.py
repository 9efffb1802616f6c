"""
Transaction & Census Analytics ETL
Centralized Configuration Management

This module provides configuration management using Pydantic settings with
environment variable support, validation, and type safety.
"""

from functools import lru_cache
from typing import Optional, List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Reporting Database Configuration"""

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    url: str = Field(
        default="sqlite:///./data/transaction_census.db",
        description="SQLAlchemy database URL",
    )
    echo: bool = Field(default=False, description="Echo SQL queries")
    insert_batch_size: int = Field(default=5000, description="Rows per executemany batch")

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured backend is SQLite"""
        return self.url.startswith("sqlite")


class PipelineSettings(BaseSettings):
    """ETL Pipeline Behaviour"""

    model_config = SettingsConfigDict(env_prefix="PIPELINE_")

    country: str = Field(default="Canada", description="Country scoping the dimensional model")
    census_country: str = Field(default="Canada", description="Country label added to cleaned census rows")

    # Null sentinels for the transaction cleaner
    unknown_customer: str = Field(default="Unknown", description="Sentinel for missing customer ids")
    missing_description: str = Field(default="No Description", description="Sentinel for missing descriptions")

    datetime_format: str = Field(default="%m/%d/%Y %H:%M", description="Invoice date format in raw files")
    product_representative_policy: str = Field(
        default="most_frequent",
        description="How a product's description/price is chosen: minimum, most_frequent or latest",
    )
    fail_on_validation_error: bool = Field(
        default=True,
        description="Stop the run when an ERROR-level data quality check fails",
    )
    persist: bool = Field(default=True, description="Write output tables to the database")

    @field_validator("product_representative_policy")
    @classmethod
    def validate_policy(cls, v: str) -> str:
        """Validate representative policy name"""
        allowed = ["minimum", "most_frequent", "latest"]
        if v.lower() not in allowed:
            raise ValueError(f"Representative policy must be one of: {allowed}")
        return v.lower()


class DataLakeSettings(BaseSettings):
    """File Storage Configuration"""

    model_config = SettingsConfigDict(env_prefix="DATA_")

    raw_path: str = Field(default="./data/raw", description="Raw source files path")
    curated_path: str = Field(default="./data/curated", description="Exported relations path")

    # File formats
    default_format: str = Field(default="csv", description="Default export format")
    csv_encoding: str = Field(default="utf8-lossy", description="Encoding used when reading raw CSV files")
    null_values: List[str] = Field(
        default=["", "NULL", "null", "None", "NA", "N/A"],
        description="Strings read as null from raw files",
    )


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")
    log_file: Optional[str] = Field(default=None, alias="LOG_FILE", description="Log file path")


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
    app_name: str = Field(default="transaction-census-analytics", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")
    debug: bool = Field(default=False, alias="DEBUG", description="Debug mode")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    data_lake: DataLakeSettings = Field(default_factory=DataLakeSettings)
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


# Convenience function for accessing settings
settings = get_settings()
