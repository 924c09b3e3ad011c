"""
Settings Module for Device Monitor

Configuration management using Pydantic Settings.
Supports environment variables, .env files, and runtime configuration.
Every section reads its own environment prefix so deployments can
configure the database, the monitoring engine and each notification
transport independently.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional
from enum import Enum

from pydantic import (
    Field,
    SecretStr,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment enumeration."""
    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TESTING = "testing"


class LogLevel(str, Enum):
    """Logging level enumeration."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class DatabaseType(str, Enum):
    """Supported database types."""
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"


class BaseSettingsConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_default=True
    )


class DatabaseSettings(BaseSettingsConfig):
    """
    Database Configuration Settings

    Supports PostgreSQL (production) and SQLite (development).
    ``DB_DSN`` overrides everything else when set.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        extra="ignore"
    )

    type: DatabaseType = Field(
        default=DatabaseType.SQLITE,
        description="Database type: postgresql or sqlite"
    )
    dsn: Optional[str] = Field(
        default=None,
        description="Full SQLAlchemy URL, takes precedence when set"
    )

    # PostgreSQL settings
    host: str = Field(default="localhost", description="Database host address")
    port: int = Field(default=5432, ge=1, le=65535, description="Database port number")
    name: str = Field(default="device_monitor", min_length=1, max_length=64)
    user: str = Field(default="postgres", min_length=1, max_length=64)
    password: SecretStr = Field(default=SecretStr(""), description="Database password")

    # SQLite settings
    sqlite_path: Path = Field(
        default=Path("data/device_monitor.db"),
        description="Path to SQLite database file"
    )

    # Connection pool settings
    pool_size: int = Field(default=10, ge=1, le=100)
    max_overflow: int = Field(default=20, ge=0, le=100)
    pool_timeout: int = Field(default=30, ge=1, le=300)
    pool_recycle: int = Field(default=1800, ge=60, le=7200)
    pool_pre_ping: bool = Field(default=True)

    echo: bool = Field(default=False, description="Echo SQL queries (debug mode)")

    @property
    def url(self) -> str:
        """Generate database URL based on configuration."""
        if self.dsn:
            return self.dsn

        if self.type == DatabaseType.SQLITE:
            self.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
            return f"sqlite+aiosqlite:///{self.sqlite_path}"

        if self.type == DatabaseType.POSTGRESQL:
            password = self.password.get_secret_value()
            return (
                f"postgresql+asyncpg://{self.user}:{password}"
                f"@{self.host}:{self.port}/{self.name}"
            )

        raise ValueError(f"Unsupported database type: {self.type}")

    @field_validator("sqlite_path")
    @classmethod
    def validate_sqlite_path(cls, v: Path) -> Path:
        """Validate and normalize SQLite path."""
        if not v.suffix:
            v = v.with_suffix(".db")
        return v


class MonitoringSettings(BaseSettingsConfig):
    """
    Monitoring Engine Configuration Settings

    Controls history retention, the background job runner and the
    probe defaults. Per-device interval and timeout live on the device.
    """

    model_config = SettingsConfigDict(
        env_prefix="MONITOR_",
        env_file=".env",
        extra="ignore"
    )

    log_retention_days: int = Field(
        default=30,
        ge=1,
        le=365,
        description="Days to keep monitoring logs"
    )
    retention_job_interval: int = Field(
        default=86400,  # 24 hours
        ge=60,
        description="Seconds between two runs of the retention job"
    )
    job_tick_interval: float = Field(
        default=2.0,
        gt=0,
        le=60.0,
        description="How often the job runner wakes up to look for due jobs"
    )
    ping_grace_seconds: float = Field(
        default=1.0,
        ge=0,
        le=30.0,
        description="Extra time allowed for the ping binary to exit after its own timeout"
    )
    user_agent: str = Field(
        default="DeviceMonitor/1.0 (Compatible; Monitoring Service)",
        description="User agent string for HTTP checks"
    )
    verify_ssl: bool = Field(
        default=True,
        description="Verify TLS certificates on https checks"
    )


class AlertSettings(BaseSettingsConfig):
    """
    Alert Recipient Settings

    A single recipient set receives every alert. When both are set
    alerts go out on both channels.
    """

    model_config = SettingsConfigDict(
        env_prefix="ALERT_",
        env_file=".env",
        extra="ignore"
    )

    email: Optional[str] = Field(default=None, description="Alert recipient email")
    phone: Optional[str] = Field(default=None, description="Alert recipient phone")
    subject_prefix: str = Field(
        default="Device Monitor Alert",
        description="Prefix for alert email subjects"
    )

    @field_validator("email", "phone", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Treat empty environment values as unset."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class ResendSettings(BaseSettingsConfig):
    """Resend email API credentials."""

    model_config = SettingsConfigDict(
        env_prefix="RESEND_",
        env_file=".env",
        extra="ignore"
    )

    api_key: Optional[SecretStr] = Field(default=None)
    from_email: str = Field(default="alerts@device-monitor.local")
    from_name: str = Field(default="Device Monitor Alerts")
    api_url: str = Field(default="https://api.resend.com/emails")
    timeout: float = Field(default=10.0, gt=0, le=120)


class OmbalaSettings(BaseSettingsConfig):
    """Ombala SMS API credentials (primary SMS transport)."""

    model_config = SettingsConfigDict(
        env_prefix="OMBALA_",
        env_file=".env",
        extra="ignore"
    )

    api_key: Optional[SecretStr] = Field(default=None)
    api_url: str = Field(default="https://api.useombala.ao/v1/messages")
    from_name: str = Field(default="DEVMON")
    timeout: float = Field(default=10.0, gt=0, le=120)


class VonageSettings(BaseSettingsConfig):
    """Vonage SMS API credentials (fallback SMS transport)."""

    model_config = SettingsConfigDict(
        env_prefix="VONAGE_",
        env_file=".env",
        extra="ignore"
    )

    api_key: Optional[str] = Field(default=None)
    api_secret: Optional[SecretStr] = Field(default=None)
    from_number: str = Field(default="DEVMON")
    api_url: str = Field(default="https://rest.nexmo.com/sms/json")
    default_country_code: str = Field(default="+55")
    timeout: float = Field(default=10.0, gt=0, le=120)


class LoggingSettings(BaseSettingsConfig):
    """
    Logging Configuration Settings

    Console and rotating file sinks for loguru.
    """

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore"
    )

    level: LogLevel = Field(default=LogLevel.INFO, description="Minimum logging level")
    console_enabled: bool = Field(default=True)
    colorize: bool = Field(default=True)
    file_enabled: bool = Field(default=False)
    file_path: Path = Field(default=Path("logs/device_monitor.log"))
    rotation: str = Field(default="10 MB", description="Log rotation size or period")
    retention: str = Field(default="30 days", description="Rotated log retention")
    serialize: bool = Field(default=False, description="Write JSON lines to the log file")


class Settings(BaseSettingsConfig):
    """
    Main Settings Class

    Aggregates all settings sections and provides the main
    configuration interface for the application.
    """

    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    app_name: str = Field(default="Device Monitor")
    app_version: str = Field(default="1.0.0")

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)
    alerts: AlertSettings = Field(default_factory=AlertSettings)
    resend: ResendSettings = Field(default_factory=ResendSettings)
    ombala: OmbalaSettings = Field(default_factory=OmbalaSettings)
    vonage: VonageSettings = Field(default_factory=VonageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT

    @model_validator(mode="after")
    def configure_for_environment(self) -> "Settings":
        """Apply environment-specific configuration."""
        if self.is_production:
            self.debug = False
            self.database.echo = False
        elif self.debug and self.logging.level == LogLevel.INFO:
            self.logging.level = LogLevel.DEBUG
        return self

    def to_dict(self, *, exclude_secrets: bool = True) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        data = self.model_dump()

        if exclude_secrets:
            def remove_secrets(obj: Any) -> Any:
                if isinstance(obj, dict):
                    return {
                        k: remove_secrets(v)
                        for k, v in obj.items()
                        if "password" not in k.lower()
                        and "secret" not in k.lower()
                        and "api_key" not in k.lower()
                    }
                return obj

            data = remove_secrets(data)

        return data


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
