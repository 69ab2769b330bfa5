"""
Parameter Cache Configuration

Configuration management with environment variable support.
Implements secure defaults and validation for all settings.
"""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..constants import INTERNAL_ID_PREFIX

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings with validation and secure defaults."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore"
    )

    # Environment settings
    ENVIRONMENT: str = Field(
        default="development", description="Application environment"
    )
    APP_NAME: str = Field(default="cache-service", description="Service name")
    DEBUG: bool = Field(default=False, description="Enable debug mode")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    # Store configuration
    STORE_BACKEND: str = Field(
        default="redis", description="Entity store backend: redis or memory"
    )
    REDIS_URL: str = Field(
        default="redis://localhost:6379", description="Redis connection URL"
    )
    REDIS_MAX_CONNECTIONS: int = Field(
        default=10, ge=1, le=50, description="Redis connection pool size"
    )
    REDIS_CONNECTION_TIMEOUT: float = Field(
        default=5.0, gt=0, le=60, description="Redis connect timeout in seconds"
    )
    REDIS_OPERATION_TIMEOUT: float = Field(
        default=5.0, gt=0, le=60, description="Redis socket timeout in seconds"
    )
    REDIS_KEY_PREFIX: str = Field(
        default="", description="Optional namespace prepended to every hash key"
    )

    # Repository behaviour
    ENTITY_ID_PREFIX: str = Field(
        default=INTERNAL_ID_PREFIX,
        min_length=1,
        description="Marker prefix for internally generated entity ids",
    )
    UNIQUENESS_STRATEGY: str = Field(
        default="index", description="Name uniqueness strategy: index or scan"
    )
    MISSING_PREDECESSOR_POLICY: str = Field(
        default="insert",
        description="Update of a vanished id: insert a new entity or fail",
    )

    # Upstream parameter service
    PARAM_SERVICE_URL: str = Field(
        default="http://localhost:8350", description="Parameter service base URL"
    )
    PARAM_SERVICE_TIMEOUT: float = Field(
        default=10.0, gt=0, le=120, description="Parameter service timeout"
    )

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment value."""
        allowed = ["development", "test", "staging", "production"]
        if v not in allowed:
            raise ValueError(f"ENVIRONMENT must be one of: {allowed}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of: {allowed}")
        return v.upper()

    @field_validator("STORE_BACKEND")
    @classmethod
    def validate_store_backend(cls, v):
        allowed = ["redis", "memory"]
        if v.lower() not in allowed:
            raise ValueError(f"STORE_BACKEND must be one of: {allowed}")
        return v.lower()

    @field_validator("UNIQUENESS_STRATEGY")
    @classmethod
    def validate_uniqueness_strategy(cls, v):
        allowed = ["index", "scan"]
        if v.lower() not in allowed:
            raise ValueError(f"UNIQUENESS_STRATEGY must be one of: {allowed}")
        return v.lower()

    @field_validator("MISSING_PREDECESSOR_POLICY")
    @classmethod
    def validate_missing_predecessor_policy(cls, v):
        allowed = ["insert", "fail"]
        if v.lower() not in allowed:
            raise ValueError(f"MISSING_PREDECESSOR_POLICY must be one of: {allowed}")
        return v.lower()

    @field_validator("REDIS_URL")
    @classmethod
    def validate_redis_url(cls, v):
        """Validate Redis URL scheme."""
        if not v.startswith(("redis://", "rediss://", "unix://")):
            raise ValueError("REDIS_URL must be a redis:// or rediss:// URL")
        return v

    @field_validator("PARAM_SERVICE_URL")
    @classmethod
    def validate_param_service_url(cls, v):
        if not v.startswith(("http://", "https://")):
            raise ValueError("PARAM_SERVICE_URL must be an http(s) URL")
        return v.rstrip("/")

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

