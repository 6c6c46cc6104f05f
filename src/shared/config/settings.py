"""Configuration management with Pydantic Settings.

Environment variables are loaded from:
1. Environment variables (highest priority)
2. .env file (development)
3. Defaults (lowest priority)
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Logging format."""

    JSON = "json"
    TEXT = "text"


class DatabaseSettings(BaseSettings):
    """PostgreSQL database configuration."""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_")

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    user: str = Field(default="tourease", description="Database user")
    password: str = Field(default="", description="Database password")
    database: str = Field(default="tourease", description="Database name")
    url_override: str | None = Field(
        default=None,
        description="Full async SQLAlchemy URL, e.g. sqlite+aiosqlite:///./reports.db",
    )

    @property
    def async_url(self) -> str:
        """Build async database URL (asyncpg driver unless overridden)."""
        if self.url_override:
            return self.url_override
        return f"postgresql+asyncpg://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


class LLMSettings(BaseSettings):
    """Reasoning service configuration.

    The service is reached through an OpenAI-compatible chat completions
    endpoint. Leaving ``api_key`` unset is a supported deployment: reports are
    then produced by the deterministic fallback path.
    """

    model_config = SettingsConfigDict(env_prefix="LLM_")

    api_key: str | None = Field(default=None, description="Reasoning service API key")
    base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta/openai/",
        description="OpenAI-compatible endpoint",
    )
    model: str = Field(default="gemini-1.5-flash", description="Model name")
    max_tokens: int = Field(default=4096, description="Max tokens for completion")
    temperature: float = Field(default=0.4, description="Temperature for sampling")
    timeout_seconds: float = Field(default=45.0, description="Request timeout")

    @field_validator("api_key")
    @classmethod
    def blank_key_is_unset(cls, v: str | None) -> str | None:
        """Treat whitespace-only keys as absent."""
        if v is not None and not v.strip():
            return None
        return v


class Settings(BaseSettings):
    """Main application settings.

    All settings can be overridden via environment variables.
    For nested settings, use the appropriate prefix (e.g., POSTGRES_HOST).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="tourease-analytics", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        alias="ENV",
        description="Deployment environment",
    )

    # Logging configuration
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_format: LogFormat = Field(default=LogFormat.JSON, description="Logging format")

    # HTTP surface
    cors_origins: list[str] = Field(
        default_factory=lambda: ["*"],
        description="Origins allowed to call the API (JSON list in the environment)",
    )
    debug: bool = Field(default=False, description="Echo SQL and enable debug mode")

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    llm: LLMSettings = Field(default_factory=LLMSettings)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses LRU cache to avoid re-parsing environment variables.
    """
    return Settings()


class ReportEngineSettings(Settings):
    """Settings specific to the Report Engine service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    query_timeout_seconds: float = Field(
        default=30.0,
        description="Upper bound for the aggregation query fan-out",
    )
    top_attractions_limit: int = Field(
        default=10,
        description="Number of attractions kept in the ranked list",
    )
    default_forecast_horizon: int = Field(
        default=6,
        description="Forecast horizon in months when the request omits one",
    )
    max_forecast_horizon: int = Field(
        default=24,
        description="Largest accepted forecast horizon in months",
    )
    render_column_width: int = Field(
        default=500,
        description="Text column width in points used for word wrapping",
    )

    @field_validator("top_attractions_limit", "default_forecast_horizon")
    @classmethod
    def at_least_one(cls, v: int) -> int:
        return max(1, v)
