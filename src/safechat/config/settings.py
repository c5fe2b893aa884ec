"""
SafeChat Application Settings

Production-grade configuration management using Pydantic Settings.
All sensitive values are loaded from environment variables.

SECURITY: Never log or expose settings containing secrets.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """PostgreSQL database configuration."""

    model_config = SettingsConfigDict(env_prefix="SAFECHAT_DB_")

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    name: str = Field(default="safechat_db", description="Database name")
    user: str = Field(default="safechat_user", description="Database user")
    password: SecretStr = Field(default=SecretStr("dev_password"), description="Database password")
    pool_size: int = Field(default=10, ge=1, le=100, description="Connection pool size")
    max_overflow: int = Field(default=20, ge=0, le=100, description="Max overflow connections")
    url_override: Optional[str] = Field(
        default=None,
        description="Full async URL (e.g. sqlite+aiosqlite://) overriding host/port settings",
    )

    @property
    def async_url(self) -> str:
        """Generate async database URL for SQLAlchemy."""
        if self.url_override:
            return self.url_override
        password = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{password}@{self.host}:{self.port}/{self.name}"

    @property
    def sync_url(self) -> str:
        """Generate sync database URL for Alembic migrations."""
        password = self.password.get_secret_value()
        return f"postgresql://{self.user}:{password}@{self.host}:{self.port}/{self.name}"


class VerifierSettings(BaseSettings):
    """
    Concern verification model configuration.

    Any OpenAI-compatible chat-completions endpoint works;
    OpenRouter is the default.
    """

    model_config = SettingsConfigDict(env_prefix="SAFECHAT_VERIFIER_")

    provider: str = Field(default="openrouter", description="Provider type: openrouter or openai")
    api_key: SecretStr = Field(default=SecretStr(""), description="Verifier API key")
    base_url: str = Field(default="https://openrouter.ai/api/v1", description="OpenAI-compatible base URL")
    model: str = Field(default="meta-llama/llama-4-scout", description="Model identifier")
    max_tokens: int = Field(default=500, ge=50, le=4096)
    temperature: float = Field(default=0.2, ge=0.0, le=1.0)
    timeout_seconds: float = Field(default=8.0, ge=1.0, le=30.0, description="Hard timeout for one verification")
    app_title: str = Field(default="SafeChat - Safety Check", description="X-Title header sent to OpenRouter")


class SmtpSettings(BaseSettings):
    """SMTP configuration for teacher alert emails."""

    model_config = SettingsConfigDict(env_prefix="SAFECHAT_SMTP_")

    host: str = Field(default="", description="SMTP host")
    port: int = Field(default=587, description="SMTP port (465 = implicit TLS)")
    user: str = Field(default="", description="SMTP username")
    password: SecretStr = Field(default=SecretStr(""), description="SMTP password")
    from_address: str = Field(
        default='"SafeChat Safety" <noreply@safechat.local>',
        description="From header for alert emails",
    )
    timeout_seconds: float = Field(default=10.0, ge=1.0, le=60.0)

    @property
    def is_configured(self) -> bool:
        return bool(self.host and self.user and self.password.get_secret_value())


class SafetySettings(BaseSettings):
    """Safety pipeline thresholds and limits."""

    model_config = SettingsConfigDict(env_prefix="SAFECHAT_SAFETY_")

    # Independent values: advice may exist without escalation, never the reverse
    escalation_threshold: int = Field(default=3, ge=0, le=5, description="Minimum level that creates a Flag")
    advice_threshold: int = Field(default=2, ge=0, le=5, description="Minimum level that requires student advice")
    context_fetch_limit: int = Field(default=4, ge=0, le=20, description="Prior messages fetched from the store")
    context_prompt_turns: int = Field(default=3, ge=0, le=10, description="Prior turns embedded in the prompt")
    max_helplines: int = Field(default=2, ge=1, le=5, description="Helplines embedded per response")
    helplines_config_path: Optional[str] = Field(default=None, description="Optional JSON helpline table")
    app_url: str = Field(default="http://localhost:3000", description="Base URL for teacher review links")
    excerpt_max_chars: int = Field(default=1000, ge=50, le=10000)

    @field_validator("app_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class SentrySettings(BaseSettings):
    """Sentry error tracking configuration."""

    model_config = SettingsConfigDict(env_prefix="SAFECHAT_SENTRY_")

    dsn: str = Field(default="", description="Sentry DSN (empty disables)")
    traces_sample_rate: float = Field(default=0.1, ge=0.0, le=1.0)


class Settings(BaseSettings):
    """
    Main application settings.

    All configuration is loaded from environment variables with SAFECHAT_ prefix.
    Sensitive values use SecretStr to prevent accidental logging.

    Usage:
        settings = get_settings()
        threshold = settings.safety.escalation_threshold
    """

    model_config = SettingsConfigDict(
        env_prefix="SAFECHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode - NEVER enable in production")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )
    api_version: str = Field(default="v1", description="API version prefix")
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )
    app_name: str = Field(default="SafeChat", description="Product name used in alert emails")

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    verifier: VerifierSettings = Field(default_factory=VerifierSettings)
    smtp: SmtpSettings = Field(default_factory=SmtpSettings)
    safety: SafetySettings = Field(default_factory=SafetySettings)
    sentry: SentrySettings = Field(default_factory=SentrySettings)

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.
    For testing, use dependency injection to override.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
